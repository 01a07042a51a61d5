"""Rich-text transform engine - converts a markup tree to style fragments.

This module walks a tree of :class:`~textstyle.markup.MarkupNode` objects
and produces the flat, ordered list of :class:`~textstyle.fragments.StyleFragment`
objects consumed by the downstream text renderer.

Each element derives a new inherited context from its parent's context by
applying its own tag and attribute rules; text below the element is emitted
with that context.  Named style packages (inline code, marked text, roles
given as class names, ...) come from the resolved theme via
:class:`~textstyle.style_manager.StyleManager`.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from textstyle.colors import CMYKColor, HexColor
from textstyle.fragments import RenderHook, StyleFlag, StyleFragment
from textstyle.markup import MarkupNode, NodeType, ReferenceType
from textstyle.style_manager import TAG_STYLES, TEXT_DECORATIONS, StyleManager

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LF = "\n"
ZERO_WIDTH_SPACE = "\u200b"

CHAR_ENTITY_TABLE = {
    "amp": "&",
    "apos": "'",
    "gt": ">",
    "lt": "<",
    "nbsp": "\u00a0",
    "quot": '"',
}

CHAR_REF_RX = re.compile(
    r"&(?:(" + "|".join(CHAR_ENTITY_TABLE) + r")|#(?:(\d\d\d{0,4})|x([a-f\d][a-f\d][a-f\d]{0,3})));"
)

_STYLE_TAGS = {
    "strong": StyleFlag.BOLD,
    "em": StyleFlag.ITALIC,
    "sub": StyleFlag.SUBSCRIPT,
    "sup": StyleFlag.SUPERSCRIPT,
    "del": StyleFlag.STRIKETHROUGH,
}

_EMPTY = StyleFragment()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except ValueError:
        return 0


def _parse_size(value: str) -> Optional[float]:
    """Return *value* as a float when it is a plain number (``12``, ``10.5``)."""
    try:
        number = float(value)
    except ValueError:
        return None
    if str(number) == value or (number.is_integer() and str(int(number)) == value):
        return number
    return None


def _decode_char_ref(m: re.Match) -> str:
    if m.group(1):
        return CHAR_ENTITY_TABLE[m.group(1)]
    if m.group(2):
        return chr(int(m.group(2)))
    return chr(int(m.group(3), 16))


def decode_char_refs(value: str) -> str:
    """Decode entity and numeric character references (``&amp;``, ``&#38;``)."""
    return CHAR_REF_RX.sub(_decode_char_ref, value)


def resolve_charref(node: MarkupNode) -> str:
    """Return the character a character reference node stands for."""
    if node.reference_type == ReferenceType.DECIMAL:
        return chr(int(node.value))
    if node.reference_type == ReferenceType.HEX:
        return chr(int(str(node.value), 16))
    name = str(node.value)
    return CHAR_ENTITY_TABLE.get(name, f"&{name};")


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------

class Transform:
    """Convert parsed inline markup into a list of :class:`StyleFragment`.

    Usage::

        transform = Transform(load_theme(), merge_adjacent_text_nodes=True)
        fragments = transform.apply([element("strong", [text("hello")])])
    """

    def __init__(
        self,
        theme: Optional[Mapping[str, Any]] = None,
        *,
        merge_adjacent_text_nodes: bool = False,
    ) -> None:
        self.style: StyleManager = StyleManager(theme)
        self.merge_adjacent_text_nodes = merge_adjacent_text_nodes

    # ======================================================================
    # Public API
    # ======================================================================

    def apply(
        self,
        nodes: list[MarkupNode],
        fragments: Optional[list[StyleFragment]] = None,
        inherited: Optional[StyleFragment] = None,
    ) -> list[StyleFragment]:
        """Append the fragments for *nodes* to *fragments* and return it.

        *inherited* is the style context of the enclosing element; it is
        never modified.
        """
        if fragments is None:
            fragments = []
        previous_fragment_is_text = False

        for node in nodes:
            nt = node.type

            if nt == NodeType.ELEMENT:
                if node.children is not None:
                    if node.children:
                        context = self.build_fragment(
                            inherited or _EMPTY, node.name, node.attributes
                        )
                        self.apply(node.children, fragments, context)
                    elif self._is_destination(node):
                        fragments.append(self._destination_placeholder(node, inherited))
                    previous_fragment_is_text = False
                elif node.name == "br":
                    if self.merge_adjacent_text_nodes and previous_fragment_is_text:
                        self._append_text(fragments, inherited, LF, merge=True)
                    else:
                        fragments.append(StyleFragment(text=LF))
                    previous_fragment_is_text = True
                elif node.name == "img":
                    fragments.append(self._image_fragment(node, inherited))
                    previous_fragment_is_text = False

            elif nt == NodeType.TEXT:
                if node.value:
                    self._append_text(
                        fragments, inherited, str(node.value), merge=previous_fragment_is_text
                    )
                    previous_fragment_is_text = True

            elif nt == NodeType.CHARREF:
                self._append_text(
                    fragments, inherited, resolve_charref(node), merge=previous_fragment_is_text
                )
                previous_fragment_is_text = True

        return fragments

    def build_fragment(
        self,
        fragment: StyleFragment,
        tag_name: str,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> StyleFragment:
        """Return the context *fragment* extended with the rules of one element."""
        attrs = attributes or {}

        if tag_name in _STYLE_TAGS:
            fragment = fragment.with_styles(_STYLE_TAGS[tag_name])
        elif tag_name in TAG_STYLES:
            fragment = fragment.merge(self.style.get_tag_style(tag_name))
        else:
            handler = getattr(self, f"_build_{tag_name}", None)
            if handler is not None:
                fragment = handler(fragment, attrs)

        if "class" in attrs:
            fragment = self._apply_classes(fragment, attrs["class"])
        return fragment

    # ======================================================================
    # Fragment emission
    # ======================================================================

    def _append_text(
        self,
        fragments: list[StyleFragment],
        inherited: Optional[StyleFragment],
        value: str,
        *,
        merge: bool,
    ) -> None:
        if merge and self.merge_adjacent_text_nodes and fragments:
            value = (fragments.pop().text or "") + value
        fragments.append((inherited or _EMPTY).derive(text=value))

    def _image_fragment(
        self, node: MarkupNode, inherited: Optional[StyleFragment]
    ) -> StyleFragment:
        attrs = node.attributes
        return StyleFragment(
            image_path=attrs.get("src"),
            image_tmp=attrs.get("tmp") == "true",
            image_format=attrs.get("format"),
            image_width=attrs.get("width"),
            # a zero-width space in the alt text makes the renderer draw the image twice
            text=(attrs.get("alt") or "").replace(ZERO_WIDTH_SPACE, ""),
            link=inherited.link if inherited else None,
            callback=(RenderHook.INLINE_IMAGE,),
        )

    @staticmethod
    def _is_destination(node: MarkupNode) -> bool:
        attrs = node.attributes
        return (
            node.name == "a"
            and attrs.get("name") is not None
            and attrs.get("anchor") is None
            and attrs.get("href") is None
        )

    def _destination_placeholder(
        self, node: MarkupNode, inherited: Optional[StyleFragment]
    ) -> StyleFragment:
        fragment = self.build_fragment(inherited or _EMPTY, node.name, node.attributes)
        return fragment.derive(text=ZERO_WIDTH_SPACE)

    # ======================================================================
    # Per-tag rules
    # ======================================================================

    def _build_color(self, fragment: StyleFragment, attrs: Mapping[str, str]) -> StyleFragment:
        rgb = attrs.get("rgb")
        if rgb:
            if rgb.startswith("#"):
                return fragment.derive(color=rgb[1:])
            if rgb.startswith("["):
                # CMYK array, e.g. "[50, 100, 0, 0]"
                values = rgb[1:].rstrip("]").split(",")
                return fragment.derive(color=CMYKColor(_to_int(v) for v in values))
            return fragment.derive(color=rgb)
        if all(attrs.get(k) for k in ("r", "g", "b")):
            hex_value = "".join("%02X" % _to_int(attrs[k]) for k in ("r", "g", "b"))
            return fragment.derive(color=HexColor(hex_value))
        if all(attrs.get(k) for k in ("c", "m", "y", "k")):
            return fragment.derive(
                color=CMYKColor(_to_int(attrs[k]) for k in ("c", "m", "y", "k"))
            )
        return fragment

    def _build_font(self, fragment: StyleFragment, attrs: Mapping[str, str]) -> StyleFragment:
        name = attrs.get("name")
        if name:
            fragment = fragment.derive(font=name)
        size = attrs.get("size")
        if size:
            number = _parse_size(size)
            if number is not None:
                fragment = fragment.derive(size=number)
            elif size != "1em":
                fragment = fragment.derive(size=size)
        width = attrs.get("width")
        if width:
            fragment = fragment.derive(width=width)
            align = attrs.get("align")
            if align:
                fragment = fragment.derive(align=align).with_callback(RenderHook.INLINE_TEXT_ALIGN)
        return fragment

    def _build_a(self, fragment: StyleFragment, attrs: Mapping[str, str]) -> StyleFragment:
        # anchor, href and name are mutually exclusive, checked in that order
        visible = True
        if attrs.get("anchor") is not None:
            fragment = fragment.derive(anchor=attrs["anchor"])
        elif attrs.get("href") is not None:
            href = attrs["href"]
            fragment = fragment.derive(link=decode_char_refs(href) if ";" in href else href)
        elif attrs.get("name") is not None:
            fragment = fragment.derive(name=attrs["name"])
            if attrs.get("type"):
                fragment = fragment.derive(type=attrs["type"])
            fragment = fragment.with_callback(RenderHook.DESTINATION_MARKER)
            visible = False
        if visible:
            fragment = fragment.merge(self.style.get_tag_style("link"))
        return fragment

    def _build_span(self, fragment: StyleFragment, attrs: Mapping[str, str]) -> StyleFragment:
        style = attrs.get("style")
        if not style:
            return fragment
        for declaration in style.replace(" ", "").split(";"):
            pname, _, pvalue = declaration.partition(":")
            if pname == "color":
                if fragment.color is None:
                    if len(pvalue) == 6:
                        fragment = fragment.derive(color=pvalue)
                    elif len(pvalue) == 7 and pvalue.startswith("#"):
                        fragment = fragment.derive(color=pvalue[1:])
            elif pname == "font-weight":
                if pvalue == "bold":
                    fragment = fragment.with_styles(StyleFlag.BOLD)
            elif pname == "font-style":
                if pvalue == "italic":
                    fragment = fragment.with_styles(StyleFlag.ITALIC)
        return fragment

    def _apply_classes(self, fragment: StyleFragment, class_attr: str) -> StyleFragment:
        for class_name in class_attr.split():
            if class_name in TEXT_DECORATIONS:
                fragment = fragment.with_styles(TEXT_DECORATIONS[class_name])
                continue
            package = self.style.get_style(class_name)
            if package is not None:
                fragment = fragment.merge(package)
            if fragment.background_color is not None or (
                fragment.border_color is not None and fragment.border_width is not None
            ):
                fragment = fragment.with_callback(RenderHook.TEXT_BACKGROUND_AND_BORDER)
        return fragment
