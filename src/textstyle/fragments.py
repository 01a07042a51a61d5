"""Style fragments: the unit of output of the transform engine.

A :class:`StyleFragment` is one run of styled text (or an inline image, or
an invisible destination marker) handed to the downstream text renderer.
Fragments are immutable; deriving a child style always produces a new
fragment, so an inherited context can be shared by sibling branches.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from textstyle.colors import CMYKColor, HexColor


class StyleFlag(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    SUBSCRIPT = "subscript"
    SUPERSCRIPT = "superscript"
    STRIKETHROUGH = "strikethrough"
    UNDERLINE = "underline"


class RenderHook(Enum):
    """Renderer capabilities a fragment asks to be invoked at render time."""

    INLINE_IMAGE = "inline_image"
    DESTINATION_MARKER = "inline_destination_marker"
    TEXT_BACKGROUND_AND_BORDER = "text_background_and_border"
    INLINE_TEXT_ALIGN = "inline_text_align"


# ---------------------------------------------------------------------------
# Merge policy
# ---------------------------------------------------------------------------

class MergePolicy(Enum):
    OVERWRITE = "overwrite"
    UNION = "union"
    CLEAR_ON_EMPTY = "clear_on_empty"


# Properties not listed here are overwritten.
MERGE_POLICIES: dict[str, MergePolicy] = {
    "styles": MergePolicy.CLEAR_ON_EMPTY,
    "callback": MergePolicy.UNION,
}


def _union(current: Optional[Iterable[Any]], extra: Iterable[Any]) -> tuple[Any, ...]:
    merged = list(current or ())
    for item in extra:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


# ---------------------------------------------------------------------------
# Fragment
# ---------------------------------------------------------------------------

Color = Union[HexColor, CMYKColor, str]


@dataclass(frozen=True)
class StyleFragment:
    """A run of styled text or an inline object."""

    text: Optional[str] = None
    styles: Optional[frozenset[StyleFlag]] = None
    color: Optional[Color] = None
    background_color: Optional[Color] = None
    border_color: Optional[Color] = None
    border_width: Optional[float] = None
    border_offset: Optional[float] = None
    border_radius: Optional[float] = None
    font: Optional[str] = None
    size: Optional[Union[float, str]] = None
    link: Optional[str] = None
    anchor: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    image_path: Optional[str] = None
    image_format: Optional[str] = None
    image_width: Optional[str] = None
    image_tmp: bool = False
    width: Optional[str] = None
    align: Optional[str] = None
    callback: Optional[tuple[RenderHook, ...]] = None

    def __post_init__(self) -> None:
        # an empty style set is never stored
        styles = frozenset(self.styles) if self.styles else None
        object.__setattr__(self, "styles", styles)
        callback = _union(None, self.callback) if self.callback else None
        object.__setattr__(self, "callback", callback)

    # -- convenience helpers ------------------------------------------------

    def derive(self, **overrides: Any) -> StyleFragment:
        """Return a copy with selected fields overridden."""
        return replace(self, **overrides)

    def with_styles(self, *flags: StyleFlag) -> StyleFragment:
        """Return a copy with *flags* added to the style set."""
        return replace(self, styles=frozenset(self.styles or ()) | frozenset(flags))

    def with_callback(self, hook: RenderHook) -> StyleFragment:
        """Return a copy with *hook* appended to the callbacks (once)."""
        return replace(self, callback=_union(self.callback, (hook,)))

    def merge(self, package: Mapping[str, Any]) -> StyleFragment:
        """Return a copy with a named style package applied.

        Each property is combined according to :data:`MERGE_POLICIES`.
        """
        overrides: dict[str, Any] = {}
        for prop, value in package.items():
            policy = MERGE_POLICIES.get(prop, MergePolicy.OVERWRITE)
            if policy is MergePolicy.UNION:
                overrides[prop] = _union(getattr(self, prop), value or ())
            elif policy is MergePolicy.CLEAR_ON_EMPTY:
                overrides[prop] = value if value else None
            else:
                overrides[prop] = value
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Return the fragment as a dict holding only the fields that are set."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is False:
                continue
            result[f.name] = value
        return result
