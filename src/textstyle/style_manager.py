"""Named inline style packages.

Maps semantic style names (``code``, ``link``, ``mark``, role names such as
``red`` or ``big``, ...) to the fragment properties they apply.  The packages
are built from a resolved theme, or from a built-in preset when no theme is
given.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from textstyle.colors import HexColor
from textstyle.fragments import RenderHook, StyleFlag

logger = logging.getLogger(__name__)

StylePackage = dict[str, Any]

# Markup tags whose style comes from a named package.
TAG_STYLES = ("button", "code", "key", "mark")

TEXT_DECORATIONS = {
    "underline": StyleFlag.UNDERLINE,
    "line-through": StyleFlag.STRIKETHROUGH,
}

# role_<name>_<key> theme keys and the fragment property they populate
ROLE_KEY_TO_PROPERTY = {
    "background_color": "background_color",
    "border_color": "border_color",
    "border_offset": "border_offset",
    "border_radius": "border_radius",
    "border_width": "border_width",
    "font_color": "color",
    "font_family": "font",
    "font_size": "size",
    "font_style": "styles",
}


def to_styles(
    font_style: Optional[str], text_decoration: Optional[str] = None
) -> Optional[frozenset[StyleFlag]]:
    """Translate a theme ``font_style`` (and text decoration) to style flags.

    ``normal`` yields an empty set, which clears inherited flags when the
    package is merged.  Unknown or missing values yield ``None``.
    """
    if font_style == "bold":
        styles: Optional[set[StyleFlag]] = {StyleFlag.BOLD}
    elif font_style == "italic":
        styles = {StyleFlag.ITALIC}
    elif font_style == "bold_italic":
        styles = {StyleFlag.BOLD, StyleFlag.ITALIC}
    elif font_style == "normal":
        styles = set()
    else:
        styles = None
    decoration = TEXT_DECORATIONS.get(text_decoration) if text_decoration else None
    if decoration is not None:
        styles = (styles or set()) | {decoration}
    return frozenset(styles) if styles is not None else None


def _compact(package: Mapping[str, Any]) -> StylePackage:
    return {key: value for key, value in package.items() if value is not None}


# ---------------------------------------------------------------------------
# Preset definitions
# ---------------------------------------------------------------------------

def _build_default_tag_packages() -> dict[str, StylePackage]:
    """Build the tag packages used when no theme is given."""

    return {
        "button": {"font": "Courier", "styles": frozenset({StyleFlag.BOLD})},
        "code": {"font": "Courier"},
        "key": {"font": "Courier", "styles": frozenset({StyleFlag.ITALIC})},
        "link": {"color": HexColor("0000FF")},
        "mark": {
            "background_color": HexColor("FFFF00"),
            "callback": (RenderHook.TEXT_BACKGROUND_AND_BORDER,),
        },
    }


def _build_default_role_packages() -> dict[str, StylePackage]:
    return {
        "big": {"size": "1.1667em"},
        "small": {"size": "0.8333em"},
    }


# ---------------------------------------------------------------------------
# Theme-derived packages
# ---------------------------------------------------------------------------

def _boxed_package(
    theme: Mapping[str, Any], prefix: str, font_family: Any = None
) -> StylePackage:
    """Build a package for an inline element that may carry a background
    and border (button, code, key)."""

    background_color = theme.get(f"{prefix}_background_color")
    border_width = theme.get(f"{prefix}_border_width")
    boxed = background_color is not None or border_width is not None
    border_color = None
    if border_width is not None:
        border_color = theme.get(f"{prefix}_border_color") or theme.get("base_border_color")
    return _compact({
        "color": theme.get(f"{prefix}_font_color"),
        "font": theme.get(f"{prefix}_font_family") or font_family,
        "size": theme.get(f"{prefix}_font_size"),
        "styles": to_styles(theme.get(f"{prefix}_font_style")),
        "background_color": background_color,
        "border_width": border_width,
        "border_color": border_color,
        "border_offset": theme.get(f"{prefix}_border_offset") if boxed else None,
        "border_radius": theme.get(f"{prefix}_border_radius") if boxed else None,
        "callback": (RenderHook.TEXT_BACKGROUND_AND_BORDER,) if boxed else None,
    })


def _build_theme_tag_packages(theme: Mapping[str, Any]) -> dict[str, StylePackage]:
    mark_background_color = theme.get("mark_background_color")
    marked = mark_background_color is not None
    return {
        "button": _boxed_package(theme, "button"),
        "code": _boxed_package(theme, "literal"),
        "key": _boxed_package(theme, "key", theme.get("literal_font_family")),
        "link": _compact({
            "color": theme.get("link_font_color"),
            "font": theme.get("link_font_family"),
            "size": theme.get("link_font_size"),
            "styles": to_styles(
                theme.get("link_font_style"), theme.get("link_text_decoration")
            ),
        }),
        "mark": _compact({
            "color": theme.get("mark_font_color"),
            "styles": to_styles(theme.get("mark_font_style")),
            "background_color": mark_background_color,
            "border_offset": theme.get("mark_border_offset") if marked else None,
            "callback": (RenderHook.TEXT_BACKGROUND_AND_BORDER,) if marked else None,
        }),
    }


def _relative_size(theme: Mapping[str, Any], key: str, fallback: str) -> str:
    size = theme.get(key)
    base_size = theme.get("base_font_size")
    if isinstance(size, (int, float)) and isinstance(base_size, (int, float)) and base_size:
        return f"{round(size / float(base_size), 4)}em"
    return fallback


def _build_theme_role_packages(theme: Mapping[str, Any]) -> dict[str, StylePackage]:
    roles: dict[str, StylePackage] = {}
    for key, value in theme.items():
        if not key.startswith("role_"):
            continue
        role, sep, role_key = key[len("role_"):].partition("_")
        prop = ROLE_KEY_TO_PROPERTY.get(role_key) if sep else None
        if prop is None:
            continue
        if prop == "styles":
            value = to_styles(value)
        roles.setdefault(role, {})[prop] = value
    packages = {role: _compact(package) for role, package in roles.items()}

    packages.setdefault("big", {"size": _relative_size(theme, "base_font_size_large", "1.1667em")})
    packages.setdefault("small", {"size": _relative_size(theme, "base_font_size_small", "0.8333em")})
    return packages


# ---------------------------------------------------------------------------
# StyleManager
# ---------------------------------------------------------------------------

class StyleManager:
    """Provides the named style packages for a theme.

    Usage::

        sm = StyleManager(load_theme())
        code = sm.get_tag_style("code")      # {"font": "M+ 1mn", ...}
        red = sm.get_style("red")            # role package, or None
    """

    def __init__(self, theme: Optional[Mapping[str, Any]] = None) -> None:
        self.theme = theme
        if theme is None:
            self._tags = _build_default_tag_packages()
            self._roles = _build_default_role_packages()
        else:
            self._tags = _build_theme_tag_packages(theme)
            self._roles = _build_theme_role_packages(theme)
        logger.debug("Built %d role style packages", len(self._roles))

    # -- public API ---------------------------------------------------------

    def get_style(self, name: str) -> Optional[StylePackage]:
        """Return the role package called *name* (a class name in markup),
        or ``None`` when the theme defines no such role."""
        return self._roles.get(name)

    def get_tag_style(self, tag: str) -> StylePackage:
        """Return the package for ``button``, ``code``, ``key``, ``mark`` or
        ``link``; empty when the theme defines none."""
        return self._tags.get(tag, {})

    def has_style(self, name: str) -> bool:
        return name in self._roles

    def list_style_names(self) -> list[str]:
        """Return all available role package names."""
        return sorted(self._roles.keys())
