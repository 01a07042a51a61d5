"""textstyle - theme resolution and rich-text fragment styling."""

from textstyle.colors import CMYKColor, HexColor
from textstyle.errors import (
    ConfigParseError,
    ThemeError,
    ThemeExtendsCycleError,
    ThemeNotFoundError,
    UnresolvedReferenceError,
    UnsupportedColorFormatError,
)
from textstyle.fragments import RenderHook, StyleFlag, StyleFragment
from textstyle.theme_loader import ResolvedTheme, ThemeLoader, load_theme
from textstyle.transform import Transform

__version__ = "0.1.0"

__all__ = [
    "CMYKColor",
    "ConfigParseError",
    "HexColor",
    "RenderHook",
    "ResolvedTheme",
    "StyleFlag",
    "StyleFragment",
    "ThemeError",
    "ThemeExtendsCycleError",
    "ThemeLoader",
    "ThemeNotFoundError",
    "Transform",
    "UnresolvedReferenceError",
    "UnsupportedColorFormatError",
    "load_theme",
]
