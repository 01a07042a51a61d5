"""Theme resolution engine.

Loads a YAML theme (optionally extending other themes), flattens the nested
keys into ``section_subsection_key`` form, interpolates ``$variable``
references, evaluates arithmetic, coerces colours and returns an immutable
:class:`ResolvedTheme`.

Usage::

    theme = load_theme("custom", "~/.config/themes")
    theme["base_font_color"]        # HexColor('333333')
    theme.theme_dir                 # directory the theme was resolved from
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Optional, Union

import yaml

from textstyle.colors import HexColor, coerce_color
from textstyle.errors import (
    ConfigParseError,
    ThemeExtendsCycleError,
    ThemeNotFoundError,
    UnsupportedColorFormatError,
)
from textstyle.expressions import MISSING, evaluate_math, expand_vars, to_text

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

THEMES_DIR = Path(os.path.abspath(Path(__file__).parent / "data" / "themes"))
BASE_THEME_PATH = THEMES_DIR / "base-theme.yml"
DEFAULT_THEME_PATH = THEMES_DIR / "default-theme.yml"
THEME_FILE_EXT = ".yml"
THEME_FILE_SUFFIX = "-theme.yml"

FONT_STYLES = ("normal", "bold", "italic", "bold_italic")

# Unquoted hex values (``#fefefe``, ``fefefe``) would otherwise be read as a
# YAML comment or an integer; rewrite them to quoted strings before parsing.
# Only ``#``-prefixed values and values of ``*color`` keys are rewritten.
HEX_COLOR_ENTRY_RX = re.compile(
    r"""^(?P<k> *\S+): +(?!null$)(?P<q>["']?)(?P<h>\#)?(?P<v>[a-fA-F0-9]{3,6})(?P=q) *(?:\#.*)?$"""
)


# ---------------------------------------------------------------------------
# Resolved theme
# ---------------------------------------------------------------------------

class ResolvedTheme(Mapping):
    """Immutable flat mapping of normalised theme keys to typed values."""

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        theme_dir: Optional[PathLike] = None,
    ) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._theme_dir = Path(theme_dir) if theme_dir is not None else None

    @property
    def theme_dir(self) -> Optional[Path]:
        """Directory the theme was resolved from, if it was loaded from disk."""
        return self._theme_dir

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ResolvedTheme({self._data!r}, theme_dir={self._theme_dir!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable shallow copy of the theme data."""
        return dict(self._data)


# ---------------------------------------------------------------------------
# Required keys
# ---------------------------------------------------------------------------

def _literal_font_family(data: Mapping[str, Any]) -> Any:
    return data.get("literal_font_family") or "Courier"


REQUIRED_KEYS: tuple[tuple[str, Callable[[Mapping[str, Any]], Any]], ...] = (
    ("base_align", lambda data: "left"),
    ("base_line_height", lambda data: 1),
    ("base_font_color", lambda data: HexColor("000000")),
    ("code_font_family", _literal_font_family),
    ("conum_font_family", _literal_font_family),
)

HEADING_FONT_FAMILY_KEYS = ("abstract_title_font_family", "sidebar_title_font_family")


def apply_required_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Fill in required keys that are absent (or null) in *data*."""
    for key, default in REQUIRED_KEYS:
        if data.get(key) is None:
            data[key] = default(data)
    heading_font_family = data.get("heading_font_family")
    if heading_font_family:
        for key in HEADING_FONT_FAMILY_KEYS:
            if data.get(key) is None:
                data[key] = heading_font_family
    return data


# ---------------------------------------------------------------------------
# Source helpers
# ---------------------------------------------------------------------------

def _normalize_key(key: Any) -> str:
    return str(key).replace("-", "_")


def _rewrite_hex_color_shorthand(content: str) -> str:
    def _rewrite(m: re.Match) -> str:
        key = m.group("k")
        if m.group("h") or key.endswith("color"):
            return f"{key}: '{m.group('v')}'"
        return m.group(0)

    return "\n".join(HEX_COLOR_ENTRY_RX.sub(_rewrite, line) for line in content.splitlines())


def _parse_yaml(content: str, origin: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Invalid YAML in {origin}: {exc}") from exc
    if not data:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigParseError(
            f"Theme in {origin} must be a mapping, got {type(data).__name__}"
        )
    return dict(data)


def _abspath(path: PathLike) -> Path:
    return Path(os.path.abspath(Path(path).expanduser()))


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class ThemeLoader:
    """Resolve theme sources into :class:`ResolvedTheme` instances.

    With ``strict=True`` an unknown ``$variable`` reference raises
    :class:`~textstyle.errors.UnresolvedReferenceError`; otherwise a warning
    is logged and the reference is kept as literal text.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    # -- public API ---------------------------------------------------------

    @staticmethod
    def resolve_theme_file(
        theme_name: Optional[str] = None, theme_dir: Optional[PathLike] = None
    ) -> tuple[Path, Path]:
        """Return ``(theme_path, theme_dir)`` for a theme name or file name.

        A name ending in ``.yml`` is a path (relative to *theme_dir*); any
        other name is expanded to ``<name>-theme.yml`` inside *theme_dir*.
        The built-in themes directory is used when *theme_dir* is not given.
        The file does not need to exist.
        """
        theme_name = str(theme_name or "default")
        search_dir = _abspath(theme_dir) if theme_dir else THEMES_DIR
        if theme_name.endswith(THEME_FILE_EXT):
            theme_path = _abspath(search_dir / Path(theme_name).expanduser())
            return theme_path, theme_path.parent
        return _abspath(search_dir / f"{theme_name}{THEME_FILE_SUFFIX}"), search_dir

    def load(
        self, source: Any, theme_dir: Optional[PathLike] = None
    ) -> ResolvedTheme:
        """Resolve an in-memory theme (a mapping or YAML text).

        Falsy input yields an empty theme.  An ``extends`` entry is honoured
        relative to *theme_dir* (or the working directory), but nothing is
        inherited implicitly and required keys are not filled in.
        """
        if not source:
            return ResolvedTheme({}, theme_dir)
        if isinstance(source, str):
            data = _parse_yaml(source, "<string>")
        elif isinstance(source, Mapping):
            data = dict(source)
        else:
            raise ConfigParseError(
                f"Theme must be a mapping, got {type(source).__name__}"
            )

        parent = None
        if "extends" in data:
            base_dir = _abspath(theme_dir) if theme_dir else Path.cwd()
            parent = self._load_extends(data.pop("extends"), None, base_dir, base_dir, [])
        return ResolvedTheme(self._process(data, parent), theme_dir)

    def load_file(
        self,
        filename: PathLike,
        theme_data: Optional[Mapping[str, Any]] = None,
        theme_dir: Optional[PathLike] = None,
    ) -> ResolvedTheme:
        """Resolve the theme file *filename* on top of *theme_data*.

        ``extends`` entries are resolved against *theme_dir*, or against the
        directory of the file when *theme_dir* is not given.
        """
        path = _abspath(filename)
        parent = dict(theme_data) if theme_data is not None else None
        data = self._load_file_data(path, parent, theme_dir, [])
        return ResolvedTheme(data, _abspath(theme_dir) if theme_dir else path.parent)

    def load_theme(
        self, theme_name: Optional[str] = None, theme_dir: Optional[PathLike] = None
    ) -> ResolvedTheme:
        """Load a theme by name or path and guarantee the required keys.

        ``base`` loads the built-in base theme, no name loads the built-in
        default theme, any other name or ``.yml`` path is resolved with
        :meth:`resolve_theme_file`.
        """
        theme_path, resolved_dir = self.resolve_theme_file(theme_name, theme_dir)
        if theme_path == BASE_THEME_PATH:
            return self.load_base_theme()
        data = self._load_file_data(theme_path, None, resolved_dir, [])
        return ResolvedTheme(apply_required_keys(data), resolved_dir)

    def load_base_theme(self) -> ResolvedTheme:
        """Load the built-in base theme."""
        return ResolvedTheme(self._base_theme_data(), THEMES_DIR)

    # -- file loading -------------------------------------------------------

    def _base_theme_data(self) -> dict[str, Any]:
        return self._load_file_data(BASE_THEME_PATH, None, None, [])

    def _load_file_data(
        self,
        filename: Path,
        parent: Optional[dict[str, Any]],
        theme_dir: Optional[PathLike],
        chain: list[str],
    ) -> dict[str, Any]:
        if str(filename) in chain:
            raise ThemeExtendsCycleError(chain + [str(filename)])
        chain = chain + [str(filename)]

        logger.debug("Loading theme file %s", filename)
        try:
            content = filename.read_text(encoding="utf-8")
        except OSError as exc:
            raise ThemeNotFoundError(f"Theme file not found: {filename}") from exc

        builtin = filename.parent == THEMES_DIR
        if not builtin:
            content = _rewrite_hex_color_shorthand(content)
        data = _parse_yaml(content, str(filename))

        if "extends" in data:
            file_dir = filename.parent
            search_dir = _abspath(theme_dir) if theme_dir else file_dir
            parent = self._load_extends(data.pop("extends"), parent, file_dir, search_dir, chain)
        elif parent is None and not builtin:
            parent = self._base_theme_data()
        return self._process(data, parent)

    def _load_extends(
        self,
        extends: Any,
        parent: Optional[dict[str, Any]],
        file_dir: Path,
        search_dir: Path,
        chain: list[str],
    ) -> Optional[dict[str, Any]]:
        entries = extends if isinstance(extends, list) else [extends]
        for entry in entries:
            if entry is None or entry == "nil":
                continue
            entry = str(entry)
            if entry == "base":
                logger.debug("Extending base theme")
                base = self._base_theme_data()
                parent = {**parent, **base} if parent else base
                continue
            if entry == "default":
                extend_path = DEFAULT_THEME_PATH
            elif entry.startswith("./"):
                extend_path = _abspath(file_dir / entry)
            else:
                extend_path, _ = self.resolve_theme_file(entry, search_dir)
            logger.debug("Extending theme %s", extend_path)
            parent = self._load_file_data(extend_path, parent, None, chain)
        return parent

    # -- entry processing ---------------------------------------------------

    def _process(
        self, data: Mapping[str, Any], parent: Optional[Mapping[str, Any]]
    ) -> dict[str, Any]:
        theme: dict[str, Any] = dict(parent) if parent else {}
        for key, value in data.items():
            self._process_entry(_normalize_key(key), value, theme)
        return theme

    def _process_entry(self, key: str, value: Any, theme: dict[str, Any]) -> None:
        if key == "font":
            if isinstance(value, Mapping):
                for subkey, subvalue in value.items():
                    subkey = _normalize_key(subkey)
                    if subkey in ("catalog", "fallbacks"):
                        self._process_entry(f"font_{subkey}", subvalue, theme)
        elif key == "font_catalog":
            theme[key] = self._font_catalog(value, theme)
        elif key == "font_fallbacks":
            if isinstance(value, list):
                theme[key] = tuple(self._expand(to_text(name), theme) for name in value)
            else:
                theme[key] = ()
        elif key.startswith("admonition_icon_") and isinstance(value, Mapping):
            icon: dict[str, Any] = {}
            for subkey, subvalue in value.items():
                subkey = _normalize_key(subkey)
                subvalue = self._evaluate(subvalue, theme)
                icon[subkey] = self._color(subvalue) if subkey.endswith("_color") else subvalue
            theme[key] = MappingProxyType(icon)
        elif isinstance(value, Mapping):
            if key == "role":
                # role names are free-form identifiers and keep their hyphens
                for role_name, role_entries in value.items():
                    if not isinstance(role_entries, Mapping):
                        continue
                    for subkey, subvalue in role_entries.items():
                        self._process_entry(
                            f"role_{role_name}_{_normalize_key(subkey)}", subvalue, theme
                        )
            else:
                for subkey, subvalue in value.items():
                    self._process_entry(f"{key}_{_normalize_key(subkey)}", subvalue, theme)
        elif key.endswith("_color"):
            theme[key] = self._color(self._evaluate(value, theme))
        elif key.endswith("content"):
            theme[key] = to_text(self._expand(to_text(value), theme))
        else:
            theme[key] = self._evaluate(value, theme)

    def _font_catalog(self, value: Any, theme: Mapping[str, Any]) -> Mapping[str, Any]:
        """Return the font catalog as a read-only ``{family: {style: path}}`` map."""
        catalog: dict[str, Any] = {}
        if not isinstance(value, Mapping):
            return MappingProxyType(catalog)
        for name, styles in value.items():
            if isinstance(styles, Mapping):
                catalog[str(name)] = MappingProxyType({
                    str(style): self._expand(to_text(path), theme)
                    for style, path in styles.items()
                })
            else:
                # a single path is used for every style
                path = self._expand(to_text(styles), theme)
                catalog[str(name)] = MappingProxyType({style: path for style in FONT_STYLES})
        return MappingProxyType(catalog)

    # -- value helpers ------------------------------------------------------

    def _expand(self, expr: str, theme: Mapping[str, Any]) -> Any:
        return expand_vars(expr, lambda key: theme.get(key, MISSING), self.strict)

    def _evaluate(self, value: Any, theme: Mapping[str, Any]) -> Any:
        if isinstance(value, str):
            return evaluate_math(self._expand(value, theme))
        if isinstance(value, list):
            return tuple(self._evaluate(item, theme) for item in value)
        return value

    def _color(self, value: Any) -> Any:
        try:
            return coerce_color(value)
        except UnsupportedColorFormatError as exc:
            logger.debug("Keeping colour value as-is: %s", exc)
            return value


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_loader = ThemeLoader()


def resolve_theme_file(
    theme_name: Optional[str] = None, theme_dir: Optional[PathLike] = None
) -> tuple[Path, Path]:
    """See :meth:`ThemeLoader.resolve_theme_file`."""
    return ThemeLoader.resolve_theme_file(theme_name, theme_dir)


def load(source: Any, theme_dir: Optional[PathLike] = None) -> ResolvedTheme:
    """See :meth:`ThemeLoader.load`."""
    return _default_loader.load(source, theme_dir)


def load_file(
    filename: PathLike,
    theme_data: Optional[Mapping[str, Any]] = None,
    theme_dir: Optional[PathLike] = None,
) -> ResolvedTheme:
    """See :meth:`ThemeLoader.load_file`."""
    return _default_loader.load_file(filename, theme_data, theme_dir)


def load_theme(
    theme_name: Optional[str] = None, theme_dir: Optional[PathLike] = None
) -> ResolvedTheme:
    """See :meth:`ThemeLoader.load_theme`."""
    return _default_loader.load_theme(theme_name, theme_dir)


def load_base_theme() -> ResolvedTheme:
    """See :meth:`ThemeLoader.load_base_theme`."""
    return _default_loader.load_base_theme()
