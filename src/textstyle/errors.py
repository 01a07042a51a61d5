"""Exception hierarchy for theme loading."""

from __future__ import annotations


class ThemeError(Exception):
    """Base class for errors raised while resolving a theme."""


class ConfigParseError(ThemeError):
    """The theme source is not well-formed YAML or not a mapping."""


class ThemeNotFoundError(ThemeError):
    """A theme file (or a file named by ``extends``) could not be read."""


class ThemeExtendsCycleError(ThemeError):
    """An ``extends`` chain loops back onto a theme already being loaded."""

    def __init__(self, chain: list[str]) -> None:
        self.chain = chain
        super().__init__("Theme extends cycle: " + " -> ".join(chain))


class UnresolvedReferenceError(ThemeError):
    """A ``$variable`` reference names a key that has not been defined."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Unknown variable reference in theme: ${reference}")


class UnsupportedColorFormatError(ThemeError):
    """A ``*_color`` value matches none of the recognised colour notations."""
