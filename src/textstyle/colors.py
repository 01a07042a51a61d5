"""Colour values stored in a resolved theme.

Any theme key ending in ``_color`` is coerced into one of two typed values:
:class:`HexColor` (six upper-case hex digits) or :class:`CMYKColor` (four
components in the 0-100 range).
"""

from __future__ import annotations

import re
from typing import Any, Union

from textstyle.errors import UnsupportedColorFormatError

_HEX_DIGITS_RX = re.compile(r"^[0-9A-Fa-f]+$")


class HexColor(str):
    """An RGB colour as six upper-case hexadecimal digits, e.g. ``428BCA``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"HexColor({str.__repr__(self)})"


class CMYKColor(tuple):
    """A CMYK colour; each component is a number in the range ``[0, 100]``."""

    __slots__ = ()

    def __new__(cls, components) -> CMYKColor:
        return super().__new__(cls, components)

    def __str__(self) -> str:
        return "[" + ", ".join(str(c) for c in self) + "]"

    def __repr__(self) -> str:
        return f"CMYKColor({list(self)!r})"


ColorValue = Union[HexColor, CMYKColor]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def _collapse(number: float) -> Union[int, float]:
    """Return *number* as an ``int`` when it has no fractional part."""
    return int(number) if float(number).is_integer() else number


def _cmyk_component(value: Any) -> Union[int, float]:
    if isinstance(value, bool):
        raise UnsupportedColorFormatError(f"Invalid CMYK component: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
        # fractions such as 0.92 are read as 92%
        if number <= 1:
            number *= 100
    else:
        try:
            number = float(str(value).strip().rstrip("%"))
        except ValueError as exc:
            raise UnsupportedColorFormatError(
                f"Invalid CMYK component: {value!r}"
            ) from exc
    number = min(100.0, max(0.0, round(number, 2)))
    return _collapse(number)


def _rgb_component(value: Any) -> str:
    try:
        number = int(float(value))
    except (TypeError, ValueError) as exc:
        raise UnsupportedColorFormatError(f"Invalid RGB component: {value!r}") from exc
    return "%02X" % max(0, min(255, number))


def _expand_hex(digits: str) -> str:
    if len(digits) == 6:
        return digits
    if len(digits) == 3:
        return "".join(c * 2 for c in digits)
    # truncate or pad with leading zeros (ff -> 0000ff)
    return digits[:6].rjust(6, "0")


def coerce_color(value: Any) -> Union[ColorValue, None]:
    """Coerce a raw theme value into a :class:`HexColor` or :class:`CMYKColor`.

    Raises :class:`UnsupportedColorFormatError` when *value* matches none of
    the recognised notations.
    """
    if value is None or isinstance(value, (HexColor, CMYKColor)):
        return value

    if isinstance(value, (list, tuple)):
        if len(value) == 4:
            components = [_cmyk_component(c) for c in value]
            if components == [0, 0, 0, 0]:
                return HexColor("FFFFFF")
            if components == [100, 100, 100, 100]:
                return HexColor("000000")
            return CMYKColor(components)
        if len(value) == 3:
            return HexColor("".join(_rgb_component(c) for c in value))
        raise UnsupportedColorFormatError(f"Unsupported colour list: {value!r}")

    if isinstance(value, bool) or isinstance(value, float):
        raise UnsupportedColorFormatError(f"Unsupported colour value: {value!r}")

    digits = str(value).strip()
    if digits == "transparent":
        return HexColor(digits)
    if digits.startswith("#"):
        digits = digits[1:]
    if not digits or not _HEX_DIGITS_RX.match(digits):
        raise UnsupportedColorFormatError(f"Unsupported colour value: {value!r}")
    return HexColor(_expand_hex(digits).upper())
