"""Variable interpolation and arithmetic for theme values.

Theme values may reference previously defined keys with a ``$`` sigil
(``$base_font_size``) and may contain simple arithmetic
(``$base_font_size * 1.25``) wrapped in an optional precision function
(``ceil(...)``, ``floor(...)``, ``round(...)``).  Arithmetic is only
recognised when the operator is surrounded by whitespace, so ``ten-10``
stays a string.
"""

from __future__ import annotations

import json
import logging
import math
import re
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from textstyle.colors import CMYKColor, HexColor
from textstyle.errors import UnresolvedReferenceError

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Any]

MISSING = object()

VARIABLE_RX = re.compile(r"\$([a-z0-9_-]+)")
LONE_VARIABLE_RX = re.compile(r"^\$([a-z0-9_-]+)$")

_NUMBER = r"-?\d+(?:\.\d+)?"
MULTIPLY_DIVIDE_OP_RX = re.compile(rf"({_NUMBER}) +([*/]) +({_NUMBER})")
ADD_SUBTRACT_OP_RX = re.compile(rf"({_NUMBER}) +([+\-]) +({_NUMBER})")
PRECISION_FUNC_RX = re.compile(r"^(round|floor|ceil)\((.*)\)$")
MEASUREMENT_VALUE_RX = re.compile(rf"(?:(?<=[ (])|^)({_NUMBER})(in|mm|cm|pt|px)(?=$|[ )])")
_INT_RX = re.compile(r"^-?\d+$")
_FLOAT_RX = re.compile(r"^-?\d+\.\d+$")

# points per unit
UNIT_FACTORS = {
    "in": 72.0,
    "mm": 72 / 25.4,
    "cm": 720 / 25.4,
    "pt": 1.0,
    "px": 0.75,
}


# ---------------------------------------------------------------------------
# Text conversion
# ---------------------------------------------------------------------------

def to_text(value: Any) -> str:
    """Return the string form of a theme value.

    Booleans render as ``true``/``false``, ``None`` as an empty string and
    lists in bracketed form (``["a", 1]``).
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (HexColor, CMYKColor)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False)
    return str(value)


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

def _lookup(name: str, lookup: Lookup, strict: bool) -> Any:
    key = name.replace("-", "_")
    value = lookup(key)
    if value is MISSING:
        if strict:
            raise UnresolvedReferenceError(name)
        logger.warning("Unknown variable reference in theme: $%s", name)
    return value


def expand_vars(expr: str, lookup: Lookup, strict: bool = False) -> Any:
    """Replace ``$name`` references in *expr* using *lookup*.

    *lookup* returns :data:`MISSING` for undefined keys.  A value consisting
    of a single reference resolves to the referenced value itself (keeping
    its type); references embedded in a longer string are substituted as
    text.
    """
    if "$" not in expr:
        return expr

    match = LONE_VARIABLE_RX.match(expr)
    if match:
        value = _lookup(match.group(1), lookup, strict)
        return expr if value is MISSING else value

    def _substitute(m: re.Match) -> str:
        value = _lookup(m.group(1), lookup, strict)
        return m.group(0) if value is MISSING else to_text(value)

    return VARIABLE_RX.sub(_substitute, expr)


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def _format_number(number: float) -> str:
    """Return *number* in positional notation (``0.00001``, never ``1e-05``)."""
    text = repr(number)
    if "e" in text or "E" in text:
        return format(Decimal(text), "f")
    return text


def to_pt(number: float, unit: Optional[str]) -> float:
    """Convert a measurement in *unit* to points."""
    if not unit:
        return number
    return number * UNIT_FACTORS[unit]


def resolve_measurement_values(expr: str) -> str:
    """Replace measurements such as ``0.5in`` with their value in points."""
    return MEASUREMENT_VALUE_RX.sub(
        lambda m: _format_number(to_pt(float(m.group(1)), m.group(2))), expr
    )


def _apply_operator(m: re.Match) -> str:
    left, op, right = float(m.group(1)), m.group(2), float(m.group(3))
    if op == "*":
        return _format_number(left * right)
    if op == "/":
        if right == 0:
            logger.warning("Cannot divide by zero in theme expression: %s", m.group(0))
            return m.group(0)
        return _format_number(left / right)
    if op == "+":
        return _format_number(left + right)
    return _format_number(left - right)


def _reduce(expr: str, rx: re.Pattern, operators: str) -> str:
    while any(op in expr for op in operators):
        result = rx.sub(_apply_operator, expr)
        if result == expr:
            break
        expr = result
    return expr


def _round_half_away(number: float) -> int:
    return int(math.copysign(math.floor(abs(number) + 0.5), number))


_PRECISION_FUNCS = {
    "round": _round_half_away,
    "floor": math.floor,
    "ceil": math.ceil,
}


def _to_number(expr: str) -> Union[int, float, None]:
    if _INT_RX.match(expr) and str(int(expr)) == expr:
        return int(expr)
    if _FLOAT_RX.match(expr):
        number = float(expr)
        if _format_number(number) == expr:
            return int(number) if number.is_integer() else number
    return None


def evaluate_math(expr: Any) -> Any:
    """Evaluate arithmetic in *expr* and return a number when possible.

    Non-string values and colour values are returned untouched, as is any
    string that does not reduce to a number.
    """
    if not isinstance(expr, str) or isinstance(expr, HexColor):
        return expr

    raw = expr
    expr = resolve_measurement_values(expr)
    expr = _reduce(expr, MULTIPLY_DIVIDE_OP_RX, "*/")
    expr = _reduce(expr, ADD_SUBTRACT_OP_RX, "+-")

    match = PRECISION_FUNC_RX.match(expr)
    if match:
        operand = _to_number(match.group(2).strip())
        if operand is not None:
            return _PRECISION_FUNCS[match.group(1)](operand)
        return raw

    number = _to_number(expr)
    return raw if number is None else number
