"""Tests for variable interpolation and theme arithmetic."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from textstyle.colors import CMYKColor, HexColor
from textstyle.errors import UnresolvedReferenceError
from textstyle.expressions import (
    MISSING,
    evaluate_math,
    expand_vars,
    resolve_measurement_values,
    to_pt,
    to_text,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def lookup_in(values: dict[str, Any]):
    return lambda key: values.get(key, MISSING)


VARIABLES = {
    "base_font_size": 12,
    "base_font_family": "Noto Serif",
    "base_font_color": HexColor("333333"),
    "brand_primary_color": HexColor("2156A5"),
}


# ---------------------------------------------------------------------------
# to_text
# ---------------------------------------------------------------------------

class TestToText:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (10, "10"),
            (1.5, "1.5"),
            (HexColor("FF0000"), "FF0000"),
            (CMYKColor([0, 10, 20, 30]), "[0, 10, 20, 30]"),
            ([">"], '[">"]'),
        ],
    )
    def test_string_forms(self, value: Any, expected: str) -> None:
        assert to_text(value) == expected


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

class TestExpandVars:
    def test_lone_reference_keeps_type(self) -> None:
        assert expand_vars("$base_font_size", lookup_in(VARIABLES)) == 12
        color = expand_vars("$base_font_color", lookup_in(VARIABLES))
        assert isinstance(color, HexColor)

    def test_embedded_reference_is_substituted_as_text(self) -> None:
        result = expand_vars("$base_font_family, serif", lookup_in(VARIABLES))
        assert result == "Noto Serif, serif"

    def test_hyphens_in_reference_are_normalized(self) -> None:
        assert expand_vars("$base-font-size", lookup_in(VARIABLES)) == 12

    def test_color_value_substituted_into_text(self) -> None:
        result = expand_vars("1px solid #$brand_primary_color", lookup_in(VARIABLES))
        assert result == "1px solid #2156A5"

    def test_string_without_sigil_is_untouched(self) -> None:
        assert expand_vars("plain text", lookup_in({})) == "plain text"

    def test_unknown_reference_kept_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="textstyle.expressions"):
            result = expand_vars("by $author_name", lookup_in(VARIABLES))
        assert result == "by $author_name"
        assert "author_name" in caplog.text

    def test_unknown_lone_reference_kept(self) -> None:
        assert expand_vars("$nope", lookup_in({})) == "$nope"

    def test_unknown_reference_raises_when_strict(self) -> None:
        with pytest.raises(UnresolvedReferenceError) as excinfo:
            expand_vars("$nope", lookup_in({}), strict=True)
        assert excinfo.value.reference == "nope"


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------

class TestMeasurements:
    @pytest.mark.parametrize(
        "number, unit, expected",
        [
            (1, "in", 72.0),
            (25.4, "mm", 72.0),
            (2.54, "cm", 72.0),
            (10, "pt", 10.0),
            (4, "px", 3.0),
            (5, None, 5),
        ],
    )
    def test_to_pt(self, number: float, unit: str, expected: float) -> None:
        assert to_pt(number, unit) == pytest.approx(expected)

    def test_measurements_replaced_in_expression(self) -> None:
        assert resolve_measurement_values("0.5in + 2pt") == "36.0 + 2.0"

    def test_measurement_must_stand_alone(self) -> None:
        assert resolve_measurement_values("size0.5in") == "size0.5in"


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

class TestEvaluateMath:
    @pytest.mark.parametrize(
        "expr, expected",
        [
            ("12 * 1.25", 15),
            ("15 / 12", 1.25),
            ("10 + 2 * 3", 16),
            ("10 - 4 - 3", 3),
            ("-2 * 3", -6),
            ("round(10.5 * 1.25)", 13),
            ("floor(12 * 2.6)", 31),
            ("ceil(10.5)", 11),
            ("round(-2.5)", -3),
            ("0.75in", 54),
            ("1in + 0.5in", 108),
            ("42", 42),
            ("2.50", "2.50"),
        ],
    )
    def test_evaluates_to_number(self, expr: str, expected: Any) -> None:
        assert evaluate_math(expr) == expected

    def test_precision_function_returns_int(self) -> None:
        assert isinstance(evaluate_math("round(4.2)"), int)

    def test_operator_requires_spaces(self) -> None:
        assert evaluate_math("ten-10") == "ten-10"
        assert evaluate_math("10-2") == "10-2"

    def test_non_numeric_string_returned_unchanged(self) -> None:
        assert evaluate_math("Noto Serif") == "Noto Serif"

    @pytest.mark.parametrize(
        "expr, expected",
        [
            ("1 / 100000", 1e-05),
            ("0.00001 * 2", 2e-05),
            ("0.00001 + 0.00002", 3e-05),
            ("100000000 * 100000000", 10**16),
            ("100000000 * 100000000 / 2", 5 * 10**15),
        ],
    )
    def test_tiny_and_huge_results(self, expr: str, expected: Any) -> None:
        assert evaluate_math(expr) == pytest.approx(expected)

    def test_division_by_zero_leaves_expression(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="textstyle.expressions"):
            assert evaluate_math("10 / 0") == "10 / 0"
        assert "divide by zero" in caplog.text

    def test_non_strings_pass_through(self) -> None:
        assert evaluate_math(12) == 12
        assert evaluate_math(None) is None

    def test_hex_color_is_not_evaluated(self) -> None:
        color = HexColor("000011")
        assert evaluate_math(color) is color
