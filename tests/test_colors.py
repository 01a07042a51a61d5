"""Tests for colour coercion."""

from __future__ import annotations

import pytest

from textstyle.colors import CMYKColor, HexColor, coerce_color
from textstyle.errors import UnsupportedColorFormatError


# ---------------------------------------------------------------------------
# Hex notation
# ---------------------------------------------------------------------------

class TestHexColors:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("428bca", "428BCA"),
            ("#428bca", "428BCA"),
            ("222", "222222"),
            ("#a00", "AA0000"),
            ("ff", "0000FF"),
            ("fffffff", "FFFFFF"),
            (9, "000009"),
            (11, "000011"),
        ],
    )
    def test_normalizes_to_six_upper_case_digits(self, raw: object, expected: str) -> None:
        color = coerce_color(raw)
        assert isinstance(color, HexColor)
        assert color == expected

    def test_transparent_is_kept(self) -> None:
        assert coerce_color("transparent") == "transparent"

    def test_none_passes_through(self) -> None:
        assert coerce_color(None) is None

    def test_existing_color_values_pass_through(self) -> None:
        hex_color = HexColor("FF0000")
        cmyk_color = CMYKColor([0, 10, 20, 30])
        assert coerce_color(hex_color) is hex_color
        assert coerce_color(cmyk_color) is cmyk_color

    @pytest.mark.parametrize("raw", ["red", "#zzzzzz", "", True, 1.5])
    def test_unrecognized_values_raise(self, raw: object) -> None:
        with pytest.raises(UnsupportedColorFormatError):
            coerce_color(raw)


# ---------------------------------------------------------------------------
# Array notation
# ---------------------------------------------------------------------------

class TestArrayColors:
    def test_three_components_are_rgb(self) -> None:
        assert coerce_color([255, 0, 128]) == "FF0080"

    def test_rgb_components_are_clamped(self) -> None:
        assert coerce_color([300, -5, 16]) == "FF0010"

    def test_four_components_are_cmyk(self) -> None:
        color = coerce_color([50, 100, 0, 0])
        assert isinstance(color, CMYKColor)
        assert list(color) == [50, 100, 0, 0]

    def test_cmyk_fractions_are_scaled_to_percent(self) -> None:
        assert list(coerce_color([0.5, 1, 0, 0.25])) == [50, 100, 0, 25]

    def test_cmyk_percent_strings(self) -> None:
        assert list(coerce_color(["20%", "0%", "12.5%", "0"])) == [20, 0, 12.5, 0]

    def test_cmyk_components_are_clamped(self) -> None:
        assert list(coerce_color([150, 10, 10, 10])) == [100, 10, 10, 10]

    def test_cmyk_white_collapses_to_hex(self) -> None:
        color = coerce_color([0, 0, 0, 0])
        assert isinstance(color, HexColor)
        assert color == "FFFFFF"

    def test_cmyk_black_collapses_to_hex(self) -> None:
        assert coerce_color([100, 100, 100, 100]) == HexColor("000000")

    def test_cmyk_str_form(self) -> None:
        assert str(CMYKColor([50, 100, 0, 0])) == "[50, 100, 0, 0]"

    def test_other_lengths_raise(self) -> None:
        with pytest.raises(UnsupportedColorFormatError):
            coerce_color([1, 2])
