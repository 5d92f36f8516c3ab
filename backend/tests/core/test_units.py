"""Unit tests for unit conversions - pure functions, no mocks needed."""

import pytest

from vitaltrack.core.units import (
    cm_to_feet_inches,
    format_height,
    kg_to_lb,
    lb_to_kg,
    round_half_up,
)


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "value,expected",
        [(62.5, 63), (1942.5, 1943), (0.5, 1), (2.5, 3), (18.75, 19), (62.4, 62), (0, 0)],
    )
    def test_halves_round_up(self, value, expected):
        """Exact halves go up, never to the even neighbour."""
        assert round_half_up(value) == expected


class TestMassConversion:
    """Tests for kg_to_lb and lb_to_kg."""

    def test_kg_to_lb(self):
        """One kilogram is 2.20462 pounds."""
        assert kg_to_lb(1) == pytest.approx(2.20462)
        assert kg_to_lb(78) == pytest.approx(171.96036)

    def test_lb_to_kg(self):
        """Pounds divide by the same factor."""
        assert lb_to_kg(220.462) == pytest.approx(100)

    def test_no_internal_rounding(self):
        """Converting there and back returns the original value."""
        assert lb_to_kg(kg_to_lb(72.5)) == pytest.approx(72.5, abs=1e-12)


class TestHeightConversion:
    """Tests for cm_to_feet_inches and format_height."""

    def test_typical_height(self):
        """178 cm is 5 feet 10 inches."""
        assert cm_to_feet_inches(178) == (5, 10)

    def test_short_height(self):
        """160 cm is 5 feet 3 inches."""
        assert cm_to_feet_inches(160) == (5, 3)

    def test_inches_can_round_to_twelve(self):
        """Inches are rounded without carrying into feet."""
        assert cm_to_feet_inches(182.8) == (5, 12)

    def test_format_height(self):
        """Heights format as feet'inches"."""
        assert format_height(178) == "5'10\""
