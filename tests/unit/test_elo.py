"""
Unit tests for the Elo calculator.

Tests the core rating math to ensure:
- Expected scores of both sides always sum to one
- Rating changes are zero-sum
- Favorites winning gain less than underdogs winning
- The fixed K-factor is applied exactly, without rounding
"""

import math

import pytest

from steamrank.elo.calculator import (
    EloCalculator,
    calculate_elo_change,
    expected_score,
    winner_side,
)
from steamrank.elo.constants import K_FACTOR
from steamrank.errors import InvalidWinner


class TestEloCalculator:
    """Tests for EloCalculator class."""

    @pytest.fixture
    def calculator(self):
        """Create a calculator instance for tests."""
        return EloCalculator()

    def test_default_k_factor(self, calculator):
        assert K_FACTOR == 32
        assert calculator.k_factor == 32.0

    def test_equal_ratings(self, calculator):
        """Two fresh games: a win is worth exactly K/2."""
        result = calculator.calculate(1500.0, 1500.0, "A")

        assert result.expected_a == pytest.approx(0.5)
        assert result.rating_a_after == pytest.approx(1516.0)
        assert result.rating_b_after == pytest.approx(1484.0)

    def test_favorite_wins(self, calculator):
        """
        The higher-rated game winning moves ratings only a little.

        A 200 point gap gives an expected score of 1 / (1 + 10^-0.5).
        """
        result = calculator.calculate(1600.0, 1400.0, "A")

        assert result.expected_a == pytest.approx(0.759747, abs=1e-6)
        assert result.rating_a_after == pytest.approx(1607.688, abs=1e-3)
        assert result.rating_b_after == pytest.approx(1392.312, abs=1e-3)
        assert not result.was_upset

    def test_underdog_wins(self, calculator):
        """Beating a higher-rated game moves ratings a lot."""
        result = calculator.calculate(1600.0, 1400.0, "B")

        assert result.expected_b == pytest.approx(0.240253, abs=1e-6)
        assert result.rating_b_after == pytest.approx(1424.312, abs=1e-3)
        assert result.rating_a_after == pytest.approx(1575.688, abs=1e-3)
        assert result.was_upset

    def test_four_hundred_point_gap(self, calculator):
        """At a 400 point gap the favorite is expected to win ten times in eleven."""
        favorite = calculator.calculate(1800.0, 1400.0, "A")
        upset = calculator.calculate(1800.0, 1400.0, "B")

        assert favorite.expected_a == pytest.approx(10 / 11)
        assert favorite.change_a == pytest.approx(2.909, abs=1e-3)
        assert upset.change_b == pytest.approx(29.091, abs=1e-3)

    def test_upset_gains_more_than_expected_win(self, calculator):
        expected_win = calculator.calculate(1700.0, 1500.0, "A")
        upset = calculator.calculate(1700.0, 1500.0, "B")
        assert upset.change_b > expected_win.change_a

    @pytest.mark.parametrize(
        "elo_a,elo_b",
        [(1500.0, 1500.0), (1623.4, 1377.9), (-250.0, 2400.0), (1500.0, 1500.000001)],
    )
    def test_expected_scores_sum_to_one(self, calculator, elo_a, elo_b):
        result = calculator.calculate(elo_a, elo_b, "A")
        assert result.expected_a + result.expected_b == pytest.approx(1.0)

    @pytest.mark.parametrize("winner", ["A", "B"])
    def test_zero_sum(self, calculator, winner):
        """Whatever one game gains, the other loses."""
        result = calculator.calculate(1712.25, 1488.5, winner)
        assert result.change_a == pytest.approx(-result.change_b)

    def test_ratings_are_not_rounded(self, calculator):
        result = calculator.calculate(1500.0, 1450.0, "A")
        assert result.rating_a_after != round(result.rating_a_after, 2)

    def test_ratings_are_not_clamped(self, calculator):
        """A low rating may go negative; that is accepted ladder behaviour."""
        result = calculator.calculate(5.0, 10.0, "B")
        assert result.rating_a_after < 0

    def test_extreme_gap_saturates(self, calculator):
        result = calculator.calculate(0.0, 1e6, "A")
        assert result.expected_a == 0.0
        assert result.rating_a_after == pytest.approx(32.0)
        assert math.isfinite(result.rating_b_after)

    def test_custom_k_factor(self):
        result = EloCalculator(k_factor=10).calculate(1500.0, 1500.0, "B")
        assert result.change_b == pytest.approx(5.0)

    def test_invalid_winner(self, calculator):
        """Test that invalid winner raises error."""
        with pytest.raises(InvalidWinner):
            calculator.calculate(1500.0, 1500.0, "C")

    def test_win_probability(self, calculator):
        assert calculator.get_win_probability(2000.0, 1500.0) > 0.9
        assert calculator.get_win_probability(1500.0, 1500.0) == pytest.approx(0.5)


class TestWinnerSide:
    def test_maps_ids(self):
        assert winner_side(7, 9, 7) == "A"
        assert winner_side(7, 9, 9) == "B"

    def test_rejects_outsider(self):
        with pytest.raises(InvalidWinner):
            winner_side(7, 9, 8)


class TestConvenienceFunctions:
    """Tests for the module-level helpers."""

    def test_calculate_elo_change(self):
        new_a, new_b = calculate_elo_change(1700.0, 1600.0, "A")

        # Winner gained, loser lost
        assert new_a > 1700.0
        assert new_b < 1600.0

        assert isinstance(new_a, float)
        assert isinstance(new_b, float)

    def test_expected_score_is_symmetric(self):
        assert expected_score(1550.0, 1450.0) + expected_score(1450.0, 1550.0) == pytest.approx(1.0)
