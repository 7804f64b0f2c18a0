"""Tests for kelly: full Kelly, fractional sizing, validation and verdicts."""

import pytest

from betgistics.core.kelly import (
    InvalidBankroll,
    InvalidProbability,
    calculate_kelly_stake,
    kelly_fraction,
    kelly_label,
    recommendation_text,
)
from betgistics.core.odds_math import InvalidOdds


class TestKellyFraction:
    def test_positive_edge(self):
        assert kelly_fraction(0.55, 1.909) == pytest.approx(0.055, abs=1e-3)

    def test_negative_edge_floors_at_zero(self):
        assert kelly_fraction(0.45, 1.909) == 0.0

    def test_rejects_decimal_odds_at_or_below_one(self):
        with pytest.raises(ValueError):
            kelly_fraction(0.6, 1.0)


class TestCalculateKellyStake:
    def test_no_value_bet_has_zero_stake(self):
        result = calculate_kelly_stake(1000, -110, 45, 1)
        assert result.has_value is False
        assert result.stake == 0
        assert result.stake_percentage == 0
        assert result.edge < 0

    def test_half_kelly_example(self):
        result = calculate_kelly_stake(1000, -110, 55, 0.5)
        assert result.has_value is True
        assert result.stake == pytest.approx(27.5, abs=0.01)
        assert result.implied_probability == pytest.approx(52.38, abs=0.01)
        assert result.edge == pytest.approx(2.62, abs=0.01)

    @pytest.mark.parametrize("fraction", [0.5, 0.25])
    def test_fractional_stake_is_linear_in_multiplier(self, fraction):
        full = calculate_kelly_stake(1000, 150, 48, 1.0)
        part = calculate_kelly_stake(1000, 150, 48, fraction)
        assert part.adjusted_kelly_fraction == pytest.approx(full.kelly_fraction * fraction, abs=1e-4)
        assert part.stake == pytest.approx(full.stake * fraction, abs=0.01)

    @pytest.mark.parametrize("bankroll, odds, probability", [
        (1000, -110, 55),
        (1000, 150, 48),
        (2500, -200, 70.3),
        (777.77, 120, 51.17),
        (1e9, -105, 60),
    ])
    def test_rounded_half_stake_within_a_cent_of_half_full(self, bankroll, odds, probability):
        full = calculate_kelly_stake(bankroll, odds, probability, 1.0)
        half = calculate_kelly_stake(bankroll, odds, probability, 0.5)
        assert abs(half.stake - 0.5 * full.stake) <= 0.01 + 1e-9

    def test_stake_monotonic_in_probability(self):
        stakes = [calculate_kelly_stake(1000, -110, p, 0.5).stake for p in range(40, 80, 5)]
        assert stakes == sorted(stakes)

    def test_payout_figures(self):
        result = calculate_kelly_stake(1000, 100, 60, 1.0)
        # Even money, 60%: full Kelly is 0.2
        assert result.stake == pytest.approx(200.0)
        assert result.potential_win == pytest.approx(200.0)
        assert result.potential_payout == pytest.approx(400.0)

    def test_repeat_calls_identical(self):
        assert calculate_kelly_stake(2500, -135, 61.3, 0.5) == calculate_kelly_stake(2500, -135, 61.3, 0.5)

    @pytest.mark.parametrize("bankroll", [0, -100, float("nan"), 2e9])
    def test_bad_bankroll(self, bankroll):
        with pytest.raises(InvalidBankroll):
            calculate_kelly_stake(bankroll, -110, 55)

    @pytest.mark.parametrize("odds", [-99.5, 99.5, 0])
    def test_bad_odds(self, odds):
        with pytest.raises(InvalidOdds):
            calculate_kelly_stake(1000, odds, 55)

    @pytest.mark.parametrize("odds", [-100, 100])
    def test_odds_at_edge_of_dead_zone_are_valid(self, odds):
        assert calculate_kelly_stake(1000, odds, 55).decimal_odds == pytest.approx(2.0)

    @pytest.mark.parametrize("probability", [-1, 101, float("inf")])
    def test_bad_probability(self, probability):
        with pytest.raises(InvalidProbability):
            calculate_kelly_stake(1000, -110, probability)

    @pytest.mark.parametrize("fraction", [0, -0.5, 1.5])
    def test_bad_fraction(self, fraction):
        with pytest.raises(ValueError):
            calculate_kelly_stake(1000, -110, 55, fraction)


class TestRecommendation:
    def test_no_bet(self):
        text = recommendation_text(calculate_kelly_stake(1000, -110, 45))
        assert text.startswith("NO BET")

    @pytest.mark.parametrize("probability, prefix", [
        (70, "STRONG VALUE"),
        (60, "GOOD VALUE"),
        (56, "MODERATE VALUE"),
        (53, "SLIGHT VALUE"),
    ])
    def test_edge_buckets(self, probability, prefix):
        text = recommendation_text(calculate_kelly_stake(1000, -110, probability, 0.5))
        assert text.startswith(prefix)

    def test_moderate_suggests_quarter_below_half(self):
        text = recommendation_text(calculate_kelly_stake(1000, -110, 56, 0.25))
        assert "quarter Kelly" in text


@pytest.mark.parametrize("fraction, label", [(1.0, "Full"), (0.5, "Half"), (0.25, "Quarter"), (0.3, "0.3x")])
def test_kelly_label(fraction, label):
    assert kelly_label(fraction) == label
