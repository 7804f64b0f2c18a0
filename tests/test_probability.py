"""Tests for the probability engine."""

import pytest

from betgistics.core.probability import (
    ProbabilityEstimate,
    cover_probability,
    estimate_cover,
    estimate_over,
    interpret_cover,
    interpret_over,
    model_confidence,
    norm_cdf,
    over_probability,
)


class TestNormCdf:
    @pytest.mark.parametrize("x, expected", [
        (0.0, 0.5),
        (1.96, 0.9750),
        (-1.0, 0.1587),
        (1.0, 0.8413),
    ])
    def test_known_values(self, x, expected):
        assert norm_cdf(x) == pytest.approx(expected, abs=1e-4)

    def test_symmetry(self):
        assert norm_cdf(0.7) + norm_cdf(-0.7) == pytest.approx(1.0, abs=1e-7)


class TestCoverProbability:
    def test_zero_margin_zero_line_is_coin_flip(self):
        assert cover_probability(0.0, 0.0, 13.5) == pytest.approx(50.0, abs=1e-3)

    def test_margin_exceeding_line_favours_cover(self):
        # Predicted to win by 10 while laying 7
        assert cover_probability(10.0, -7.0, 13.5) > 50

    @pytest.mark.parametrize("margin", [-500.0, 500.0])
    def test_clamped_to_spread_bounds(self, margin):
        p = cover_probability(margin, 0.0, 12.0)
        assert 0.1 <= p <= 99.9

    def test_rejects_non_positive_sigma(self):
        with pytest.raises(ValueError):
            cover_probability(3.0, -3.0, 0.0)

    def test_bit_identical_on_repeat(self):
        assert cover_probability(4.2, -3.5, 11.5) == cover_probability(4.2, -3.5, 11.5)


class TestOverProbability:
    def test_projection_above_line_favours_over(self):
        p, sigma = over_probability(7.0, 5.5)
        assert p > 50
        assert sigma == pytest.approx(7.0 ** 0.5)

    def test_projection_below_line_favours_under(self):
        p, _ = over_probability(5.0, 6.5)
        assert p < 50

    def test_clamped_to_total_bounds(self):
        assert over_probability(20.0, 0.5)[0] == 99.0
        assert over_probability(1.0, 19.5)[0] == 1.0

    def test_zero_projection(self):
        assert over_probability(0.0, 5.5) == (1.0, 0.0)


class TestProbabilityEstimate:
    def test_cover_estimate_matches_cover_probability(self):
        estimate = estimate_cover(4.2, -3.5, 11.5, confidence="high")
        assert estimate.probability == cover_probability(4.2, -3.5, 11.5)
        assert (estimate.predicted, estimate.line, estimate.sigma) == (4.2, -3.5, 11.5)
        assert estimate.model_confidence == "high"

    def test_over_estimate_carries_sigma_used(self):
        estimate = estimate_over(6.05, 5.5)
        assert estimate.sigma == pytest.approx(6.05 ** 0.5)
        assert estimate.probability == over_probability(6.05, 5.5)[0]

    def test_to_dict_rounds(self):
        data = ProbabilityEstimate(4.2345, -3.5, 11.5, 52.12345, "low").to_dict()
        assert data == {
            "predicted": 4.23,
            "line": -3.5,
            "sigma": 11.5,
            "probability": 52.12,
            "modelConfidence": "low",
        }

    def test_frozen(self):
        estimate = estimate_cover(1.0, -1.0, 12.0)
        with pytest.raises(AttributeError):
            estimate.probability = 99.0


class TestInterpretation:
    @pytest.mark.parametrize("probability, prefix", [
        (70, "STRONG COVER"),
        (58, "FAVORABLE"),
        (50, "COIN FLIP"),
        (40, "UNFAVORABLE"),
        (20, "POOR VALUE"),
    ])
    def test_cover_buckets(self, probability, prefix):
        assert interpret_cover(probability, "Hawks", -3.5).startswith(prefix)

    def test_cover_mentions_favourite_or_underdog(self):
        assert "3.5-point favorites" in interpret_cover(60, "Hawks", -3.5)
        assert "7-point underdogs" in interpret_cover(60, "Heat", 7)

    def test_over_buckets(self):
        assert interpret_over(70).startswith("STRONG")
        assert interpret_over(30).startswith("POOR")


class TestModelConfidence:
    def test_small_deviations_are_high(self):
        assert model_confidence([0.1, 0.3]) == "high"

    def test_large_deviation_is_low(self):
        assert model_confidence([0.1, 2.0]) == "low"

    def test_defaults_cap_at_medium(self):
        assert model_confidence([0.1], used_defaults=True) == "medium"

    def test_explicit_thresholds(self):
        assert model_confidence([1.0], high_max=1.2, low_min=3.0) == "high"

    def test_env_thresholds(self, monkeypatch):
        monkeypatch.setenv("CONFIDENCE_LOW_MIN_DEVIATION", "0.8")
        assert model_confidence([1.0]) == "low"
