"""Probability engine — margin or total prediction → bounded probability.

Every function here is **pure**.  The engine is sport-agnostic: it only sees
"predicted value + market line + sigma".  Sport-specific choices (which
sigma, which bounds) come from :mod:`betgistics.core.sport_config`.

Model
-----
Spread markets::

    Z = (predicted_margin + line) / sigma
    P(cover) = Φ(Z)

A favourite laying 7 (``line = -7``) with a predicted margin of 10 gives
``Z = 3 / sigma``.

Total markets (Poisson-like variance, ``sigma = sqrt(total)``)::

    Z = (projected_total - line) / sqrt(projected_total)
    P(over) = Φ(Z)

Design decisions
----------------
* Φ is the Abramowitz–Stegun 7.1.26 rational approximation of ``erf``
  (absolute error < 1.5 × 10⁻⁷).  It is closed-form and deterministic, so
  repeated calls are bit-identical.
* Results are clamped away from 0 and 100.  The model is an approximation,
  not ground truth, and reporting certainty would let the Kelly layer size
  an unbounded stake.
* :func:`model_confidence` is a policy knob, not a statistical statement.
  Thresholds are configurable through environment variables.

Run tests with::

    pytest tests/test_probability.py -v
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Final, Iterable, Literal, Optional

from betgistics.core.sport_config import (
    SPREAD_PROB_CEILING,
    SPREAD_PROB_FLOOR,
    TOTAL_PROB_CEILING,
    TOTAL_PROB_FLOOR,
)

# ---------------------------------------------------------------------------
# Abramowitz–Stegun 7.1.26 coefficients
# ---------------------------------------------------------------------------

_A1: Final[float] = 0.254829592
_A2: Final[float] = -0.284496736
_A3: Final[float] = 1.421413741
_A4: Final[float] = -1.453152027
_A5: Final[float] = 1.061405429
_P: Final[float] = 0.3275911

Confidence = Literal["high", "medium", "low"]

#: Largest normalised input deviation still considered "high" confidence.
DEFAULT_HIGH_MAX_DEVIATION: Final[float] = 0.5

#: Smallest normalised input deviation considered "low" confidence.
DEFAULT_LOW_MIN_DEVIATION: Final[float] = 1.5


@dataclass(frozen=True)
class ProbabilityEstimate:
    """Derived once per matchup; never mutated.

    Attributes:
        predicted: Predicted margin (spread markets) or total (total markets).
        line: Market line the prediction is compared against.
        sigma: Standard deviation used for the normal approximation.
        probability: Cover/over probability in percent, already clamped.
        model_confidence: ``high`` / ``medium`` / ``low``.
    """

    predicted: float
    line: float
    sigma: float
    probability: float
    model_confidence: Confidence = "medium"

    def to_dict(self) -> dict:
        return {
            "predicted": round(self.predicted, 2),
            "line": self.line,
            "sigma": round(self.sigma, 3),
            "probability": round(self.probability, 2),
            "modelConfidence": self.model_confidence,
        }


# ---------------------------------------------------------------------------
# Normal CDF
# ---------------------------------------------------------------------------


def norm_cdf(x: float) -> float:
    """Standard normal CDF via Abramowitz–Stegun 7.1.26.

    Examples::

        norm_cdf(0.0)    → 0.5
        norm_cdf(1.96)   → 0.9750
        norm_cdf(-1.0)   → 0.1587
    """
    sign = -1.0 if x < 0 else 1.0
    z = abs(x) / math.sqrt(2.0)
    t = 1.0 / (1.0 + _P * z)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    y = 1.0 - poly * math.exp(-z * z)
    return 0.5 * (1.0 + sign * y)


def _clamp(value: float, floor: float, ceiling: float) -> float:
    return max(floor, min(ceiling, value))


# ---------------------------------------------------------------------------
# Spread and total probabilities
# ---------------------------------------------------------------------------


def cover_probability(
    predicted_margin: float,
    line: float,
    sigma: float,
    *,
    floor: float = SPREAD_PROB_FLOOR,
    ceiling: float = SPREAD_PROB_CEILING,
) -> float:
    """Probability (percent) that the backed side covers ``line``.

    Args:
        predicted_margin: Expected margin of the backed side (positive =
            expected to win by that many points).
        line: Spread from the backed side's perspective (negative when
            favoured).
        sigma: Margin standard deviation, > 0.

    Raises:
        ValueError: If ``sigma <= 0``.
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma!r}.")
    z = (predicted_margin + line) / sigma
    return _clamp(norm_cdf(z) * 100.0, floor, ceiling)


def over_probability(
    projected_total: float,
    line: float,
    *,
    floor: float = TOTAL_PROB_FLOOR,
    ceiling: float = TOTAL_PROB_CEILING,
) -> tuple[float, float]:
    """Probability (percent) that the game total goes over ``line``.

    Sigma is ``sqrt(projected_total)``.  A projected total of 0 has no
    spread at all, so the over is reported at ``floor``.

    Returns:
        ``(over_probability, sigma)``.
    """
    if projected_total <= 0:
        return floor, 0.0
    sigma = math.sqrt(projected_total)
    z = (projected_total - line) / sigma
    return _clamp(norm_cdf(z) * 100.0, floor, ceiling), sigma


def estimate_cover(
    predicted_margin: float,
    line: float,
    sigma: float,
    *,
    confidence: Confidence = "medium",
    floor: float = SPREAD_PROB_FLOOR,
    ceiling: float = SPREAD_PROB_CEILING,
) -> ProbabilityEstimate:
    """:func:`cover_probability` packaged with its inputs."""
    probability = cover_probability(predicted_margin, line, sigma, floor=floor, ceiling=ceiling)
    return ProbabilityEstimate(predicted_margin, line, sigma, probability, confidence)


def estimate_over(
    projected_total: float,
    line: float,
    *,
    confidence: Confidence = "medium",
) -> ProbabilityEstimate:
    """Over probability for a total; ``sigma`` is the one actually used."""
    probability, sigma = over_probability(projected_total, line)
    return ProbabilityEstimate(projected_total, line, sigma, probability, confidence)


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------


def _format_points(value: float) -> str:
    return f"{abs(value):g}"


def interpret_cover(probability: float, team: str, spread: float) -> str:
    """Human verdict on a cover probability.

    Examples::

        interpret_cover(66.0, "Hawks", -3.5)
        → "STRONG COVER: 66.0% probability. Hawks as 3.5-point favorites looks like good value."
    """
    if spread < 0:
        spread_text = f"{team} as {_format_points(spread)}-point favorites"
    else:
        spread_text = f"{team} as {_format_points(spread)}-point underdogs"

    if probability >= 65:
        return f"STRONG COVER: {probability}% probability. {spread_text} looks like good value."
    if probability >= 55:
        return f"FAVORABLE: {probability}% probability. {spread_text} has a slight edge."
    if probability >= 45:
        return f"COIN FLIP: {probability}% probability. {spread_text} is essentially even odds."
    if probability >= 35:
        return f"UNFAVORABLE: {probability}% probability. {spread_text} is risky."
    return f"POOR VALUE: {probability}% probability. {spread_text} is not recommended."


def interpret_over(probability: float) -> str:
    """Verdict on an over probability (the under reads as ``100 - p``)."""
    if probability >= 65:
        return "STRONG: the over is a strong play"
    if probability >= 55:
        return "FAVORABLE: lean over"
    if probability >= 45:
        return "COIN FLIP: no meaningful edge either way"
    if probability >= 35:
        return "UNFAVORABLE: lean under"
    return "POOR: the under is the stronger side"


# ---------------------------------------------------------------------------
# Model confidence
# ---------------------------------------------------------------------------


def _threshold(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def model_confidence(
    deviations: Iterable[float],
    *,
    used_defaults: bool = False,
    high_max: Optional[float] = None,
    low_min: Optional[float] = None,
) -> Confidence:
    """Bucket how far the inputs sit from league-average territory.

    Args:
        deviations: Normalised distances of each input from its league
            average (e.g. ``|x - avg| / typical_spread``).  Only the largest
            one matters.
        used_defaults: True when league-average defaults were substituted
            for missing team data; caps the result at ``medium``.
        high_max: Largest deviation still ``high``.  Defaults to
            ``CONFIDENCE_HIGH_MAX_DEVIATION`` or 0.5.
        low_min: Smallest deviation that is ``low``.  Defaults to
            ``CONFIDENCE_LOW_MIN_DEVIATION`` or 1.5.

    Returns:
        ``"high"``, ``"medium"`` or ``"low"``; monotonic in the largest
        deviation.
    """
    if high_max is None:
        high_max = _threshold("CONFIDENCE_HIGH_MAX_DEVIATION", DEFAULT_HIGH_MAX_DEVIATION)
    if low_min is None:
        low_min = _threshold("CONFIDENCE_LOW_MIN_DEVIATION", DEFAULT_LOW_MIN_DEVIATION)

    worst = max((abs(d) for d in deviations), default=0.0)
    if worst >= low_min:
        return "low"
    if worst <= high_max and not used_defaults:
        return "high"
    return "medium"
