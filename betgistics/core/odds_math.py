"""Odds arithmetic shared by every estimator, tool and the bet log.

Nothing here performs I/O or logs.

The two pillars exposed are:

1. **Odds conversion** — American ↔ decimal ↔ fractional ↔ implied probability.
2. **Two-way vig** — bookmaker overround and proportional no-vig fair
   probabilities for a two-sided market.

Design decisions
----------------
* The American-odds dead zone is the **open** interval ``(-100, 100)``.
  ``+100`` and ``-100`` both denote even money (decimal 2.0) and are
  accepted; ``-99.5`` or ``+50`` are not representable and are rejected.
* Implied probabilities returned to tool callers are in **percent**
  (``52.38`` for -110); :func:`implied_prob` itself returns a fraction so it
  composes with :mod:`betgistics.core.kelly`.
* Vig removal is proportional normalisation.  For two-way spread markets
  at standard juice the difference from Shin-style methods is well under
  0.1 percentage points.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American-odds magnitude floor.  Anything strictly inside (-100, 100) is
#: not a representable American price.
_MIN_ODDS_MAGNITUDE: Final[int] = 100

#: Precision used when approximating decimal odds as a fraction.
_FRACTION_PRECISION: Final[int] = 1000


class InvalidOdds(ValueError):
    """American odds fell in the dead zone or were not finite."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_american_odds(american: float) -> float:
    """Return ``american`` unchanged if it is a valid American price.

    Raises:
        InvalidOdds: If the value is non-finite or ``-100 < american < 100``.

    Examples::

        validate_american_odds(-110)   → -110
        validate_american_odds(100)    → 100
        validate_american_odds(-99.5)  → InvalidOdds
    """
    if not math.isfinite(american):
        raise InvalidOdds(f"American odds must be finite, got {american!r}.")
    if -_MIN_ODDS_MAGNITUDE < american < _MIN_ODDS_MAGNITUDE:
        raise InvalidOdds(
            f"Invalid American odds {american!r}: must be >= +100 or <= -100."
        )
    return american


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    The result is the full return per unit staked, stake included::

        american_to_decimal(-110) → 1.9091
        american_to_decimal(+150) → 2.5

    Raises:
        InvalidOdds: If the price is in the dead zone.
    """
    validate_american_odds(american)
    if american > 0:
        return 1.0 + american / 100.0
    return 1.0 + 100.0 / abs(american)


def implied_prob(american: int | float) -> float:
    """Raw implied probability from American odds (vig-inclusive), in ``(0, 1)``.

    Examples::

        implied_prob(-110) → 0.5238
        implied_prob(+150) → 0.4000
    """
    validate_american_odds(american)
    if american < 0:
        return abs(american) / (abs(american) + 100.0)
    return 100.0 / (american + 100.0)


def implied_prob_pct(american: int | float) -> float:
    """:func:`implied_prob` expressed in percent (``52.38`` for -110)."""
    return implied_prob(american) * 100.0


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Raises:
        ValueError: If ``decimal_odds <= 1.0`` (no profit is possible).
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


def fractional_to_decimal(numerator: float, denominator: float) -> float:
    """``5/2`` → ``3.5``."""
    if denominator <= 0:
        raise ValueError(f"Fractional denominator must be positive, got {denominator!r}.")
    return numerator / denominator + 1.0


def decimal_to_fractional(decimal_odds: float) -> tuple[int, int]:
    """Approximate decimal odds as a reduced ``(numerator, denominator)`` pair.

    Examples::

        decimal_to_fractional(3.5)    → (5, 2)
        decimal_to_fractional(1.909)  → (909, 1000)
    """
    numerator = round((decimal_odds - 1.0) * _FRACTION_PRECISION)
    divisor = math.gcd(numerator, _FRACTION_PRECISION)
    return numerator // divisor, _FRACTION_PRECISION // divisor


# ---------------------------------------------------------------------------
# Two-way vig
# ---------------------------------------------------------------------------


def two_way_vig(odds_a: int | float, odds_b: int | float) -> dict[str, float]:
    """Bookmaker overround and proportional no-vig probabilities.

    Args:
        odds_a: American odds for side A.
        odds_b: American odds for side B.

    Returns:
        Dict with ``vig_pct`` (overround in percent), ``implied_a`` /
        ``implied_b`` (vig-inclusive, percent) and ``fair_a`` / ``fair_b``
        (normalised to sum to 100).

    Examples::

        two_way_vig(-110, -110)["vig_pct"]  → 4.76
        two_way_vig(-110, -110)["fair_a"]   → 50.0
    """
    p_a = implied_prob_pct(odds_a)
    p_b = implied_prob_pct(odds_b)
    total = p_a + p_b
    return {
        "vig_pct": total - 100.0,
        "implied_a": p_a,
        "implied_b": p_b,
        "fair_a": p_a / total * 100.0,
        "fair_b": p_b / total * 100.0,
    }


def describe_vig(vig_pct: float) -> str:
    """Short verdict on how expensive a market is."""
    if vig_pct <= 2:
        return "Very low vig - excellent value"
    if vig_pct <= 4:
        return "Low vig - good for bettors"
    if vig_pct <= 5:
        return "Standard vig - typical sportsbook margin"
    if vig_pct <= 7:
        return "Above average vig - shop for better lines"
    return "High vig - consider finding better odds elsewhere"
