"""Kelly criterion sizing for single spread, moneyline and total bets.

Pure functions only; services and tools call into this module.

Two layers are exposed:

1. :func:`kelly_fraction` — full Kelly for a simple win/loss bet, floored at
   zero.
2. :func:`calculate_kelly_stake` — validated, bankroll-aware sizing that
   applies a caller-chosen fractional multiplier and returns the complete
   :class:`KellyStake` (edge, implied probability, payout figures).

Design decisions
----------------
* **Fractional Kelly** is a *multiplier* here (1 = full, 0.5 = half,
  0.25 = quarter), not a divisor.  The unrounded stake is exactly linear in
  the multiplier.  Each :class:`KellyStake` rounds its own stake to the
  cent, so a rounded half-Kelly stake sits within 0.01 of half the rounded
  full-Kelly stake rather than always exactly on it.
* **No negative stakes.**  When full Kelly is ≤ 0 the bet has no value;
  stake and stake percentage are forced to 0 rather than suggesting the
  other side.
* **Validate first.**  Bankroll, odds and probability are checked before
  any arithmetic so a bad input never produces a half-computed result.
* Rounding happens once, at the :class:`KellyStake` boundary: money and
  percentages to 2 dp, Kelly fractions to 4 dp, decimal odds to 3 dp.

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Final

from betgistics.core.odds_math import american_to_decimal, implied_prob_pct, validate_american_odds

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Largest bankroll accepted.  Anything above is almost certainly a unit
#: error (cents passed as dollars) rather than a real bankroll.
MAX_BANKROLL: Final[float] = 1e9

#: Fraction multipliers offered to users as presets.
FULL_KELLY: Final[float] = 1.0
HALF_KELLY: Final[float] = 0.5
QUARTER_KELLY: Final[float] = 0.25

#: Edge thresholds (percentage points) for the recommendation text.
STRONG_EDGE: Final[float] = 10.0
GOOD_EDGE: Final[float] = 5.0
MODERATE_EDGE: Final[float] = 2.0


class InvalidBankroll(ValueError):
    """Bankroll was ≤ 0, above :data:`MAX_BANKROLL`, or not finite."""


class InvalidProbability(ValueError):
    """Probability was non-finite or outside ``[0, 100]`` percent."""


# ---------------------------------------------------------------------------
# Standard Kelly
# ---------------------------------------------------------------------------


def kelly_fraction(win_prob: float, decimal_odds: float) -> float:
    """Full Kelly fraction for a simple win/loss outcome.

    The Kelly criterion maximises the expected logarithm of wealth.  With
    ``b`` the profit per unit staked (decimal odds minus one), ``p`` the win
    probability and ``q = 1 − p``::

        f*  =  (b · p − q) / b                                     (1)

    Args:
        win_prob: Probability of winning, in ``[0, 1]``.
        decimal_odds: Decimal odds for the bet (> 1.0).

    Returns:
        Full Kelly fraction of bankroll, floored at 0.0.

    Raises:
        ValueError: If ``decimal_odds <= 1.0``.

    Examples::

        kelly_fraction(0.55, 1.909)  →  0.055
        kelly_fraction(0.45, 1.909)  →  0.0    (negative EV → 0)

    References:
        Kelly, J. L. (1956). A New Interpretation of Information Rate.
        *Bell System Technical Journal*, 35(4), 917–926.
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"decimal_odds must be > 1.0 (otherwise no profit is possible), got {decimal_odds!r}."
        )
    profit_per_unit = decimal_odds - 1.0
    full_kelly = (profit_per_unit * win_prob - (1.0 - win_prob)) / profit_per_unit
    return max(0.0, full_kelly)


# ---------------------------------------------------------------------------
# Bankroll-aware sizing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KellyStake:
    """Fully-resolved sizing decision for a single bet.

    All probability-like fields (``raw_probability``, ``implied_probability``,
    ``edge``, ``stake_percentage``) are in percent.
    """

    bankroll: float
    american_odds: float
    decimal_odds: float
    raw_probability: float
    implied_probability: float
    edge: float
    kelly_fraction: float
    adjusted_kelly_fraction: float
    fraction_multiplier: float
    stake: float
    stake_percentage: float
    potential_win: float
    potential_payout: float
    has_value: bool

    def to_dict(self) -> dict:
        return asdict(self)


def validate_bankroll(bankroll: float) -> float:
    if not math.isfinite(bankroll) or bankroll <= 0 or bankroll > MAX_BANKROLL:
        raise InvalidBankroll(
            f"Bankroll must be in (0, {MAX_BANKROLL:,.0f}], got {bankroll!r}."
        )
    return bankroll


def validate_probability(probability: float) -> float:
    if not math.isfinite(probability) or not (0.0 <= probability <= 100.0):
        raise InvalidProbability(
            f"Probability must be a finite percentage in [0, 100], got {probability!r}."
        )
    return probability


def calculate_kelly_stake(
    bankroll: float,
    american_odds: float,
    probability: float,
    fraction: float = FULL_KELLY,
) -> KellyStake:
    """Size a bet with fractional Kelly.

    Args:
        bankroll: Current bankroll in dollars, ``0 < bankroll ≤ 1e9``.
        american_odds: Offered price, outside the ``(-100, 100)`` dead zone.
        probability: Estimated win/cover probability in percent.
        fraction: Kelly multiplier in ``(0, 1]`` (1 = full, 0.5 = half).

    Returns:
        :class:`KellyStake`.  ``has_value`` is False whenever full Kelly is
        ≤ 0, in which case ``stake`` and ``stake_percentage`` are 0.

    Raises:
        InvalidBankroll: Bankroll out of range.
        InvalidOdds: Odds in the dead zone or non-finite.
        InvalidProbability: Probability non-finite or outside [0, 100].
        ValueError: ``fraction`` outside ``(0, 1]``.

    Examples::

        calculate_kelly_stake(1000, -110, 45, 1).has_value  → False
        calculate_kelly_stake(1000, -110, 55, 0.5).stake    → 27.5
    """
    validate_bankroll(bankroll)
    validate_american_odds(american_odds)
    validate_probability(probability)
    if not (0.0 < fraction <= 1.0):
        raise ValueError(f"Kelly fraction multiplier must be in (0, 1], got {fraction!r}.")

    decimal_odds = american_to_decimal(american_odds)
    implied = implied_prob_pct(american_odds)
    edge = probability - implied

    full = kelly_fraction(probability / 100.0, decimal_odds)
    has_value = full > 0.0
    adjusted = full * fraction if has_value else 0.0

    stake = bankroll * adjusted
    stake_pct = adjusted * 100.0

    return KellyStake(
        bankroll=bankroll,
        american_odds=american_odds,
        decimal_odds=round(decimal_odds, 3),
        raw_probability=probability,
        implied_probability=round(implied, 2),
        edge=round(edge, 2),
        kelly_fraction=round(full, 4),
        adjusted_kelly_fraction=round(adjusted, 4),
        fraction_multiplier=fraction,
        stake=round(stake, 2),
        stake_percentage=round(stake_pct, 2),
        potential_win=round(stake * (decimal_odds - 1.0), 2),
        potential_payout=round(stake * decimal_odds, 2),
        has_value=has_value,
    )


def recommendation_text(result: KellyStake) -> str:
    """One-line betting verdict keyed on edge size.

    Examples::

        NO BET: Negative expected value. ...
        GOOD VALUE: 6.2% edge. Recommended stake: $31.40
    """
    if not result.has_value:
        return (
            "NO BET: Negative expected value. Estimated probability is below "
            "implied odds probability."
        )
    edge = result.edge
    if edge > STRONG_EDGE:
        return f"STRONG VALUE: {edge:.1f}% edge. Verify probability estimate before betting."
    if edge > GOOD_EDGE:
        return f"GOOD VALUE: {edge:.1f}% edge. Recommended stake: ${result.stake:.2f}"
    if edge > MODERATE_EDGE:
        size = "quarter" if result.fraction_multiplier < HALF_KELLY else "half"
        return f"MODERATE VALUE: {edge:.1f}% edge. Consider {size} Kelly."
    return f"SLIGHT VALUE: {edge:.1f}% edge. Small edge - proceed with caution."


def kelly_label(fraction: float) -> str:
    """``Full`` / ``Half`` / ``Quarter`` / ``0.3x`` for summaries."""
    if fraction == FULL_KELLY:
        return "Full"
    if fraction == HALF_KELLY:
        return "Half"
    if fraction == QUARTER_KELLY:
        return "Quarter"
    return f"{fraction:g}x"
