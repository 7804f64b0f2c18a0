"""
End-to-end betting workflow.

Given a natural-language request such as
``"NBA: Heat vs Hawks, Hawks -3.5, I'm taking Hawks. Game is in Atlanta."``
:func:`orchestrate` runs five steps:

1. Parse the text into a matchup (sport, pick, opponent, spread, venue, odds).
2. Gather stats (caller override → stat table → league average) and
   estimate the cover probability with the league's sigma and home edge.
3. Settle the odds (caller → parsed → -110).
4. Size the bet with fractional Kelly.
5. Optionally log the bet (best effort; never fails the workflow).

Every default the workflow falls back on is recorded in ``assumptions`` so
the user can see exactly what was guessed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from betgistics.core.kelly import (
    InvalidBankroll,
    calculate_kelly_stake,
    kelly_label,
    recommendation_text,
)
from betgistics.core.margin_models import (
    BasketballStats,
    FootballStats,
    input_deviations,
    predict_margin,
)
from betgistics.core.odds_math import InvalidOdds
from betgistics.core.probability import estimate_cover, interpret_cover, model_confidence
from betgistics.core.sport_config import SportCategory, SportConfig, config_for
from betgistics.schemas import OrchestrationRequest, TeamStatOverride
from betgistics.services.bet_logging import BetLogger
from betgistics.services.matchup_parser import ParsedMatchup, parse_matchup
from betgistics.services.stats_provider import StatsProvider, TeamStatSnapshot

logger = logging.getLogger(__name__)

DEFAULT_ODDS = -110


def default_bankroll() -> float:
    return float(os.getenv("DEFAULT_BANKROLL", "1000"))


# ---------------------------------------------------------------------------
# Step 2: stats
# ---------------------------------------------------------------------------


@dataclass
class _StatsContext:
    team_a: Optional[TeamStatSnapshot] = None
    team_b: Optional[TeamStatSnapshot] = None


async def _fetch_stats(
    matchup: ParsedMatchup, stats_provider: StatsProvider, assumptions: List[str]
) -> _StatsContext:
    ctx = _StatsContext()
    pick, opponent = matchup.team_a, matchup.team_b
    try:
        ctx.team_a = await stats_provider.get_team_stats(pick.full_name, matchup.sport)
        ctx.team_b = await stats_provider.get_team_stats(opponent.full_name, matchup.sport)
    except Exception as exc:
        logger.warning("Stats lookup failed for %s vs %s: %s", pick.name, opponent.name, exc)
        assumptions.append(f"Stats fetch failed, using league averages: {exc}")
        return _StatsContext()

    if ctx.team_a and ctx.team_b:
        assumptions.append(f"Using real stats from database for {pick.name} and {opponent.name}")
    elif ctx.team_a:
        assumptions.append(f"Using real stats for {pick.name}, defaults for {opponent.name}")
    elif ctx.team_b:
        assumptions.append(f"Using real stats for {opponent.name}, defaults for {pick.name}")
    return ctx


def _first(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def _fg_fraction(value: Optional[float]) -> Optional[float]:
    # Overrides may arrive as 47.5 rather than 0.475
    if value is not None and value > 1:
        return value / 100.0
    return value


def _build_team_stats(
    config: SportConfig,
    override: Optional[TeamStatOverride],
    fetched: Optional[TeamStatSnapshot],
) -> Union[FootballStats, BasketballStats]:
    """Per-field precedence: caller override, then stat table, then league average."""
    o = override or TeamStatOverride()
    f = fetched or TeamStatSnapshot(name="")
    d = config.defaults

    points_for = _first(o.ppg, f.points_for, d.points_for)
    points_against = _first(o.points_allowed, f.points_against, d.points_against)

    if config.sport.category == SportCategory.FOOTBALL:
        return FootballStats(
            points_for=points_for,
            points_against=points_against,
            off_yards=_first(o.offensive_yards, f.off_yards, d.off_yards),
            def_yards=_first(o.defensive_yards, f.def_yards, d.def_yards),
            turnover_diff=_first(o.turnover_margin, f.turnover_diff, d.turnover_diff),
        )
    return BasketballStats(
        points_for=points_for,
        points_against=points_against,
        fg_pct=_first(_fg_fraction(o.fg_pct), f.fg_pct, d.fg_pct),
        rebound_margin=_first(o.rebound_margin, f.rebound_margin, d.rebound_margin),
        turnover_margin=_first(o.turnover_margin, f.turnover_margin, d.turnover_margin),
    )


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


def _signed(value: float, fmt: str = "g") -> str:
    text = format(value, fmt)
    return f"+{text}" if value > 0 else text


async def orchestrate(
    request: Union[OrchestrationRequest, Dict[str, Any]],
    *,
    stats_provider: StatsProvider,
    bet_logger: Optional[BetLogger] = None,
) -> Dict[str, Any]:
    """Run the five-step workflow for one natural-language request.

    Raises:
        pydantic.ValidationError: ``request`` is a dict that fails validation.
        MatchupParseError: The text could not be parsed into a matchup.

    A bankroll or price that Kelly sizing rejects comes back as
    ``success: False`` with an ``error`` code rather than an exception.
    """
    if not isinstance(request, OrchestrationRequest):
        request = OrchestrationRequest.model_validate(request)
    assumptions: List[str] = []

    # Step 1: parse
    matchup = parse_matchup(request.user_text)
    assumptions.extend(matchup.notes)
    pick, opponent = matchup.team_a, matchup.team_b
    config = config_for(matchup.sport)

    # Step 2: stats and probability
    fetched = await _fetch_stats(matchup, stats_provider, assumptions)
    team_stats = _build_team_stats(config, request.team_a_stats, fetched.team_a)
    opponent_stats = _build_team_stats(config, request.team_b_stats, fetched.team_b)

    used_defaults = not (
        (fetched.team_a or request.team_a_stats) and (fetched.team_b or request.team_b_stats)
    )
    if not (fetched.team_a or fetched.team_b or request.team_a_stats or request.team_b_stats):
        assumptions.append(
            f"Using league average stats for {matchup.sport.value} (no specific stats available)"
        )

    margin = predict_margin(
        config.sport.category, team_stats, opponent_stats, matchup.venue,
        home_advantage=config.home_advantage_pts,
    )
    confidence = model_confidence(
        input_deviations(team_stats, opponent_stats), used_defaults=used_defaults
    )
    estimate = estimate_cover(
        margin, matchup.spread, config.sigma, confidence=confidence,
        floor=config.prob_floor, ceiling=config.prob_ceiling,
    )
    probability = round(estimate.probability, 2)
    interpretation = interpret_cover(probability, pick.name, matchup.spread)

    # Step 3: odds
    odds_assumed = request.american_odds is None and matchup.american_odds is None
    american_odds = _first(request.american_odds, matchup.american_odds, DEFAULT_ODDS)
    if odds_assumed:
        assumptions.append(f"Odds assumed as {DEFAULT_ODDS} (standard juice)")

    # Step 4: Kelly
    bankroll = request.bankroll
    if bankroll is None:
        bankroll = default_bankroll()
        assumptions.append(f"Bankroll assumed as ${bankroll:.0f} (not provided)")
    fraction = request.kelly_fraction
    try:
        kelly = calculate_kelly_stake(bankroll, american_odds, probability, fraction)
    except (InvalidBankroll, InvalidOdds) as exc:
        logger.warning("Kelly sizing rejected for %s: %s", pick.name, exc)
        return _failure(
            "invalid_bankroll" if isinstance(exc, InvalidBankroll) else "invalid_odds",
            str(exc),
            request=request,
            assumptions=assumptions,
        )
    recommendation = recommendation_text(kelly)

    # Step 5: log
    logging_result: Optional[Dict[str, Any]] = None
    if request.log_bet and bet_logger is None:
        logging_result = {"success": False, "message": "Database not connected - bet not logged"}
        assumptions.append("Bet not logged (database unavailable)")
    elif request.log_bet:
        try:
            record = await bet_logger.log_bet(
                request.session_id or "anonymous",
                sport=matchup.sport.value,
                team_a=pick.name,
                team_b=opponent.name,
                spread=matchup.spread,
                probability=probability,
                american_odds=american_odds,
                bankroll=bankroll,
                recommended_stake=kelly.stake,
                venue=matchup.venue.value,
                expected_margin=round(margin, 2),
                kelly_fraction=fraction,
                stake_percentage=kelly.stake_percentage,
                notes=f'Auto-logged via orchestration. Raw input: "{request.user_text[:100]}"',
                tags=["orchestration", matchup.sport.value.lower()],
            )
            logging_result = {
                "success": True,
                "betId": record.id,
                "message": f"Bet logged with ID {record.id}",
            }
        except Exception as exc:
            logger.warning("Failed to log orchestrated bet: %s", exc, exc_info=True)
            logging_result = {"success": False, "message": f"Failed to log bet: {exc}"}

    bet_id = logging_result.get("betId") if logging_result else None
    matchup_text = f"{pick.name} vs {opponent.name}"
    venue_text = f"{matchup.venue.value} (assumed)" if matchup.venue_assumed else matchup.venue.value

    human = _render_summary(
        matchup=matchup,
        matchup_text=matchup_text,
        venue_text=venue_text,
        probability=probability,
        margin=margin,
        interpretation=interpretation,
        american_odds=american_odds,
        kelly=kelly,
        bankroll=bankroll,
        fraction=fraction,
        recommendation=recommendation,
        bet_id=bet_id,
        assumptions=assumptions,
    )

    logger.info(
        "Orchestrated %s %s %+g: %.2f%% cover, stake $%.2f",
        matchup.sport.value, pick.name, matchup.spread, probability, kelly.stake,
    )

    return {
        "success": True,
        "workflow": {
            "step1_parsing": {
                "success": True,
                "sport": matchup.sport.value,
                "matchup": matchup_text,
                "pick": pick.name,
                "spread": matchup.spread,
                "venue": matchup.venue.value,
                "venueAssumed": matchup.venue_assumed,
                "parsingNotes": list(matchup.notes),
            },
            "step2_probability": {
                "success": True,
                "coverProbability": probability,
                "predictedMargin": round(margin, 2),
                "sigma": config.sigma,
                "homeAdvantage": config.home_advantage_pts,
                "interpretation": interpretation,
                "modelConfidence": confidence,
                "estimate": estimate.to_dict(),
            },
            "step3_odds": {
                "americanOdds": american_odds,
                "decimalOdds": kelly.decimal_odds,
                "impliedProbability": kelly.implied_probability,
                "oddsAssumed": odds_assumed,
            },
            "step4_kelly": {
                "success": True,
                "edge": kelly.edge,
                "hasValue": kelly.has_value,
                "kellyFraction": kelly.kelly_fraction,
                "adjustedKellyFraction": kelly.adjusted_kelly_fraction,
                "recommendedStake": kelly.stake,
                "stakePercentage": kelly.stake_percentage,
                "potentialWin": kelly.potential_win,
                "recommendation": recommendation,
            },
            "step5_logging": logging_result,
        },
        "summary": {
            "human": human,
            "data": {
                "sport": matchup.sport.value,
                "matchup": matchup_text,
                "pick": pick.name,
                "spread": matchup.spread,
                "venue": venue_text,
                "coverProbability": probability,
                "americanOdds": american_odds,
                "impliedProbability": kelly.implied_probability,
                "edge": kelly.edge,
                "hasValue": kelly.has_value,
                "bankroll": bankroll,
                "kellyFraction": fraction,
                "recommendedStake": kelly.stake,
                "stakePercentage": kelly.stake_percentage,
                "potentialWin": kelly.potential_win,
                "potentialPayout": kelly.potential_payout,
                "betId": bet_id,
            },
        },
        "assumptions": assumptions,
        "rawInput": request.user_text,
    }


def _failure(
    error: str, message: str, *, request: OrchestrationRequest, assumptions: List[str]
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "message": message,
        "summary": {"human": f"Error: {message}", "data": None},
        "assumptions": assumptions,
        "rawInput": request.user_text,
    }


def _render_summary(
    *,
    matchup: ParsedMatchup,
    matchup_text: str,
    venue_text: str,
    probability: float,
    margin: float,
    interpretation: str,
    american_odds: float,
    kelly,
    bankroll: float,
    fraction: float,
    recommendation: str,
    bet_id: Optional[str],
    assumptions: List[str],
) -> str:
    lines = [
        "## Betting Analysis Summary",
        "",
        f"**Matchup:** {matchup_text}",
        f"**Sport:** {matchup.sport.value}",
        f"**Pick:** {matchup.team_a.name} {_signed(matchup.spread)}",
        f"**Venue:** {venue_text}",
        "",
        "### Probability Analysis",
        f"- **Cover Probability:** {probability:.1f}%",
        f"- **Predicted Margin:** {_signed(margin, '.1f')} points",
        f"- {interpretation}",
        "",
        "### Odds & Value",
        f"- **Odds:** {_signed(american_odds)} ({kelly.decimal_odds:.3f} decimal)",
        f"- **Implied Probability:** {kelly.implied_probability:.1f}%",
        f"- **Your Edge:** {_signed(kelly.edge, '.1f')}%",
        f"- **Has Value:** {'YES' if kelly.has_value else 'NO'}",
        "",
        f"### Kelly Criterion ({kelly_label(fraction)} Kelly)",
        f"- **Bankroll:** ${bankroll:,g}",
        f"- **Kelly Fraction:** {kelly.adjusted_kelly_fraction * 100:.2f}%",
        f"- **Recommended Stake:** ${kelly.stake:.2f} ({kelly.stake_percentage:.2f}%)",
        f"- **Potential Win:** ${kelly.potential_win:.2f}",
        f"- **Potential Payout:** ${kelly.potential_payout:.2f}",
        "",
        "### Recommendation",
        recommendation,
    ]
    if bet_id:
        lines += ["", f"**Bet Logged:** {bet_id}"]
    if assumptions:
        lines += ["", "### Assumptions Made"] + [f"- {a}" for a in assumptions]
    return "\n".join(lines)
