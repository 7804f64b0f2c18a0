"""
Tool handlers — the invocation contract shared by the HTTP layer and any
RPC-style tool host.

Every handler returns a :class:`ToolResult` carrying both a structured
payload and a text rendering of the same data.  Expected failures never
raise: they come back as ``ToolResult(is_error=True)`` whose payload has an
``error`` code (``invalid_input``, ``invalid_bankroll``, ``invalid_odds``,
``team_not_found``, ``insufficient_data``, ``bet_not_found``) and a
``message``.  Inputs are validated before any math runs.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from betgistics.core.kelly import (
    InvalidBankroll,
    InvalidProbability,
    calculate_kelly_stake,
    recommendation_text,
    validate_bankroll,
)
from betgistics.core.margin_models import (
    BasketballStats,
    FootballStats,
    HockeyStats,
    basketball_margin,
    football_margin,
    hockey_total,
    input_deviations,
    total_deviation,
)
from betgistics.core.odds_math import (
    InvalidOdds,
    american_to_decimal,
    decimal_to_american,
    decimal_to_fractional,
    describe_vig,
    fractional_to_decimal,
    implied_prob_pct,
    two_way_vig,
    validate_american_odds,
)
from betgistics.core.probability import (
    ProbabilityEstimate,
    estimate_cover,
    estimate_over,
    interpret_cover,
    interpret_over,
    model_confidence,
)
from betgistics.core.sport_config import (
    BASKETBALL_TOOL_HOME_ADV,
    BASKETBALL_TOOL_SIGMA,
    FOOTBALL_TOOL_HOME_ADV,
    FOOTBALL_TOOL_SIGMA,
    Sport,
    SportCategory,
    Venue,
    parse_sport,
)
from betgistics.services.bet_logging import BetAlreadySettled, BetLogger, BetNotFound
from betgistics.services.stats_provider import StatsProvider, TeamStatSnapshot
from betgistics.services.team_mapping import TeamNotFound
from betgistics.services.tool_args import coerce_float, coerce_str, extract_args, normalize_matchup_args

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    structured: Dict[str, Any]
    text: str
    is_error: bool = False

    def to_response(self) -> Dict[str, Any]:
        return {
            "structuredContent": self.structured,
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


def tool_error(error: str, message: str, text: Optional[str] = None, **extra: Any) -> ToolResult:
    payload = {"error": error, "message": message, **extra}
    return ToolResult(structured=payload, text=text or f"Error: {message}", is_error=True)


def _signed(value: float) -> str:
    return f"+{value:g}" if value > 0 else f"{value:g}"


# ---------------------------------------------------------------------------
# Range validation
# ---------------------------------------------------------------------------


@dataclass
class _RangeCheck:
    problems: List[str] = field(default_factory=list)

    def check(self, name: str, value: Any, low: float, high: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            self.problems.append(f"{name} must be a finite number")
        elif not (low <= value <= high):
            self.problems.append(f"{name} must be between {low:g} and {high:g} (got {value:g})")

    def error(self) -> Optional[ToolResult]:
        if not self.problems:
            return None
        return tool_error("invalid_input", "; ".join(self.problems), problems=self.problems)


def _parse_venue(value: Any) -> Optional[Venue]:
    try:
        return Venue(str(value).lower())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Stat-by-stat estimators
# ---------------------------------------------------------------------------


def _spread_result(
    sport: str,
    estimate: ProbabilityEstimate,
    venue: Venue,
    team_stats: dict,
    opponent_stats: dict,
) -> ToolResult:
    summary = estimate.to_dict()
    probability = summary["probability"]
    margin = estimate.predicted
    spread = estimate.line
    interpretation = interpret_cover(probability, "Your team", spread)
    structured = {
        "sport": sport,
        "probability": probability,
        "predictedMargin": summary["predicted"],
        "spread": spread,
        "sigma": estimate.sigma,
        "venue": venue.value,
        "teamStats": team_stats,
        "opponentStats": opponent_stats,
        "interpretation": interpretation,
        "modelConfidence": estimate.model_confidence,
        "estimate": summary,
    }
    text = (
        f"Based on the team statistics, your team has an estimated {probability:.2f}% "
        f"probability of covering the {_signed(spread)} point spread.\n\n"
        f"Predicted Margin: {margin:+.1f} points\n\n"
        f"{interpretation}\n\n"
        f"You can use this probability ({probability:.2f}%) in the Kelly Criterion "
        f"calculator to determine your optimal bet size."
    )
    return ToolResult(structured=structured, text=text)


def estimate_football(
    team_points_for: float,
    team_points_against: float,
    opponent_points_for: float,
    opponent_points_against: float,
    team_off_yards: float,
    team_def_yards: float,
    opponent_off_yards: float,
    opponent_def_yards: float,
    team_turnover_diff: float,
    opponent_turnover_diff: float,
    spread: float,
    venue: str = "neutral",
) -> ToolResult:
    """Cover probability for a football side from raw per-game stats."""
    checks = _RangeCheck()
    checks.check("teamPointsFor", team_points_for, 0, 100)
    checks.check("teamPointsAgainst", team_points_against, 0, 100)
    checks.check("opponentPointsFor", opponent_points_for, 0, 200)
    checks.check("opponentPointsAgainst", opponent_points_against, 0, 200)
    for name, value in (
        ("teamOffYards", team_off_yards),
        ("teamDefYards", team_def_yards),
        ("opponentOffYards", opponent_off_yards),
        ("opponentDefYards", opponent_def_yards),
    ):
        checks.check(name, value, 0, 1000)
    checks.check("teamTurnoverDiff", team_turnover_diff, -10, 10)
    checks.check("opponentTurnoverDiff", opponent_turnover_diff, -50, 50)
    checks.check("spread", spread, -100, 100)
    parsed_venue = _parse_venue(venue)
    if parsed_venue is None:
        checks.problems.append("venue must be one of home, away, neutral")
    if checks.error():
        return checks.error()

    team = FootballStats(team_points_for, team_points_against, team_off_yards, team_def_yards, team_turnover_diff)
    opponent = FootballStats(
        opponent_points_for, opponent_points_against, opponent_off_yards, opponent_def_yards, opponent_turnover_diff
    )
    margin = football_margin(team, opponent, parsed_venue, home_advantage=FOOTBALL_TOOL_HOME_ADV)

    def _stats(s: FootballStats) -> dict:
        return {
            "pointsFor": s.points_for,
            "pointsAgainst": s.points_against,
            "offYards": s.off_yards,
            "defYards": s.def_yards,
            "turnoverDiff": s.turnover_diff,
        }

    estimate = estimate_cover(
        margin, spread, FOOTBALL_TOOL_SIGMA, confidence=model_confidence(input_deviations(team, opponent))
    )
    return _spread_result("football", estimate, parsed_venue, _stats(team), _stats(opponent))


def estimate_basketball(
    team_points_for: float,
    team_points_against: float,
    opponent_points_for: float,
    opponent_points_against: float,
    team_fg_pct: float,
    opponent_fg_pct: float,
    team_rebound_margin: float,
    opponent_rebound_margin: float,
    team_turnover_margin: float,
    opponent_turnover_margin: float,
    spread: float,
    venue: str = "neutral",
    team_three_pt_pct: Optional[float] = None,
    opponent_three_pt_pct: Optional[float] = None,
    team_pace: Optional[float] = None,
    opponent_pace: Optional[float] = None,
) -> ToolResult:
    """Cover probability for a basketball side from raw per-game stats.

    FG% (and three-point %) are fractions in ``[0, 1]``.
    """
    checks = _RangeCheck()
    for name, value in (
        ("teamPointsFor", team_points_for),
        ("teamPointsAgainst", team_points_against),
        ("opponentPointsFor", opponent_points_for),
        ("opponentPointsAgainst", opponent_points_against),
    ):
        checks.check(name, value, 0, 200)
    checks.check("teamFgPct", team_fg_pct, 0, 1)
    checks.check("opponentFgPct", opponent_fg_pct, 0, 1)
    for name, value in (
        ("teamReboundMargin", team_rebound_margin),
        ("opponentReboundMargin", opponent_rebound_margin),
        ("teamTurnoverMargin", team_turnover_margin),
        ("opponentTurnoverMargin", opponent_turnover_margin),
    ):
        checks.check(name, value, -50, 50)
    checks.check("spread", spread, -100, 100)
    for name, value in (("teamThreePtPct", team_three_pt_pct), ("opponentThreePtPct", opponent_three_pt_pct)):
        if value is not None:
            checks.check(name, value, 0, 1)
    for name, value in (("teamPace", team_pace), ("opponentPace", opponent_pace)):
        if value is not None:
            checks.check(name, value, 50, 150)
    parsed_venue = _parse_venue(venue)
    if parsed_venue is None:
        checks.problems.append("venue must be one of home, away, neutral")
    if checks.error():
        return checks.error()

    team = BasketballStats(
        team_points_for, team_points_against, team_fg_pct, team_rebound_margin, team_turnover_margin,
        three_pt_pct=team_three_pt_pct, pace=team_pace,
    )
    opponent = BasketballStats(
        opponent_points_for, opponent_points_against, opponent_fg_pct, opponent_rebound_margin,
        opponent_turnover_margin, three_pt_pct=opponent_three_pt_pct, pace=opponent_pace,
    )
    margin = basketball_margin(team, opponent, parsed_venue, home_advantage=BASKETBALL_TOOL_HOME_ADV)

    def _stats(s: BasketballStats) -> dict:
        return {
            "pointsFor": s.points_for,
            "pointsAgainst": s.points_against,
            "fgPct": s.fg_pct,
            "reboundMargin": s.rebound_margin,
            "turnoverMargin": s.turnover_margin,
        }

    estimate = estimate_cover(
        margin, spread, BASKETBALL_TOOL_SIGMA, confidence=model_confidence(input_deviations(team, opponent))
    )
    return _spread_result("basketball", estimate, parsed_venue, _stats(team), _stats(opponent))


_HOCKEY_FIELDS = ("xgf", "xga", "goalie_gsax", "hdcf", "pp_pct", "pk_pct", "times_shorthanded")


def _hockey_stats(label: str, raw: Dict[str, Any], checks: _RangeCheck) -> Optional[HockeyStats]:
    values = {}
    for name in _HOCKEY_FIELDS:
        if name not in raw:
            if name in ("xgf", "xga"):
                checks.problems.append(f"{label}.{name} is required")
            continue
        values[name] = raw[name]
    for name, (low, high) in {
        "xgf": (0, 20), "xga": (0, 20), "goalie_gsax": (-5, 5), "hdcf": (0, 50),
        "pp_pct": (0, 100), "pk_pct": (0, 100), "times_shorthanded": (0, 20),
    }.items():
        if name in values:
            checks.check(f"{label}.{name}", values[name], low, high)
    if checks.problems:
        return None
    return HockeyStats(**values)


def estimate_hockey_total(
    home: Dict[str, Any],
    away: Dict[str, Any],
    line: float,
    bet_type: str = "over",
) -> ToolResult:
    """Over/under probability for an NHL total-goals line."""
    checks = _RangeCheck()
    home_stats = _hockey_stats("home", home or {}, checks)
    away_stats = _hockey_stats("away", away or {}, checks)
    checks.check("line", line, 0.5, 20)
    if bet_type not in ("over", "under"):
        checks.problems.append("betType must be over or under")
    if checks.error():
        return checks.error()

    projection = hockey_total(home_stats, away_stats)
    estimate = estimate_over(
        projection.total, line, confidence=model_confidence([total_deviation(projection)])
    )
    summary = estimate.to_dict()
    over = summary["probability"]
    under = round(100.0 - over, 2)
    chosen = over if bet_type == "over" else under

    interpretation = interpret_over(over)
    structured = {
        "sport": "hockey",
        "league": "NHL",
        "line": line,
        "betType": bet_type,
        "projectedTotal": round(projection.total, 2),
        "probability": chosen,
        "overProbability": over,
        "underProbability": under,
        "sigma": summary["sigma"],
        "breakdown": {
            "homeGoals": round(projection.home_goals, 2),
            "awayGoals": round(projection.away_goals, 2),
            "paceAdjustment": projection.pace_adjustment,
            "specialTeamsAdjustment": projection.special_teams_adjustment,
        },
        "interpretation": interpretation,
        "modelConfidence": estimate.model_confidence,
        "estimate": summary,
    }
    text = (
        f"Projected total: {projection.total:.2f} goals vs a line of {line:g}.\n\n"
        f"Over: {over:.2f}% | Under: {under:.2f}%\n\n"
        f"{interpretation}"
    )
    return ToolResult(structured=structured, text=text)


# ---------------------------------------------------------------------------
# By-name estimator
# ---------------------------------------------------------------------------

_DEFAULT_SECONDARY = {
    SportCategory.FOOTBALL: {"off_yards": 350.0, "def_yards": 350.0, "turnover_diff": 0.0},
    SportCategory.BASKETBALL: {"fg_pct": 0.45, "rebound_margin": 0.0, "turnover_margin": 0.0},
}


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else value


def _build_stats(category: SportCategory, snap: TeamStatSnapshot):
    defaults = _DEFAULT_SECONDARY[category]
    if category == SportCategory.FOOTBALL:
        return FootballStats(
            snap.points_for,
            snap.points_against,
            _or_default(snap.off_yards, defaults["off_yards"]),
            _or_default(snap.def_yards, defaults["def_yards"]),
            _or_default(snap.turnover_diff, defaults["turnover_diff"]),
        )
    return BasketballStats(
        snap.points_for,
        snap.points_against,
        _or_default(snap.fg_pct, defaults["fg_pct"]),
        _or_default(snap.rebound_margin, defaults["rebound_margin"]),
        _or_default(snap.turnover_margin, defaults["turnover_margin"]),
    )


def _by_name_sport(category: SportCategory, hint: Optional[str]) -> Sport:
    sport = parse_sport(hint)
    if sport is not None and sport.category == category:
        return sport
    return Sport.NFL if category == SportCategory.FOOTBALL else Sport.NBA


def estimate_by_name(category: str, raw_args: Any, *, stats_provider: StatsProvider) -> ToolResult:
    """Favourite/underdog cover probabilities from two team names.

    The first team is the favourite; a positive spread is flipped to the
    favourite's (negative) perspective.  The two probabilities are rounded
    to 2 dp with the underdog taking the remainder, so they sum to 1.00.
    """
    try:
        cat = SportCategory(str(category).lower())
    except ValueError:
        return tool_error("invalid_input", f"Unknown category {category!r}; use football or basketball")
    if cat == SportCategory.HOCKEY:
        return tool_error("invalid_input", "Hockey has no spread model; use the hockey totals estimator")

    args = normalize_matchup_args(raw_args)
    if args.missing_fields:
        message = f"Missing required field(s): {', '.join(args.missing_fields)}"
        return tool_error(
            "invalid_input", message,
            missing_fields=args.missing_fields,
            hint='Provide two team names and a point spread. Example: team_favorite="Houston Rockets", '
                 'team_underdog="Los Angeles Lakers", spread=-3.5',
        )

    spread = args.spread
    if spread == 0:
        return tool_error(
            "invalid_input", "Spread cannot be zero - there must be a point spread",
            hint="Provide a non-zero spread (e.g., -3.5 for the favorite)",
        )
    if spread > 0:
        spread = -spread
    if not (-50 <= spread <= -0.5):
        return tool_error(
            "invalid_input", "Spread out of valid range (should be between 0.5 and 50 points)",
            spread_provided=args.spread, spread_converted=spread,
        )

    sport = _by_name_sport(cat, args.sport_hint)
    snaps: List[TeamStatSnapshot] = []
    for searched in (args.team_a, args.team_b):
        try:
            snaps.append(stats_provider.find_team(searched, sport))
        except TeamNotFound as exc:
            return tool_error(
                "team_not_found", f'Unknown {sport.value} team: "{searched}"',
                text=f"Error: {exc}",
                team_searched=searched, suggestions=exc.suggestions,
            )

    favorite, underdog = snaps
    if not favorite.has_points or not underdog.has_points:
        return tool_error(
            "insufficient_data", "Insufficient team statistics available",
            text=(
                f"Error: One or both teams ({favorite.name}, {underdog.name}) are missing "
                f"required statistics. Cannot calculate probability."
            ),
            teams={"favorite": favorite.name, "underdog": underdog.name},
        )

    sigma = FOOTBALL_TOOL_SIGMA if cat == SportCategory.FOOTBALL else BASKETBALL_TOOL_SIGMA
    fav_stats = _build_stats(cat, favorite)
    dog_stats = _build_stats(cat, underdog)
    if cat == SportCategory.FOOTBALL:
        margin = football_margin(fav_stats, dog_stats)
    else:
        margin = basketball_margin(fav_stats, dog_stats)
    estimate = estimate_cover(margin, spread, sigma)

    fav_cents = round(estimate.probability)
    favorite_cover = fav_cents / 100
    underdog_cover = (100 - fav_cents) / 100

    structured = {
        "sport": cat.value,
        "league": sport.value,
        "favorite": favorite.name,
        "underdog": underdog.name,
        "spread": spread,
        "favorite_cover_probability": favorite_cover,
        "underdog_cover_probability": underdog_cover,
        "predictedMargin": round(margin, 2),
        "sigma": sigma,
        "estimate": estimate.to_dict(),
        "inputs": {"team_favorite": args.team_a, "team_underdog": args.team_b, "spread": args.spread},
    }
    return ToolResult(structured=structured, text=json.dumps(structured, indent=2))


# ---------------------------------------------------------------------------
# Kelly and odds
# ---------------------------------------------------------------------------


def kelly_calculate(bankroll: float, odds: float, probability: float, fraction: float = 1.0) -> ToolResult:
    """Fractional-Kelly stake for a single bet."""
    try:
        result = calculate_kelly_stake(bankroll, odds, probability, fraction)
    except InvalidBankroll as exc:
        return tool_error("invalid_bankroll", str(exc))
    except InvalidOdds as exc:
        return tool_error("invalid_odds", str(exc))
    except (InvalidProbability, ValueError) as exc:
        return tool_error("invalid_input", str(exc))

    recommendation = recommendation_text(result)
    structured = {
        "hasValue": result.has_value,
        "stake": result.stake,
        "stakePercentage": result.stake_percentage,
        "bankroll": result.bankroll,
        "odds": result.american_odds,
        "probability": result.raw_probability,
        "fraction": result.fraction_multiplier,
        "decimalOdds": result.decimal_odds,
        "kellyFraction": result.kelly_fraction,
        "adjustedKellyFraction": result.adjusted_kelly_fraction,
        "impliedProbability": result.implied_probability,
        "edge": result.edge,
        "potentialWin": result.potential_win,
        "potentialPayout": result.potential_payout,
        "recommendation": recommendation,
        "lastCalculated": datetime.now(timezone.utc).isoformat(),
    }
    if result.has_value:
        text = (
            f"Recommended stake: ${result.stake:.2f} ({result.stake_percentage:.2f}% of bankroll).\n\n"
            f"Edge: {result.edge:+.2f}% over the {result.implied_probability:.2f}% implied probability.\n\n"
            f"{recommendation}"
        )
    else:
        text = f"No stake recommended.\n\n{recommendation}"
    return ToolResult(structured=structured, text=text)


def _odds_interpretation(american: float, probability: float) -> str:
    if american > 0:
        return (
            f"These are underdog odds. A $100 bet would win ${american:g}. "
            f"The market implies a {probability:.1f}% chance of winning."
        )
    return (
        f"These are favorite odds. You need to bet ${abs(american):g} to win $100. "
        f"The market implies a {probability:.1f}% chance of winning."
    )


def convert_odds(odds: float, from_format: str = "american", denominator: Optional[float] = None) -> ToolResult:
    """Convert a price to American, decimal and fractional forms."""
    fmt = (from_format or "").lower()
    try:
        if fmt == "american":
            decimal_odds = american_to_decimal(odds)
        elif fmt == "decimal":
            decimal_odds = float(odds)
        elif fmt == "fractional":
            if not denominator:
                return tool_error("invalid_input", "Denominator is required for fractional odds")
            decimal_odds = fractional_to_decimal(odds, denominator)
        else:
            return tool_error("invalid_input", f"Unknown format: {from_format}")
    except InvalidOdds as exc:
        return tool_error("invalid_odds", str(exc))
    except ValueError as exc:
        return tool_error("invalid_input", str(exc))

    if not math.isfinite(decimal_odds) or decimal_odds <= 1:
        return tool_error("invalid_odds", "Invalid odds: decimal odds must be greater than 1")

    american = decimal_to_american(decimal_odds)
    numerator, denom = decimal_to_fractional(decimal_odds)
    implied = implied_prob_pct(american)
    structured = {
        "input": {"odds": odds, "format": fmt, "denominator": denominator},
        "american": american,
        "decimal": round(decimal_odds, 3),
        "fractional": f"{numerator}/{denom}",
        "impliedProbability": round(implied, 2),
        "interpretation": _odds_interpretation(american, implied),
    }
    text = (
        f"American: {_signed(american)} | Decimal: {decimal_odds:.3f} | "
        f"Fractional: {numerator}/{denom}\n\n{structured['interpretation']}"
    )
    return ToolResult(structured=structured, text=text)


def implied_probability(american_odds: float) -> ToolResult:
    """Break-even win rate for an American price."""
    try:
        implied = implied_prob_pct(american_odds)
        decimal_odds = american_to_decimal(american_odds)
    except InvalidOdds as exc:
        return tool_error("invalid_odds", str(exc))

    interpretation = _odds_interpretation(american_odds, implied)
    structured = {
        "americanOdds": american_odds,
        "impliedProbability": round(implied, 2),
        "decimalOdds": round(decimal_odds, 3),
        "breakEvenWinRate": round(implied, 2),
        "interpretation": interpretation,
    }
    return ToolResult(structured=structured, text=interpretation)


def calculate_vig(odds1: float, odds2: float) -> ToolResult:
    """Bookmaker margin on a two-way market plus no-vig fair probabilities."""
    try:
        vig = two_way_vig(odds1, odds2)
    except InvalidOdds as exc:
        return tool_error("invalid_odds", str(exc))

    description = describe_vig(vig["vig_pct"])
    structured = {
        "odds": {"side1": odds1, "side2": odds2},
        "vig": {"percentage": round(vig["vig_pct"], 2), "description": description},
        "impliedProbabilities": {
            "side1": round(vig["implied_a"], 2),
            "side2": round(vig["implied_b"], 2),
            "total": round(vig["implied_a"] + vig["implied_b"], 2),
        },
        "fairProbabilities": {
            "side1": round(vig["fair_a"], 2),
            "side2": round(vig["fair_b"], 2),
        },
    }
    text = (
        f"Vig: {vig['vig_pct']:.2f}% ({description}).\n\n"
        f"Fair probabilities: {vig['fair_a']:.2f}% / {vig['fair_b']:.2f}%"
    )
    return ToolResult(structured=structured, text=text)


# ---------------------------------------------------------------------------
# Bet log
# ---------------------------------------------------------------------------

_LOG_NUMERIC_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("spread", ("spread", "point_spread", "pointSpread", "line")),
    ("probability", ("probability", "winProbability")),
    ("odds", ("odds", "americanOdds", "american_odds")),
    ("bankroll", ("bankroll",)),
    ("recommendedStake", ("recommendedStake", "recommended_stake", "stake")),
    ("actualWager", ("actualWager", "actual_wager", "wager")),
)


async def log_bet(raw_args: Any, *, bet_logger: BetLogger, session_id: str = "default") -> ToolResult:
    """Record a bet in the session's log."""
    args = extract_args(raw_args)
    matchup = normalize_matchup_args(args)
    if not matchup.team_a or not matchup.team_b:
        missing = [f for f in matchup.missing_fields if not f.startswith("spread")]
        return tool_error(
            "invalid_input", f"Missing required field(s): {', '.join(missing)}",
            missing_fields=missing,
        )

    values: Dict[str, float] = {}
    missing_numeric: List[str] = []
    for name, aliases in _LOG_NUMERIC_FIELDS:
        value = None
        for key in aliases:
            if key in args:
                value = coerce_float(args[key])
                break
        if value is None:
            missing_numeric.append(name)
        else:
            values[name] = value
    if missing_numeric:
        return tool_error(
            "invalid_input",
            f"Missing or invalid required field(s): {', '.join(missing_numeric)}",
            missing_fields=missing_numeric,
        )

    try:
        validate_bankroll(values["bankroll"])
    except InvalidBankroll as exc:
        return tool_error("invalid_bankroll", str(exc))
    sport = parse_sport(matchup.sport_hint) or Sport.NBA
    notes = coerce_str(args.get("notes"))

    try:
        record = await bet_logger.log_bet(
            session_id,
            sport=sport.value,
            team_a=matchup.team_a,
            team_b=matchup.team_b,
            spread=values["spread"],
            probability=values["probability"],
            american_odds=values["odds"],
            bankroll=values["bankroll"],
            recommended_stake=values["recommendedStake"],
            actual_wager=values["actualWager"],
            notes=notes,
        )
    except InvalidOdds as exc:
        return tool_error("invalid_odds", str(exc))

    synced = bet_logger.store.durable
    structured = {
        "betId": record.id,
        **record.to_dict(),
        "edge": record.edge,
        "impliedProbability": record.implied_probability,
        "syncedToBackend": synced,
        "loggedAt": record.created_at.isoformat(),
    }
    text = (
        f"## Bet Logged\n\n"
        f"**{record.team_a}** vs {record.team_b} ({sport.value})\n\n"
        f"| Detail | Value |\n"
        f"|--------|-------|\n"
        f"| Spread | {_signed(record.spread)} |\n"
        f"| Win Probability | {record.probability:.1f}% |\n"
        f"| Odds | {_signed(record.american_odds)} |\n"
        f"| Edge | {record.edge:+.1f}% |\n"
        f"| Recommended Stake | ${record.recommended_stake:.2f} |\n"
        f"| **Actual Wager** | **${record.actual_wager:.2f}** |\n\n"
        + (f"**Notes:** {notes}\n\n" if notes else "")
        + ("_Bet saved to the database._" if synced else "_Bet stored in memory for this session._")
    )
    return ToolResult(structured=structured, text=text)


async def update_bet_outcome(
    bet_id: str,
    result: str,
    *,
    bet_logger: BetLogger,
    payout: Optional[float] = None,
    actual_score: Optional[str] = None,
) -> ToolResult:
    """Settle a logged bet as win / loss / push / cancelled."""
    if payout is not None and (not math.isfinite(payout) or payout < 0):
        return tool_error("invalid_input", "payout must be a non-negative number")
    try:
        record = await bet_logger.update_outcome(bet_id, result, payout=payout, actual_score=actual_score)
    except BetNotFound as exc:
        return tool_error(
            "bet_not_found", str(exc),
            text=f'Could not find bet with ID "{bet_id}". Use the bet history to see your bets.',
        )
    except (BetAlreadySettled, ValueError) as exc:
        return tool_error("invalid_input", str(exc))

    structured = {
        "success": True,
        "betId": record.id,
        "message": f"Bet outcome updated to: {result}",
        "bet": record.to_dict(),
        "payout": record.payout,
        "profit": record.profit,
    }
    text = (
        f"Bet {record.id} settled as **{result}**.\n\n"
        f"Payout: ${record.payout:.2f} | P&L: ${record.profit:+.2f}"
    )
    return ToolResult(structured=structured, text=text)


_OUTCOME_MARK = {"win": "W", "loss": "L", "push": "P", "cancelled": "X", "pending": "..."}


async def bet_history(session_id: str, *, bet_logger: BetLogger, limit: int = 20) -> ToolResult:
    """Recent bets for a session plus record, wagered total and ROI."""
    if limit < 1 or limit > 100:
        return tool_error("invalid_input", "limit must be between 1 and 100")

    history = await bet_logger.history(session_id, limit)
    if history.total == 0:
        return ToolResult(
            structured={"bets": [], "total": 0, "message": "No bets logged yet"},
            text="No bets have been logged yet. Use the log-bet tool to start tracking your bets.",
        )

    summary = history.summary()
    lines = [
        f"## Bet History ({len(history.bets)} of {history.total})",
        "",
        "### Summary",
        f"- **Total Bets:** {history.total}",
        f"- **Pending:** {history.pending}",
        f"- **Record:** {history.wins}W - {history.losses}L - {history.pushes}P ({history.win_rate:.1f}%)",
        f"- **Avg Edge:** {history.avg_edge:+.1f}%",
        f"- **Total Wagered:** ${history.total_wagered:.2f}",
        f"- **Profit:** ${history.profit:+.2f} (ROI {history.roi:+.1f}%)",
        "",
        "### Recent Bets",
        "| Date | Matchup | Spread | Wager | Outcome |",
        "|------|---------|--------|-------|--------|",
    ]
    for bet in history.bets:
        lines.append(
            f"| {bet.created_at:%Y-%m-%d} | {bet.team_a} vs {bet.team_b} | {_signed(bet.spread)} "
            f"| ${bet.actual_wager:.2f} | {_OUTCOME_MARK.get(bet.outcome, '?')} {bet.outcome} |"
        )

    structured = {
        "bets": [b.to_dict() for b in history.bets],
        "total": history.total,
        "summary": summary,
    }
    return ToolResult(structured=structured, text="\n".join(lines))
