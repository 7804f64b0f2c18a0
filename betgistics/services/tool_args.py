"""
Argument normalisation for the by-name tools.

Callers (LLM agents in particular) name the same input a dozen different
ways.  Every alias list lives here so no handler repeats the lookup.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

TEAM_A_ALIASES: tuple[str, ...] = (
    "team_favorite", "favorite_team", "favorite", "fav",
    "teamA", "team_a", "team1", "team_1",
    "home_team", "home", "homeTeam",
    "first_team", "firstTeam",
)

TEAM_B_ALIASES: tuple[str, ...] = (
    "team_underdog", "underdog_team", "underdog", "dog",
    "teamB", "team_b", "team2", "team_2",
    "away_team", "away", "awayTeam",
    "second_team", "secondTeam",
)

SPREAD_ALIASES: tuple[str, ...] = ("spread", "point_spread", "pointSpread", "line", "points")

SPORT_ALIASES: tuple[str, ...] = ("sport", "league", "type")

TEAM_A_LABEL = f"team_favorite (aliases: {', '.join(TEAM_A_ALIASES[1:])})"
TEAM_B_LABEL = f"team_underdog (aliases: {', '.join(TEAM_B_ALIASES[1:])})"
SPREAD_LABEL = f"spread (aliases: {', '.join(SPREAD_ALIASES[1:])})"


@dataclass
class MatchupArgs:
    team_a: str = ""
    team_b: str = ""
    spread: Optional[float] = None
    sport_hint: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields


def _maybe_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return value
        if isinstance(parsed, dict):
            return parsed
    return value


def extract_args(raw: Any) -> Dict[str, Any]:
    """Unwrap a JSON string or an ``arguments`` / ``params.arguments`` envelope."""
    args = _maybe_json(raw)
    if isinstance(args, dict):
        params = args.get("params")
        nested = params.get("arguments") if isinstance(params, dict) else None
        if nested is None:
            nested = args.get("arguments")
        if nested is not None:
            args = _maybe_json(nested)
    if not isinstance(args, dict):
        logger.debug("Ignoring non-mapping tool arguments: %r", raw)
        return {}
    return args


def first_alias(args: Dict[str, Any], aliases: Sequence[str]) -> Any:
    for key in aliases:
        if key in args:
            return args[key]
    return None


def coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def normalize_matchup_args(raw: Any) -> MatchupArgs:
    """Map a loose bag of named inputs to :class:`MatchupArgs`.

    The first alias present wins.  Missing or unparseable fields are listed in
    ``missing_fields`` rather than raised, so the caller can report them all
    at once.
    """
    args = extract_args(raw)

    result = MatchupArgs(
        team_a=coerce_str(first_alias(args, TEAM_A_ALIASES)) or "",
        team_b=coerce_str(first_alias(args, TEAM_B_ALIASES)) or "",
        spread=coerce_float(first_alias(args, SPREAD_ALIASES)),
        sport_hint=coerce_str(first_alias(args, SPORT_ALIASES)),
    )
    if result.sport_hint:
        result.sport_hint = result.sport_hint.lower()

    if not result.team_a:
        result.missing_fields.append(TEAM_A_LABEL)
    if not result.team_b:
        result.missing_fields.append(TEAM_B_LABEL)
    if result.spread is None:
        result.missing_fields.append(SPREAD_LABEL)
    return result
