"""
Pydantic request/response schemas for the Betgistics API.

Field names are snake_case; every model also accepts the camelCase spelling
(``teamPointsFor``, ``userText``) that tool-calling clients send.  Range
checks on the estimator inputs live in the tool handlers so they come back
as structured ``invalid_input`` results instead of bare 422s.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from betgistics.core.kelly import MAX_BANKROLL


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_american_odds(v: Optional[float]) -> Optional[float]:
    if v is not None and -100 < v < 100:
        raise ValueError(f"{v} is not valid American odds. Must be >= +100 or <= -100.")
    return v


# ---------------------------------------------------------------------------
# Estimators
# ---------------------------------------------------------------------------

class FootballEstimateRequest(_ApiModel):
    """Payload for POST /api/estimate/football (per-game season averages)."""

    team_points_for: float
    team_points_against: float
    opponent_points_for: float
    opponent_points_against: float
    team_off_yards: float
    team_def_yards: float
    opponent_off_yards: float
    opponent_def_yards: float
    team_turnover_diff: float = 0.0
    opponent_turnover_diff: float = 0.0
    spread: float = Field(..., description="Backed team's line, negative when favoured")
    venue: str = Field("neutral", description="home | away | neutral")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "teamPointsFor": 28.5, "teamPointsAgainst": 21.3,
                "opponentPointsFor": 24.2, "opponentPointsAgainst": 26.8,
                "teamOffYards": 395, "teamDefYards": 315,
                "opponentOffYards": 362, "opponentDefYards": 385,
                "teamTurnoverDiff": 8, "opponentTurnoverDiff": -3,
                "spread": -6.5, "venue": "neutral",
            }
        },
    )


class BasketballEstimateRequest(_ApiModel):
    """Payload for POST /api/estimate/basketball.  FG% is a fraction."""

    team_points_for: float
    team_points_against: float
    opponent_points_for: float
    opponent_points_against: float
    team_fg_pct: float
    opponent_fg_pct: float
    team_rebound_margin: float = 0.0
    opponent_rebound_margin: float = 0.0
    team_turnover_margin: float = 0.0
    opponent_turnover_margin: float = 0.0
    spread: float
    venue: str = "neutral"
    team_three_pt_pct: Optional[float] = None
    opponent_three_pt_pct: Optional[float] = None
    team_pace: Optional[float] = None
    opponent_pace: Optional[float] = None


class HockeyTeamInput(_ApiModel):
    xgf: float
    xga: float
    goalie_gsax: float = 0.0
    hdcf: float = 0.0
    pp_pct: float = 0.0
    pk_pct: float = 100.0
    times_shorthanded: float = 0.0


class HockeyTotalRequest(_ApiModel):
    home: HockeyTeamInput
    away: HockeyTeamInput
    line: float
    bet_type: Literal["over", "under"] = "over"


# ---------------------------------------------------------------------------
# Kelly and odds
# ---------------------------------------------------------------------------

class KellyRequest(_ApiModel):
    bankroll: float
    odds: float = Field(..., description="American odds")
    probability: float = Field(..., description="Win probability, percent")
    fraction: float = Field(1.0, description="Kelly multiplier (1 = full, 0.5 = half)")


class OddsConvertRequest(_ApiModel):
    odds: float
    from_format: Literal["american", "decimal", "fractional"] = "american"
    denominator: Optional[float] = None


class VigRequest(_ApiModel):
    odds1: float
    odds2: float


# ---------------------------------------------------------------------------
# Bet log
# ---------------------------------------------------------------------------

class OutcomeUpdate(_ApiModel):
    """Payload for PUT /api/bets/{bet_id}/outcome."""

    result: Literal["win", "loss", "push", "cancelled"]
    payout: Optional[float] = Field(None, ge=0, description="Total returned; computed from odds when omitted")
    actual_score: Optional[str] = Field(None, max_length=120, description='e.g. "Hawks 112 - Heat 104"')


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

class TeamStatOverride(_ApiModel):
    """Caller-supplied stats that beat both the stat tables and league averages."""

    ppg: Optional[float] = Field(None, description="Points per game")
    points_allowed: Optional[float] = None
    fg_pct: Optional[float] = Field(None, description="Fraction, or percent if > 1")
    rebound_margin: Optional[float] = None
    turnover_margin: Optional[float] = None
    offensive_yards: Optional[float] = None
    defensive_yards: Optional[float] = None


class OrchestrationRequest(_ApiModel):
    """Payload for POST /api/orchestrate."""

    user_text: str = Field(..., min_length=10, description="Natural-language betting request")
    bankroll: Optional[float] = Field(None, gt=0, le=MAX_BANKROLL)
    american_odds: Optional[float] = None
    kelly_fraction: float = Field(0.5, ge=0.1, le=1.0)
    session_id: Optional[str] = Field(None, max_length=120)
    log_bet: bool = True
    team_a_stats: Optional[TeamStatOverride] = None
    team_b_stats: Optional[TeamStatOverride] = None

    @field_validator("american_odds")
    @classmethod
    def validate_american_odds(cls, v: Optional[float]) -> Optional[float]:
        return _check_american_odds(v)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userText": "NBA: Heat vs Hawks, Hawks -3.5, I'm taking Hawks. Game is in Atlanta.",
                "bankroll": 1000,
                "kellyFraction": 0.5,
            }
        },
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """Envelope shared by every tool route."""

    structuredContent: Dict[str, Any]
    content: List[TextContent]
    isError: bool = False
