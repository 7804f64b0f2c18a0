"""Margin models — team statistics → predicted margin (or total).

One pure function per sport category, each total over its own frozen stat
struct.  No fitting happens at runtime: every weight below is a fixed
constant.  :func:`predict_margin` is the tagged-variant dispatcher the rest
of the code calls.

Football
--------
::

    margin = 0.40 · (netPtsA − netPtsB)
           + 0.25 · (netYdsA − netYdsB) / 25
           + 0.20 · 4 · 0.5 · (clamp(toA) − clamp(toB))
           + venue adjustment

25 yards are worth roughly one point; a turnover is worth ~4 points, half
of which is already reflected in the points columns.  Turnover
differentials are clamped to ±10 so a data-entry error cannot dominate.

Basketball
----------
::

    margin = ( 0.35 · (netPtsA − netPtsB)
             + 0.30 · (fgA − fgB) · 100
             + 0.20 · 0.5 · (rebA − rebB)
             + 0.15 · (toB − toA)
             [+ 0.10 · (3pA − 3pB) · 100] ) [· avg(paceA, paceB) / 100]
           + venue adjustment

FG% is a fraction; its differential is taken in percentage points.  The
turnover term is inverted: a higher turnover margin for the opponent helps
the backed side.  The three-point and pace terms apply only when both
teams carry the field.

Hockey (total goals)
--------------------
1. home goals = avg(home xGF, away xGA) − away goalie GSAx
2. away goals = avg(away xGF, home xGA) − home goalie GSAx
3. +0.25 when the two teams' high-danger chances for sum past 25
4. +0.35 for each side whose ``(own PP% + (100 − opp PK%)) × opp times
   shorthanded`` exceeds 150

The total is floored at 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional, Union

from betgistics.core.sport_config import SportCategory, Venue

# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

FOOTBALL_POINTS_WEIGHT: Final[float] = 0.4
FOOTBALL_YARDS_WEIGHT: Final[float] = 0.25
FOOTBALL_YARDS_PER_POINT: Final[float] = 25.0
FOOTBALL_TURNOVER_WEIGHT: Final[float] = 0.2
FOOTBALL_POINTS_PER_TURNOVER: Final[float] = 4.0
FOOTBALL_TURNOVER_SHARE: Final[float] = 0.5
FOOTBALL_TURNOVER_CLAMP: Final[float] = 10.0

BASKETBALL_POINTS_WEIGHT: Final[float] = 0.35
BASKETBALL_FG_WEIGHT: Final[float] = 0.3
BASKETBALL_FG_SCALE: Final[float] = 1.0
BASKETBALL_REBOUND_WEIGHT: Final[float] = 0.2
BASKETBALL_REBOUND_SCALE: Final[float] = 0.5
BASKETBALL_TURNOVER_WEIGHT: Final[float] = 0.15
BASKETBALL_TURNOVER_SCALE: Final[float] = 1.0
BASKETBALL_THREE_WEIGHT: Final[float] = 0.1
BASKETBALL_PACE_BASELINE: Final[float] = 100.0

HOCKEY_PACE_HDCF_THRESHOLD: Final[float] = 25.0
HOCKEY_PACE_BUMP: Final[float] = 0.25
HOCKEY_SPECIAL_TEAMS_THRESHOLD: Final[float] = 150.0
HOCKEY_SPECIAL_TEAMS_BUMP: Final[float] = 0.35

#: Typical spread of each input difference, used to normalise deviations
#: for :func:`betgistics.core.probability.model_confidence`.
_TYPICAL_NET_POINTS_GAP: Final[float] = 20.0
_TYPICAL_NET_YARDS_GAP: Final[float] = 200.0
_TYPICAL_TURNOVER_GAP: Final[float] = 10.0
_TYPICAL_FG_GAP: Final[float] = 0.08
_TYPICAL_REBOUND_GAP: Final[float] = 10.0
_TYPICAL_NHL_TOTAL: Final[float] = 6.0
_TYPICAL_NHL_TOTAL_GAP: Final[float] = 2.5


# ---------------------------------------------------------------------------
# Stat snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FootballStats:
    points_for: float
    points_against: float
    off_yards: float
    def_yards: float
    turnover_diff: float = 0.0

    @property
    def net_points(self) -> float:
        return self.points_for - self.points_against

    @property
    def net_yards(self) -> float:
        return self.off_yards - self.def_yards


@dataclass(frozen=True)
class BasketballStats:
    points_for: float
    points_against: float
    fg_pct: float
    rebound_margin: float = 0.0
    turnover_margin: float = 0.0
    three_pt_pct: Optional[float] = None
    pace: Optional[float] = None

    @property
    def net_points(self) -> float:
        return self.points_for - self.points_against


@dataclass(frozen=True)
class HockeyStats:
    """Per-game hockey inputs.

    Attributes:
        xgf: Expected goals for per game.
        xga: Expected goals against per game.
        goalie_gsax: Starting goalie's goals saved above expected per game.
        hdcf: High-danger chances for per game.
        pp_pct: Power-play conversion, percent.
        pk_pct: Penalty-kill success, percent.
        times_shorthanded: Times shorthanded per game.
    """

    xgf: float
    xga: float
    goalie_gsax: float = 0.0
    hdcf: float = 0.0
    pp_pct: float = 0.0
    pk_pct: float = 100.0
    times_shorthanded: float = 0.0


@dataclass(frozen=True)
class HockeyProjection:
    """Step-by-step breakdown of a projected total."""

    home_goals: float
    away_goals: float
    pace_adjustment: float
    special_teams_adjustment: float
    total: float


TeamStats = Union[FootballStats, BasketballStats]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def venue_adjustment(venue: Venue, home_advantage: float) -> float:
    """``+adv`` at home, ``-adv`` away, ``0`` on a neutral floor."""
    if venue == Venue.HOME:
        return home_advantage
    if venue == Venue.AWAY:
        return -home_advantage
    return 0.0


def _clamp(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def football_margin(
    team: FootballStats,
    opponent: FootballStats,
    venue: Venue = Venue.NEUTRAL,
    *,
    home_advantage: float = 2.5,
) -> float:
    """Predicted football margin for ``team`` over ``opponent``."""
    points = FOOTBALL_POINTS_WEIGHT * (team.net_points - opponent.net_points)
    yards = FOOTBALL_YARDS_WEIGHT * (
        (team.net_yards - opponent.net_yards) / FOOTBALL_YARDS_PER_POINT
    )
    turnovers = (
        FOOTBALL_TURNOVER_WEIGHT
        * FOOTBALL_POINTS_PER_TURNOVER
        * FOOTBALL_TURNOVER_SHARE
        * (
            _clamp(team.turnover_diff, FOOTBALL_TURNOVER_CLAMP)
            - _clamp(opponent.turnover_diff, FOOTBALL_TURNOVER_CLAMP)
        )
    )
    return points + yards + turnovers + venue_adjustment(venue, home_advantage)


def basketball_margin(
    team: BasketballStats,
    opponent: BasketballStats,
    venue: Venue = Venue.NEUTRAL,
    *,
    home_advantage: float = 3.0,
) -> float:
    """Predicted basketball margin for ``team`` over ``opponent``."""
    margin = BASKETBALL_POINTS_WEIGHT * (team.net_points - opponent.net_points)
    margin += BASKETBALL_FG_WEIGHT * BASKETBALL_FG_SCALE * (team.fg_pct - opponent.fg_pct) * 100.0
    margin += (
        BASKETBALL_REBOUND_WEIGHT
        * BASKETBALL_REBOUND_SCALE
        * (team.rebound_margin - opponent.rebound_margin)
    )
    margin += (
        BASKETBALL_TURNOVER_WEIGHT
        * BASKETBALL_TURNOVER_SCALE
        * (opponent.turnover_margin - team.turnover_margin)
    )

    if team.three_pt_pct is not None and opponent.three_pt_pct is not None:
        margin += BASKETBALL_THREE_WEIGHT * (team.three_pt_pct - opponent.three_pt_pct) * 100.0

    if team.pace is not None and opponent.pace is not None:
        margin *= ((team.pace + opponent.pace) / 2.0) / BASKETBALL_PACE_BASELINE

    return margin + venue_adjustment(venue, home_advantage)


def hockey_total(home: HockeyStats, away: HockeyStats) -> HockeyProjection:
    """Projected total goals for ``home`` vs ``away``."""
    home_goals = (home.xgf + away.xga) / 2.0 - away.goalie_gsax
    away_goals = (away.xgf + home.xga) / 2.0 - home.goalie_gsax

    pace = HOCKEY_PACE_BUMP if home.hdcf + away.hdcf > HOCKEY_PACE_HDCF_THRESHOLD else 0.0

    special_teams = 0.0
    if (home.pp_pct + (100.0 - away.pk_pct)) * away.times_shorthanded > HOCKEY_SPECIAL_TEAMS_THRESHOLD:
        special_teams += HOCKEY_SPECIAL_TEAMS_BUMP
    if (away.pp_pct + (100.0 - home.pk_pct)) * home.times_shorthanded > HOCKEY_SPECIAL_TEAMS_THRESHOLD:
        special_teams += HOCKEY_SPECIAL_TEAMS_BUMP

    total = max(0.0, home_goals + away_goals + pace + special_teams)
    return HockeyProjection(
        home_goals=home_goals,
        away_goals=away_goals,
        pace_adjustment=pace,
        special_teams_adjustment=special_teams,
        total=total,
    )


def predict_margin(
    category: SportCategory,
    team: TeamStats,
    opponent: TeamStats,
    venue: Venue = Venue.NEUTRAL,
    *,
    home_advantage: float,
) -> float:
    """Dispatch to the margin model for ``category``.

    Raises:
        TypeError: If the stat structs do not match the category.
        ValueError: For :attr:`SportCategory.HOCKEY`, which predicts totals
            (use :func:`hockey_total`).
    """
    if category == SportCategory.FOOTBALL:
        if not isinstance(team, FootballStats) or not isinstance(opponent, FootballStats):
            raise TypeError("football margin requires FootballStats for both teams")
        return football_margin(team, opponent, venue, home_advantage=home_advantage)
    if category == SportCategory.BASKETBALL:
        if not isinstance(team, BasketballStats) or not isinstance(opponent, BasketballStats):
            raise TypeError("basketball margin requires BasketballStats for both teams")
        return basketball_margin(team, opponent, venue, home_advantage=home_advantage)
    raise ValueError(f"{category.value} has no spread margin model; use hockey_total")


# ---------------------------------------------------------------------------
# Input deviations (for model confidence)
# ---------------------------------------------------------------------------


def input_deviations(team: TeamStats, opponent: TeamStats) -> list[float]:
    """Normalised size of each input gap between the two teams."""
    deviations = [abs(team.net_points - opponent.net_points) / _TYPICAL_NET_POINTS_GAP]
    if isinstance(team, FootballStats) and isinstance(opponent, FootballStats):
        deviations.append(abs(team.net_yards - opponent.net_yards) / _TYPICAL_NET_YARDS_GAP)
        deviations.append(abs(team.turnover_diff - opponent.turnover_diff) / _TYPICAL_TURNOVER_GAP)
    elif isinstance(team, BasketballStats) and isinstance(opponent, BasketballStats):
        deviations.append(abs(team.fg_pct - opponent.fg_pct) / _TYPICAL_FG_GAP)
        deviations.append(abs(team.rebound_margin - opponent.rebound_margin) / _TYPICAL_REBOUND_GAP)
        deviations.append(abs(team.turnover_margin - opponent.turnover_margin) / _TYPICAL_TURNOVER_GAP)
    return deviations


def total_deviation(projection: HockeyProjection) -> float:
    return abs(projection.total - _TYPICAL_NHL_TOTAL) / _TYPICAL_NHL_TOTAL_GAP
