"""Sport-level configuration — all sport-specific constants in one place.

This module is the **registry** for every constant that differs between
leagues.  Nowhere else in the codebase should sigmas, home-advantage
figures, probability bounds or league-average stat lines be hard-coded.

Architecture
------------
:class:`Sport` is the tagged variant every layer dispatches on.  Each
variant maps to a :class:`SportCategory` (which margin model applies) and
to a frozen :class:`SportConfig` (which constants apply).  To add a league:

1. Add a member to :class:`Sport` and map it in ``_CATEGORY``.
2. Add a ``@classmethod`` constructor to :class:`SportConfig` and register it
   in ``_CONSTRUCTORS``.
3. Margin models and the probability engine pick it up through
   :func:`config_for` without any string comparisons.

Typical usage::

    from betgistics.core.sport_config import Sport, config_for

    cfg = config_for(Sport.NBA)
    margin += venue_adjustment(venue, cfg.home_advantage_pts)

    # Override a single constant for a one-off calibration:
    from dataclasses import replace
    custom_cfg = replace(cfg, sigma=12.0)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Final, Optional


class Sport(str, enum.Enum):
    """League identifier used in tool payloads, DB records and summaries."""

    NFL = "NFL"
    CFB = "CFB"
    NBA = "NBA"
    CBB = "CBB"
    NHL = "NHL"

    @property
    def category(self) -> SportCategory:
        return _CATEGORY[self]


class SportCategory(str, enum.Enum):
    """Which margin model a league uses."""

    FOOTBALL = "football"
    BASKETBALL = "basketball"
    HOCKEY = "hockey"


class Venue(str, enum.Enum):
    """Where the backed team plays."""

    HOME = "home"
    AWAY = "away"
    NEUTRAL = "neutral"


_CATEGORY: Final[dict[Sport, SportCategory]] = {
    Sport.NFL: SportCategory.FOOTBALL,
    Sport.CFB: SportCategory.FOOTBALL,
    Sport.NBA: SportCategory.BASKETBALL,
    Sport.CBB: SportCategory.BASKETBALL,
    Sport.NHL: SportCategory.HOCKEY,
}

# ---------------------------------------------------------------------------
# Tool-level constants
# ---------------------------------------------------------------------------

#: Sigma used by the stat-by-stat football estimator and the football
#: by-name tool.  Matches the NFL league sigma.
FOOTBALL_TOOL_SIGMA: Final[float] = 13.5

#: Sigma used by the stat-by-stat basketball estimator and the basketball
#: by-name tool.  Deliberately wider than the NBA league sigma because the
#: tool does not know whether the inputs are NBA or college numbers.
BASKETBALL_TOOL_SIGMA: Final[float] = 12.0

#: Venue swing applied by the stat-by-stat tools.
FOOTBALL_TOOL_HOME_ADV: Final[float] = 2.5
BASKETBALL_TOOL_HOME_ADV: Final[float] = 3.0

#: Spread-variant probability bounds (percent).
SPREAD_PROB_FLOOR: Final[float] = 0.1
SPREAD_PROB_CEILING: Final[float] = 99.9

#: Total-variant probability bounds (percent).
TOTAL_PROB_FLOOR: Final[float] = 1.0
TOTAL_PROB_CEILING: Final[float] = 99.0


@dataclass(frozen=True)
class DefaultStatLine:
    """League-average per-game stat line used when no team data exists.

    Football leagues leave the basketball fields at ``None`` and vice versa.
    ``fg_pct`` is a fraction in ``[0, 1]``.
    """

    points_for: float
    points_against: float
    off_yards: Optional[float] = None
    def_yards: Optional[float] = None
    turnover_diff: Optional[float] = None
    fg_pct: Optional[float] = None
    rebound_margin: Optional[float] = None
    turnover_margin: Optional[float] = None


@dataclass(frozen=True)
class SportConfig:
    """Immutable configuration bundle for a single league.

    Attributes:
        sport: The :class:`Sport` variant this bundle describes.
        sport_name: Human-readable name for logging and display.
        sigma: Standard deviation of the final margin (points/goals) around
            the model's prediction.  ``None`` for total-goals leagues, whose
            sigma is derived per game as ``sqrt(projected_total)``.
        home_advantage_pts: Expected margin boost for the home team.
            Applied as ``+adv`` at home, ``-adv`` away, ``0`` neutral.
        prob_floor: Lowest probability (percent) the engine may report.
        prob_ceiling: Highest probability (percent) the engine may report.
        defaults: League-average stat line for teams without data.
    """

    sport: Sport
    sport_name: str
    sigma: Optional[float]
    home_advantage_pts: float
    prob_floor: float = SPREAD_PROB_FLOOR
    prob_ceiling: float = SPREAD_PROB_CEILING
    defaults: Optional[DefaultStatLine] = field(default=None)

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def nfl(cls) -> SportConfig:
        """NFL: 13.5-point margin SD, 2.5-point home field."""
        return cls(
            sport=Sport.NFL,
            sport_name="NFL",
            sigma=13.5,
            home_advantage_pts=2.5,
            defaults=DefaultStatLine(
                points_for=22.5, points_against=22.5,
                off_yards=340.0, def_yards=340.0, turnover_diff=0.0,
            ),
        )

    @classmethod
    def college_football(cls) -> SportConfig:
        """College football: wider talent gaps, so a 16-point SD."""
        return cls(
            sport=Sport.CFB,
            sport_name="College Football",
            sigma=16.0,
            home_advantage_pts=3.0,
            defaults=DefaultStatLine(
                points_for=28.0, points_against=28.0,
                off_yards=380.0, def_yards=380.0, turnover_diff=0.0,
            ),
        )

    @classmethod
    def nba(cls) -> SportConfig:
        """NBA: 11.5-point margin SD, 3-point home court."""
        return cls(
            sport=Sport.NBA,
            sport_name="NBA",
            sigma=11.5,
            home_advantage_pts=3.0,
            defaults=DefaultStatLine(
                points_for=114.0, points_against=114.0,
                fg_pct=0.47, rebound_margin=0.0, turnover_margin=0.0,
            ),
        )

    @classmethod
    def college_basketball(cls) -> SportConfig:
        """College basketball: fewer possessions, tighter SD, louder gyms."""
        return cls(
            sport=Sport.CBB,
            sport_name="College Basketball",
            sigma=10.5,
            home_advantage_pts=3.5,
            defaults=DefaultStatLine(
                points_for=72.0, points_against=72.0,
                fg_pct=0.45, rebound_margin=0.0, turnover_margin=0.0,
            ),
        )

    @classmethod
    def nhl(cls) -> SportConfig:
        """NHL totals: Poisson-like variance, so sigma is per game.

        Goal totals are small integers, so the reported probability is
        clamped harder (``[1, 99]``) than the spread leagues.
        """
        return cls(
            sport=Sport.NHL,
            sport_name="NHL",
            sigma=None,
            home_advantage_pts=0.0,
            prob_floor=TOTAL_PROB_FLOOR,
            prob_ceiling=TOTAL_PROB_CEILING,
        )

    def __repr__(self) -> str:
        return (
            f"SportConfig(sport={self.sport.value!r}, "
            f"sigma={self.sigma}, "
            f"home_adv={self.home_advantage_pts})"
        )


_CONSTRUCTORS = {
    Sport.NFL: SportConfig.nfl,
    Sport.CFB: SportConfig.college_football,
    Sport.NBA: SportConfig.nba,
    Sport.CBB: SportConfig.college_basketball,
    Sport.NHL: SportConfig.nhl,
}


def config_for(sport: Sport) -> SportConfig:
    """Return the canonical :class:`SportConfig` for ``sport``."""
    return _CONSTRUCTORS[sport]()


# ---------------------------------------------------------------------------
# Sport name parsing
# ---------------------------------------------------------------------------

_SPORT_ALIASES: Final[dict[str, Sport]] = {
    "nfl": Sport.NFL,
    "football": Sport.NFL,
    "cfb": Sport.CFB,
    "college football": Sport.CFB,
    "ncaa football": Sport.CFB,
    "ncaaf": Sport.CFB,
    "nba": Sport.NBA,
    "basketball": Sport.NBA,
    "cbb": Sport.CBB,
    "college basketball": Sport.CBB,
    "ncaa basketball": Sport.CBB,
    "ncaab": Sport.CBB,
    "nhl": Sport.NHL,
    "hockey": Sport.NHL,
}


def parse_sport(value: Optional[str]) -> Optional[Sport]:
    """Map a free-form league/sport hint to a :class:`Sport`.

    Returns ``None`` for empty or unrecognised hints; callers decide whether
    that is an error or a cue to infer the sport from team names.

    Examples::

        parse_sport("nba")         → Sport.NBA
        parse_sport(" Football ")  → Sport.NFL
        parse_sport("curling")     → None
    """
    if not value:
        return None
    return _SPORT_ALIASES.get(" ".join(value.lower().split()))
