"""
Fuzzy lookup of user-typed team names against a stat table.

Stat tables name teams the way the data source does ("Los Angeles Lakers",
"LAL").  Users type "lakers", "LA Lakers" or "Lakres".  This module is the
single place where that gap is closed.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol, Sequence, TypeVar

from rapidfuzz import fuzz, process

logger = logging.getLogger(__name__)

#: Default minimum similarity in [0, 1] for a fuzzy hit.
DEFAULT_FUZZY_THRESHOLD = 0.6

#: Maximum number of suggestions attached to a :class:`TeamNotFound`.
MAX_SUGGESTIONS = 5


class NamedTeam(Protocol):
    name: str
    abbreviation: Optional[str]


T = TypeVar("T", bound=NamedTeam)


class TeamNotFound(LookupError):
    """No stat-table team matched the query.

    Attributes:
        searched: The query as the caller typed it.
        suggestions: Up to five closest team names, best first.
    """

    def __init__(self, searched: str, suggestions: Sequence[str] = ()):
        self.searched = searched
        self.suggestions = list(suggestions)[:MAX_SUGGESTIONS]
        message = f'Team "{searched}" not found'
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


def fuzzy_threshold() -> float:
    return float(os.getenv("FUZZY_MATCH_THRESHOLD", str(DEFAULT_FUZZY_THRESHOLD)))


def _candidates(team: NamedTeam) -> list[str]:
    """Strings a team can be matched on: full name, abbreviation, nickname."""
    out = []
    if team.name:
        out.append(team.name.lower())
        words = team.name.split()
        if len(words) > 1:
            out.append(words[-1].lower())
    if team.abbreviation:
        out.append(team.abbreviation.lower())
    return out


def _best_score(query: str, team: NamedTeam) -> float:
    return max((fuzz.ratio(query, c) for c in _candidates(team)), default=0.0)


def suggest_teams(query: str, teams: Sequence[NamedTeam], limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Closest team names to ``query``, best first."""
    search = query.lower().strip()
    ranked = sorted(teams, key=lambda t: _best_score(search, t), reverse=True)
    return [t.name for t in ranked[:limit]]


def fuzzy_team_match(
    query: str,
    teams: Sequence[T],
    *,
    threshold: Optional[float] = None,
) -> T:
    """
    Find the stat-table team a free-text ``query`` refers to.

    Strategy, first hit wins:
      1. exact case-insensitive name or abbreviation
      2. best normalised similarity over every candidate string, if it
         reaches ``threshold``
      3. ``query`` is a substring of a name or abbreviation

    Args:
        query: Team name as typed.
        teams: Rows of the stat table.
        threshold: Minimum similarity in [0, 1]; defaults to
            ``FUZZY_MATCH_THRESHOLD`` or 0.6.

    Raises:
        TeamNotFound: Nothing matched; carries up to five suggestions.
    """
    search = query.lower().strip()
    if not search or not teams:
        raise TeamNotFound(query, [])

    if threshold is None:
        threshold = fuzzy_threshold()

    # Strategy 1: exact
    for team in teams:
        if team.name.lower() == search or (team.abbreviation or "").lower() == search:
            return team

    # Strategy 2: fuzzy over name / nickname / abbreviation
    choices: list[str] = []
    owners: list[T] = []
    for team in teams:
        for candidate in _candidates(team):
            choices.append(candidate)
            owners.append(team)

    result = process.extractOne(search, choices, scorer=fuzz.ratio, score_cutoff=threshold * 100)
    if result:
        matched, score, index = result
        logger.debug("Fuzzy matched '%s' to '%s' with score %.1f", query, owners[index].name, score)
        return owners[index]

    # Strategy 3: substring
    for team in teams:
        if search in team.name.lower() or search in (team.abbreviation or "").lower():
            logger.debug("Substring matched '%s' to '%s'", query, team.name)
            return team

    suggestions = suggest_teams(query, teams)
    logger.warning("No stat-table match for '%s' (closest: %s)", query, suggestions[:3])
    raise TeamNotFound(query, suggestions)
