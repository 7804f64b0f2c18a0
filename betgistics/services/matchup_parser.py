"""
Free-text matchup parser.

Turns a request such as ``"NBA: Heat vs Hawks, Hawks -3.5, taking Hawks"``
into a :class:`ParsedMatchup` oriented from the backed side's perspective:
``team_a`` is always the pick and ``spread`` is the pick's line.

Every guess the parser makes (sport inferred, pick assumed, venue assumed,
odds missing) is appended to ``notes`` so the orchestration layer can show
the user what was assumed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from betgistics.core.sport_config import Sport, Venue
from betgistics.services.team_registry import (
    ResolvedTeam,
    TeamInfo,
    TeamResolutionError,
    detect_sport,
    is_home_venue,
    normalize_alias,
    resolve_team_name,
    team_mentions,
)

logger = logging.getLogger(__name__)


class MatchupParseError(ValueError):
    """The request could not be turned into a matchup.

    Attributes:
        clarification_needed: Which inputs the user should restate
            (``teams``, ``sport``, ``spread``).
    """

    def __init__(self, message: str, clarification_needed: Optional[List[str]] = None):
        super().__init__(message)
        self.clarification_needed = clarification_needed or []


@dataclass
class ParsedMatchup:
    sport: Sport
    team_a: TeamInfo            # the pick
    team_b: TeamInfo            # the opponent
    spread: float               # pick's perspective, negative when favoured
    venue: Venue
    venue_assumed: bool
    american_odds: Optional[int]
    raw_text: str
    notes: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_SPORT_PREFIX = re.compile(r"^\s*(nba|nfl|cbb|cfb)\s*[:\-]?\s*", re.IGNORECASE)

_SIDE = r"([a-z0-9\s\.\']{2,40}?)"
_END = r"(?=,|\.|;|\(|$)"
_MATCHUP_PATTERNS = (
    re.compile(rf"\b{_SIDE}\s+(?:at|@)\s+{_SIDE}{_END}", re.IGNORECASE),
    re.compile(rf"\b{_SIDE}\s+(?:vs\.?|v)\s+{_SIDE}{_END}", re.IGNORECASE),
    re.compile(rf"\b{_SIDE}\s+versus\s+{_SIDE}{_END}", re.IGNORECASE),
)

# A number that stands alone (not part of "49ers" or a decimal's tail),
# optionally followed by a points unit.
_NUMERIC_SPREAD = re.compile(
    r"(?<![\w.])([+-]?\d+(?:\.\d+)?)(?=\s*(?:pts?|points?)\b|\.(?!\d)|[^\w.]|$)"
)
_FAVORED = re.compile(
    r"favou?red\s+by\s+(\d+(?:\.\d+)?)|(\d+(?:\.\d+)?)\s*(?:-?\s*point\s+)?favou?rites?"
)
_UNDERDOG = re.compile(r"(\d+(?:\.\d+)?)\s*(?:-?\s*point\s+)?underdogs?")

_SPOKEN_NUMBERS = ("one", "two", "three", "four", "five", "six", "seven")

_PICK_PATTERNS = (
    re.compile(r"(?:i'?m\s+)?tak(?:e|ing)\s+(?:the\s+)?(\w+)"),
    re.compile(r"(?:my\s+)?pick\s+(?:is\s+)?(?:the\s+)?(\w+)"),
    re.compile(r"bet(?:ting)?\s+(?:on\s+)?(?:the\s+)?(\w+)"),
    re.compile(r"going\s+(?:with\s+)?(?:the\s+)?(\w+)"),
    re.compile(r"i\s+(?:like|want|choose)\s+(?:the\s+)?(\w+)"),
    re.compile(r"backing\s+(?:the\s+)?(\w+)"),
)
_PICK_LOOKAHEAD = 6
_WORD = re.compile(r"[\w']+")
_CLAUSE_BREAK = re.compile(r"[,;!?]")

_NEUTRAL = re.compile(r"neutral\s+(?:site|venue|field|court)")
_LOCATION = re.compile(r"(?:\b(?:at|in)\s+|@\s*)(\w+(?:\s+\w+)?)")

_ODDS_PATTERNS = (
    re.compile(r"\b(?:odds?|at)\s*([+-]?\d{3,4})\b"),
    re.compile(r"([+-]\d{3,4})\s*odds?"),
    re.compile(r"(?<![\w.])([+-]\d{3})\b(?!\s*(?:pt|point|spread))"),
)


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------


def extract_matchup_tokens(text: str, sport: Optional[Sport] = None) -> List[Tuple[str, str]]:
    """Candidate ``(team A text, team B text)`` pairs, best first.

    An explicit ``A at B`` / ``A vs B`` / ``A versus B`` phrase comes first;
    the first two distinct team aliases found anywhere in the text follow as
    a fallback.
    """
    cleaned = _SPORT_PREFIX.sub("", re.sub(r"\s+", " ", text), count=1)
    candidates: List[Tuple[str, str]] = []

    for pattern in _MATCHUP_PATTERNS:
        match = pattern.search(cleaned)
        if match and match.group(1).strip() and match.group(2).strip():
            candidates.append((match.group(1).strip(), match.group(2).strip()))
            break

    mentions = team_mentions(text, sport)
    if len(mentions) >= 2:
        fallback = (mentions[0], mentions[1])
        if not any(
            normalize_alias(a) == fallback[0] and normalize_alias(b) == fallback[1]
            for a, b in candidates
        ):
            candidates.append(fallback)
    return candidates


def _resolve_pair(
    candidates: List[Tuple[str, str]], sport: Optional[Sport]
) -> Tuple[ResolvedTeam, ResolvedTeam, Sport]:
    errors: List[str] = []
    for text_a, text_b in candidates:
        try:
            resolved_a = resolve_team_name(text_a, sport)
            resolved_b = resolve_team_name(text_b, sport)
        except TeamResolutionError as exc:
            errors.append(str(exc))
            continue

        inferred = sport
        if inferred is None and resolved_a.sport == resolved_b.sport:
            inferred = resolved_a.sport
        if inferred is None:
            errors.append("Could not determine sport from teams. Please specify NFL, NBA, CFB, or CBB.")
            continue
        return resolved_a, resolved_b, inferred

    raise MatchupParseError(
        errors[0] if errors else "Could not resolve teams from the input.",
        ["teams", "sport"],
    )


# ---------------------------------------------------------------------------
# Spread
# ---------------------------------------------------------------------------


def _spoken_spread(text: str) -> Optional[float]:
    for sign_word, sign in (("minus", -1.0), ("plus", 1.0)):
        for value, word in enumerate(_SPOKEN_NUMBERS, start=1):
            if re.search(rf"{sign_word}\s+(?:{word}|{value})\s+(?:and\s+a\s+)?half", text):
                return sign * (value + 0.5)
    for sign_word, sign in (("minus", -1.0), ("plus", 1.0)):
        for value, word in enumerate(_SPOKEN_NUMBERS, start=1):
            if re.search(rf"{sign_word}\s+(?:{word}|{value})\b", text):
                return sign * value
    return None


def parse_spread(text: str) -> Optional[float]:
    """Spread in the text, from the perspective of the team it is attached to.

    Order: "favored by X" / "X point favorites" (negative), "X point
    underdogs" (positive), spoken numbers, then the first standalone number
    with ``0.5 <= |x| <= 50``.
    """
    lowered = text.lower()

    favored = _FAVORED.search(lowered)
    if favored:
        return -float(favored.group(1) or favored.group(2))

    underdog = _UNDERDOG.search(lowered)
    if underdog:
        return float(underdog.group(1))

    spoken = _spoken_spread(lowered)
    if spoken is not None:
        return spoken

    for match in _NUMERIC_SPREAD.finditer(lowered):
        value = float(match.group(1))
        if 0.5 <= abs(value) <= 50:
            return value
    return None


def _team_terms(team: TeamInfo) -> List[str]:
    return [*team.aliases, team.name.lower()]


def find_spread_team(text: str, spread: float, team_a: TeamInfo, team_b: TeamInfo) -> Optional[TeamInfo]:
    """The team the spread number is written next to ("Hawks -3.5", "-3.5 Hawks")."""
    lowered = text.lower()
    number = re.escape(f"{abs(spread):g}")
    for team in (team_a, team_b):
        for alias in _team_terms(team):
            term = re.escape(alias)
            if re.search(rf"{term}\s*[-+]?\s*{number}", lowered) or re.search(
                rf"[-+]?\s*{number}\s*{term}", lowered
            ):
                return team
    return None


# ---------------------------------------------------------------------------
# Pick / venue / odds
# ---------------------------------------------------------------------------


def _word_matches_team(word: str, team: TeamInfo) -> bool:
    terms = {*team.aliases, team.name.lower(), team.city.lower(), team.abbreviation.lower()}
    return word in terms or f"{word}s" in terms


def parse_pick(text: str, team_a: TeamInfo, team_b: TeamInfo) -> Optional[TeamInfo]:
    """The side the user says they are taking, if any."""
    lowered = text.lower()
    for pattern in _PICK_PATTERNS:
        match = pattern.search(lowered)
        if not match:
            continue
        # "taking a flyer on the Hawks": the team may sit a few words on
        clause = _CLAUSE_BREAK.split(lowered[match.start(1):], maxsplit=1)[0]
        words = _WORD.findall(clause)[:_PICK_LOOKAHEAD]
        for i, word in enumerate(words):
            for candidate in (" ".join(words[i:i + 2]), word):
                if _word_matches_team(candidate, team_a):
                    return team_a
                if _word_matches_team(candidate, team_b):
                    return team_b
    return None


def parse_venue(text: str, pick: TeamInfo, opponent: TeamInfo) -> Tuple[Venue, bool]:
    """Venue from the pick's perspective, plus whether it was assumed."""
    lowered = text.lower()

    if _NEUTRAL.search(lowered):
        return Venue.NEUTRAL, False

    for match in _LOCATION.finditer(lowered):
        location = match.group(1)
        if is_home_venue(location, pick):
            return Venue.HOME, False
        if is_home_venue(location, opponent):
            return Venue.AWAY, False

    name = re.escape(pick.name.lower())
    home_patterns = [
        rf"{name}\s+(?:at\s+)?home",
        rf"home\s+(?:game\s+)?(?:for\s+)?{name}",
        *(rf"{re.escape(alias)}\s+at\s+home" for alias in pick.aliases),
    ]
    away_patterns = [
        rf"{name}\s+(?:on\s+the\s+)?road",
        rf"{name}\s+away",
        rf"away\s+(?:game\s+)?(?:for\s+)?{name}",
    ]
    if any(re.search(p, lowered) for p in home_patterns):
        return Venue.HOME, False
    if any(re.search(p, lowered) for p in away_patterns):
        return Venue.AWAY, False

    for alias in _team_terms(pick):
        term = re.escape(alias)
        if re.search(rf"\b{term}\b[^\n]{{0,40}}\b(?:away|on\s+the\s+road|road)\b", lowered):
            return Venue.AWAY, False

    for alias in pick.aliases:
        if re.search(rf"\b(?:in|at)\s+{re.escape(alias)}\b", lowered):
            return Venue.HOME, False
    for alias in opponent.aliases:
        if re.search(rf"\b(?:in|at)\s+{re.escape(alias)}\b", lowered):
            return Venue.AWAY, False

    return Venue.NEUTRAL, True


def parse_odds(text: str) -> Optional[int]:
    """American odds in the text (``|odds| >= 100``), if any."""
    lowered = text.lower()
    for pattern in _ODDS_PATTERNS:
        match = pattern.search(lowered)
        if match:
            odds = int(match.group(1))
            if abs(odds) >= 100:
                return odds
    return None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_matchup(text: str) -> ParsedMatchup:
    """Parse a natural-language betting request.

    Raises:
        MatchupParseError: No teams found, teams unresolved or identical, or
            no spread in the text.
    """
    notes: List[str] = []
    sport = detect_sport(text)
    explicit_sport = sport is not None

    candidates = extract_matchup_tokens(text, sport)
    if not candidates:
        raise MatchupParseError(
            'Could not identify both teams. Please provide a clear "A vs B" or "A at B" matchup.',
            ["teams", "sport"],
        )

    resolved_a, resolved_b, sport = _resolve_pair(candidates, sport)
    if not explicit_sport:
        notes.append(f"Sport inferred as {sport.value} from team names")
    if "fuzzy" in (resolved_a.match_type, resolved_b.match_type):
        notes.append("Team names resolved with fuzzy matching; verify team spelling for accuracy.")

    team_a, team_b = resolved_a.team, resolved_b.team
    if team_a.abbreviation == team_b.abbreviation:
        raise MatchupParseError(
            "Detected the same team twice. Please specify two distinct teams.", ["teams"]
        )

    spread = parse_spread(text)
    if spread is None:
        raise MatchupParseError(
            'Could not parse point spread. Please provide a spread like "-3.5" or "favored by 7".',
            ["spread"],
        )

    spread_team = find_spread_team(text, spread, team_a, team_b)
    pick = parse_pick(text, team_a, team_b)

    if pick is not None:
        opponent = team_b if pick is team_a else team_a
    elif spread_team is not None:
        pick = spread_team
        opponent = team_b if pick is team_a else team_a
        notes.append(f"Pick assumed to be {pick.name} (team mentioned with spread)")
    else:
        pick, opponent = team_a, team_b
        notes.append(f"Pick assumed to be {pick.name} (first team mentioned)")

    if spread_team is not None and spread_team is not pick:
        spread = -spread
        notes.append(f"Spread adjusted to {spread:g} from {pick.name}'s perspective")

    venue, venue_assumed = parse_venue(text, pick, opponent)
    if venue_assumed:
        notes.append("Venue assumed as neutral (not explicitly stated)")

    odds = parse_odds(text)
    if odds is None:
        notes.append("Odds not provided - will default to -110")

    logger.debug(
        "Parsed '%s' as %s %s %+g vs %s (%s)",
        text, sport.value, pick.name, spread, opponent.name, venue.value,
    )
    return ParsedMatchup(
        sport=sport,
        team_a=pick,
        team_b=opponent,
        spread=spread,
        venue=venue,
        venue_assumed=venue_assumed,
        american_odds=odds,
        raw_text=text,
        notes=notes,
    )
