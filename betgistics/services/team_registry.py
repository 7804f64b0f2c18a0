"""
Team registry for free-text matchup parsing.

Holds every NFL and NBA franchise with its nickname, city, abbreviation,
common aliases and home venue, plus the alias index the matchup parser
resolves team mentions against.  College leagues resolve against the pro
index of the same category (no college rosters are bundled).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from rapidfuzz.distance import Levenshtein

from betgistics.core.sport_config import Sport, SportCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamInfo:
    name: str            # Nickname, e.g. "Hawks"
    city: str
    abbreviation: str
    aliases: tuple[str, ...]
    home_venue: str
    home_city: str

    @property
    def full_name(self) -> str:
        return f"{self.city} {self.name}"


MatchType = Literal["alias", "abbreviation", "contains", "fuzzy"]


@dataclass(frozen=True)
class ResolvedTeam:
    team: TeamInfo
    sport: Sport
    matched_alias: str
    confidence: float
    match_type: MatchType


@dataclass(frozen=True)
class AliasEntry:
    alias: str
    team: TeamInfo
    sport: Sport


class TeamResolutionError(ValueError):
    """A team mention could not be resolved confidently."""


def _team(name, city, abbreviation, aliases, venue, home_city) -> TeamInfo:
    return TeamInfo(name, city, abbreviation, tuple(aliases), venue, home_city)


# ---------------------------------------------------------------------------
# NFL
# ---------------------------------------------------------------------------

NFL_TEAMS: tuple[TeamInfo, ...] = (
    # AFC East
    _team("Bills", "Buffalo", "BUF", ["buffalo", "bills", "buf"], "Highmark Stadium", "Buffalo"),
    _team("Dolphins", "Miami", "MIA", ["miami", "dolphins", "fins", "mia"], "Hard Rock Stadium", "Miami"),
    _team("Patriots", "New England", "NE", ["new england", "patriots", "pats", "ne", "boston"], "Gillette Stadium", "Foxborough"),
    _team("Jets", "New York", "NYJ", ["jets", "nyj", "ny jets", "new york jets"], "MetLife Stadium", "East Rutherford"),
    # AFC North
    _team("Ravens", "Baltimore", "BAL", ["baltimore", "ravens", "bal"], "M&T Bank Stadium", "Baltimore"),
    _team("Bengals", "Cincinnati", "CIN", ["cincinnati", "bengals", "cincy", "cin"], "Paycor Stadium", "Cincinnati"),
    _team("Browns", "Cleveland", "CLE", ["cleveland", "browns", "cle"], "Cleveland Browns Stadium", "Cleveland"),
    _team("Steelers", "Pittsburgh", "PIT", ["pittsburgh", "steelers", "pit"], "Acrisure Stadium", "Pittsburgh"),
    # AFC South
    _team("Texans", "Houston", "HOU", ["houston", "texans", "hou"], "NRG Stadium", "Houston"),
    _team("Colts", "Indianapolis", "IND", ["indianapolis", "colts", "indy", "ind"], "Lucas Oil Stadium", "Indianapolis"),
    _team("Jaguars", "Jacksonville", "JAX", ["jacksonville", "jaguars", "jags", "jax"], "EverBank Stadium", "Jacksonville"),
    _team("Titans", "Tennessee", "TEN", ["tennessee", "titans", "ten", "nashville"], "Nissan Stadium", "Nashville"),
    # AFC West
    _team("Broncos", "Denver", "DEN", ["denver", "broncos", "den"], "Empower Field", "Denver"),
    _team("Chiefs", "Kansas City", "KC", ["kansas city", "chiefs", "kc"], "Arrowhead Stadium", "Kansas City"),
    _team("Raiders", "Las Vegas", "LV", ["las vegas", "raiders", "lv", "vegas"], "Allegiant Stadium", "Las Vegas"),
    _team("Chargers", "Los Angeles", "LAC", ["chargers", "lac", "la chargers", "los angeles chargers", "san diego"], "SoFi Stadium", "Los Angeles"),
    # NFC East
    _team("Cowboys", "Dallas", "DAL", ["dallas", "cowboys", "dal", "boys"], "AT&T Stadium", "Arlington"),
    _team("Giants", "New York", "NYG", ["giants", "nyg", "ny giants", "new york giants"], "MetLife Stadium", "East Rutherford"),
    _team("Eagles", "Philadelphia", "PHI", ["philadelphia", "eagles", "phi", "philly"], "Lincoln Financial Field", "Philadelphia"),
    _team("Commanders", "Washington", "WAS", ["washington", "commanders", "was"], "Northwest Stadium", "Landover"),
    # NFC North
    _team("Bears", "Chicago", "CHI", ["chicago", "bears", "chi"], "Soldier Field", "Chicago"),
    _team("Lions", "Detroit", "DET", ["detroit", "lions", "det"], "Ford Field", "Detroit"),
    _team("Packers", "Green Bay", "GB", ["green bay", "packers", "gb", "pack"], "Lambeau Field", "Green Bay"),
    _team("Vikings", "Minnesota", "MIN", ["minnesota", "vikings", "min", "vikes"], "U.S. Bank Stadium", "Minneapolis"),
    # NFC South
    _team("Falcons", "Atlanta", "ATL", ["atlanta", "falcons", "atl"], "Mercedes-Benz Stadium", "Atlanta"),
    _team("Panthers", "Carolina", "CAR", ["carolina", "panthers", "car", "charlotte"], "Bank of America Stadium", "Charlotte"),
    _team("Saints", "New Orleans", "NO", ["new orleans", "saints", "no", "nola"], "Caesars Superdome", "New Orleans"),
    _team("Buccaneers", "Tampa Bay", "TB", ["tampa bay", "buccaneers", "bucs", "tb", "tampa"], "Raymond James Stadium", "Tampa"),
    # NFC West
    _team("Cardinals", "Arizona", "ARI", ["arizona", "cardinals", "ari", "cards", "phoenix"], "State Farm Stadium", "Glendale"),
    _team("Rams", "Los Angeles", "LAR", ["rams", "lar", "la rams", "los angeles rams"], "SoFi Stadium", "Los Angeles"),
    _team("49ers", "San Francisco", "SF", ["san francisco", "49ers", "niners", "sf"], "Levi's Stadium", "Santa Clara"),
    _team("Seahawks", "Seattle", "SEA", ["seattle", "seahawks", "sea", "hawks"], "Lumen Field", "Seattle"),
)

# ---------------------------------------------------------------------------
# NBA
# ---------------------------------------------------------------------------

NBA_TEAMS: tuple[TeamInfo, ...] = (
    # Atlantic
    _team("Celtics", "Boston", "BOS", ["boston", "celtics", "bos"], "TD Garden", "Boston"),
    _team("Nets", "Brooklyn", "BKN", ["brooklyn", "nets", "bkn"], "Barclays Center", "Brooklyn"),
    _team("Knicks", "New York", "NYK", ["new york", "knicks", "nyk"], "Madison Square Garden", "New York"),
    _team("76ers", "Philadelphia", "PHI", ["philadelphia", "76ers", "sixers", "phi", "philly"], "Wells Fargo Center", "Philadelphia"),
    _team("Raptors", "Toronto", "TOR", ["toronto", "raptors", "tor"], "Scotiabank Arena", "Toronto"),
    # Central
    _team("Bulls", "Chicago", "CHI", ["chicago", "bulls", "chi"], "United Center", "Chicago"),
    _team("Cavaliers", "Cleveland", "CLE", ["cleveland", "cavaliers", "cavs", "cle"], "Rocket Mortgage FieldHouse", "Cleveland"),
    _team("Pistons", "Detroit", "DET", ["detroit", "pistons", "det"], "Little Caesars Arena", "Detroit"),
    _team("Pacers", "Indiana", "IND", ["indiana", "pacers", "ind", "indianapolis"], "Gainbridge Fieldhouse", "Indianapolis"),
    _team("Bucks", "Milwaukee", "MIL", ["milwaukee", "bucks", "mil"], "Fiserv Forum", "Milwaukee"),
    # Southeast
    _team("Hawks", "Atlanta", "ATL", ["atlanta", "hawks", "atl"], "State Farm Arena", "Atlanta"),
    _team("Hornets", "Charlotte", "CHA", ["charlotte", "hornets", "cha"], "Spectrum Center", "Charlotte"),
    _team("Heat", "Miami", "MIA", ["miami", "heat", "mia"], "Kaseya Center", "Miami"),
    _team("Magic", "Orlando", "ORL", ["orlando", "magic", "orl"], "Kia Center", "Orlando"),
    _team("Wizards", "Washington", "WAS", ["washington", "wizards", "was"], "Capital One Arena", "Washington"),
    # Northwest
    _team("Nuggets", "Denver", "DEN", ["denver", "nuggets", "den"], "Ball Arena", "Denver"),
    _team("Timberwolves", "Minnesota", "MIN", ["minnesota", "timberwolves", "wolves", "min", "twolves"], "Target Center", "Minneapolis"),
    _team("Thunder", "Oklahoma City", "OKC", ["oklahoma city", "thunder", "okc"], "Paycom Center", "Oklahoma City"),
    _team("Trail Blazers", "Portland", "POR", ["portland", "trail blazers", "blazers", "por"], "Moda Center", "Portland"),
    _team("Jazz", "Utah", "UTA", ["utah", "jazz", "uta", "salt lake"], "Delta Center", "Salt Lake City"),
    # Pacific
    _team("Warriors", "Golden State", "GSW", ["golden state", "warriors", "gsw", "gs", "dubs", "san francisco"], "Chase Center", "San Francisco"),
    _team("Clippers", "Los Angeles", "LAC", ["clippers", "lac", "la clippers"], "Intuit Dome", "Inglewood"),
    _team("Lakers", "Los Angeles", "LAL", ["lakers", "lal", "la lakers"], "Crypto.com Arena", "Los Angeles"),
    _team("Suns", "Phoenix", "PHX", ["phoenix", "suns", "phx"], "Footprint Center", "Phoenix"),
    _team("Kings", "Sacramento", "SAC", ["sacramento", "kings", "sac"], "Golden 1 Center", "Sacramento"),
    # Southwest
    _team("Mavericks", "Dallas", "DAL", ["dallas", "mavericks", "mavs", "dal"], "American Airlines Center", "Dallas"),
    _team("Rockets", "Houston", "HOU", ["houston", "rockets", "hou"], "Toyota Center", "Houston"),
    _team("Grizzlies", "Memphis", "MEM", ["memphis", "grizzlies", "grizz", "mem"], "FedExForum", "Memphis"),
    _team("Pelicans", "New Orleans", "NOP", ["new orleans", "pelicans", "pels", "nop", "nola"], "Smoothie King Center", "New Orleans"),
    _team("Spurs", "San Antonio", "SAS", ["san antonio", "spurs", "sas"], "Frost Bank Center", "San Antonio"),
)

_ROSTERS: dict[SportCategory, tuple[TeamInfo, ...]] = {
    SportCategory.FOOTBALL: NFL_TEAMS,
    SportCategory.BASKETBALL: NBA_TEAMS,
}

# ---------------------------------------------------------------------------
# Alias index
# ---------------------------------------------------------------------------

#: Minimum confidence for a resolution to be accepted.
MIN_RESOLUTION_SCORE = 0.8

#: A fuzzy winner must beat the runner-up by at least this much.
MIN_FUZZY_GAP = 0.2

_CONTAINS_SCORE = 0.97


def normalize_alias(value: str) -> str:
    """Lowercase, punctuation to spaces, collapse whitespace."""
    value = re.sub(r"[^a-z0-9\s]", " ", value.lower())
    return re.sub(r"\s+", " ", value).strip()


def _build_alias_index(teams: Iterable[TeamInfo], sport: Sport) -> list[AliasEntry]:
    entries = []
    for team in teams:
        raw = [team.name, team.city, team.abbreviation.lower(), team.full_name, *team.aliases]
        seen = set()
        for alias in raw:
            normalized = normalize_alias(alias)
            if normalized and normalized not in seen:
                seen.add(normalized)
                entries.append(AliasEntry(alias=normalized, team=team, sport=sport))
    return entries


_ALIAS_INDEX: dict[Sport, list[AliasEntry]] = {
    sport: _build_alias_index(_ROSTERS[sport.category], sport)
    for sport in (Sport.NFL, Sport.CFB, Sport.NBA, Sport.CBB)
}


def alias_entries(sport: Optional[Sport] = None) -> list[AliasEntry]:
    """Alias index for ``sport``, or NBA then NFL when the sport is unknown.

    Basketball comes first so shared cities (ATL, MIA, PHI) default to the
    NBA franchise when nothing else disambiguates.
    """
    if sport is not None:
        return _ALIAS_INDEX.get(sport, [])
    return _ALIAS_INDEX[Sport.NBA] + _ALIAS_INDEX[Sport.NFL]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_team_name(text: str, sport: Optional[Sport] = None) -> ResolvedTeam:
    """Resolve a free-text team mention to a :class:`TeamInfo`.

    Scoring per alias: abbreviation or exact alias = 1.0, alias contained in
    the text = 0.97, otherwise normalised Levenshtein similarity.

    Raises:
        TeamResolutionError: Empty input, best score below 0.8, a fuzzy
            winner too close to the runner-up, or two different teams
            sharing the winning alias.
    """
    query = normalize_alias(text)
    if not query:
        raise TeamResolutionError("Team name is empty or malformed")

    scored: list[tuple[float, MatchType, AliasEntry]] = []
    for entry in alias_entries(sport):
        if query == entry.team.abbreviation.lower():
            scored.append((1.0, "abbreviation", entry))
        elif query == entry.alias:
            scored.append((1.0, "alias", entry))
        elif len(entry.alias) >= 3 and entry.alias in query:
            scored.append((_CONTAINS_SCORE, "contains", entry))
        else:
            scored.append((Levenshtein.normalized_similarity(query, entry.alias), "fuzzy", entry))

    # max() keeps the first of equal scores, so index order breaks ties
    best = max(scored, key=lambda s: s[0], default=None)
    if best is None or best[0] < MIN_RESOLUTION_SCORE:
        raise TeamResolutionError(
            f'Could not confidently resolve team "{text}". Please double-check the spelling.'
        )

    score, match_type, entry = best
    # Runner-up is the best score for any *other* franchise
    runner_up = max(
        (s for s in scored if (s[2].team, s[2].sport) != (entry.team, entry.sport)),
        key=lambda s: s[0],
        default=None,
    )
    runner_score = runner_up[0] if runner_up else 0.0
    alias_tie = (
        runner_up is not None
        and runner_score == score
        and runner_up[2].alias == entry.alias
        and runner_up[2].sport == entry.sport
    )
    if (match_type == "fuzzy" and score - runner_score < MIN_FUZZY_GAP) or (
        alias_tie and match_type != "abbreviation"
    ):
        raise TeamResolutionError(
            f'Ambiguous team reference "{text}". Please specify the exact team name.'
        )

    if match_type == "fuzzy":
        logger.debug("Fuzzy resolved '%s' to %s (%.2f)", text, entry.team.full_name, score)

    return ResolvedTeam(
        team=entry.team,
        sport=entry.sport,
        matched_alias=entry.alias,
        confidence=score,
        match_type=match_type,
    )


def team_mentions(text: str, sport: Optional[Sport] = None) -> list[str]:
    """Aliases of distinct teams mentioned in ``text``, in order of appearance."""
    normalized = normalize_alias(text)
    found: list[tuple[int, str]] = []
    seen: set[str] = set()
    for entry in alias_entries(sport):
        if entry.team.abbreviation in seen:
            continue
        pattern = r"\b" + r"\s+".join(re.escape(part) for part in entry.alias.split()) + r"\b"
        match = re.search(pattern, normalized)
        if match:
            seen.add(entry.team.abbreviation)
            found.append((match.start(), entry.alias))
    found.sort(key=lambda item: item[0])
    return [alias for _, alias in found]


# ---------------------------------------------------------------------------
# Sport and venue helpers
# ---------------------------------------------------------------------------

_EXPLICIT_SPORT_PATTERNS: tuple[tuple[str, Sport], ...] = (
    (r"\bnfl\b", Sport.NFL),
    (r"\bnba\b", Sport.NBA),
    (r"\bcfb\b|\bcollege football\b|\bncaa football\b", Sport.CFB),
    (r"\bcbb\b|\bcollege basketball\b|\bncaa basketball\b|\bmarch madness\b", Sport.CBB),
)


def detect_sport(text: str) -> Optional[Sport]:
    """League explicitly named in ``text``, if any."""
    lowered = text.lower()
    for pattern, sport in _EXPLICIT_SPORT_PATTERNS:
        if re.search(pattern, lowered):
            return sport
    return None


# Place nicknames people type instead of the city.
_PLACE_SHORTHAND = {
    "la": "los angeles",
    "ny": "new york",
    "nyc": "new york",
    "sf": "san francisco",
    "philly": "philadelphia",
    "vegas": "las vegas",
    "okc": "oklahoma city",
    "kc": "kansas city",
    "nola": "new orleans",
    "dc": "washington",
    "indy": "indianapolis",
}


def _place_words(text: str) -> list[str]:
    return re.findall(r"\w+", text.lower())


def _contains_run(words: list[str], run: list[str]) -> bool:
    width = len(run)
    return any(words[i:i + width] == run for i in range(len(words) - width + 1))


def is_home_venue(location: str, team: TeamInfo) -> bool:
    """True if ``location`` names the team's home city, arena or market.

    Matching is on whole words, so "LA" never hits "Atlanta".
    """
    words = _place_words(" ".join(_PLACE_SHORTHAND.get(w, w) for w in _place_words(location)))
    if not words:
        return False
    for term in (team.home_city, team.home_venue, team.city):
        term_words = _place_words(term)
        if term_words and (_contains_run(words, term_words) or _contains_run(term_words, words)):
            return True
    return False
