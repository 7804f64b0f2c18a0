"""
Season stat tables for the by-name estimators and orchestration.

Tables are flat CSV files, one per league, shipped under
``betgistics/data/`` (override the directory with ``STATS_DATA_DIR``):

    nfl_team_stats.csv  team,abbreviation,points_for,points_against,
                        off_yards,def_yards,turnover_diff
    nba_team_stats.csv  team,abbreviation,points_for,points_against,
                        fg_pct,rebound_margin,turnover_margin,
                        three_pt_pct,pace

Empty cells load as ``None`` so callers can tell "missing" from "zero".
A league without a table simply has no teams.
"""

from __future__ import annotations

import asyncio
import csv
import logging
import os
from dataclasses import dataclass, fields
from typing import Dict, List, Optional

from dotenv import load_dotenv

from betgistics.core.sport_config import Sport
from betgistics.services.team_mapping import TeamNotFound, fuzzy_team_match

load_dotenv()

logger = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data")


@dataclass(frozen=True)
class TeamStatSnapshot:
    """One row of a season stat table."""

    name: str
    abbreviation: Optional[str] = None
    points_for: Optional[float] = None
    points_against: Optional[float] = None
    off_yards: Optional[float] = None
    def_yards: Optional[float] = None
    turnover_diff: Optional[float] = None
    fg_pct: Optional[float] = None
    rebound_margin: Optional[float] = None
    turnover_margin: Optional[float] = None
    three_pt_pct: Optional[float] = None
    pace: Optional[float] = None

    @property
    def has_points(self) -> bool:
        return self.points_for is not None and self.points_against is not None


_NUMERIC_FIELDS = tuple(f.name for f in fields(TeamStatSnapshot) if f.name not in ("name", "abbreviation"))


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _row_to_snapshot(row: Dict[str, str]) -> Optional[TeamStatSnapshot]:
    row = {(k or "").strip().lower(): (v or "").strip() for k, v in row.items()}
    name = row.get("team") or row.get("name")
    if not name:
        return None
    values = {field: _parse_float(row.get(field)) for field in _NUMERIC_FIELDS}
    return TeamStatSnapshot(name=name, abbreviation=row.get("abbreviation") or None, **values)


def table_path(sport: Sport, data_dir: Optional[str] = None) -> str:
    directory = data_dir or os.getenv("STATS_DATA_DIR", _DEFAULT_DATA_DIR)
    return os.path.join(directory, f"{sport.value.lower()}_team_stats.csv")


def load_stat_table(path: str) -> List[TeamStatSnapshot]:
    """Read one CSV table; a missing file is an empty table."""
    if not os.path.exists(path):
        logger.warning("Stat table not found: %s", path)
        return []

    snapshots: List[TeamStatSnapshot] = []
    with open(path, newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            snapshot = _row_to_snapshot(row)
            if snapshot is not None:
                snapshots.append(snapshot)
    logger.info("Loaded %d teams from %s", len(snapshots), path)
    return snapshots


class StatsProvider:
    """Lazy, per-league cache over the bundled stat tables."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = data_dir
        self._tables: Dict[Sport, List[TeamStatSnapshot]] = {}

    def table(self, sport: Sport) -> List[TeamStatSnapshot]:
        if sport not in self._tables:
            self._tables[sport] = load_stat_table(table_path(sport, self.data_dir))
        return self._tables[sport]

    def team_names(self, sport: Sport) -> List[str]:
        return [t.name for t in self.table(sport)]

    def find_team(self, name: str, sport: Sport) -> TeamStatSnapshot:
        """Fuzzy lookup that raises :class:`TeamNotFound` with suggestions."""
        return fuzzy_team_match(name, self.table(sport))

    async def get_team_stats(self, name: str, sport: Sport) -> Optional[TeamStatSnapshot]:
        """Stats for ``name`` in ``sport``, or ``None`` if the table lacks it."""
        table = await asyncio.to_thread(self.table, sport)
        try:
            return fuzzy_team_match(name, table)
        except TeamNotFound:
            return None


_provider: Optional[StatsProvider] = None


def get_stats_provider() -> StatsProvider:
    global _provider
    if _provider is None:
        _provider = StatsProvider()
    return _provider
