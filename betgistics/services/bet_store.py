"""
Bet persistence behind a narrow async interface.

:class:`BetStore` is the only thing the logging and orchestration layers
know about.  Two implementations ship:

* :class:`InMemoryBetStore` — per-instance dict, for tests and ephemeral runs.
* :class:`SqlBetStore` — SQLAlchemy ``bet_records`` table; the blocking
  session work runs in a worker thread via :func:`asyncio.to_thread`.

Choose one at startup with ``BET_STORE=sql|memory`` (see
:func:`create_bet_store`).
"""

from __future__ import annotations

import abc
import asyncio
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Literal, Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Outcome = Literal["pending", "win", "loss", "push", "cancelled"]


@dataclass
class BetRecord:
    id: str
    session_id: str
    sport: str
    team_a: str
    team_b: str
    spread: float
    probability: float
    bankroll: float
    american_odds: float
    recommended_stake: float
    actual_wager: float
    venue: str = "neutral"
    expected_margin: Optional[float] = None
    implied_probability: Optional[float] = None
    edge: Optional[float] = None
    kelly_fraction: Optional[float] = None
    stake_percentage: Optional[float] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    outcome: Outcome = "pending"
    payout: Optional[float] = None
    profit: Optional[float] = None
    actual_score: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    settled_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return self.outcome != "pending"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["settled_at"] = self.settled_at.isoformat() if self.settled_at else None
        return data


class BetStore(abc.ABC):
    """Async persistence contract for :class:`BetRecord`."""

    #: True when records survive a process restart.
    durable: bool = False

    @abc.abstractmethod
    async def get(self, session_id: str) -> List[BetRecord]:
        """All records for a session, oldest first."""

    @abc.abstractmethod
    async def append(self, session_id: str, record: BetRecord) -> None:
        ...

    @abc.abstractmethod
    async def find(self, bet_id: str) -> Optional[BetRecord]:
        ...

    @abc.abstractmethod
    async def update(self, record: BetRecord) -> None:
        """Persist changes to an existing record (settlement)."""


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryBetStore(BetStore):
    def __init__(self):
        self._sessions: Dict[str, List[BetRecord]] = {}
        self._by_id: Dict[str, BetRecord] = {}

    async def get(self, session_id: str) -> List[BetRecord]:
        return list(self._sessions.get(session_id, []))

    async def append(self, session_id: str, record: BetRecord) -> None:
        record.session_id = session_id
        self._sessions.setdefault(session_id, []).append(record)
        self._by_id[record.id] = record

    async def find(self, bet_id: str) -> Optional[BetRecord]:
        return self._by_id.get(bet_id)

    async def update(self, record: BetRecord) -> None:
        if record.id not in self._by_id:
            raise KeyError(record.id)
        stored = self._by_id[record.id]
        if stored is not record:
            bucket = self._sessions[stored.session_id]
            bucket[bucket.index(stored)] = record
            self._by_id[record.id] = record


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

_ROW_FIELDS = (
    "id", "session_id", "sport", "team_a", "team_b", "spread", "venue",
    "probability", "expected_margin", "implied_probability", "edge",
    "bankroll", "american_odds", "kelly_fraction", "recommended_stake",
    "stake_percentage", "actual_wager", "notes", "tags", "outcome",
    "payout", "profit", "actual_score", "created_at", "settled_at",
)


def _row_to_record(row) -> BetRecord:
    values = {name: getattr(row, name) for name in _ROW_FIELDS}
    values["tags"] = list(values["tags"] or [])
    values["outcome"] = values["outcome"] or "pending"
    return BetRecord(**values)


class SqlBetStore(BetStore):
    """``bet_records`` table through a SQLAlchemy session factory."""

    durable = True

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from betgistics.models import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory

    # -- blocking halves ----------------------------------------------------

    def _get(self, session_id: str) -> List[BetRecord]:
        from betgistics.models import BetRecordRow

        db = self.session_factory()
        try:
            rows = (
                db.query(BetRecordRow)
                .filter(BetRecordRow.session_id == session_id)
                .order_by(BetRecordRow.created_at)
                .all()
            )
            return [_row_to_record(r) for r in rows]
        finally:
            db.close()

    def _append(self, session_id: str, record: BetRecord) -> None:
        from betgistics.models import BetRecordRow

        record.session_id = session_id
        db = self.session_factory()
        try:
            db.add(BetRecordRow(**{name: getattr(record, name) for name in _ROW_FIELDS}))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _find(self, bet_id: str) -> Optional[BetRecord]:
        from betgistics.models import BetRecordRow

        db = self.session_factory()
        try:
            row = db.query(BetRecordRow).filter(BetRecordRow.id == bet_id).first()
            return _row_to_record(row) if row else None
        finally:
            db.close()

    def _update(self, record: BetRecord) -> None:
        from betgistics.models import BetRecordRow

        db = self.session_factory()
        try:
            row = db.query(BetRecordRow).filter(BetRecordRow.id == record.id).first()
            if row is None:
                raise KeyError(record.id)
            for name in _ROW_FIELDS:
                setattr(row, name, getattr(record, name))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # -- async interface ----------------------------------------------------

    async def get(self, session_id: str) -> List[BetRecord]:
        return await asyncio.to_thread(self._get, session_id)

    async def append(self, session_id: str, record: BetRecord) -> None:
        await asyncio.to_thread(self._append, session_id, record)

    async def find(self, bet_id: str) -> Optional[BetRecord]:
        return await asyncio.to_thread(self._find, bet_id)

    async def update(self, record: BetRecord) -> None:
        await asyncio.to_thread(self._update, record)


def create_bet_store() -> BetStore:
    """Store selected by ``BET_STORE`` (``sql`` default, or ``memory``)."""
    kind = os.getenv("BET_STORE", "sql").lower()
    if kind == "memory":
        logger.info("Using in-memory bet store")
        return InMemoryBetStore()
    if kind != "sql":
        logger.warning("Unknown BET_STORE=%r, falling back to sql", kind)
    return SqlBetStore()
