"""
Bet lifecycle: log a recommendation, settle it, summarise a session.

All persistence goes through an injected :class:`BetStore`; this module
owns the money math (edge at log time, payout and P&L at settlement) so
every store implementation agrees on it.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from betgistics.core.odds_math import implied_prob_pct, validate_american_odds
from betgistics.services.bet_store import BetRecord, BetStore

logger = logging.getLogger(__name__)

SETTLED_RESULTS = ("win", "loss", "push", "cancelled")


class BetNotFound(LookupError):
    def __init__(self, bet_id: str):
        self.bet_id = bet_id
        super().__init__(f'Bet with ID "{bet_id}" not found')


class BetAlreadySettled(ValueError):
    def __init__(self, bet_id: str, outcome: str):
        self.bet_id = bet_id
        self.outcome = outcome
        super().__init__(
            f"Bet is already settled with result: {outcome}. Cannot update a settled bet."
        )


def generate_bet_id() -> str:
    """``bet_<epoch ms>_<9 hex chars>``."""
    return f"bet_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# Settlement math (pure)
# ---------------------------------------------------------------------------


def wager_of(record: BetRecord) -> float:
    """Amount actually risked; falls back to the recommended stake."""
    return record.actual_wager or record.recommended_stake


def settlement_payout(record: BetRecord, result: str, payout: Optional[float] = None) -> float:
    """
    Total returned to the bettor for ``result``.

    win   → ``payout`` if given, else wager + winnings at the recorded odds
    push  → the wager
    loss / cancelled → 0
    """
    wager = wager_of(record)
    if result == "win":
        if payout is not None:
            return payout
        odds = record.american_odds
        winnings = wager * (odds / 100.0) if odds > 0 else wager * (100.0 / abs(odds))
        return round(wager + winnings, 2)
    if result == "push":
        return wager
    return 0.0


def settlement_profit(record: BetRecord, result: str, payout: float) -> float:
    wager = wager_of(record)
    if result == "win":
        return round(payout - wager, 2)
    if result == "loss":
        return -wager
    return 0.0


# ---------------------------------------------------------------------------
# History summary
# ---------------------------------------------------------------------------


@dataclass
class BetHistory:
    session_id: str
    bets: List[BetRecord] = field(default_factory=list)   # most recent first
    total: int = 0
    pending: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    win_rate: float = 0.0
    avg_edge: float = 0.0
    total_wagered: float = 0.0
    profit: float = 0.0
    roi: float = 0.0

    def summary(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "winRate": round(self.win_rate, 2),
            "avgEdge": round(self.avg_edge, 2),
            "totalWagered": round(self.total_wagered, 2),
            "profit": round(self.profit, 2),
            "roi": round(self.roi, 2),
        }


def summarize(session_id: str, records: Sequence[BetRecord], limit: int = 20) -> BetHistory:
    """Win/loss record, wagered total and ROI over settled bets."""
    history = BetHistory(session_id=session_id, total=len(records))
    if not records:
        return history

    history.bets = list(reversed(records[-limit:])) if limit > 0 else []
    settled = [r for r in records if r.outcome in ("win", "loss", "push")]
    history.pending = sum(1 for r in records if r.outcome == "pending")
    history.wins = sum(1 for r in settled if r.outcome == "win")
    history.losses = sum(1 for r in settled if r.outcome == "loss")
    history.pushes = sum(1 for r in settled if r.outcome == "push")

    decided = history.wins + history.losses
    history.win_rate = history.wins / decided * 100.0 if decided else 0.0
    history.avg_edge = sum(r.edge or 0.0 for r in records) / len(records)
    history.total_wagered = sum(wager_of(r) for r in records)

    settled_wagered = sum(wager_of(r) for r in settled)
    history.profit = sum(r.profit or 0.0 for r in settled)
    history.roi = history.profit / settled_wagered * 100.0 if settled_wagered else 0.0
    return history


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------


class BetLogger:
    """Logs, settles and summarises bets in a :class:`BetStore`."""

    def __init__(self, store: BetStore):
        self.store = store

    async def log_bet(
        self,
        session_id: str,
        *,
        sport: str,
        team_a: str,
        team_b: str,
        spread: float,
        probability: float,
        american_odds: float,
        bankroll: float,
        recommended_stake: float,
        actual_wager: Optional[float] = None,
        venue: str = "neutral",
        expected_margin: Optional[float] = None,
        kelly_fraction: Optional[float] = None,
        stake_percentage: Optional[float] = None,
        notes: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> BetRecord:
        """Record a bet as ``pending``; edge is computed against the price.

        Raises:
            InvalidOdds: ``american_odds`` in the dead zone.
        """
        validate_american_odds(american_odds)
        implied = implied_prob_pct(american_odds)

        if stake_percentage is None and bankroll:
            stake_percentage = recommended_stake / bankroll * 100.0

        record = BetRecord(
            id=generate_bet_id(),
            session_id=session_id,
            sport=sport,
            team_a=team_a,
            team_b=team_b,
            spread=spread,
            venue=venue,
            probability=probability,
            expected_margin=expected_margin,
            implied_probability=round(implied, 2),
            edge=round(probability - implied, 2),
            bankroll=bankroll,
            american_odds=american_odds,
            kelly_fraction=kelly_fraction,
            recommended_stake=recommended_stake,
            stake_percentage=stake_percentage,
            actual_wager=recommended_stake if actual_wager is None else actual_wager,
            notes=notes,
            tags=list(tags or []),
        )
        await self.store.append(session_id, record)
        logger.info(
            "Logged bet %s: %s %+g vs %s at %+g, wager $%.2f",
            record.id, team_a, spread, team_b, american_odds, record.actual_wager,
        )
        return record

    async def update_outcome(
        self,
        bet_id: str,
        result: str,
        *,
        payout: Optional[float] = None,
        actual_score: Optional[str] = None,
    ) -> BetRecord:
        """Settle a pending bet.

        Raises:
            ValueError: ``result`` is not win / loss / push / cancelled.
            BetNotFound: No bet with ``bet_id``.
            BetAlreadySettled: The bet was settled before.
        """
        if result not in SETTLED_RESULTS:
            raise ValueError(f"Result must be one of {', '.join(SETTLED_RESULTS)}, got {result!r}.")

        record = await self.store.find(bet_id)
        if record is None:
            raise BetNotFound(bet_id)
        if record.is_settled:
            raise BetAlreadySettled(bet_id, record.outcome)

        record.outcome = result
        record.settled_at = datetime.utcnow()
        if actual_score:
            record.actual_score = actual_score
        record.payout = settlement_payout(record, result, payout)
        record.profit = settlement_profit(record, result, record.payout)

        await self.store.update(record)
        logger.info(
            "Settled bet %s as %s: payout $%.2f, P&L $%+.2f",
            bet_id, result, record.payout, record.profit,
        )
        return record

    async def history(self, session_id: str, limit: int = 20) -> BetHistory:
        records = await self.store.get(session_id)
        return summarize(session_id, records, limit)
