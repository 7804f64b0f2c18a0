"""
Database models for the Betgistics bet log
SQLAlchemy ORM, SQLite by default
"""

from sqlalchemy import (
    create_engine,
    Column,
    String,
    Float,
    DateTime,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./betgistics.db")

# SQLite connections are used from worker threads (asyncio.to_thread)
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class BetRecordRow(Base):
    """A logged bet, from recommendation through settlement"""

    __tablename__ = "bet_records"

    id = Column(String, primary_key=True, index=True)  # bet_<ts>_<rand>
    session_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Matchup
    sport = Column(String, nullable=False)
    team_a = Column(String, nullable=False)  # backed side
    team_b = Column(String, nullable=False)
    spread = Column(Float, nullable=False)
    venue = Column(String, default="neutral")

    # Model at time of bet
    probability = Column(Float, nullable=False)  # percent
    expected_margin = Column(Float)
    implied_probability = Column(Float)
    edge = Column(Float)

    # Sizing
    bankroll = Column(Float, nullable=False)
    american_odds = Column(Float, nullable=False)
    kelly_fraction = Column(Float)
    recommended_stake = Column(Float, nullable=False)
    stake_percentage = Column(Float)
    actual_wager = Column(Float, nullable=False)

    notes = Column(Text)
    tags = Column(JSON, default=list)

    # Outcome (filled on settlement)
    outcome = Column(String, default="pending", index=True)  # pending | win | loss | push | cancelled
    payout = Column(Float)
    profit = Column(Float)
    actual_score = Column(String)
    settled_at = Column(DateTime)


def init_db():
    """Initialize database tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created (%s)", engine.url.render_as_string(hide_password=True))
