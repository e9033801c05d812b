"""
SQLAlchemy ORM models for accepted value bets.

One row per (event, market, outcome); a later run overwrites the row
instead of adding a duplicate.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ValueBetRecord(Base):
    """Stored value bet candidate."""

    __tablename__ = "value_bets"
    __table_args__ = (
        UniqueConstraint("event_key", "market", "outcome", name="uq_value_bet_outcome"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    market: Mapped[str] = mapped_column(String(20), nullable=False)
    outcome: Mapped[str] = mapped_column(String(20), nullable=False)

    league: Mapped[str] = mapped_column(String(255), default="")
    kickoff: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    team1: Mapped[str] = mapped_column(String(255), default="")
    team2: Mapped[str] = mapped_column(String(255), default="")
    link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payout_source: Mapped[str] = mapped_column(String(50), default="")
    reference_source: Mapped[str] = mapped_column(String(50), default="")

    payout_odd: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    reference_odd: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    implied_probability: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    expected_value: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    confidence_score: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)

    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<ValueBetRecord {self.event_key} {self.outcome} "
            f"EV={self.expected_value}>"
        )


def init_db(database_url: str) -> Engine:
    """
    Initialize the database with all tables.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        SQLAlchemy Engine bound to the initialized database
    """
    engine = create_engine(database_url)
    Base.metadata.create_all(engine)
    return engine
