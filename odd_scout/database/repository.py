"""
Persistence of accepted value bets.

Writes are idempotent per (event_key, market, outcome), so overlapping
pipeline runs converge on the same rows.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from odd_scout.betting.value_scorer import ValueBetCandidate
from odd_scout.config.constants import VALUE_BET_RETENTION_HOURS, MarketType, Outcome

from .models import ValueBetRecord, init_db


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class ValueBetRepository:
    """
    Stores and purges value bet candidates.

    Example:
        >>> repo = ValueBetRepository.from_url("sqlite:///odd_scout.db")
        >>> repo.persist_candidates(bets)
        >>> repo.purge_stale(timedelta(hours=24))
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self.logger = logger.bind(component="repository")

    @classmethod
    def from_url(cls, database_url: str) -> "ValueBetRepository":
        """Create tables if needed and return a repository."""
        return cls(init_db(database_url))

    def _session(self) -> Session:
        return self._session_factory()

    def persist_candidates(self, candidates: Iterable[ValueBetCandidate]) -> int:
        """
        Insert or update one row per (event_key, market, outcome).

        Returns:
            Number of rows written
        """
        written = 0
        with self._session() as session, session.begin():
            for bet in candidates:
                record = session.scalars(
                    select(ValueBetRecord).where(
                        ValueBetRecord.event_key == bet.event_key,
                        ValueBetRecord.market == bet.market.value,
                        ValueBetRecord.outcome == bet.outcome.value,
                    )
                ).one_or_none()

                if record is None:
                    record = ValueBetRecord(
                        event_key=bet.event_key,
                        market=bet.market.value,
                        outcome=bet.outcome.value,
                    )
                    session.add(record)

                record.league = bet.league
                record.kickoff = bet.kickoff
                record.team1 = bet.team1
                record.team2 = bet.team2
                record.link = bet.link
                record.payout_source = bet.payout_source
                record.reference_source = bet.reference_source
                record.payout_odd = bet.payout_odd
                record.reference_odd = bet.reference_odd
                record.implied_probability = bet.implied_probability
                record.expected_value = bet.expected_value
                record.confidence_score = bet.confidence_score
                record.computed_at = bet.computed_at.astimezone(timezone.utc)
                written += 1

        self.logger.info(f"Persisted {written} value bets")
        return written

    def purge_stale(
        self,
        older_than: timedelta = timedelta(hours=VALUE_BET_RETENTION_HOURS),
        now: Optional[datetime] = None,
    ) -> int:
        """
        Delete rows computed before now - older_than.

        Returns:
            Number of rows deleted
        """
        cutoff = (now or datetime.now(timezone.utc)).astimezone(timezone.utc) - older_than
        with self._session() as session, session.begin():
            result = session.execute(
                delete(ValueBetRecord).where(ValueBetRecord.computed_at < cutoff)
            )
            deleted = result.rowcount or 0

        if deleted:
            self.logger.info(f"Purged {deleted} value bets older than {older_than}")
        return deleted

    def list_recent(self, limit: int = 50) -> list[ValueBetCandidate]:
        """Stored candidates, best EV first."""
        with self._session() as session:
            records = session.scalars(
                select(ValueBetRecord)
                .order_by(ValueBetRecord.expected_value.desc())
                .limit(limit)
            ).all()
            return [self._to_candidate(r) for r in records]

    def count(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count(ValueBetRecord.id))) or 0

    @staticmethod
    def _to_candidate(record: ValueBetRecord) -> ValueBetCandidate:
        return ValueBetCandidate(
            event_key=record.event_key,
            market=MarketType(record.market),
            outcome=Outcome(record.outcome),
            payout_odd=record.payout_odd,
            reference_odd=record.reference_odd,
            implied_probability=record.implied_probability,
            expected_value=record.expected_value,
            confidence_score=record.confidence_score,
            league=record.league,
            kickoff=_as_utc(record.kickoff),
            team1=record.team1,
            team2=record.team2,
            link=record.link,
            payout_source=record.payout_source,
            reference_source=record.reference_source,
            computed_at=_as_utc(record.computed_at),
        )
