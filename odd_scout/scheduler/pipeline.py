"""
Full pipeline run: fetch both feeds, detect value bets, persist, purge.

Only a feed failure aborts a run; per-event problems are handled inside
the engine.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from loguru import logger

from odd_scout.betting.engine import ScanResult, ValueBetEngine
from odd_scout.config.constants import VALUE_BET_RETENTION_HOURS
from odd_scout.data.sources.base import EventSource
from odd_scout.data.sources.json_source import JsonEventSource
from odd_scout.database.repository import ValueBetRepository


@dataclass
class PipelineRun:
    """Outcome of one pipeline run."""

    scan: ScanResult
    reference_count: int = 0
    candidate_count: int = 0
    persisted: int = 0
    purged: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class ValueBetPipeline:
    """
    Runs the engine against fresh snapshots of two feeds.

    Runs of the same pipeline are serialized: a second run_once() waits
    for the one in progress.

    Example:
        >>> pipeline = ValueBetPipeline(betby, pinnacle, ValueBetEngine(), repo)
        >>> run = pipeline.run_once()
        >>> print(len(run.scan.value_bets))
    """

    def __init__(
        self,
        reference_source: EventSource,
        candidate_source: EventSource,
        engine: Optional[ValueBetEngine] = None,
        repository: Optional[ValueBetRepository] = None,
        retention: timedelta = timedelta(hours=VALUE_BET_RETENTION_HOURS),
    ):
        """
        Args:
            reference_source: Bettable feed (payout odds)
            candidate_source: Pricing feed
            engine: Value bet engine
            repository: Where accepted bets are stored; None skips persistence
            retention: Age after which stored bets are purged
        """
        self.reference_source = reference_source
        self.candidate_source = candidate_source
        self.engine = engine or ValueBetEngine()
        self.repository = repository
        self.retention = retention

        self._lock = threading.Lock()
        self.last_run: Optional[PipelineRun] = None
        self.logger = logger.bind(component="pipeline")

    @classmethod
    def from_settings(cls, settings: Any) -> "ValueBetPipeline":
        """
        Build a pipeline from application settings.

        Raises:
            ValueError: If either feed path is not configured
        """
        sources = settings.sources
        if sources.reference_path is None or sources.candidate_path is None:
            raise ValueError("SOURCE_REFERENCE_PATH and SOURCE_CANDIDATE_PATH must be set")

        return cls(
            reference_source=JsonEventSource(
                sources.reference_path,
                source_name=sources.reference_name,
                timezone_name=sources.reference_timezone,
            ),
            candidate_source=JsonEventSource(
                sources.candidate_path,
                source_name=sources.candidate_name,
                timezone_name=sources.candidate_timezone,
            ),
            engine=ValueBetEngine.from_settings(settings),
            repository=ValueBetRepository.from_url(settings.database_url),
            retention=timedelta(hours=settings.value_detection.retention_hours),
        )

    def run_once(self, cancel: Optional[threading.Event] = None) -> PipelineRun:
        """
        Fetch, detect, persist and purge.

        Raises:
            DataSourceError: If either feed cannot be fetched
        """
        with self._lock:
            started_at = datetime.now(timezone.utc)
            self.logger.info(
                f"Pipeline run: {self.reference_source.source_name} vs "
                f"{self.candidate_source.source_name}"
            )

            reference_events = self.reference_source.fetch_events()
            candidate_events = self.candidate_source.fetch_events()

            scan = self.engine.scan(reference_events, candidate_events, cancel=cancel)
            run = PipelineRun(
                scan=scan,
                reference_count=len(reference_events),
                candidate_count=len(candidate_events),
                started_at=started_at,
            )

            if self.repository is not None:
                run.persisted = self.repository.persist_candidates(scan.value_bets)
                run.purged = self.repository.purge_stale(self.retention)

            run.finished_at = datetime.now(timezone.utc)
            self.last_run = run
            self.logger.info(
                f"Pipeline run finished in {run.duration_seconds:.2f}s: "
                f"{len(scan.value_bets)} value bets, {run.purged} purged"
            )
            return run
