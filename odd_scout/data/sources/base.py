"""
Abstract base class for event feeds.

Provides common interface, retry handling, logging and health tracking
that all feed implementations follow. A feed failure aborts the whole
pipeline run, so fetch_events() either returns a full list or raises
DataSourceError.
"""
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from loguru import logger

from odd_scout.data.events import SourceEvent


class DataSourceStatus(str, Enum):
    """Health status of a data source."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


@dataclass
class DataSourceHealth:
    """Health information for a data source."""

    source_name: str
    status: DataSourceStatus
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None
    latency_ms: Optional[float] = None
    last_event_count: int = 0


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True


class DataSourceError(Exception):
    """Base exception for data source errors."""

    def __init__(
        self,
        message: str,
        source_name: str,
        original_error: Optional[Exception] = None,
        retry_allowed: bool = True,
    ):
        super().__init__(message)
        self.source_name = source_name
        self.original_error = original_error
        self.retry_allowed = retry_allowed


class DataNotAvailableError(DataSourceError):
    """Error when requested data is not available."""

    def __init__(self, source_name: str, message: str):
        super().__init__(message, source_name, retry_allowed=False)


class EventSource(ABC):
    """
    Abstract base class for all event feeds.

    Provides:
    - Common interface for fetching events
    - Retry logic with exponential backoff
    - Health monitoring
    - Logging
    """

    def __init__(
        self,
        source_name: str,
        enabled: bool = True,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.source_name = source_name
        self.enabled = enabled
        self.retry_config = retry_config or RetryConfig()

        self._health = DataSourceHealth(
            source_name=source_name,
            status=DataSourceStatus.HEALTHY if enabled else DataSourceStatus.DISABLED,
        )

        self.logger = logger.bind(component=source_name)

    @abstractmethod
    def _fetch_impl(self) -> list[SourceEvent]:
        """
        Implementation of the actual fetch logic.

        Should not include retry logic - that's handled by fetch_events().
        """

    def health_check(self) -> DataSourceHealth:
        """Current health of the source."""
        return self._health

    def fetch_events(self) -> list[SourceEvent]:
        """
        Fetch the current event snapshot with retries.

        Raises:
            DataSourceError: If the source is disabled or every attempt failed
        """
        if not self.enabled:
            raise DataSourceError(
                f"Data source {self.source_name} is disabled",
                self.source_name,
                retry_allowed=False,
            )

        start_time = time.monotonic()
        last_error: Optional[Exception] = None

        for attempt in range(1, self.retry_config.max_attempts + 1):
            try:
                self.logger.debug(f"Fetch attempt {attempt}/{self.retry_config.max_attempts}")
                events = self._fetch_impl()
                self._record_success((time.monotonic() - start_time) * 1000, len(events))
                self.logger.info(f"Fetched {len(events)} events from {self.source_name}")
                return events

            except DataSourceError as e:
                last_error = e
                self.logger.warning(f"Fetch error on attempt {attempt}: {e}")
                if not e.retry_allowed:
                    self._record_failure(str(e))
                    raise

            except (OSError, ValueError) as e:
                last_error = e
                self.logger.warning(f"Fetch error on attempt {attempt}: {e}")

            if attempt < self.retry_config.max_attempts:
                delay = self._calculate_delay(attempt)
                self.logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

        self._record_failure(str(last_error) if last_error else "Unknown error")
        raise DataSourceError(
            f"All {self.retry_config.max_attempts} attempts failed for {self.source_name}",
            self.source_name,
            original_error=last_error,
            retry_allowed=False,
        )

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff."""
        delay = self.retry_config.initial_delay_seconds * (
            self.retry_config.exponential_base ** (attempt - 1)
        )
        delay = min(delay, self.retry_config.max_delay_seconds)

        if self.retry_config.jitter:
            delay = delay * (0.5 + random.random())

        return delay

    def _record_success(self, latency_ms: float, event_count: int) -> None:
        self._health.last_success = datetime.now(timezone.utc)
        self._health.latency_ms = latency_ms
        self._health.consecutive_failures = 0
        self._health.error_message = None
        self._health.last_event_count = event_count
        self._health.status = DataSourceStatus.HEALTHY

    def _record_failure(self, error_message: str) -> None:
        self._health.last_failure = datetime.now(timezone.utc)
        self._health.consecutive_failures += 1
        self._health.error_message = error_message

        if self._health.consecutive_failures >= 3:
            self._health.status = DataSourceStatus.UNHEALTHY
        else:
            self._health.status = DataSourceStatus.DEGRADED


class InMemoryEventSource(EventSource):
    """Source over a pre-built event list."""

    def __init__(self, source_name: str, events: list[SourceEvent], **kwargs):
        super().__init__(source_name, **kwargs)
        self.events = events

    def _fetch_impl(self) -> list[SourceEvent]:
        return list(self.events)
