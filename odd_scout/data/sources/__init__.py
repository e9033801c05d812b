"""
Event feeds for the value-bet engine.

Available sources:
- JsonEventSource: scraper dumps stored as JSON
- InMemoryEventSource: pre-built event lists
"""
from .base import (
    DataNotAvailableError,
    DataSourceError,
    DataSourceHealth,
    DataSourceStatus,
    EventSource,
    InMemoryEventSource,
    RetryConfig,
)
from .json_source import JsonEventSource, ScrapedEvent, parse_kickoff, parse_odd

__all__ = [
    # Base classes
    "EventSource",
    "DataSourceError",
    "DataNotAvailableError",
    "DataSourceHealth",
    "DataSourceStatus",
    "RetryConfig",
    # Sources
    "InMemoryEventSource",
    "JsonEventSource",
    "ScrapedEvent",
    # Parsing helpers
    "parse_kickoff",
    "parse_odd",
]
