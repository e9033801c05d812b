"""
Event data for the value-bet engine.

Provides the event and odds containers and the feeds that produce them.
"""
from .events import OddsQuote, SourceEvent, build_event_key, to_decimal

__all__ = [
    "OddsQuote",
    "SourceEvent",
    "build_event_key",
    "to_decimal",
]
