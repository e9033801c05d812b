"""
Event and odds containers shared by the sources, the matcher and the engine.

A SourceEvent is one listing from one feed. Its odds live in immutable
OddsQuote objects, one per market; a fresh scrape produces fresh quotes.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from odd_scout.config.constants import (
    MARKET_OUTCOME_COUNT,
    OUTCOME_PRIORITY,
    MarketType,
    Outcome,
)
from odd_scout.matching.normalizer import slugify_team_name

OddValue = Union[Decimal, int, float, str]


def to_decimal(value: OddValue) -> Decimal:
    """
    Coerce a numeric value to Decimal.

    Floats go through str() so 1.9 becomes Decimal('1.9') rather than its
    binary expansion.

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a numeric odd: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a numeric odd: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite odd: {value!r}")
    return result


def build_event_key(
    source: str,
    kickoff: datetime,
    team1: str,
    team2: str,
) -> str:
    """Deterministic key of an event: source, kickoff minute and team slugs."""
    minute = kickoff.astimezone(timezone.utc).strftime("%Y%m%d%H%M")
    return f"{source}:{minute}:{slugify_team_name(team1)}:{slugify_team_name(team2)}"


@dataclass(frozen=True)
class OddsQuote:
    """
    Decimal odds for one market of one event, as captured from one source.

    Range checks are left to the converter so a bad quote only disqualifies
    its own event.
    """

    event_key: str
    market: MarketType
    odds: tuple[Decimal, ...]
    source: str
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        odds = tuple(to_decimal(o) for o in self.odds)
        expected = MARKET_OUTCOME_COUNT.get(self.market)
        if expected is not None and len(odds) != expected:
            raise ValueError(
                f"{self.market.value} quote needs {expected} odds, got {len(odds)}"
            )
        object.__setattr__(self, "odds", odds)

    def odd_for(self, outcome: Outcome) -> Decimal:
        """Odd of a single outcome of a three-way market."""
        return self.odds[OUTCOME_PRIORITY.index(outcome)]


@dataclass
class SourceEvent:
    """A single event listing from one feed."""

    league: str
    kickoff: datetime  # timezone-aware, stored in UTC
    team1: str
    team2: str
    source: str
    link: Optional[str] = None
    quotes: dict[MarketType, OddsQuote] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kickoff.tzinfo is None or self.kickoff.utcoffset() is None:
            raise ValueError(
                f"Kickoff for {self.team1} vs {self.team2} has no timezone"
            )
        self.kickoff = self.kickoff.astimezone(timezone.utc)

        for attr in ("league", "team1", "team2"):
            value = (getattr(self, attr) or "").strip()
            if not value:
                raise ValueError(f"{attr} cannot be empty")
            setattr(self, attr, value)

    @property
    def event_key(self) -> str:
        return build_event_key(self.source, self.kickoff, self.team1, self.team2)

    @property
    def description(self) -> str:
        return f"{self.team1} vs {self.team2}"

    def quote(self, market: MarketType = MarketType.MATCH_1X2) -> Optional[OddsQuote]:
        """Quote for a market, or None if the feed had no odds for it."""
        return self.quotes.get(market)

    def with_odds(
        self,
        odds: Iterable[OddValue],
        market: MarketType = MarketType.MATCH_1X2,
        captured_at: Optional[datetime] = None,
    ) -> "SourceEvent":
        """
        Attach a quote for a market and return self.

        Replaces the quote object rather than mutating it.
        """
        kwargs: dict[str, Any] = {}
        if captured_at is not None:
            kwargs["captured_at"] = captured_at
        self.quotes[market] = OddsQuote(
            event_key=self.event_key,
            market=market,
            odds=tuple(odds),
            source=self.source,
            **kwargs,
        )
        return self
