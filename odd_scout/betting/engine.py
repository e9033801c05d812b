"""
Value bet engine.

Single batch pass over two event snapshots: match the bettable feed
against the pricing feed, score every matched pair, return accepted
value bets sorted by expected value. Holds no state between runs.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

from loguru import logger

from odd_scout.config.constants import MarketType
from odd_scout.data.events import SourceEvent
from odd_scout.matching.event_matcher import EventMatcher

from .value_scorer import ValueBetCandidate, ValueBetScorer


@dataclass
class ScanResult:
    """Result of one engine run."""

    value_bets: list[ValueBetCandidate] = field(default_factory=list)
    scanned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    events_scanned: int = 0
    events_skipped: int = 0
    matches_found: int = 0
    cancelled: bool = False

    @property
    def best_bet(self) -> Optional[ValueBetCandidate]:
        """Bet with the highest EV."""
        return self.value_bets[0] if self.value_bets else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "scanned_at": self.scanned_at.isoformat(),
            "events_scanned": self.events_scanned,
            "events_skipped": self.events_skipped,
            "matches_found": self.matches_found,
            "cancelled": self.cancelled,
            "value_bets": [b.to_dict() for b in self.value_bets],
        }


class ValueBetEngine:
    """
    Drives matcher and scorer across two event lists.

    The reference list is the feed the bets would be placed with (payout
    odds); the candidate list is the sharp feed whose odds are converted
    to probabilities.

    Example:
        >>> engine = ValueBetEngine()
        >>> bets = engine.run(betby_events, pinnacle_events)
        >>> for bet in bets:
        ...     print(bet.summary())
    """

    def __init__(
        self,
        matcher: Optional[EventMatcher] = None,
        scorer: Optional[ValueBetScorer] = None,
        market: MarketType = MarketType.MATCH_1X2,
    ):
        self.matcher = matcher or EventMatcher()
        self.scorer = scorer or ValueBetScorer()
        self.market = market
        self.logger = logger.bind(component="engine")

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        min_expected_value: Optional[Decimal] = None,
    ) -> "ValueBetEngine":
        """
        Build an engine from application settings.

        ``min_expected_value`` overrides the configured cutoff for this
        engine only; the settings object is left untouched.
        """
        if min_expected_value is None:
            min_expected_value = settings.value_detection.min_expected_value
        return cls(
            matcher=EventMatcher(threshold=settings.matching.team_similarity_threshold),
            scorer=ValueBetScorer(min_expected_value=min_expected_value),
        )

    def scan(
        self,
        reference_events: Sequence[SourceEvent],
        candidate_events: Sequence[SourceEvent],
        cancel: Optional[threading.Event] = None,
        now: Optional[datetime] = None,
    ) -> ScanResult:
        """
        Run the full batch and keep the statistics.

        Args:
            reference_events: Bettable feed; each event is matched and, if
                it has a quote for the market, scored
            candidate_events: Pricing feed searched for partners
            cancel: Optional flag; when set the loop stops between events
                and the results so far are returned
            now: Timestamp stamped on every candidate of this run

        Returns:
            ScanResult with value bets sorted by expected value, descending
        """
        computed_at = now or datetime.now(timezone.utc)
        result = ScanResult(scanned_at=computed_at, events_scanned=len(reference_events))

        priced: list[SourceEvent] = []
        for event in reference_events:
            if event.quote(self.market) is None:
                self.logger.warning(
                    f"Skipping {event.description} ({event.source}): no {self.market.value} odds"
                )
                result.events_skipped += 1
                continue
            priced.append(event)

        matches = self.matcher.match(priced, candidate_events, cancel=cancel)
        result.matches_found = len(matches)

        for match in matches:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break

            self.logger.debug(f"Matched {match.summary()}")
            payout_quote = match.source_event.quote(self.market)
            reference_quote = match.target_event.quote(self.market)

            if reference_quote is None:
                self.logger.warning(
                    f"Skipping {match.source_event.description}: "
                    f"{match.target_event.source} has no {self.market.value} odds"
                )
                result.events_skipped += 1
                continue

            try:
                bet = self.scorer.score(
                    match,
                    reference_quote=reference_quote,
                    payout_quote=payout_quote,
                    computed_at=computed_at,
                )
            except (ValueError, ArithmeticError) as e:
                self.logger.warning(
                    f"Skipping {match.source_event.description} due to invalid odds: {e}"
                )
                result.events_skipped += 1
                continue

            if bet is not None:
                result.value_bets.append(bet)

        if cancel is not None and cancel.is_set():
            result.cancelled = True

        result.value_bets.sort(key=lambda b: b.expected_value, reverse=True)

        self.logger.info(
            f"Scan summary: {result.events_scanned} events, {result.matches_found} matches, "
            f"{result.events_skipped} skipped, {len(result.value_bets)} value bets"
            + (" (cancelled)" if result.cancelled else "")
        )
        return result

    def run(
        self,
        reference_events: Sequence[SourceEvent],
        candidate_events: Sequence[SourceEvent],
        cancel: Optional[threading.Event] = None,
    ) -> list[ValueBetCandidate]:
        """Accepted value bets, best EV first."""
        return self.scan(reference_events, candidate_events, cancel=cancel).value_bets

    @staticmethod
    def total_expected_value(bets: Sequence[ValueBetCandidate]) -> Decimal:
        """Sum of EV across bets, one unit each."""
        return sum((b.expected_value for b in bets), Decimal("0"))
