"""
Value bet scoring for a matched pair of events.

Prices the outcomes with the sharp feed's converted probabilities and
checks whether the bettable feed pays enough for a positive expected
value.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

from loguru import logger

from odd_scout.config.constants import (
    MIN_EXPECTED_VALUE,
    OUTCOME_PRIORITY,
    MarketType,
    Outcome,
)
from odd_scout.data.events import OddsQuote
from odd_scout.matching.event_matcher import MatchCandidate

from .odds_converter import (
    OddsValidationError,
    ProbabilityConverter,
    calculate_expected_value,
    validate_odds,
)


@dataclass
class ValueBetCandidate:
    """
    A detected value betting opportunity.

    Includes all information needed to display and place the bet.
    """

    # Identification
    event_key: str  # key of the bettable event
    market: MarketType
    outcome: Outcome

    # Prices
    payout_odd: Decimal  # offered by the bettable feed
    reference_odd: Decimal  # quoted by the pricing feed
    implied_probability: Decimal  # converted from the pricing quote
    expected_value: Decimal  # per unit stake at payout_odd

    # Name-matching confidence of the pair, not statistical confidence
    confidence_score: Decimal

    # Context
    league: str = ""
    kickoff: Optional[datetime] = None
    team1: str = ""
    team2: str = ""
    link: Optional[str] = None
    payout_source: str = ""
    reference_source: str = ""

    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def description(self) -> str:
        """Human-readable pick: "Porto vs Benfica - team1_win"."""
        return f"{self.team1} vs {self.team2} - {self.outcome.value}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_key": self.event_key,
            "market": self.market.value,
            "outcome": self.outcome.value,
            "payout_odd": str(self.payout_odd),
            "reference_odd": str(self.reference_odd),
            "implied_probability": str(self.implied_probability),
            "expected_value": str(self.expected_value),
            "confidence_score": str(self.confidence_score),
            "league": self.league,
            "kickoff": self.kickoff.isoformat() if self.kickoff else None,
            "team1": self.team1,
            "team2": self.team2,
            "link": self.link,
            "payout_source": self.payout_source,
            "reference_source": self.reference_source,
            "computed_at": self.computed_at.isoformat(),
        }

    def summary(self) -> str:
        """Get formatted summary string."""
        return "\n".join(
            [
                f"{self.description} @ {self.payout_odd} ({self.payout_source})",
                f"  EV: {self.expected_value:+.2%} | "
                f"Prob: {self.implied_probability:.1%} "
                f"(fair {self.reference_source} odd {self.reference_odd})",
                f"  Match confidence: {self.confidence_score:.1f}%",
            ]
        )


def expected_values(
    probabilities: Sequence[Decimal],
    payout_odds: Sequence[Decimal],
) -> tuple[Decimal, ...]:
    """Per-outcome EV of a unit stake."""
    return tuple(
        calculate_expected_value(p, odd) for p, odd in zip(probabilities, payout_odds)
    )


def select_best_outcome(values: Sequence[Decimal]) -> int:
    """
    Index of the highest EV.

    On equal values the earliest index wins, i.e. Team1, then Draw, then Team2.
    """
    best = 0
    for i in range(1, len(values)):
        if values[i] > values[best]:
            best = i
    return best


class ValueBetScorer:
    """
    Turns a matched pair into a value bet candidate, or nothing.

    Example:
        >>> scorer = ValueBetScorer()
        >>> bet = scorer.score(match, reference_quote, payout_quote)
        >>> if bet:
        ...     print(bet.summary())
    """

    def __init__(
        self,
        converter: Optional[ProbabilityConverter] = None,
        min_expected_value: Decimal = MIN_EXPECTED_VALUE,
    ):
        """
        Args:
            converter: Probability converter for the pricing quote
            min_expected_value: Minimum EV of the best outcome (default 1%)
        """
        self.converter = converter or ProbabilityConverter()
        self.min_expected_value = Decimal(min_expected_value)
        self.logger = logger.bind(component="scorer")

    def score(
        self,
        matched: MatchCandidate,
        reference_quote: OddsQuote,
        payout_quote: OddsQuote,
        computed_at: Optional[datetime] = None,
    ) -> Optional[ValueBetCandidate]:
        """
        Score a matched pair.

        Args:
            matched: The event pairing; its average score becomes the confidence
            reference_quote: Pricing odds, converted to probabilities
            payout_quote: Odds actually offered for the bet
            computed_at: Timestamp to stamp on the candidate

        Returns:
            ValueBetCandidate if the best outcome's EV reaches the threshold

        Raises:
            OddsValidationError: If either quote is invalid or the two
                quotes do not describe the same number of outcomes
        """
        probabilities = self.converter.convert(reference_quote.odds)
        payout_odds = validate_odds(payout_quote.odds)

        if len(payout_odds) != len(probabilities):
            raise OddsValidationError(
                f"Payout quote has {len(payout_odds)} odds, "
                f"reference quote has {len(probabilities)}"
            )

        values = expected_values(probabilities, payout_odds)
        best = select_best_outcome(values)
        best_ev = values[best]

        if best_ev < self.min_expected_value:
            self.logger.debug(
                f"{matched.source_event.description}: best EV {best_ev:.4f} "
                f"below {self.min_expected_value}"
            )
            return None

        event = matched.source_event
        bet = ValueBetCandidate(
            event_key=payout_quote.event_key,
            market=payout_quote.market,
            outcome=OUTCOME_PRIORITY[best],
            payout_odd=payout_odds[best],
            reference_odd=reference_quote.odds[best],
            implied_probability=probabilities[best],
            expected_value=best_ev,
            confidence_score=matched.average_score,
            league=event.league,
            kickoff=event.kickoff,
            team1=event.team1,
            team2=event.team2,
            link=event.link,
            payout_source=payout_quote.source,
            reference_source=reference_quote.source,
        )
        if computed_at is not None:
            bet.computed_at = computed_at

        self.logger.info(f"Value bet: {bet.description} EV={best_ev:.6f}")
        return bet
