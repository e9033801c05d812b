from datetime import datetime, timezone
from decimal import Decimal

import pytest

from odd_scout.betting.odds_converter import OddsValidationError
from odd_scout.betting.value_scorer import (
    ValueBetScorer,
    expected_values,
    select_best_outcome,
)
from odd_scout.config.constants import MarketType, Outcome
from odd_scout.data.events import OddsQuote
from odd_scout.matching.event_matcher import MatchCandidate


def make_match(event_factory, payout_odds, reference_odds, average=Decimal("100")):
    payout_event = event_factory("FC Porto", "Benfica", odds=payout_odds, source="betby")
    reference_event = event_factory("Porto", "Benfica", odds=reference_odds, source="pinnacle")
    match = MatchCandidate(
        source_event=payout_event,
        target_event=reference_event,
        team1_score=average,
        team2_score=average,
        average_score=average,
    )
    return match, reference_event.quote(), payout_event.quote()


class TestBestOutcome:
    def test_first_maximum_wins(self):
        assert select_best_outcome([Decimal("0.05"), Decimal("0.05"), Decimal("0.01")]) == 0
        assert select_best_outcome([Decimal("-0.1"), Decimal("0.03"), Decimal("0.03")]) == 1

    def test_expected_values(self):
        values = expected_values(
            [Decimal("0.5"), Decimal("0.25")], [Decimal("2.2"), Decimal("3.0")]
        )
        assert values == (Decimal("0.1"), Decimal("-0.25"))


class TestScore:
    def test_threshold_is_inclusive(self, event_factory):
        # Fair reference book: 0.5 / 0.25 / 0.25
        match, reference, payout = make_match(
            event_factory, ["2.02", "3.0", "3.0"], ["2.0", "4.0", "4.0"]
        )

        bet = ValueBetScorer().score(match, reference, payout)

        assert bet is not None
        assert bet.outcome == Outcome.TEAM1_WIN
        assert bet.expected_value == Decimal("0.01")

    def test_below_threshold(self, event_factory):
        match, reference, payout = make_match(
            event_factory, ["2.01", "3.0", "3.0"], ["2.0", "4.0", "4.0"]
        )
        assert ValueBetScorer().score(match, reference, payout) is None

    def test_custom_threshold(self, event_factory):
        match, reference, payout = make_match(
            event_factory, ["2.20", "3.0", "3.0"], ["2.0", "4.0", "4.0"]
        )
        assert ValueBetScorer(min_expected_value=Decimal("0.2")).score(
            match, reference, payout
        ) is None

    @pytest.mark.parametrize(
        "payout_odds, expected",
        [
            (["3.3", "3.3", "3.0"], Outcome.TEAM1_WIN),
            (["3.0", "3.3", "3.3"], Outcome.DRAW),
            (["3.0", "3.0", "3.3"], Outcome.TEAM2_WIN),
        ],
    )
    def test_ties_prefer_team1_then_draw(self, event_factory, payout_odds, expected):
        match, reference, payout = make_match(
            event_factory, payout_odds, ["3.0", "3.0", "3.0"]
        )

        bet = ValueBetScorer().score(match, reference, payout)

        assert bet.outcome == expected

    def test_candidate_fields(self, event_factory):
        match, reference, payout = make_match(
            event_factory,
            ["2.20", "3.0", "3.0"],
            ["2.0", "4.0", "4.0"],
            average=Decimal("87.5"),
        )
        computed_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        bet = ValueBetScorer().score(match, reference, payout, computed_at=computed_at)

        assert bet.event_key == payout.event_key
        assert bet.event_key.startswith("betby:202405011800:")
        assert bet.market == MarketType.MATCH_1X2
        assert bet.payout_odd == Decimal("2.20")
        assert bet.reference_odd == Decimal("2.0")
        assert bet.implied_probability == Decimal("0.5")
        assert bet.expected_value == Decimal("0.1")
        assert bet.confidence_score == Decimal("87.5")
        assert bet.team1 == "FC Porto"
        assert bet.payout_source == "betby"
        assert bet.reference_source == "pinnacle"
        assert bet.computed_at == computed_at
        assert bet.to_dict()["outcome"] == "team1_win"
        assert "FC Porto vs Benfica - team1_win" in bet.summary()

    def test_invalid_payout_odds(self, event_factory):
        match, reference, payout = make_match(
            event_factory, ["0.95", "3.0", "3.0"], ["2.0", "4.0", "4.0"]
        )
        with pytest.raises(OddsValidationError):
            ValueBetScorer().score(match, reference, payout)

    def test_outcome_count_mismatch(self, event_factory):
        match, reference, _ = make_match(
            event_factory, ["2.2", "3.0", "3.0"], ["2.0", "4.0", "4.0"]
        )
        short = OddsQuote(
            event_key="betby:x",
            market=MarketType.MATCH_1X2,
            odds=(Decimal("2.0"), Decimal("3.0"), Decimal("3.0")),
            source="betby",
        )
        # Sidestep the outcome count check to fake a two-way quote
        object.__setattr__(short, "odds", (Decimal("2.0"), Decimal("3.0")))

        with pytest.raises(OddsValidationError):
            ValueBetScorer().score(match, reference, short)
