from datetime import datetime, timedelta, timezone
from decimal import Decimal

from odd_scout.betting.value_scorer import ValueBetCandidate
from odd_scout.config.constants import MarketType, Outcome

from .conftest import KICKOFF

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_bet(event_key="betby:202405011800:porto:benfica", outcome=Outcome.TEAM1_WIN,
             expected_value="0.05", computed_at=NOW):
    return ValueBetCandidate(
        event_key=event_key,
        market=MarketType.MATCH_1X2,
        outcome=outcome,
        payout_odd=Decimal("2.10"),
        reference_odd=Decimal("1.95"),
        implied_probability=Decimal("0.5"),
        expected_value=Decimal(expected_value),
        confidence_score=Decimal("100"),
        league="Primeira Liga",
        kickoff=KICKOFF,
        team1="FC Porto",
        team2="Benfica",
        link="https://example.com/porto-benfica",
        payout_source="betby",
        reference_source="pinnacle",
        computed_at=computed_at,
    )


def test_persist_and_read_back(repository):
    bet = make_bet()

    assert repository.persist_candidates([bet]) == 1
    stored = repository.list_recent()

    assert len(stored) == 1
    restored = stored[0]
    assert restored.event_key == bet.event_key
    assert restored.outcome == Outcome.TEAM1_WIN
    assert restored.market == MarketType.MATCH_1X2
    assert abs(restored.expected_value - bet.expected_value) < Decimal("1e-7")
    assert abs(restored.payout_odd - bet.payout_odd) < Decimal("1e-7")
    assert restored.kickoff == KICKOFF
    assert restored.computed_at == NOW
    assert restored.reference_source == "pinnacle"


def test_upsert_is_idempotent(repository):
    repository.persist_candidates([make_bet(expected_value="0.05")])
    repository.persist_candidates([make_bet(expected_value="0.07")])

    assert repository.count() == 1
    assert abs(repository.list_recent()[0].expected_value - Decimal("0.07")) < Decimal("1e-7")


def test_distinct_outcomes_are_separate_rows(repository):
    repository.persist_candidates(
        [make_bet(outcome=Outcome.TEAM1_WIN), make_bet(outcome=Outcome.DRAW)]
    )
    assert repository.count() == 2


def test_list_recent_orders_by_expected_value(repository):
    repository.persist_candidates(
        [
            make_bet(event_key="betby:a", expected_value="0.02"),
            make_bet(event_key="betby:b", expected_value="0.09"),
            make_bet(event_key="betby:c", expected_value="0.05"),
        ]
    )

    assert [b.event_key for b in repository.list_recent()] == ["betby:b", "betby:c", "betby:a"]
    assert len(repository.list_recent(limit=2)) == 2


def test_purge_stale(repository):
    repository.persist_candidates(
        [
            make_bet(event_key="betby:old", computed_at=NOW - timedelta(hours=25)),
            make_bet(event_key="betby:fresh", computed_at=NOW - timedelta(hours=1)),
        ]
    )

    assert repository.purge_stale(now=NOW) == 1
    assert [b.event_key for b in repository.list_recent()] == ["betby:fresh"]


def test_purge_with_custom_retention(repository):
    repository.persist_candidates([make_bet(computed_at=NOW - timedelta(hours=2))])

    assert repository.purge_stale(timedelta(hours=1), now=NOW) == 1
    assert repository.count() == 0


def test_purge_empty(repository):
    assert repository.purge_stale(now=NOW) == 0
