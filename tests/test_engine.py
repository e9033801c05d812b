import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from odd_scout.betting.engine import ValueBetEngine
from odd_scout.betting.odds_converter import ProbabilityConverter, calculate_expected_value
from odd_scout.betting.value_scorer import ValueBetScorer
from odd_scout.config.constants import Outcome
from odd_scout.matching.event_matcher import EventMatcher

from .conftest import KICKOFF

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_end_to_end_single_value_bet(porto_benfica):
    betby, pinnacle = porto_benfica

    result = ValueBetEngine().scan([betby], [pinnacle], now=NOW)

    assert result.events_scanned == 1
    assert result.matches_found == 1
    assert len(result.value_bets) == 1

    bet = result.value_bets[0]
    assert bet.outcome == Outcome.TEAM1_WIN
    assert bet.payout_odd == Decimal("2.00")
    assert bet.reference_odd == Decimal("1.90")
    assert bet.confidence_score == Decimal("100")
    assert abs(bet.expected_value - Decimal("0.02828")) < Decimal("0.0001")
    assert abs(bet.implied_probability - Decimal("0.51414")) < Decimal("0.0001")

    # Reproducible from the conversion and EV formulas alone
    probs = ProbabilityConverter().convert(pinnacle.quote().odds)
    assert bet.implied_probability == probs[0]
    assert bet.expected_value == calculate_expected_value(probs[0], Decimal("2.00"))


def test_partial_name_overlap_needs_lower_threshold(event_factory):
    betby = event_factory("FC Porto", "Benfica SLB", odds=["2.00", "3.20", "3.80"])
    pinnacle = event_factory(
        "Porto", "Benfica", odds=["1.90", "3.40", "4.10"], source="pinnacle"
    )

    assert ValueBetEngine().run([betby], [pinnacle]) == []

    engine = ValueBetEngine(matcher=EventMatcher(threshold=Decimal("50")))
    bets = engine.run([betby], [pinnacle])
    assert len(bets) == 1
    assert bets[0].confidence_score == Decimal("75")
    assert bets[0].outcome == Outcome.TEAM1_WIN
    assert abs(bets[0].expected_value - Decimal("0.02828")) < Decimal("0.0001")


def test_sorted_by_expected_value(event_factory, porto_benfica):
    betby, pinnacle = porto_benfica
    later = KICKOFF + timedelta(hours=3)
    ajax = event_factory("Ajax", "PSV", kickoff=later, odds=["2.20", "3.50", "3.50"])
    ajax_fair = event_factory(
        "Ajax", "PSV", kickoff=later, odds=["2.0", "4.0", "4.0"], source="pinnacle"
    )

    bets = ValueBetEngine().run([betby, ajax], [pinnacle, ajax_fair])

    assert [b.team1 for b in bets] == ["Ajax", "FC Porto"]
    assert bets[0].expected_value == Decimal("0.1")
    assert bets[0].expected_value > bets[1].expected_value


def test_invalid_odds_skip_only_that_event(event_factory, porto_benfica):
    betby, pinnacle = porto_benfica
    later = KICKOFF + timedelta(hours=3)
    bad_payout = event_factory("Ajax", "PSV", kickoff=later, odds=["0.95", "3.5", "3.5"])
    ajax = event_factory(
        "Ajax", "PSV", kickoff=later, odds=["2.0", "4.0", "4.0"], source="pinnacle"
    )
    even_later = KICKOFF + timedelta(hours=5)
    lazio = event_factory("Lazio", "Roma", kickoff=even_later, odds=["2.5", "3.0", "3.0"])
    bad_reference = event_factory(
        "Lazio", "Roma", kickoff=even_later, odds=["2.0", "3.0", "1000.5"], source="pinnacle"
    )

    result = ValueBetEngine().scan(
        [bad_payout, betby, lazio], [ajax, pinnacle, bad_reference]
    )

    assert result.matches_found == 3
    assert result.events_skipped == 2
    assert [b.team1 for b in result.value_bets] == ["FC Porto"]


def test_events_without_odds_are_skipped(event_factory, porto_benfica):
    betby, pinnacle = porto_benfica
    later = KICKOFF + timedelta(hours=3)
    no_payout = event_factory("Ajax", "PSV", kickoff=later)
    ajax = event_factory("Ajax", "PSV", kickoff=later, odds=["2.0", "4.0", "4.0"])
    lazio = event_factory("Lazio", "Roma", odds=["2.5", "3.0", "3.0"])
    no_reference = event_factory("Lazio", "Roma", source="pinnacle")

    result = ValueBetEngine().scan([no_payout, betby, lazio], [ajax, pinnacle, no_reference])

    assert result.events_skipped == 2
    assert len(result.value_bets) == 1


def test_no_match_no_bets(event_factory):
    betby = event_factory("Arsenal", "Chelsea", odds=["2.5", "3.0", "3.0"])
    pinnacle = event_factory("Porto", "Benfica", odds=["2.0", "4.0", "4.0"])

    result = ValueBetEngine().scan([betby], [pinnacle])

    assert result.matches_found == 0
    assert result.value_bets == []
    assert result.best_bet is None


def test_custom_min_expected_value(porto_benfica):
    betby, pinnacle = porto_benfica
    engine = ValueBetEngine(scorer=ValueBetScorer(min_expected_value=Decimal("0.05")))

    assert engine.run([betby], [pinnacle]) == []


def test_cancel_returns_partial_result(porto_benfica):
    betby, pinnacle = porto_benfica
    cancel = threading.Event()
    cancel.set()

    result = ValueBetEngine().scan([betby], [pinnacle], cancel=cancel)

    assert result.cancelled
    assert result.value_bets == []


def test_deterministic_and_inputs_untouched(porto_benfica):
    betby, pinnacle = porto_benfica
    quotes_before = (betby.quote(), pinnacle.quote())
    engine = ValueBetEngine()

    first = engine.scan([betby], [pinnacle], now=NOW)
    second = engine.scan([betby], [pinnacle], now=NOW)

    assert first.to_dict() == second.to_dict()
    assert (betby.quote(), pinnacle.quote()) == quotes_before
    assert betby.quote() is quotes_before[0]


def test_total_expected_value(event_factory, porto_benfica):
    betby, pinnacle = porto_benfica
    bets = ValueBetEngine().run([betby], [pinnacle])

    assert ValueBetEngine.total_expected_value(bets) == bets[0].expected_value
    assert ValueBetEngine.total_expected_value([]) == Decimal("0")
