from datetime import datetime, timezone
from decimal import Decimal

import pytest

from odd_scout.config.constants import OddsSource
from odd_scout.data.events import SourceEvent
from odd_scout.database.repository import ValueBetRepository

KICKOFF = datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc)


def make_event(
    team1,
    team2,
    kickoff=KICKOFF,
    odds=None,
    source=OddsSource.BETBY.value,
    league="Primeira Liga",
    link=None,
):
    event = SourceEvent(
        league=league,
        kickoff=kickoff,
        team1=team1,
        team2=team2,
        source=source,
        link=link,
    )
    if odds is not None:
        event.with_odds([Decimal(str(o)) for o in odds])
    return event


@pytest.fixture
def event_factory():
    """Factory for SourceEvent objects, kickoff defaults to 2024-05-01 18:00 UTC."""
    return make_event


@pytest.fixture
def porto_benfica(event_factory):
    """Bettable and pricing listings of the same match."""
    betby = event_factory(
        "FC Porto", "Benfica", odds=["2.00", "3.20", "3.80"], source="betby"
    )
    pinnacle = event_factory(
        "Porto", "Benfica", odds=["1.90", "3.40", "4.10"], source="pinnacle"
    )
    return betby, pinnacle


@pytest.fixture
def repository():
    """Repository on a fresh in-memory SQLite database."""
    return ValueBetRepository.from_url("sqlite://")
