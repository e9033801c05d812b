"""
Event feed backed by a JSON dump of scraped listings.

The scrapers write one record per event with the kickoff as text and the
1X2 odds as text ("0" when a price was not on the page). Records are
validated with pydantic; a bad record is logged and skipped, a missing
or unreadable file fails the fetch.
"""
import json
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from odd_scout.config.constants import KICKOFF_FORMAT, MarketType
from odd_scout.data.events import SourceEvent

from .base import DataNotAvailableError, DataSourceError, EventSource

RawOdd = Union[str, int, float, None]


def parse_kickoff(raw: str, default_tz: tzinfo = timezone.utc) -> datetime:
    """
    Parse a scraped kickoff time into an aware UTC datetime.

    Accepts the scraper format "YYYY-MM-DD, HH:MM" and ISO-8601. Naive
    values are read in ``default_tz``.

    Raises:
        ValueError: If the text is not a recognised timestamp

    Examples:
        >>> parse_kickoff("2024-05-01, 18:00")
        datetime.datetime(2024, 5, 1, 18, 0, tzinfo=datetime.timezone.utc)
    """
    text = raw.strip()
    try:
        parsed = datetime.strptime(text, KICKOFF_FORMAT)
    except ValueError:
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed.astimezone(timezone.utc)


def parse_odd(raw: RawOdd) -> Optional[Decimal]:
    """
    Parse a scraped odd.

    Returns None for a missing price ("", "0", None). Accepts "," as the
    decimal separator.

    Raises:
        ValueError: If the text is not a finite number
    """
    if raw is None:
        return None
    text = str(raw).strip().replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse odd: {raw!r}") from e
    if not value.is_finite():
        raise ValueError(f"Odd is not finite: {raw!r}")
    if value == 0:
        return None
    return value


class ScrapedEvent(BaseModel):
    """One record of a scraper dump."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    league: str = Field(default="", validation_alias=AliasChoices("league", "League"))
    kickoff: str = Field(
        validation_alias=AliasChoices("datetime", "kickoff", "DateTime", "starts")
    )
    team1: str = Field(min_length=1, validation_alias=AliasChoices("team1", "Team1"))
    team2: str = Field(min_length=1, validation_alias=AliasChoices("team2", "Team2"))
    odd_team1: RawOdd = Field(
        default=None, validation_alias=AliasChoices("odd_team1", "OddTeam1")
    )
    odd_draw: RawOdd = Field(
        default=None, validation_alias=AliasChoices("odd_draw", "OddDraw")
    )
    odd_team2: RawOdd = Field(
        default=None, validation_alias=AliasChoices("odd_team2", "OddTeam2")
    )
    link: Optional[str] = Field(default=None, validation_alias=AliasChoices("link", "Link"))

    def odds(self) -> Optional[tuple[Decimal, Decimal, Decimal]]:
        """The three prices, or None if any is missing."""
        values = (parse_odd(self.odd_team1), parse_odd(self.odd_draw), parse_odd(self.odd_team2))
        if any(v is None for v in values):
            return None
        return values  # type: ignore[return-value]

    def to_source_event(
        self,
        source: str,
        default_tz: tzinfo = timezone.utc,
        captured_at: Optional[datetime] = None,
    ) -> SourceEvent:
        """
        Build the domain event.

        Raises:
            ValueError: On an unparseable kickoff or empty names
        """
        event = SourceEvent(
            league=self.league or "Unknown",
            kickoff=parse_kickoff(self.kickoff, default_tz),
            team1=self.team1,
            team2=self.team2,
            source=source,
            link=self.link,
        )
        try:
            odds = self.odds()
        except ValueError:
            odds = None
        if odds is not None:
            event.with_odds(odds, MarketType.MATCH_1X2, captured_at=captured_at)
        return event


class JsonEventSource(EventSource):
    """
    Reads events from a JSON file.

    The file holds either a list of records or {"events": [...]}.

    Example:
        >>> source = JsonEventSource("data/betby.json", source_name="betby")
        >>> events = source.fetch_events()
    """

    def __init__(
        self,
        path: Union[str, Path],
        source_name: str,
        timezone_name: str = "UTC",
        **kwargs: Any,
    ):
        super().__init__(source_name, **kwargs)
        self.path = Path(path)
        self.default_tz: tzinfo = ZoneInfo(timezone_name)

    def _load_records(self) -> list[Any]:
        if not self.path.exists():
            raise DataNotAvailableError(self.source_name, f"File not found: {self.path}")

        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            payload = payload.get("events")
        if not isinstance(payload, list):
            raise DataSourceError(
                f"{self.path} must contain a list of events",
                self.source_name,
                retry_allowed=False,
            )
        return payload

    def _fetch_impl(self) -> list[SourceEvent]:
        captured_at = datetime.now(timezone.utc)
        events: list[SourceEvent] = []
        skipped = 0

        for index, record in enumerate(self._load_records()):
            try:
                scraped = ScrapedEvent.model_validate(record)
                event = scraped.to_source_event(
                    self.source_name, self.default_tz, captured_at=captured_at
                )
            except (ValidationError, ValueError) as e:
                skipped += 1
                self.logger.warning(f"Skipping record {index} in {self.path.name}: {e}")
                continue

            if event.quote() is None:
                self.logger.debug(f"{event.description}: no complete 1X2 odds")
            events.append(event)

        if skipped:
            self.logger.info(f"Skipped {skipped} invalid records from {self.path.name}")
        return events
