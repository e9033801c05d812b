"""
Cross-feed event matching.

Pairs each listing of one feed with the listing of the other feed that
describes the same match: identical kickoff minute (UTC) and both team
names similar enough on their own.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Sequence

from loguru import logger

from odd_scout.config.constants import KICKOFF_FORMAT, TEAM_SIMILARITY_THRESHOLD

from .normalizer import team_name_tokens
from .similarity import jaccard_percentage

if TYPE_CHECKING:
    from odd_scout.data.events import SourceEvent


def format_kickoff(kickoff: datetime) -> str:
    """Kickoff as a UTC string at minute precision, the matching key."""
    return kickoff.astimezone(timezone.utc).strftime(KICKOFF_FORMAT)


@dataclass
class MatchCandidate:
    """A pairing of one event from each feed. Lives only for one pass."""

    source_event: SourceEvent
    target_event: SourceEvent
    team1_score: Decimal
    team2_score: Decimal
    average_score: Decimal

    def summary(self) -> str:
        return (
            f"{self.source_event.description} <-> {self.target_event.description} "
            f"({self.team1_score:.1f}/{self.team2_score:.1f} avg {self.average_score:.1f})"
        )


@dataclass
class _IndexedEvent:
    """Candidate event with its precomputed name tokens."""

    position: int
    event: SourceEvent
    team1_tokens: frozenset[str]
    team2_tokens: frozenset[str]


class EventMatcher:
    """
    Matches events of a reference feed against a candidate feed.

    Policy:
    - Kickoff minute must be identical, no tolerance window.
    - team1 and team2 similarity must each reach the threshold.
    - The passing candidate with the highest average score wins; on equal
      averages the one listed first wins.
    - With ``exclusive`` set, a candidate event is kept by at most one
      reference event. Pairs are assigned greedily by average (first
      reference on ties), so a reference that loses its best candidate
      falls back to the next passing one still free.

    Example:
        >>> matcher = EventMatcher()
        >>> for match in matcher.match(betby_events, pinnacle_events):
        ...     print(match.summary())
    """

    def __init__(
        self,
        threshold: Decimal = TEAM_SIMILARITY_THRESHOLD,
        exclusive: bool = True,
    ):
        """
        Args:
            threshold: Minimum per-team similarity (0-100)
            exclusive: Whether a candidate event may serve only one reference event
        """
        self.threshold = Decimal(threshold)
        self.exclusive = exclusive
        self.logger = logger.bind(component="matcher")

    def _index(
        self, candidates: Sequence[SourceEvent]
    ) -> dict[str, list[_IndexedEvent]]:
        buckets: dict[str, list[_IndexedEvent]] = {}
        for position, event in enumerate(candidates):
            buckets.setdefault(format_kickoff(event.kickoff), []).append(
                _IndexedEvent(
                    position=position,
                    event=event,
                    team1_tokens=team_name_tokens(event.team1),
                    team2_tokens=team_name_tokens(event.team2),
                )
            )
        return buckets

    def _passing_in_bucket(
        self,
        reference: SourceEvent,
        bucket: Sequence[_IndexedEvent],
    ) -> list[tuple[int, MatchCandidate]]:
        """Every candidate in the bucket clearing the per-team threshold, in list order."""
        ref_team1 = team_name_tokens(reference.team1)
        ref_team2 = team_name_tokens(reference.team2)

        passing: list[tuple[int, MatchCandidate]] = []
        for indexed in bucket:
            team1_score = jaccard_percentage(ref_team1, indexed.team1_tokens)
            team2_score = jaccard_percentage(ref_team2, indexed.team2_tokens)
            average = (team1_score + team2_score) / 2

            self.logger.debug(
                f"{reference.description} vs {indexed.event.description}: "
                f"{team1_score:.1f}/{team2_score:.1f} avg {average:.1f}"
            )

            if team1_score < self.threshold or team2_score < self.threshold:
                continue

            passing.append(
                (
                    indexed.position,
                    MatchCandidate(
                        source_event=reference,
                        target_event=indexed.event,
                        team1_score=team1_score,
                        team2_score=team2_score,
                        average_score=average,
                    ),
                )
            )
        return passing

    def _best_in_bucket(
        self,
        reference: SourceEvent,
        bucket: Sequence[_IndexedEvent],
    ) -> Optional[tuple[int, MatchCandidate]]:
        best: Optional[tuple[int, MatchCandidate]] = None
        for position, match in self._passing_in_bucket(reference, bucket):
            # Strict comparison keeps the first-seen candidate on ties
            if best is None or match.average_score > best[1].average_score:
                best = (position, match)
        return best

    def best_match(
        self,
        reference: SourceEvent,
        candidates: Sequence[SourceEvent],
    ) -> Optional[MatchCandidate]:
        """
        Best candidate for a single reference event, or None.

        Ignores exclusivity; use match() for a whole batch.
        """
        bucket = self._index(candidates).get(format_kickoff(reference.kickoff), [])
        found = self._best_in_bucket(reference, bucket)
        return found[1] if found else None

    def match(
        self,
        reference: Sequence[SourceEvent],
        candidates: Sequence[SourceEvent],
        cancel: Optional[threading.Event] = None,
    ) -> list[MatchCandidate]:
        """
        Match every reference event against the candidate list.

        Args:
            reference: Events to find partners for
            candidates: Events to search
            cancel: Optional flag checked between reference events

        Returns:
            One MatchCandidate per matched reference event, in reference
            order. Unmatched events are omitted.
        """
        buckets = self._index(candidates)

        # (reference position, candidate position, match)
        pairs: list[tuple[int, int, MatchCandidate]] = []

        for ref_position, event in enumerate(reference):
            if cancel is not None and cancel.is_set():
                self.logger.warning(
                    f"Matching cancelled after {ref_position}/{len(reference)} events"
                )
                break

            bucket = buckets.get(format_kickoff(event.kickoff))
            if not bucket:
                continue

            if not self.exclusive:
                found = self._best_in_bucket(event, bucket)
                if found is not None:
                    pairs.append((ref_position, found[0], found[1]))
                continue

            for cand_position, match in self._passing_in_bucket(event, bucket):
                pairs.append((ref_position, cand_position, match))

        if not self.exclusive:
            return [match for _, _, match in pairs]

        # Highest average first; earlier reference, then earlier candidate, on ties
        pairs.sort(key=lambda item: (-item[2].average_score, item[0], item[1]))

        assigned: dict[int, MatchCandidate] = {}
        claimed: set[int] = set()
        for ref_position, cand_position, match in pairs:
            if ref_position in assigned or cand_position in claimed:
                continue
            assigned[ref_position] = match
            claimed.add(cand_position)

        for ref_position in sorted({item[0] for item in pairs} - assigned.keys()):
            self.logger.debug(
                f"{reference[ref_position].description}: every passing candidate "
                "was taken by a better match"
            )

        return [assigned[position] for position in sorted(assigned)]
