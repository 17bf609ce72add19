"""Ranking of remote ticket classes against local product occurrences."""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ticketsync.domain.collaborators import TicketingService
from ticketsync.domain.entities import MatchCandidate, RemoteEvent, TicketClass
from ticketsync.domain.errors import DomainError
from ticketsync.utils.similarity import SimilarityFunc, character_similarity
from ticketsync.utils.time_utils import DEFAULT_TIME_BUFFER_MINUTES, is_time_close
from ticketsync.utils.title_parser import DayOfWeek

logger = logging.getLogger(__name__)

MIN_NAME_SIMILARITY = 30
TIME_MATCH_BONUS = 50
DATE_MATCH_BONUS = 25
MAX_SUGGESTIONS = 5
SUGGESTION_EVENT_STATUS = "live,started"

WEEKDAY_SIMILARITY_FLOOR = 60
WEEKDAY_TIME_BONUS = 20


@dataclass(frozen=True)
class WeekdayMatch:
    """Remote event on the wanted weekday and its first paid ticket class."""

    event: RemoteEvent
    ticket: TicketClass
    similarity: float
    time_match: bool


def _event_time(event: RemoteEvent) -> time:
    return event.start.time().replace(second=0, microsecond=0)


class MatchEngine:
    """Scores remote ticket classes by name, time and date proximity.

    The similarity function can be replaced, e.g. with a token-based scorer;
    thresholds and ranking stay the same.
    """

    def __init__(
        self,
        ticketing: TicketingService,
        similarity: SimilarityFunc = character_similarity,
        time_buffer_minutes: int = DEFAULT_TIME_BUFFER_MINUTES,
    ):
        self.ticketing = ticketing
        self.similarity = similarity
        self.time_buffer_minutes = time_buffer_minutes

    def score(
        self,
        local_title: str,
        local_date: Optional[date],
        local_time: Optional[time],
        event: RemoteEvent,
    ) -> list[MatchCandidate]:
        """Score every paid ticket class of a remote event.

        Returns:
            One candidate per non-free ticket class, or an empty list when the
            event name is too dissimilar to the local title
        """
        name_similarity = self.similarity(local_title.lower(), event.name.lower())
        if name_similarity < MIN_NAME_SIMILARITY:
            return []

        event_date = event.start.date()
        event_time = _event_time(event)

        time_match = local_time is None or is_time_close(
            local_time, event_time, self.time_buffer_minutes
        )
        date_match = local_date is None or local_date == event_date
        date_diff_days = abs((local_date - event_date).days) if local_date is not None else 0

        relevance = name_similarity * 2 - date_diff_days
        if time_match and local_time is not None:
            relevance += TIME_MATCH_BONUS
        if date_match and local_date is not None:
            relevance += DATE_MATCH_BONUS

        return [
            MatchCandidate(
                remote_event_id=event.id,
                remote_ticket_id=ticket.id,
                event_name=event.name,
                ticket_name=ticket.name,
                date=event_date,
                time=event_time,
                venue_name=event.venue_name,
                name_similarity=round(name_similarity, 2),
                relevance=round(relevance, 2),
                exact_date_match=date_match,
                close_time_match=time_match,
            )
            for ticket in event.ticket_classes
            if not ticket.free
        ]

    def suggest(
        self,
        local_title: str,
        local_date: Optional[date] = None,
        local_time: Optional[time] = None,
        limit: int = MAX_SUGGESTIONS,
    ) -> list[MatchCandidate]:
        """Suggest remote ticket classes for a local product occurrence.

        Remote failures are logged and yield no suggestions.

        Returns:
            Up to limit candidates, most relevant first
        """
        events = self.fetch_events()
        if events is None:
            return []
        return self.rank(local_title, local_date, local_time, events, limit)

    def fetch_events(self) -> Optional[list[RemoteEvent]]:
        """Fetch the events suggestions are drawn from, or None on failure."""
        try:
            return self.ticketing.list_org_events(status=SUGGESTION_EVENT_STATUS)
        except DomainError as e:
            logger.warning("Could not fetch remote events for suggestions: %s", e)
            return None

    def rank(
        self,
        local_title: str,
        local_date: Optional[date],
        local_time: Optional[time],
        events: list[RemoteEvent],
        limit: int = MAX_SUGGESTIONS,
    ) -> list[MatchCandidate]:
        """Score and rank already fetched events, most relevant first."""
        candidates: list[MatchCandidate] = []
        for event in events:
            candidates.extend(self.score(local_title, local_date, local_time, event))

        candidates.sort(key=lambda candidate: candidate.relevance, reverse=True)
        return candidates[:limit]

    def best_match(
        self,
        local_title: str,
        local_date: Optional[date] = None,
        local_time: Optional[time] = None,
    ) -> Optional[MatchCandidate]:
        """Return the single most relevant candidate, if any."""
        candidates = self.suggest(local_title, local_date, local_time, limit=1)
        return candidates[0] if candidates else None

    def weekday_matches(
        self,
        local_title: str,
        day: DayOfWeek,
        title_time: Optional[time] = None,
    ) -> list[WeekdayMatch]:
        """Find live remote events on a weekday that look like the local title.

        An event qualifies when its name similarity (plus a bonus when its
        start time is close to title_time) exceeds the floor, or when the
        times match outright.

        Raises:
            DomainError: When the remote service cannot be queried
        """
        matches = []
        for event in self.ticketing.list_org_events(status="live"):
            if event.start.weekday() != day:
                continue

            similarity = self.similarity(local_title.lower(), event.name.lower())
            time_match = is_time_close(title_time, _event_time(event), self.time_buffer_minutes)
            if time_match:
                similarity += WEEKDAY_TIME_BONUS
            if similarity <= WEEKDAY_SIMILARITY_FLOOR and not time_match:
                continue

            ticket = next((t for t in event.ticket_classes if not t.free), None)
            if ticket is None:
                continue
            matches.append(WeekdayMatch(event, ticket, min(similarity, 100.0), time_match))

        matches.sort(key=lambda match: match.similarity, reverse=True)
        return matches
