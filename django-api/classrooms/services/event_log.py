"""Event log recorder.

Builds immutable event log entries and attaches them to the aggregates they
concern. The store appends them when the aggregate is saved, in the same
transaction.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from classrooms.domain import (
    Classroom,
    ClassSession,
    EventLogEntry,
    EventLogId,
    EventType,
    ParticipantId,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventLogRecorder:
    """Creates one entry per call; never edits or removes earlier entries."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def record(
        self,
        event_type: EventType,
        actor_id: ParticipantId | None,
        *,
        classroom: Classroom | None = None,
        session: ClassSession | None = None,
    ) -> EventLogEntry:
        """Record an event against a classroom and, if given, a session.

        The entry is keyed by the classroom (taken from the session when no
        classroom is passed) and by the session, so it shows up in both views.

        Raises:
            ValueError: If neither a classroom nor a session is given.
        """
        if classroom is None and session is None:
            raise ValueError("an event needs a classroom or a session")

        classroom_id = classroom.id if classroom is not None else session.classroom_id
        entry = EventLogEntry(
            id=EventLogId.new(),
            type=EventType(event_type),
            participant_id=actor_id,
            classroom_id=classroom_id,
            session_id=session.id if session is not None else None,
            timestamp=self._clock(),
        )
        if classroom is not None:
            classroom.log(entry)
        if session is not None:
            session.log(entry)
        return entry
