"""Domain models representing persisted state.

Participants and event log entries are immutable records. Classrooms and
sessions are aggregates mutated by the lifecycle service and handed back to
the store as a whole; entries logged since the last load wait in
pending_events until the store appends them, and the stored_* fields let
the store write only the membership and history changes made since then.
Django ORM models are in classrooms/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime

from classrooms.domain.value_objects import (
    ClassroomId,
    EventLogId,
    EventType,
    ParticipantId,
    Role,
    SessionId,
)


@dataclass(frozen=True)
class Participant:
    """Domain representation of a Participant. Email is the identity key."""

    id: ParticipantId
    name: str
    email: str
    role: Role
    created_at: datetime


@dataclass(frozen=True)
class EventLogEntry:
    """One append-only entry of the event log."""

    id: EventLogId
    type: EventType
    participant_id: ParticipantId | None
    classroom_id: ClassroomId | None
    session_id: SessionId | None
    timestamp: datetime


def _without(ids: list[ParticipantId], participant_id: ParticipantId) -> list[ParticipantId]:
    return [pid for pid in ids if pid != participant_id]


@dataclass
class Classroom:
    """Domain representation of a Classroom."""

    id: ClassroomId
    room_code: str
    name: str
    is_active: bool = True
    teacher_participants: list[ParticipantId] = field(default_factory=list)
    student_participants: list[ParticipantId] = field(default_factory=list)
    participant_history: list[ParticipantId] = field(default_factory=list)
    event_log: list[EventLogEntry] = field(default_factory=list)
    created_at: datetime | None = None
    pending_events: list[EventLogEntry] = field(
        default_factory=list, compare=False, repr=False
    )
    # membership and history length as last read from or written to the store
    stored_members: frozenset[tuple[ParticipantId, Role]] = field(
        default=frozenset(), compare=False, repr=False
    )
    stored_history: int = field(default=0, compare=False, repr=False)

    def log(self, entry: EventLogEntry) -> None:
        self.event_log.append(entry)
        self.pending_events.append(entry)

    def mark_persisted(self) -> None:
        self.stored_members = self.members()
        self.stored_history = len(self.participant_history)
        self.pending_events.clear()

    def members(self) -> frozenset[tuple[ParticipantId, Role]]:
        return frozenset(
            [(pid, Role.TEACHER) for pid in self.teacher_participants]
            + [(pid, Role.STUDENT) for pid in self.student_participants]
        )

    @property
    def current_participants(self) -> list[ParticipantId]:
        return self.teacher_participants + self.student_participants

    @property
    def has_duplicate_members(self) -> bool:
        current = self.current_participants
        return len(current) != len(set(current))

    def has_member(self, participant_id: ParticipantId) -> bool:
        return participant_id in self.current_participants

    def is_teacher(self, participant_id: ParticipantId) -> bool:
        return participant_id in self.teacher_participants

    def add_member(self, participant_id: ParticipantId, role: Role) -> None:
        if role == Role.TEACHER:
            self.teacher_participants.append(participant_id)
        else:
            self.student_participants.append(participant_id)
        self.participant_history.append(participant_id)

    def remove_member(self, participant_id: ParticipantId, role: Role) -> None:
        if role == Role.TEACHER:
            self.teacher_participants = _without(self.teacher_participants, participant_id)
        else:
            self.student_participants = _without(self.student_participants, participant_id)


@dataclass
class ClassSession:
    """Domain representation of a ClassSession. Active while ended_at is None."""

    id: SessionId
    classroom_id: ClassroomId | None
    started_at: datetime
    ended_at: datetime | None = None
    current_participants: list[ParticipantId] = field(default_factory=list)
    participants_history: list[ParticipantId] = field(default_factory=list)
    event_log: list[EventLogEntry] = field(default_factory=list)
    pending_events: list[EventLogEntry] = field(
        default_factory=list, compare=False, repr=False
    )
    stored_participants: frozenset[ParticipantId] = field(
        default=frozenset(), compare=False, repr=False
    )
    stored_history: int = field(default=0, compare=False, repr=False)

    def log(self, entry: EventLogEntry) -> None:
        self.event_log.append(entry)
        self.pending_events.append(entry)

    def mark_persisted(self) -> None:
        self.stored_participants = frozenset(self.current_participants)
        self.stored_history = len(self.participants_history)
        self.pending_events.clear()

    @property
    def has_duplicate_members(self) -> bool:
        return len(self.current_participants) != len(set(self.current_participants))

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def has_participant(self, participant_id: ParticipantId) -> bool:
        return participant_id in self.current_participants

    def add_participant(self, participant_id: ParticipantId) -> None:
        self.current_participants.append(participant_id)
        self.participants_history.append(participant_id)

    def remove_participant(self, participant_id: ParticipantId) -> None:
        self.current_participants = _without(self.current_participants, participant_id)

    def end(self, at: datetime) -> None:
        self.current_participants = []
        self.ended_at = at


@dataclass(frozen=True)
class ClassroomState:
    """Classroom with its current teacher/student lists expanded."""

    classroom: Classroom
    teacher_participants: tuple[Participant, ...] = ()
    student_participants: tuple[Participant, ...] = ()


@dataclass(frozen=True)
class SessionState:
    """Session with current participants expanded and partitioned by role."""

    session: ClassSession
    classroom_name: str | None
    teacher_participants: tuple[Participant, ...] = ()
    student_participants: tuple[Participant, ...] = ()


@dataclass(frozen=True)
class ActiveSession:
    """An active session paired with its owning classroom."""

    session: ClassSession
    classroom: Classroom | None
