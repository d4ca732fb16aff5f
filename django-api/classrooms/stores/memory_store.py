"""Process-local implementation of the ClassroomStore.

Aggregates are copied on the way in and out so callers never share state
with the store. Like the Django store, a save applies only the membership
and history changes made since the aggregate was loaded.
"""

import copy
from collections.abc import Iterable
from datetime import datetime, timezone

from classrooms.domain import (
    Classroom,
    ClassroomId,
    ClassSession,
    EventLogEntry,
    Participant,
    ParticipantId,
    Role,
    SessionId,
)
from classrooms.domain.errors import DuplicateParticipantError
from classrooms.stores.interfaces import ClassroomStore


class InMemoryClassroomStore(ClassroomStore):
    """Dictionary-backed store with the same uniqueness rules as the database."""

    def __init__(self) -> None:
        self._classrooms: dict[ClassroomId, Classroom] = {}
        self._sessions: dict[SessionId, ClassSession] = {}
        self._participants: dict[ParticipantId, Participant] = {}
        self._events: list[EventLogEntry] = []

    async def get_classroom(self, classroom_id: ClassroomId) -> Classroom | None:
        stored = self._classrooms.get(classroom_id)
        if stored is None:
            return None
        classroom = copy.deepcopy(stored)
        classroom.event_log = [e for e in self._events if e.classroom_id == classroom_id]
        classroom.mark_persisted()
        return classroom

    async def get_session(self, session_id: SessionId) -> ClassSession | None:
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        return self._hydrate(stored)

    async def list_sessions(
        self, classroom_id: ClassroomId | None = None, *, active_only: bool = False
    ) -> list[ClassSession]:
        sessions = [
            self._hydrate(s)
            for s in self._sessions.values()
            if (classroom_id is None or s.classroom_id == classroom_id)
            and (not active_only or s.ended_at is None)
        ]
        return sorted(sessions, key=lambda s: s.started_at)

    async def find_participant_by_email(self, email: str) -> Participant | None:
        for participant in self._participants.values():
            if participant.email == email:
                return participant
        return None

    async def get_participants(
        self, participant_ids: Iterable[ParticipantId]
    ) -> dict[ParticipantId, Participant]:
        return {
            pid: self._participants[pid]
            for pid in participant_ids
            if pid in self._participants
        }

    async def get_or_create_participant(
        self, name: str, email: str, role: Role
    ) -> tuple[Participant, bool]:
        existing = await self.find_participant_by_email(email)
        if existing is not None:
            return existing, False
        participant = Participant(
            id=ParticipantId.new(),
            name=name,
            email=email,
            role=role,
            created_at=datetime.now(timezone.utc),
        )
        self._participants[participant.id] = participant
        return participant, True

    async def save(
        self,
        *,
        classroom: Classroom | None = None,
        session: ClassSession | None = None,
    ) -> None:
        if classroom is not None and (
            classroom.has_duplicate_members or self._joined_elsewhere(classroom)
        ):
            raise DuplicateParticipantError()
        if session is not None and (
            session.has_duplicate_members or self._joined_elsewhere(session)
        ):
            raise DuplicateParticipantError()

        pending: list[EventLogEntry] = []
        if classroom is not None:
            pending.extend(classroom.pending_events)
            self._classrooms[classroom.id] = self._merge_classroom(classroom)
        if session is not None:
            pending.extend(session.pending_events)
            self._sessions[session.id] = self._merge_session(session)

        known = {e.id for e in self._events}
        for entry in pending:
            if entry.id not in known:
                self._events.append(entry)
                known.add(entry.id)

        for aggregate in (classroom, session):
            if aggregate is not None:
                aggregate.mark_persisted()

    def _joined_elsewhere(self, aggregate: Classroom | ClassSession) -> bool:
        """True if a participant added since load was stored by another writer meanwhile."""
        if isinstance(aggregate, Classroom):
            stored = self._classrooms.get(aggregate.id)
            added = {pid for pid, _ in aggregate.members() - aggregate.stored_members}
        else:
            stored = self._sessions.get(aggregate.id)
            added = set(aggregate.current_participants) - aggregate.stored_participants
        if stored is None:
            return False
        return bool(added & set(stored.current_participants))

    def _merge_classroom(self, classroom: Classroom) -> Classroom:
        """Apply the membership and history changes made since load onto the stored copy."""
        merged = self._detach(classroom)
        stored = self._classrooms.get(classroom.id)
        if stored is None:
            return merged
        members = classroom.members()
        gone = classroom.stored_members - members
        added = members - classroom.stored_members
        merged.teacher_participants = [
            pid for pid in stored.teacher_participants if (pid, Role.TEACHER) not in gone
        ] + [pid for pid in classroom.teacher_participants if (pid, Role.TEACHER) in added]
        merged.student_participants = [
            pid for pid in stored.student_participants if (pid, Role.STUDENT) not in gone
        ] + [pid for pid in classroom.student_participants if (pid, Role.STUDENT) in added]
        merged.participant_history = (
            stored.participant_history
            + classroom.participant_history[classroom.stored_history :]
        )
        return merged

    def _merge_session(self, session: ClassSession) -> ClassSession:
        merged = self._detach(session)
        stored = self._sessions.get(session.id)
        if stored is None:
            return merged
        gone = session.stored_participants - set(session.current_participants)
        merged.current_participants = [
            pid for pid in stored.current_participants if pid not in gone
        ] + [pid for pid in session.current_participants if pid not in session.stored_participants]
        merged.participants_history = (
            stored.participants_history
            + session.participants_history[session.stored_history :]
        )
        return merged

    @staticmethod
    def _detach(aggregate):
        stored = copy.deepcopy(aggregate)
        stored.event_log = []
        stored.pending_events = []
        return stored

    def _hydrate(self, stored: ClassSession) -> ClassSession:
        session = copy.deepcopy(stored)
        session.event_log = [e for e in self._events if e.session_id == stored.id]
        session.mark_persisted()
        return session
