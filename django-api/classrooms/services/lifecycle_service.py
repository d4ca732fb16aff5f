"""Classroom and session lifecycle service - all state transitions live here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or raise domain errors

Mutating operations raise a DomainError subclass naming the failed
precondition. Nothing is persisted for an operation that raises before its
single store.save call.
"""

import logging
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any
from uuid import uuid4

from classrooms.domain import (
    ActiveSession,
    Classroom,
    ClassroomId,
    ClassroomState,
    ClassSession,
    EventType,
    Participant,
    ParticipantId,
    ParticipantInput,
    Role,
    SessionId,
    SessionState,
)
from classrooms.domain.errors import (
    AlreadyInSessionError,
    ClassroomNotFoundError,
    DuplicateParticipantError,
    InactiveClassroomError,
    InvalidIdError,
    InvalidParticipantError,
    MissingAssociationError,
    NotAuthorizedError,
    SessionEndedError,
    SessionNotFoundError,
)
from classrooms.services.event_log import EventLogRecorder
from classrooms.services.responses import CLASSROOM_CREATED, ServiceResponse
from classrooms.stores.interfaces import ClassroomStore

logger = logging.getLogger(__name__)


def parse_id(id_type, value, kind: str):
    """Return value as id_type, raising InvalidIdError when malformed."""
    if isinstance(value, id_type):
        return value
    try:
        return id_type.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError(kind) from exc


def parse_role(value: Role | str) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise InvalidParticipantError("unknown role") from exc


def parse_participant(value: ParticipantInput | Mapping[str, Any]) -> ParticipantInput:
    if isinstance(value, ParticipantInput):
        return value
    if not isinstance(value, Mapping):
        raise InvalidParticipantError("expected name, email and role")
    try:
        return ParticipantInput.from_payload(dict(value))
    except ValueError as exc:
        raise InvalidParticipantError(str(exc)) from exc


class ClassroomLifecycleService:
    """Creates rooms, admits participants and runs class sessions."""

    def __init__(self, store: ClassroomStore, recorder: EventLogRecorder | None = None) -> None:
        self._store = store
        self._recorder = recorder or EventLogRecorder()

    async def create(self, name: str) -> ServiceResponse:
        """Create a classroom under a freshly generated room code."""
        classroom = Classroom(id=ClassroomId.new(), room_code=str(uuid4()), name=name)
        await self._store.save(classroom=classroom)
        logger.info("Classroom created with room ID: %s", classroom.id)
        return ServiceResponse(
            status_code=HTTPStatus.CREATED,
            data={"room_id": str(classroom.id)},
            message=CLASSROOM_CREATED,
        )

    async def join_classroom(
        self, classroom_id: str, participant: ParticipantInput | Mapping[str, Any]
    ) -> Participant:
        """Admit a participant into a classroom's current teacher or student list.

        The role given on this join picks the list and decides whether an
        inactive room turns the participant away.

        Raises:
            InvalidIdError: If classroom_id is not a valid UUID.
            InvalidParticipantError: If the participant payload is malformed.
            ClassroomNotFoundError: If the classroom does not exist.
            InactiveClassroomError: If a student joins an inactive classroom.
            DuplicateParticipantError: If the participant is already a member.
        """
        room_id = parse_id(ClassroomId, classroom_id, "classroom")
        joining = parse_participant(participant)
        classroom = await self._require_classroom(room_id)
        self._ensure_can_enter(classroom, joining.role)

        member = await self._store.find_participant_by_email(joining.email)
        if member is not None and classroom.has_member(member.id):
            logger.warning(
                "Join rejected: %s already in classroom %s", joining.email, room_id
            )
            raise DuplicateParticipantError(joining.email)
        if member is None:
            member, _ = await self._store.get_or_create_participant(
                joining.name, joining.email, joining.role
            )

        classroom.add_member(member.id, joining.role)
        self._recorder.record(EventType.JOIN, member.id, classroom=classroom)
        await self._store.save(classroom=classroom)
        logger.info("Participant %s (%s) joined classroom %s", member.name, member.id, room_id)
        return member

    async def start_class(self, classroom_id: str, teacher_id: str) -> ClassSession:
        """Open a new session with the starting teacher already inside.

        Raises:
            ClassroomNotFoundError: If the classroom does not exist.
            NotAuthorizedError: If teacher_id is not a current teacher of it.
        """
        room_id = parse_id(ClassroomId, classroom_id, "classroom")
        teacher = parse_id(ParticipantId, teacher_id, "participant")
        classroom = await self._require_classroom(room_id)
        if not classroom.is_teacher(teacher):
            logger.warning("Start rejected: %s is not a teacher of %s", teacher, room_id)
            raise NotAuthorizedError(str(teacher), "start")

        session = ClassSession(
            id=SessionId.new(),
            classroom_id=room_id,
            started_at=self._recorder.now(),
        )
        session.add_participant(teacher)
        self._recorder.record(EventType.START, teacher, classroom=classroom, session=session)
        await self._store.save(session=session)
        logger.info("Session %s for classroom %s started by %s", session.id, room_id, teacher)
        return session

    async def leave_class_session(
        self, session_id: str, user_id: str, role: Role | str
    ) -> ClassSession:
        """Remove a participant from a session; a departing teacher ends it.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionEndedError: If the session has already ended.
        """
        sid = parse_id(SessionId, session_id, "session")
        user = parse_id(ParticipantId, user_id, "participant")
        leaving_role = parse_role(role)
        session = await self._require_session(sid)
        self._ensure_active(session)

        session.remove_participant(user)
        self._recorder.record(EventType.LEAVE, user, session=session)
        if leaving_role == Role.TEACHER:
            session.end(self._recorder.now())
            self._recorder.record(EventType.END, user, session=session)
        await self._store.save(session=session)

        logger.info("Participant %s left session %s", user, sid)
        if not session.is_active:
            logger.info("Session %s ended on teacher departure", sid)
        return session

    async def end_class(self, session_id: str, ended_by: str | None = None) -> ClassSession:
        """End a session, clearing its current participants.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionEndedError: If the session has already ended.
            NotAuthorizedError: If ended_by is not a teacher of the session's room.
        """
        sid = parse_id(SessionId, session_id, "session")
        session = await self._require_session(sid)
        self._ensure_active(session)

        actor = None
        if ended_by is not None:
            actor = parse_id(ParticipantId, ended_by, "participant")
            classroom = None
            if session.classroom_id is not None:
                classroom = await self._store.get_classroom(session.classroom_id)
            if classroom is None or not classroom.is_teacher(actor):
                logger.warning("End rejected: %s is not a teacher for session %s", actor, sid)
                raise NotAuthorizedError(str(actor), "end")

        session.end(self._recorder.now())
        self._recorder.record(EventType.END, actor, session=session)
        await self._store.save(session=session)
        logger.info("Session %s ended by %s", sid, actor)
        return session

    async def leave_classroom(
        self, classroom_id: str, user_id: str, role: Role | str
    ) -> Classroom:
        """Drop a participant from the room's current list for role.

        The returned classroom is not persisted; the caller decides when to save.
        """
        room_id = parse_id(ClassroomId, classroom_id, "classroom")
        user = parse_id(ParticipantId, user_id, "participant")
        classroom = await self._require_classroom(room_id)
        classroom.remove_member(user, parse_role(role))
        logger.info("Participant %s removed from classroom %s (unsaved)", user, room_id)
        return classroom

    async def active_sessions_list(self) -> list[ActiveSession]:
        sessions = await self._store.list_sessions(active_only=True)
        return await self._with_classrooms(sessions)

    async def active_sessions_list_with_room_id(self, classroom_id: str) -> list[ActiveSession]:
        room_id = parse_id(ClassroomId, classroom_id, "classroom")
        sessions = await self._store.list_sessions(room_id, active_only=True)
        return await self._with_classrooms(sessions)

    async def join_session_via_session_list(
        self, session_id: str, participant: ParticipantInput | Mapping[str, Any]
    ) -> ClassSession:
        """Join a running session picked from the session list.

        New participants are added to both the classroom and the session.
        Returning participants are added to the classroom only if absent.

        Raises:
            SessionNotFoundError: If the session does not exist.
            MissingAssociationError: If the session has no classroom.
            SessionEndedError: If the session has already ended.
            InactiveClassroomError: If a student joins an inactive classroom.
            AlreadyInSessionError: If the participant is already in the session.
        """
        sid = parse_id(SessionId, session_id, "session")
        joining = parse_participant(participant)
        session = await self._require_session(sid)
        classroom = None
        if session.classroom_id is not None:
            classroom = await self._store.get_classroom(session.classroom_id)
        if classroom is None:
            logger.warning("Session %s has no classroom", sid)
            raise MissingAssociationError(str(sid))
        self._ensure_active(session)
        self._ensure_can_enter(classroom, joining.role)

        member, created = await self._store.get_or_create_participant(
            joining.name, joining.email, joining.role
        )
        if not created and session.has_participant(member.id):
            logger.warning("Join rejected: %s already in session %s", member.email, sid)
            raise AlreadyInSessionError(str(sid), member.email)

        classroom_changed = created or not classroom.has_member(member.id)
        if classroom_changed:
            classroom.add_member(member.id, joining.role)
        session.add_participant(member.id)
        self._recorder.record(
            EventType.JOIN,
            member.id,
            classroom=classroom if classroom_changed else None,
            session=session,
        )
        await self._store.save(
            classroom=classroom if classroom_changed else None,
            session=session,
        )
        logger.info("Participant %s joined session %s", member.id, sid)
        return session

    async def find_by_classroom_id(self, classroom_id: str) -> ClassroomState:
        room_id = parse_id(ClassroomId, classroom_id, "classroom")
        classroom = await self._require_classroom(room_id)
        known = await self._store.get_participants(classroom.current_participants)
        return ClassroomState(
            classroom=classroom,
            teacher_participants=tuple(
                known[pid] for pid in classroom.teacher_participants if pid in known
            ),
            student_participants=tuple(
                known[pid] for pid in classroom.student_participants if pid in known
            ),
        )

    async def find_by_class_session(self, session_id: str) -> SessionState:
        sid = parse_id(SessionId, session_id, "session")
        session = await self._require_session(sid)
        known = await self._store.get_participants(session.current_participants)
        current = [known[pid] for pid in session.current_participants if pid in known]
        classroom = None
        if session.classroom_id is not None:
            classroom = await self._store.get_classroom(session.classroom_id)

        def teaches(participant: Participant) -> bool:
            if classroom is not None:
                return classroom.is_teacher(participant.id)
            return participant.role == Role.TEACHER

        return SessionState(
            session=session,
            classroom_name=classroom.name if classroom is not None else None,
            teacher_participants=tuple(p for p in current if teaches(p)),
            student_participants=tuple(p for p in current if not teaches(p)),
        )

    async def find_participant_by_email(
        self, participant: ParticipantInput | Mapping[str, Any]
    ) -> Participant:
        """Return the participant registered under the email, creating it if absent."""
        wanted = parse_participant(participant)
        existing = await self._store.find_participant_by_email(wanted.email)
        if existing is not None:
            return existing
        created, _ = await self._store.get_or_create_participant(
            wanted.name, wanted.email, wanted.role
        )
        logger.info("Participant %s registered as %s", created.email, created.id)
        return created

    async def _require_classroom(self, classroom_id: ClassroomId) -> Classroom:
        classroom = await self._store.get_classroom(classroom_id)
        if classroom is None:
            logger.warning("Classroom %s not found", classroom_id)
            raise ClassroomNotFoundError(str(classroom_id))
        return classroom

    async def _require_session(self, session_id: SessionId) -> ClassSession:
        session = await self._store.get_session(session_id)
        if session is None:
            logger.warning("Session %s not found", session_id)
            raise SessionNotFoundError(str(session_id))
        return session

    @staticmethod
    def _ensure_active(session: ClassSession) -> None:
        if not session.is_active:
            logger.warning("Session %s already ended at %s", session.id, session.ended_at)
            raise SessionEndedError(str(session.id))

    @staticmethod
    def _ensure_can_enter(classroom: Classroom, role: Role) -> None:
        if role == Role.STUDENT and not classroom.is_active:
            logger.warning("Student join rejected: classroom %s is inactive", classroom.id)
            raise InactiveClassroomError(str(classroom.id))

    async def _with_classrooms(self, sessions: list[ClassSession]) -> list[ActiveSession]:
        classrooms: dict[ClassroomId, Classroom | None] = {}
        for session in sessions:
            if session.classroom_id is not None and session.classroom_id not in classrooms:
                classrooms[session.classroom_id] = await self._store.get_classroom(
                    session.classroom_id
                )
        return [
            ActiveSession(session=s, classroom=classrooms.get(s.classroom_id))
            for s in sessions
        ]
