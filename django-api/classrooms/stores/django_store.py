"""Django ORM implementation of the ClassroomStore.

ORM work runs synchronously inside sync_to_async so that a save is a single
transaction: aggregate upsert, membership and history changes since the
aggregate was loaded, and event appends.
"""

import functools
import logging
from collections.abc import Iterable

from asgiref.sync import sync_to_async
from django.db import DatabaseError, IntegrityError, transaction

from classrooms import models
from classrooms.domain import (
    Classroom,
    ClassroomId,
    ClassSession,
    EventLogEntry,
    EventLogId,
    EventType,
    Participant,
    ParticipantId,
    Role,
    SessionId,
)
from classrooms.domain.errors import DuplicateParticipantError, StorageError
from classrooms.stores.interfaces import ClassroomStore

logger = logging.getLogger(__name__)


def _translate_errors(func):
    """Map database exceptions onto domain errors."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as exc:
            logger.warning("Membership uniqueness violated: %s", exc)
            raise DuplicateParticipantError() from exc
        except DatabaseError as exc:
            logger.exception("Classroom store failure in %s", func.__name__)
            raise StorageError() from exc

    return wrapper


def _optional(id_type, value):
    return id_type(value) if value is not None else None


def participant_to_domain(row: models.Participant) -> Participant:
    return Participant(
        id=ParticipantId(row.id),
        name=row.name,
        email=row.email,
        role=Role(row.role),
        created_at=row.created_at,
    )


def event_to_domain(row: models.EventLogEntry) -> EventLogEntry:
    return EventLogEntry(
        id=EventLogId(row.event_id),
        type=EventType(row.type),
        participant_id=_optional(ParticipantId, row.participant_id),
        classroom_id=_optional(ClassroomId, row.classroom_id),
        session_id=_optional(SessionId, row.session_id),
        timestamp=row.timestamp,
    )


def classroom_to_domain(row: models.Classroom) -> Classroom:
    teachers: list[ParticipantId] = []
    students: list[ParticipantId] = []
    for membership in row.memberships.all():
        target = teachers if membership.role == models.RoleChoices.TEACHER else students
        target.append(ParticipantId(membership.participant_id))
    classroom = Classroom(
        id=ClassroomId(row.id),
        room_code=row.room_code,
        name=row.name,
        is_active=row.is_active,
        teacher_participants=teachers,
        student_participants=students,
        participant_history=[
            ParticipantId(h.participant_id) for h in row.participant_history.all()
        ],
        event_log=[event_to_domain(e) for e in row.event_log.all()],
        created_at=row.created_at,
    )
    classroom.mark_persisted()
    return classroom


def session_to_domain(row: models.ClassSession) -> ClassSession:
    session = ClassSession(
        id=SessionId(row.id),
        classroom_id=_optional(ClassroomId, row.classroom_id),
        started_at=row.started_at,
        ended_at=row.ended_at,
        current_participants=[ParticipantId(m.participant_id) for m in row.memberships.all()],
        participants_history=[
            ParticipantId(h.participant_id) for h in row.participant_history.all()
        ],
        event_log=[event_to_domain(e) for e in row.event_log.all()],
    )
    session.mark_persisted()
    return session


_RELATIONS = ("memberships", "participant_history", "event_log")


class DjangoClassroomStore(ClassroomStore):
    """Relational store using the Django ORM."""

    async def get_classroom(self, classroom_id: ClassroomId) -> Classroom | None:
        return await sync_to_async(self._get_classroom)(classroom_id)

    async def get_session(self, session_id: SessionId) -> ClassSession | None:
        return await sync_to_async(self._get_session)(session_id)

    async def list_sessions(
        self, classroom_id: ClassroomId | None = None, *, active_only: bool = False
    ) -> list[ClassSession]:
        return await sync_to_async(self._list_sessions)(classroom_id, active_only)

    async def find_participant_by_email(self, email: str) -> Participant | None:
        return await sync_to_async(self._find_participant_by_email)(email)

    async def get_participants(
        self, participant_ids: Iterable[ParticipantId]
    ) -> dict[ParticipantId, Participant]:
        return await sync_to_async(self._get_participants)(list(participant_ids))

    async def get_or_create_participant(
        self, name: str, email: str, role: Role
    ) -> tuple[Participant, bool]:
        return await sync_to_async(self._get_or_create_participant)(name, email, role)

    async def save(
        self,
        *,
        classroom: Classroom | None = None,
        session: ClassSession | None = None,
    ) -> None:
        for aggregate in (classroom, session):
            if aggregate is not None and aggregate.has_duplicate_members:
                logger.warning("Rejected save of %s with a repeated member", aggregate.id)
                raise DuplicateParticipantError()
        await sync_to_async(self._save)(classroom, session)
        for aggregate in (classroom, session):
            if aggregate is not None:
                aggregate.mark_persisted()

    @_translate_errors
    def _get_classroom(self, classroom_id: ClassroomId) -> Classroom | None:
        row = (
            models.Classroom.objects.prefetch_related(*_RELATIONS)
            .filter(pk=classroom_id.value)
            .first()
        )
        return classroom_to_domain(row) if row is not None else None

    @_translate_errors
    def _get_session(self, session_id: SessionId) -> ClassSession | None:
        row = (
            models.ClassSession.objects.prefetch_related(*_RELATIONS)
            .filter(pk=session_id.value)
            .first()
        )
        return session_to_domain(row) if row is not None else None

    @_translate_errors
    def _list_sessions(
        self, classroom_id: ClassroomId | None, active_only: bool
    ) -> list[ClassSession]:
        queryset = models.ClassSession.objects.prefetch_related(*_RELATIONS)
        if classroom_id is not None:
            queryset = queryset.filter(classroom_id=classroom_id.value)
        if active_only:
            queryset = queryset.filter(ended_at__isnull=True)
        return [session_to_domain(row) for row in queryset.order_by("started_at", "pk")]

    @_translate_errors
    def _find_participant_by_email(self, email: str) -> Participant | None:
        row = models.Participant.objects.filter(email=email).first()
        return participant_to_domain(row) if row is not None else None

    @_translate_errors
    def _get_participants(
        self, participant_ids: list[ParticipantId]
    ) -> dict[ParticipantId, Participant]:
        rows = models.Participant.objects.filter(pk__in=[pid.value for pid in participant_ids])
        return {ParticipantId(row.id): participant_to_domain(row) for row in rows}

    @_translate_errors
    def _get_or_create_participant(
        self, name: str, email: str, role: Role
    ) -> tuple[Participant, bool]:
        row, created = models.Participant.objects.get_or_create(
            email=email,
            defaults={"name": name, "role": Role(role).value},
        )
        return participant_to_domain(row), created

    @_translate_errors
    def _save(self, classroom: Classroom | None, session: ClassSession | None) -> None:
        with transaction.atomic():
            pending: list[EventLogEntry] = []
            if classroom is not None:
                self._write_classroom(classroom)
                pending.extend(classroom.pending_events)
            if session is not None:
                self._write_session(session)
                pending.extend(session.pending_events)
            self._append_events(pending)

    def _write_classroom(self, classroom: Classroom) -> None:
        classroom_pk = classroom.id.value
        models.Classroom.objects.update_or_create(
            pk=classroom_pk,
            defaults={
                "room_code": classroom.room_code,
                "name": classroom.name,
                "is_active": classroom.is_active,
            },
        )
        members = classroom.members()
        for participant_id, role in classroom.stored_members - members:
            models.ClassroomMembership.objects.filter(
                classroom_id=classroom_pk, participant_id=participant_id.value, role=role.value
            ).delete()
        added = members - classroom.stored_members
        ordered = [(pid, Role.TEACHER) for pid in classroom.teacher_participants]
        ordered += [(pid, Role.STUDENT) for pid in classroom.student_participants]
        for participant_id, role in ordered:
            if (participant_id, role) in added:
                models.ClassroomMembership.objects.create(
                    classroom_id=classroom_pk, participant_id=participant_id.value, role=role.value
                )

        models.ClassroomParticipantHistory.objects.bulk_create(
            [
                models.ClassroomParticipantHistory(
                    classroom_id=classroom_pk, participant_id=pid.value
                )
                for pid in classroom.participant_history[classroom.stored_history :]
            ]
        )

    def _write_session(self, session: ClassSession) -> None:
        session_pk = session.id.value
        models.ClassSession.objects.update_or_create(
            pk=session_pk,
            defaults={
                "classroom_id": session.classroom_id.value if session.classroom_id else None,
                "started_at": session.started_at,
                "ended_at": session.ended_at,
            },
        )
        current = set(session.current_participants)
        departed = [pid.value for pid in session.stored_participants - current]
        if departed:
            models.SessionMembership.objects.filter(
                session_id=session_pk, participant_id__in=departed
            ).delete()
        for participant_id in session.current_participants:
            if participant_id not in session.stored_participants:
                models.SessionMembership.objects.create(
                    session_id=session_pk, participant_id=participant_id.value
                )

        models.SessionParticipantHistory.objects.bulk_create(
            [
                models.SessionParticipantHistory(session_id=session_pk, participant_id=pid.value)
                for pid in session.participants_history[session.stored_history :]
            ]
        )

    @staticmethod
    def _append_events(entries: list[EventLogEntry]) -> None:
        unique = {entry.id: entry for entry in entries}
        models.EventLogEntry.objects.bulk_create(
            [
                models.EventLogEntry(
                    event_id=entry.id.value,
                    type=entry.type.value,
                    participant_id=entry.participant_id.value if entry.participant_id else None,
                    classroom_id=entry.classroom_id.value if entry.classroom_id else None,
                    session_id=entry.session_id.value if entry.session_id else None,
                    timestamp=entry.timestamp,
                )
                for entry in unique.values()
            ]
        )
