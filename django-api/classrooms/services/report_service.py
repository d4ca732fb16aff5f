"""Classroom reporting.

The report is a read-only projection of the event log. It sits directly
behind a user-facing query, so it answers with a tagged ServiceResponse
instead of raising.
"""

import logging
from collections.abc import Iterable, Mapping
from http import HTTPStatus
from typing import Any

from classrooms.domain import (
    Classroom,
    ClassroomId,
    ClassSession,
    EventLogEntry,
    Participant,
    ParticipantId,
)
from classrooms.domain.errors import StorageError
from classrooms.services.responses import (
    CLASSROOM_NOT_FOUND,
    CLASSROOM_REPORT,
    ServiceResponse,
)
from classrooms.stores.interfaces import ClassroomStore

logger = logging.getLogger(__name__)


def format_event(
    entry: EventLogEntry, participants: Mapping[ParticipantId, Participant]
) -> dict[str, Any]:
    actor = participants.get(entry.participant_id) if entry.participant_id else None
    return {
        "type": entry.type.value,
        "name": actor.name if actor else None,
        "role": actor.role.value if actor else None,
        "timestamp": entry.timestamp,
    }


def format_session(
    session: ClassSession, participants: Mapping[ParticipantId, Participant]
) -> dict[str, Any]:
    return {
        "id": str(session.id),
        "started_at": session.started_at,
        "ended_at": session.ended_at,
        "event_log": [format_event(e, participants) for e in session.event_log],
    }


def build_classroom_report(
    classroom: Classroom,
    sessions: Iterable[ClassSession],
    participants: Mapping[ParticipantId, Participant],
) -> dict[str, Any]:
    """Flatten a classroom and its sessions into the report payload."""
    return {
        "classroom": {
            "id": str(classroom.id),
            "room_code": classroom.room_code,
            "name": classroom.name,
            "event_log": [format_event(e, participants) for e in classroom.event_log],
            "sessions": [format_session(s, participants) for s in sessions],
        }
    }


class ClassroomReportService:
    """Builds per-classroom timelines of named, role-tagged events."""

    def __init__(self, store: ClassroomStore) -> None:
        self._store = store

    async def get_classroom_report_by_id(self, classroom_id: str) -> ServiceResponse:
        try:
            room_id = ClassroomId.from_string(classroom_id)
        except (TypeError, ValueError):
            logger.warning("Report requested for malformed classroom id %r", classroom_id)
            return ServiceResponse(HTTPStatus.NOT_FOUND, message=CLASSROOM_NOT_FOUND)

        try:
            classroom = await self._store.get_classroom(room_id)
            if classroom is None:
                logger.warning("Report requested for unknown classroom %s", room_id)
                return ServiceResponse(HTTPStatus.NOT_FOUND, message=CLASSROOM_NOT_FOUND)
            sessions = await self._store.list_sessions(room_id)
            actor_ids = {e.participant_id for e in classroom.event_log}
            for session in sessions:
                actor_ids.update(e.participant_id for e in session.event_log)
            actor_ids.discard(None)
            participants = await self._store.get_participants(actor_ids)
        except StorageError as exc:
            logger.error("Report for classroom %s failed: %s", room_id, exc)
            return ServiceResponse(HTTPStatus.SERVICE_UNAVAILABLE, message=exc.message)

        return ServiceResponse(
            status_code=HTTPStatus.OK,
            data=build_classroom_report(classroom, sessions, participants),
            message=CLASSROOM_REPORT,
        )
