from classrooms.domain.models import (
    ActiveSession,
    Classroom,
    ClassroomState,
    ClassSession,
    EventLogEntry,
    Participant,
    SessionState,
)
from classrooms.domain.value_objects import (
    ClassroomId,
    EventLogId,
    EventType,
    ParticipantId,
    ParticipantInput,
    Role,
    SessionId,
)

__all__ = [
    "ActiveSession",
    "Classroom",
    "ClassroomState",
    "ClassSession",
    "EventLogEntry",
    "Participant",
    "SessionState",
    "ClassroomId",
    "SessionId",
    "ParticipantId",
    "EventLogId",
    "EventType",
    "ParticipantInput",
    "Role",
]
