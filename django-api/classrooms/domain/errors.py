"""Domain error codes for the classrooms module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    CLASSROOM_NOT_FOUND = "CLASSROOM_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CLASSROOM_INACTIVE = "CLASSROOM_INACTIVE"
    DUPLICATE_PARTICIPANT = "DUPLICATE_PARTICIPANT"
    ALREADY_IN_SESSION = "ALREADY_IN_SESSION"
    MISSING_ASSOCIATION = "MISSING_ASSOCIATION"
    SESSION_ENDED = "SESSION_ENDED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    INVALID_ID = "INVALID_ID"
    INVALID_PARTICIPANT = "INVALID_PARTICIPANT"
    STORAGE_FAILURE = "STORAGE_FAILURE"


@dataclass(frozen=True, eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def _keep(self, **context: object) -> None:
        # Frozen dataclass: context attributes are attached past __setattr__.
        for name, value in context.items():
            object.__setattr__(self, name, value)


class ClassroomNotFoundError(DomainError):
    """Raised when a classroom is not found."""

    def __init__(self, classroom_id: str) -> None:
        super().__init__(
            code=ErrorCode.CLASSROOM_NOT_FOUND,
            message="Class Room does not exist",
        )
        self._keep(classroom_id=classroom_id)


class SessionNotFoundError(DomainError):
    """Raised when a class session is not found."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session does not exist",
        )
        self._keep(session_id=session_id)


class InactiveClassroomError(DomainError):
    """Raised when a student tries to join an inactive classroom."""

    def __init__(self, classroom_id: str) -> None:
        super().__init__(
            code=ErrorCode.CLASSROOM_INACTIVE,
            message="Class is not active. you cannot join.",
        )
        self._keep(classroom_id=classroom_id)


class DuplicateParticipantError(DomainError):
    """Raised when a participant is already a current member."""

    def __init__(self, email: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_PARTICIPANT,
            message="Participant already in classroom",
        )
        self._keep(email=email)


class AlreadyInSessionError(DomainError):
    """Raised when a participant is already connected to a session."""

    def __init__(self, session_id: str, email: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_IN_SESSION,
            message="Participant already in session",
        )
        self._keep(session_id=session_id, email=email)


class MissingAssociationError(DomainError):
    """Raised when a session has no owning classroom."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.MISSING_ASSOCIATION,
            message="Session is not attached to a class room",
        )
        self._keep(session_id=session_id)


class SessionEndedError(DomainError):
    """Raised when a transition targets a session that already ended."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_ENDED,
            message="Session has already ended",
        )
        self._keep(session_id=session_id)


class NotAuthorizedError(DomainError):
    """Raised when a participant lacks the teacher role for an action."""

    def __init__(self, participant_id: str, action: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_AUTHORIZED,
            message=f"Only teachers can {action} the class",
        )
        self._keep(participant_id=participant_id, action=action)


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )


class InvalidParticipantError(DomainError):
    """Raised when a participant payload is incomplete or malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_PARTICIPANT,
            message=f"Invalid participant: {reason}",
        )


class StorageError(DomainError):
    """Raised when the underlying store fails."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_FAILURE,
            message="Storage is unavailable",
        )
