"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every method is a
coroutine; the lifecycle service suspends at each store call.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from classrooms.domain import (
    Classroom,
    ClassroomId,
    ClassSession,
    Participant,
    ParticipantId,
    Role,
    SessionId,
)


class ClassroomStore(ABC):
    """Interface for classroom, session, participant and event log persistence."""

    @abstractmethod
    async def get_classroom(self, classroom_id: ClassroomId) -> Classroom | None:
        """Return a classroom with members, history and event log, or None."""
        ...

    @abstractmethod
    async def get_session(self, session_id: SessionId) -> ClassSession | None:
        """Return a session with participants and event log, or None."""
        ...

    @abstractmethod
    async def list_sessions(
        self, classroom_id: ClassroomId | None = None, *, active_only: bool = False
    ) -> list[ClassSession]:
        """Return sessions ordered by started_at ascending.

        Filtered to one classroom when classroom_id is given, and to sessions
        without ended_at when active_only is set.
        """
        ...

    @abstractmethod
    async def find_participant_by_email(self, email: str) -> Participant | None:
        """Return the participant registered under email, or None."""
        ...

    @abstractmethod
    async def get_participants(
        self, participant_ids: Iterable[ParticipantId]
    ) -> dict[ParticipantId, Participant]:
        """Return the known participants among participant_ids, keyed by id."""
        ...

    @abstractmethod
    async def get_or_create_participant(
        self, name: str, email: str, role: Role
    ) -> tuple[Participant, bool]:
        """Return (participant, created). An existing email is never recreated."""
        ...

    @abstractmethod
    async def save(
        self,
        *,
        classroom: Classroom | None = None,
        session: ClassSession | None = None,
    ) -> None:
        """Persist the given aggregates and their new event log entries atomically.

        Raises:
            DuplicateParticipantError: If a participant would be a current
                member of the same classroom or session twice.
            StorageError: If the underlying storage fails.
        """
        ...
