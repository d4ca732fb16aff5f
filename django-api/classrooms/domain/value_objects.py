"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Self
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Identifier:
    """UUID-backed identifier; subclasses never compare equal to each other."""

    value: UUID

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ClassroomId(Identifier):
    """Unique identifier for a Classroom."""


@dataclass(frozen=True)
class SessionId(Identifier):
    """Unique identifier for a ClassSession."""


@dataclass(frozen=True)
class ParticipantId(Identifier):
    """Unique identifier for a Participant."""


@dataclass(frozen=True)
class EventLogId(Identifier):
    """Unique identifier for an EventLogEntry."""


class Role(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class EventType(str, Enum):
    JOIN = "JOIN"
    LEAVE = "LEAVE"
    START = "START"
    END = "END"


@dataclass(frozen=True)
class ParticipantInput:
    """Name/email/role supplied by a client when joining."""

    name: str
    email: str
    role: Role

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("name is required")
        if not isinstance(self.email, str) or "@" not in self.email:
            raise ValueError("email must be a valid address")
        object.__setattr__(self, "email", self.email.strip().lower())
        object.__setattr__(self, "role", Role(self.role))

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        return cls(
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
        )
