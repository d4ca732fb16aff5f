"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Current membership tables carry the uniqueness constraints; history and event
log tables are append-only and ordered by their auto-increment key.
"""

import uuid

from django.db import models


class RoleChoices(models.TextChoices):
    TEACHER = "teacher", "Teacher"
    STUDENT = "student", "Student"


class EventTypeChoices(models.TextChoices):
    JOIN = "JOIN", "Join"
    LEAVE = "LEAVE", "Leave"
    START = "START", "Start"
    END = "END", "End"


class Participant(models.Model):
    """Persistence model for participants."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=RoleChoices.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class Classroom(models.Model):
    """Persistence model for classrooms."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room_code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class ClassroomMembership(models.Model):
    """Current teacher/student membership of a classroom."""

    classroom = models.ForeignKey(
        Classroom, on_delete=models.CASCADE, related_name="memberships"
    )
    participant = models.ForeignKey(Participant, on_delete=models.PROTECT)
    role = models.CharField(max_length=16, choices=RoleChoices.choices)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["pk"]
        constraints = [
            models.UniqueConstraint(
                fields=["classroom", "participant"],
                name="unique_classroom_member",
            ),
        ]


class ClassroomParticipantHistory(models.Model):
    """Every join to a classroom, duplicates included."""

    classroom = models.ForeignKey(
        Classroom, on_delete=models.CASCADE, related_name="participant_history"
    )
    participant = models.ForeignKey(Participant, on_delete=models.PROTECT)
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["pk"]


class ClassSession(models.Model):
    """Persistence model for class sessions. Active while ended_at is null."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sessions",
    )
    started_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["started_at"]
        indexes = [
            models.Index(fields=["classroom", "ended_at"], name="session_room_ended_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.classroom_id} - {self.started_at}"


class SessionMembership(models.Model):
    """Participants currently connected to a session."""

    session = models.ForeignKey(
        ClassSession, on_delete=models.CASCADE, related_name="memberships"
    )
    participant = models.ForeignKey(Participant, on_delete=models.PROTECT)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["pk"]
        constraints = [
            models.UniqueConstraint(
                fields=["session", "participant"],
                name="unique_session_member",
            ),
        ]


class SessionParticipantHistory(models.Model):
    """Every join to a session, duplicates included."""

    session = models.ForeignKey(
        ClassSession, on_delete=models.CASCADE, related_name="participant_history"
    )
    participant = models.ForeignKey(Participant, on_delete=models.PROTECT)
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["pk"]


class EventLogEntry(models.Model):
    """Single append-only event log, indexed by classroom and by session."""

    event_id = models.UUIDField(unique=True, editable=False)
    type = models.CharField(max_length=16, choices=EventTypeChoices.choices)
    participant = models.ForeignKey(
        Participant, on_delete=models.PROTECT, null=True, blank=True
    )
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="event_log",
    )
    session = models.ForeignKey(
        ClassSession,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="event_log",
    )
    timestamp = models.DateTimeField()

    class Meta:
        ordering = ["pk"]
        indexes = [
            models.Index(fields=["classroom", "id"], name="eventlog_classroom_idx"),
            models.Index(fields=["session", "id"], name="eventlog_session_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type} @ {self.timestamp}"
