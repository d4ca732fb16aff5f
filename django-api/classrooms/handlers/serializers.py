"""Serializers for request validation and for turning domain models into payloads.

The same output serializers feed both the HTTP responses and the realtime
broadcasts.
"""

from rest_framework import serializers

from classrooms.domain import ParticipantInput, Role


class ParticipantSerializer(serializers.Serializer):
    """Serializer for Participant domain model."""

    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    role = serializers.CharField(source="role.value")


class EventLogEntrySerializer(serializers.Serializer):
    """Serializer for EventLogEntry domain model."""

    id = serializers.CharField()
    type = serializers.CharField(source="type.value")
    participant_id = serializers.CharField()
    classroom_id = serializers.CharField()
    session_id = serializers.CharField()
    timestamp = serializers.DateTimeField()


class ClassroomSerializer(serializers.Serializer):
    """Serializer for Classroom domain model."""

    id = serializers.CharField()
    room_code = serializers.CharField()
    name = serializers.CharField()
    is_active = serializers.BooleanField()
    teacher_participants = serializers.ListField(child=serializers.CharField())
    student_participants = serializers.ListField(child=serializers.CharField())
    participant_history = serializers.ListField(child=serializers.CharField())
    created_at = serializers.DateTimeField()


class ClassSessionSerializer(serializers.Serializer):
    """Serializer for ClassSession domain model."""

    id = serializers.CharField()
    classroom_id = serializers.CharField()
    started_at = serializers.DateTimeField()
    ended_at = serializers.DateTimeField()
    is_active = serializers.BooleanField()
    current_participants = serializers.ListField(child=serializers.CharField())
    participants_history = serializers.ListField(child=serializers.CharField())
    event_log = EventLogEntrySerializer(many=True)


class ClassroomStateSerializer(serializers.Serializer):
    """Classroom with expanded teacher and student lists."""

    id = serializers.CharField(source="classroom.id")
    room_code = serializers.CharField(source="classroom.room_code")
    name = serializers.CharField(source="classroom.name")
    is_active = serializers.BooleanField(source="classroom.is_active")
    teacher_participants = ParticipantSerializer(many=True)
    student_participants = ParticipantSerializer(many=True)


class SessionStateSerializer(serializers.Serializer):
    """Session with current participants partitioned by role."""

    id = serializers.CharField(source="session.id")
    classroom_id = serializers.CharField(source="session.classroom_id")
    classroom_name = serializers.CharField()
    started_at = serializers.DateTimeField(source="session.started_at")
    ended_at = serializers.DateTimeField(source="session.ended_at")
    teacher_participants = ParticipantSerializer(many=True)
    student_participants = ParticipantSerializer(many=True)


class ActiveSessionSerializer(serializers.Serializer):
    session = ClassSessionSerializer()
    classroom = ClassroomSerializer(allow_null=True)


class ClassroomCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class ParticipantInputSerializer(serializers.Serializer):
    """Validates the participant block of a join request."""

    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=[role.value for role in Role])

    def to_domain(self) -> ParticipantInput:
        return ParticipantInput(**self.validated_data)
