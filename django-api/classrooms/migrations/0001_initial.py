import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Participant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("role", models.CharField(choices=[("teacher", "Teacher"), ("student", "Student")], max_length=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="Classroom",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("room_code", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="ClassSession",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("started_at", models.DateTimeField()),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                ("classroom", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sessions", to="classrooms.classroom")),
            ],
            options={
                "ordering": ["started_at"],
                "indexes": [models.Index(fields=["classroom", "ended_at"], name="session_room_ended_idx")],
            },
        ),
        migrations.CreateModel(
            name="ClassroomMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("teacher", "Teacher"), ("student", "Student")], max_length=16)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("classroom", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="classrooms.classroom")),
                ("participant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="classrooms.participant")),
            ],
            options={
                "ordering": ["pk"],
                "constraints": [models.UniqueConstraint(fields=("classroom", "participant"), name="unique_classroom_member")],
            },
        ),
        migrations.CreateModel(
            name="ClassroomParticipantHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recorded_at", models.DateTimeField(auto_now_add=True)),
                ("classroom", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="participant_history", to="classrooms.classroom")),
                ("participant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="classrooms.participant")),
            ],
            options={
                "ordering": ["pk"],
            },
        ),
        migrations.CreateModel(
            name="SessionMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("participant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="classrooms.participant")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="classrooms.classsession")),
            ],
            options={
                "ordering": ["pk"],
                "constraints": [models.UniqueConstraint(fields=("session", "participant"), name="unique_session_member")],
            },
        ),
        migrations.CreateModel(
            name="SessionParticipantHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recorded_at", models.DateTimeField(auto_now_add=True)),
                ("participant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="classrooms.participant")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="participant_history", to="classrooms.classsession")),
            ],
            options={
                "ordering": ["pk"],
            },
        ),
        migrations.CreateModel(
            name="EventLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.UUIDField(editable=False, unique=True)),
                ("type", models.CharField(choices=[("JOIN", "Join"), ("LEAVE", "Leave"), ("START", "Start"), ("END", "End")], max_length=16)),
                ("timestamp", models.DateTimeField()),
                ("classroom", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="event_log", to="classrooms.classroom")),
                ("participant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="classrooms.participant")),
                ("session", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="event_log", to="classrooms.classsession")),
            ],
            options={
                "ordering": ["pk"],
                "indexes": [
                    models.Index(fields=["classroom", "id"], name="eventlog_classroom_idx"),
                    models.Index(fields=["session", "id"], name="eventlog_session_idx"),
                ],
            },
        ),
    ]
