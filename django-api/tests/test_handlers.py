"""Integration tests for the classroom HTTP API.

Run with: pytest tests/test_handlers.py -v
"""

import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient

from classrooms.dependencies import get_lifecycle_service

MISSING = "00000000-0000-4000-8000-000000000000"

TINA = {"name": "Tina", "email": "tina@example.com", "role": "teacher"}
BOB = {"name": "Bob", "email": "bob@example.com", "role": "student"}


def create_room(client: APIClient, name: str = "Algebra I") -> str:
    response = client.post("/api/classrooms", {"name": name}, format="json")
    return response.json()["data"]["room_id"]


def join(client: APIClient, room_id: str, payload: dict):
    return client.post(f"/api/classrooms/{room_id}/participants", payload, format="json")


def start_session(client: APIClient, room_id: str) -> str:
    teacher_id = join(client, room_id, TINA).json()["id"]
    session = async_to_sync(get_lifecycle_service().start_class)(room_id, teacher_id)
    return str(session.id)


@pytest.mark.django_db
class TestClassroomCreate:
    """Tests for POST /api/classrooms"""

    def test_create_returns_room_id(self, api_client: APIClient):
        """Given a name, returns 201 with the new room id."""
        response = api_client.post("/api/classrooms", {"name": "Algebra I"}, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Class room created"
        assert body["data"]["room_id"]

    def test_create_requires_name(self, api_client: APIClient):
        """Given no name, returns 400."""
        response = api_client.post("/api/classrooms", {}, format="json")

        assert response.status_code == 400


@pytest.mark.django_db
class TestClassroomDetail:
    """Tests for GET /api/classrooms/{id}"""

    def test_detail_expands_participants(self, api_client: APIClient):
        """Given members, returns them split by role."""
        room_id = create_room(api_client)
        join(api_client, room_id, TINA)
        join(api_client, room_id, BOB)

        response = api_client.get(f"/api/classrooms/{room_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == room_id
        assert body["is_active"] is True
        assert [p["name"] for p in body["teacher_participants"]] == ["Tina"]
        assert [p["email"] for p in body["student_participants"]] == ["bob@example.com"]

    def test_detail_not_found(self, api_client: APIClient):
        """Given classroom does not exist, returns 404."""
        response = api_client.get(f"/api/classrooms/{MISSING}")

        assert response.status_code == 404
        assert response.json()["code"] == "CLASSROOM_NOT_FOUND"

    def test_detail_invalid_id_format(self, api_client: APIClient):
        """Given invalid UUID, returns 400."""
        response = api_client.get("/api/classrooms/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"


@pytest.mark.django_db
class TestClassroomJoin:
    """Tests for POST /api/classrooms/{id}/participants"""

    def test_join_returns_participant(self, api_client: APIClient):
        """Given a new participant, returns 201 with the stored record."""
        room_id = create_room(api_client)

        response = join(api_client, room_id, BOB)

        assert response.status_code == 201
        body = response.json()
        assert body["id"]
        assert body["role"] == "student"

    def test_join_twice_conflicts(self, api_client: APIClient):
        """Given participant already in the room, returns 409."""
        room_id = create_room(api_client)
        join(api_client, room_id, BOB)

        response = join(api_client, room_id, BOB)

        assert response.status_code == 409
        assert response.json() == {
            "code": "DUPLICATE_PARTICIPANT",
            "message": "Participant already in classroom",
        }

    def test_join_rejects_unknown_role(self, api_client: APIClient):
        """Given an unknown role, returns 400."""
        room_id = create_room(api_client)

        response = join(api_client, room_id, {**BOB, "role": "admin"})

        assert response.status_code == 400

    def test_join_unknown_room(self, api_client: APIClient):
        """Given classroom does not exist, returns 404."""
        response = join(api_client, MISSING, BOB)

        assert response.status_code == 404


@pytest.mark.django_db
class TestClassroomReport:
    """Tests for GET /api/classrooms/{id}/report"""

    def test_report_not_found(self, api_client: APIClient):
        """Given classroom does not exist, returns 404 with a message only."""
        response = api_client.get(f"/api/classrooms/{MISSING}/report")

        assert response.status_code == 404
        assert response.json() == {"message": "Class room not found"}

    def test_report_lists_events_and_sessions(self, api_client: APIClient):
        """Given activity, returns the timeline with names and roles."""
        room_id = create_room(api_client)
        start_session(api_client, room_id)

        response = api_client.get(f"/api/classrooms/{room_id}/report")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Class room report"
        report = body["data"]["classroom"]
        assert [(e["type"], e["role"]) for e in report["event_log"]] == [
            ("JOIN", "teacher"),
            ("START", "teacher"),
        ]
        assert len(report["sessions"]) == 1
        assert report["sessions"][0]["ended_at"] is None


@pytest.mark.django_db
class TestSessions:
    """Tests for /api/sessions endpoints"""

    def test_list_active_sessions(self, api_client: APIClient):
        """Given a running session, lists it with its classroom."""
        room_id = create_room(api_client)
        session_id = start_session(api_client, room_id)
        create_room(api_client, "Empty")

        response = api_client.get("/api/sessions")

        assert response.status_code == 200
        [item] = response.json()
        assert item["session"]["id"] == session_id
        assert item["session"]["is_active"] is True
        assert item["classroom"]["id"] == room_id

    def test_list_filtered_by_classroom(self, api_client: APIClient):
        """Given a classroom filter, lists only its sessions."""
        room_id = create_room(api_client)
        start_session(api_client, room_id)
        other = create_room(api_client, "Other")

        response = api_client.get("/api/sessions", {"classroom_id": other})

        assert response.status_code == 200
        assert response.json() == []

    def test_session_detail(self, api_client: APIClient):
        """Given a session, returns participants partitioned by role."""
        room_id = create_room(api_client)
        session_id = start_session(api_client, room_id)

        response = api_client.get(f"/api/sessions/{session_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["classroom_name"] == "Algebra I"
        assert [p["name"] for p in body["teacher_participants"]] == ["Tina"]
        assert body["student_participants"] == []

    def test_session_detail_not_found(self, api_client: APIClient):
        """Given session does not exist, returns 404."""
        response = api_client.get(f"/api/sessions/{MISSING}")

        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    def test_join_session(self, api_client: APIClient):
        """Given a running session, a student joins it and the room."""
        room_id = create_room(api_client)
        session_id = start_session(api_client, room_id)

        response = api_client.post(
            f"/api/sessions/{session_id}/participants", BOB, format="json"
        )

        assert response.status_code == 201
        assert [p["name"] for p in response.json()["student_participants"]] == ["Bob"]
        room = api_client.get(f"/api/classrooms/{room_id}").json()
        assert [p["name"] for p in room["student_participants"]] == ["Bob"]

    def test_join_session_twice_conflicts(self, api_client: APIClient):
        """Given participant already in the session, returns 409."""
        room_id = create_room(api_client)
        session_id = start_session(api_client, room_id)
        url = f"/api/sessions/{session_id}/participants"
        api_client.post(url, BOB, format="json")

        response = api_client.post(url, BOB, format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_IN_SESSION"

    def test_join_ended_session_conflicts(self, api_client: APIClient):
        """Given the session has ended, returns 409."""
        room_id = create_room(api_client)
        session_id = start_session(api_client, room_id)
        async_to_sync(get_lifecycle_service().end_class)(session_id)

        response = api_client.post(
            f"/api/sessions/{session_id}/participants", BOB, format="json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SESSION_ENDED"
