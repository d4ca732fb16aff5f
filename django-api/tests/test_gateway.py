"""Tests for the realtime ClassroomGateway.

Sockets are stand-ins that record every JSON frame sent to them.
Run with: pytest tests/test_gateway.py -v
"""

import pytest
from asgiref.sync import async_to_sync

from classrooms.domain import Role
from classrooms.realtime import ClassroomGateway, Connection
from classrooms.realtime.gateway import room_group

TINA = {"name": "Tina", "email": "tina@example.com", "role": "teacher"}
BOB = {"name": "Bob", "email": "bob@example.com", "role": "student"}
CY = {"name": "Cy", "email": "cy@example.com", "role": "student"}


class FakeSocket:
    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]

    def last(self, event: str):
        return [frame["data"] for frame in self.sent if frame["event"] == event][-1]


class BrokenSocket:
    async def send_json(self, data):
        raise ConnectionResetError("socket closed")


@pytest.fixture
def gateway(service) -> ClassroomGateway:
    return ClassroomGateway(service)


def connect(gateway: ClassroomGateway, socket=None) -> Connection:
    return gateway.open(socket or FakeSocket())


def act(gateway: ClassroomGateway, conn: Connection, action: str, **fields) -> None:
    async_to_sync(gateway.handle)(conn, {"action": action, **fields})


def members(gateway: ClassroomGateway, room_id: str) -> set[Connection]:
    return async_to_sync(gateway.connections.members)(room_group(room_id))


@pytest.fixture
def teacher_conn(gateway, room_id) -> Connection:
    conn = connect(gateway)
    act(gateway, conn, "join-classroom", room_id=room_id, participant=TINA)
    return conn


@pytest.fixture
def running(gateway, room_id, teacher_conn) -> str:
    act(gateway, teacher_conn, "start-class")
    return teacher_conn.session_id


class TestJoinClassroom:
    """Tests for the join-classroom action"""

    def test_join_binds_connection_and_confirms(self, gateway, room_id, teacher_conn):
        socket = teacher_conn.websocket

        assert socket.events() == ["classroom-updated", "join-success"]
        assert teacher_conn.room_id == room_id
        assert teacher_conn.role is Role.TEACHER
        success = socket.last("join-success")
        assert success["message"] == "Successfully joined classroom"
        assert success["participant"]["id"] == teacher_conn.user_id
        assert members(gateway, room_id) == {teacher_conn}

    def test_room_sees_new_member(self, gateway, room_id, teacher_conn):
        student = connect(gateway)

        act(gateway, student, "join-classroom", room_id=room_id, participant=BOB)

        update = teacher_conn.websocket.last("classroom-updated")
        assert [p["name"] for p in update["student_participants"]] == ["Bob"]

    def test_duplicate_join_reports_error(self, gateway, room_id, teacher_conn):
        again = connect(gateway)

        act(gateway, again, "join-classroom", room_id=room_id, participant=TINA)

        assert again.websocket.sent == [
            {"event": "error", "data": {"message": "Participant already in classroom"}}
        ]
        assert again.room_id is None

    def test_unknown_room_reports_error(self, gateway):
        conn = connect(gateway)

        act(gateway, conn, "join-classroom", room_id="not-a-uuid", participant=BOB)

        assert conn.websocket.last("error") == {"message": "Invalid classroom ID format"}

    @pytest.mark.parametrize(
        "participant, field",
        [
            ({"name": "Bob", "email": 5, "role": "student"}, "email"),
            ({"name": {"first": "Bob"}, "email": "bob@example.com", "role": "student"}, "name"),
            ({"name": "Bob", "email": "bob@example.com", "role": "principal"}, "role"),
        ],
    )
    def test_malformed_participant_reports_error(
        self, gateway, room_id, teacher_conn, participant, field
    ):
        conn = connect(gateway)

        act(gateway, conn, "join-classroom", room_id=room_id, participant=participant)

        assert conn.websocket.sent == [
            {"event": "error", "data": {"message": f"Invalid participant: {field}"}}
        ]
        assert conn.room_id is None
        assert members(gateway, room_id) == {teacher_conn}

    def test_missing_participant_reports_error(self, gateway, room_id):
        conn = connect(gateway)

        act(gateway, conn, "join-classroom", room_id=room_id)

        assert conn.websocket.last("error")["message"].startswith("Invalid participant")
        assert conn.user_id is None

    def test_joining_another_room_moves_connection(self, gateway, service, room_id):
        other_room = async_to_sync(service.create)("Other").data["room_id"]
        conn = connect(gateway)
        act(gateway, conn, "join-classroom", room_id=room_id, participant=BOB)

        act(gateway, conn, "join-classroom", room_id=other_room, participant=BOB)

        assert conn.room_id == other_room
        assert conn not in members(gateway, room_id)
        assert members(gateway, other_room) == {conn}

    def test_moving_rooms_leaves_the_running_session(
        self, gateway, service, room_id, teacher_conn, running
    ):
        other_room = async_to_sync(service.create)("Other").data["room_id"]
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=BOB)
        bob_id = student.user_id

        act(gateway, student, "join-classroom", room_id=other_room, participant=BOB)

        assert student.session_id is None
        assert members(gateway, room_id) == {teacher_conn}
        update = teacher_conn.websocket.last("class-session-updated")
        assert update["current_participants"] == [teacher_conn.user_id]
        state = async_to_sync(service.find_by_class_session)(running)
        assert bob_id not in [str(p.id) for p in state.student_participants]


class TestStartAndEnd:
    """Tests for the start-class and end-class actions"""

    def test_teacher_starts_class_for_whole_room(self, gateway, room_id, teacher_conn):
        student = connect(gateway)
        act(gateway, student, "join-classroom", room_id=room_id, participant=BOB)

        act(gateway, teacher_conn, "start-class")

        started = student.websocket.last("class-started")
        assert started["message"] == "Class Room has started"
        assert started["started_by"] == teacher_conn.user_id
        assert started["session_id"] == teacher_conn.session_id
        session = teacher_conn.websocket.last("class-session-updated")
        assert session["current_participants"] == [teacher_conn.user_id]
        assert session["is_active"] is True

    def test_student_cannot_start(self, gateway, room_id, teacher_conn):
        student = connect(gateway)
        act(gateway, student, "join-classroom", room_id=room_id, participant=BOB)

        act(gateway, student, "start-class")

        assert student.websocket.last("error") == {"message": "Only teachers can start the class"}
        assert "class-started" not in teacher_conn.websocket.events()

    def test_end_without_session_reports_error(self, gateway, teacher_conn):
        act(gateway, teacher_conn, "end-class")

        assert teacher_conn.websocket.last("error") == {"message": "No class session in progress"}

    def test_teacher_ends_class(self, gateway, room_id, teacher_conn, running):
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=BOB)

        act(gateway, teacher_conn, "end-class")

        ended = student.websocket.last("class-session-ended")
        assert ended == {
            "message": "Class session has ended",
            "ended_by": teacher_conn.user_id,
            "session_id": running,
        }
        assert student.websocket.last("class-session-updated")["current_participants"] == []
        assert student.session_id is None
        assert teacher_conn.session_id is None

    def test_student_cannot_end(self, gateway, teacher_conn, running):
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=BOB)

        act(gateway, student, "end-class")

        assert student.websocket.last("error") == {"message": "Only teachers can end the class"}
        assert "class-session-ended" not in teacher_conn.websocket.events()


class TestJoinSession:
    """Tests for the join-session action"""

    def test_student_joins_running_session(self, gateway, room_id, teacher_conn, running):
        student = connect(gateway)

        act(gateway, student, "join-session", session_id=running, participant=BOB)

        assert student.session_id == running
        assert student.room_id == room_id
        assert student.role is Role.STUDENT
        success = student.websocket.last("join-success")
        assert success["message"] == "Successfully joined class session"
        update = teacher_conn.websocket.last("class-session-updated")
        assert [p["name"] for p in update["student_participants"]] == ["Bob"]

    def test_second_join_reports_error(self, gateway, teacher_conn, running):
        first, second = connect(gateway), connect(gateway)
        act(gateway, first, "join-session", session_id=running, participant=BOB)

        act(gateway, second, "join-session", session_id=running, participant=BOB)

        assert second.websocket.last("error") == {"message": "Participant already in session"}


class TestLeaveClassroom:
    """Tests for the leave-classroom action"""

    def test_leave_without_joining_reports_error(self, gateway):
        conn = connect(gateway)

        act(gateway, conn, "leave-classroom")

        assert conn.websocket.sent == [
            {"event": "error", "data": {"message": "Not in a classroom"}}
        ]

    def test_student_leaving_session_keeps_it_running(
        self, gateway, room_id, teacher_conn, running
    ):
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=BOB)

        act(gateway, student, "leave-classroom")

        assert student.websocket.last("leave-success") == {
            "message": "Left classroom successfully"
        }
        assert student.room_id is None
        assert members(gateway, room_id) == {teacher_conn}
        update = teacher_conn.websocket.last("class-session-updated")
        assert update["current_participants"] == [teacher_conn.user_id]
        assert "class-session-ended" not in teacher_conn.websocket.events()

    def test_teacher_leaving_ends_session(self, gateway, room_id, teacher_conn, running):
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=BOB)
        teacher_id = teacher_conn.user_id

        act(gateway, teacher_conn, "leave-classroom")

        ended = student.websocket.last("class-session-ended")
        assert ended["ended_by"] == teacher_id
        assert student.session_id is None
        assert "class-session-ended" not in teacher_conn.websocket.events()
        assert teacher_conn.user_id is None


class TestConnectionHandling:
    """Tests for dispatch, disconnect and delivery"""

    def test_unknown_action_reports_error(self, gateway):
        conn = connect(gateway)

        act(gateway, conn, "dance")

        assert conn.websocket.last("error") == {"message": "Unknown action"}

    def test_disconnect_leaves_session(self, gateway, room_id, teacher_conn, running):
        student = connect(gateway)
        act(gateway, student, "join-session", session_id=running, participant=CY)

        async_to_sync(gateway.handle_disconnect)(student)

        assert student.user_id is None
        assert members(gateway, room_id) == {teacher_conn}
        update = teacher_conn.websocket.last("class-session-updated")
        assert update["current_participants"] == [teacher_conn.user_id]

    def test_disconnect_after_session_ended_is_quiet(
        self, gateway, room_id, teacher_conn, running
    ):
        act(gateway, teacher_conn, "end-class")
        teacher_conn.session_id = running
        sent_before = len(teacher_conn.websocket.sent)

        async_to_sync(gateway.handle_disconnect)(teacher_conn)

        assert len(teacher_conn.websocket.sent) == sent_before
        assert teacher_conn.room_id is None
        assert members(gateway, room_id) == set()

    def test_broken_socket_is_dropped_from_room(self, gateway, room_id, teacher_conn):
        broken = connect(gateway, BrokenSocket())
        broken.bind("someone", room_id, Role.STUDENT)
        async_to_sync(gateway.connections.add)(room_group(room_id), broken)
        student = connect(gateway)

        act(gateway, student, "join-classroom", room_id=room_id, participant=BOB)

        assert members(gateway, room_id) == {teacher_conn, student}
        assert teacher_conn.websocket.last("classroom-updated")
