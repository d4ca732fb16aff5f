"""Realtime gateway.

Receives client actions from a socket, runs them through the lifecycle
service and fans the resulting state out to every connection in the room.
Transport-agnostic: a socket is anything with an async send_json();
classrooms.realtime.consumers mounts the gateway on a Channels websocket.
Delivery is best effort at the time of the call.
"""

import logging
from typing import Any
from uuid import uuid4

from classrooms.domain import ClassroomId, ClassSession, ParticipantInput, Role
from classrooms.domain.errors import DomainError, InvalidParticipantError
from classrooms.handlers.serializers import (
    ClassroomStateSerializer,
    ClassSessionSerializer,
    ParticipantInputSerializer,
    ParticipantSerializer,
    SessionStateSerializer,
)
from classrooms.realtime.connections import Connection, ConnectionManager, JsonSocket
from classrooms.services.lifecycle_service import ClassroomLifecycleService

logger = logging.getLogger(__name__)


def room_group(room_id: str) -> str:
    return f"room:{room_id}"


def read_participant(payload: Any) -> ParticipantInput:
    """Validate the participant block of a join message."""
    serializer = ParticipantInputSerializer(data=payload)
    if not serializer.is_valid():
        raise InvalidParticipantError(", ".join(sorted(serializer.errors)))
    return serializer.to_domain()


class ClassroomGateway:
    """Dispatches socket actions to the lifecycle service and broadcasts results."""

    def __init__(
        self,
        service: ClassroomLifecycleService,
        connections: ConnectionManager | None = None,
    ) -> None:
        self._service = service
        self._connections = connections or ConnectionManager()
        self._handlers = {
            "join-classroom": self.handle_join_classroom,
            "join-session": self.handle_join_session,
            "leave-classroom": self.handle_leave_classroom,
            "start-class": self.handle_start_class,
            "end-class": self.handle_end_class,
        }

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    def open(self, websocket: JsonSocket) -> Connection:
        conn = Connection(websocket, uuid4().hex)
        logger.info("Socket connected: %s", conn.connection_id)
        return conn

    async def handle(self, conn: Connection, message: Any) -> None:
        """Run one client message; failures go back to the sender as an error event."""
        action = message.get("action") if isinstance(message, dict) else None
        handler = self._handlers.get(action)
        if handler is None:
            await self._emit_error(conn, "Unknown action")
            return
        try:
            await handler(conn, message)
        except DomainError as exc:
            logger.warning(
                "%s failed for %s (room=%s session=%s user=%s): %s",
                action,
                conn.connection_id,
                conn.room_id,
                conn.session_id,
                conn.user_id,
                exc,
            )
            await self._emit_error(conn, exc.message)

    async def handle_join_classroom(self, conn: Connection, data: dict) -> None:
        room_id = data.get("room_id")
        joining = read_participant(data.get("participant"))
        member = await self._service.join_classroom(room_id, joining)

        room = str(ClassroomId.from_string(str(room_id)))
        await self._release(conn, keep_room=room)
        conn.bind(str(member.id), room, joining.role)
        await self._connections.add(room_group(conn.room_id), conn)

        state = await self._service.find_by_classroom_id(conn.room_id)
        payload = ClassroomStateSerializer(state).data
        await self._connections.broadcast(room_group(conn.room_id), "classroom-updated", payload)
        await conn.send(
            "join-success",
            {
                "message": "Successfully joined classroom",
                "classroom": payload,
                "participant": ParticipantSerializer(member).data,
            },
        )
        logger.info("%s joined classroom %s", member.name, conn.room_id)

    async def handle_join_session(self, conn: Connection, data: dict) -> None:
        joining = read_participant(data.get("participant"))
        session = await self._service.join_session_via_session_list(
            data.get("session_id"), joining
        )
        member = await self._service.find_participant_by_email(joining)

        await self._release(conn, keep_room=str(session.classroom_id))
        conn.bind(str(member.id), str(session.classroom_id), joining.role)
        conn.session_id = str(session.id)
        await self._connections.add(room_group(conn.room_id), conn)

        state = await self._service.find_by_class_session(conn.session_id)
        payload = SessionStateSerializer(state).data
        await self._connections.broadcast(
            room_group(conn.room_id), "class-session-updated", payload
        )
        await conn.send(
            "join-success",
            {
                "message": "Successfully joined class session",
                "session": payload,
                "participant": ParticipantSerializer(member).data,
            },
        )
        logger.info("%s joined session %s", member.name, conn.session_id)

    async def handle_leave_classroom(self, conn: Connection, data: dict | None = None) -> None:
        if not conn.room_id or not conn.user_id:
            await self._emit_error(conn, "Not in a classroom")
            return
        group = room_group(conn.room_id)
        await self._connections.discard(group, conn)
        if conn.session_id:
            session = await self._service.leave_class_session(
                conn.session_id, conn.user_id, conn.role
            )
            await self._publish_session(group, session, by=conn.user_id)
            logger.info("%s left classroom session %s", conn.user_id, conn.session_id)
        await conn.send("leave-success", {"message": "Left classroom successfully"})
        conn.clear()

    async def handle_start_class(self, conn: Connection, data: dict | None = None) -> None:
        if not self._is_teacher(conn):
            await self._emit_error(conn, "Only teachers can start the class")
            return
        session = await self._service.start_class(conn.room_id, conn.user_id)
        conn.session_id = str(session.id)

        group = room_group(conn.room_id)
        await self._connections.broadcast(
            group, "class-session-updated", ClassSessionSerializer(session).data
        )
        await self._connections.broadcast(
            group,
            "class-started",
            {
                "message": "Class Room has started",
                "started_by": conn.user_id,
                "session_id": conn.session_id,
            },
        )
        logger.info("Class in room %s started by %s", conn.room_id, conn.user_id)

    async def handle_end_class(self, conn: Connection, data: dict | None = None) -> None:
        if not self._is_teacher(conn):
            await self._emit_error(conn, "Only teachers can end the class")
            return
        if not conn.session_id:
            await self._emit_error(conn, "No class session in progress")
            return
        session = await self._service.end_class(conn.session_id, ended_by=conn.user_id)
        await self._publish_session(room_group(conn.room_id), session, by=conn.user_id)
        logger.info("Class session ended in %s by %s", conn.room_id, conn.user_id)

    async def handle_disconnect(self, conn: Connection) -> None:
        """Best-effort cleanup; failures are logged, never sent to the departed client."""
        logger.info("Socket disconnected: %s", conn.connection_id)
        if conn.room_id:
            await self._connections.discard(room_group(conn.room_id), conn)
        if conn.room_id and conn.user_id and conn.session_id:
            try:
                session = await self._service.leave_class_session(
                    conn.session_id, conn.user_id, conn.role
                )
            except DomainError as exc:
                logger.error(
                    "Auto-leave failed for %s in session %s: %s",
                    conn.user_id,
                    conn.session_id,
                    exc,
                )
            else:
                await self._publish_session(room_group(conn.room_id), session, by=conn.user_id)
                logger.info("%s auto-left classroom %s due to disconnect", conn.user_id, conn.room_id)
        conn.clear()

    async def _release(self, conn: Connection, keep_room: str) -> None:
        """Drop the session and room a connection held before it binds to keep_room."""
        if conn.user_id and conn.session_id:
            try:
                session = await self._service.leave_class_session(
                    conn.session_id, conn.user_id, conn.role
                )
            except DomainError as exc:
                logger.warning(
                    "Leaving session %s before rejoin failed for %s: %s",
                    conn.session_id,
                    conn.user_id,
                    exc,
                )
            else:
                await self._publish_session(room_group(conn.room_id), session, by=conn.user_id)
            conn.session_id = None
        if conn.room_id and conn.room_id != keep_room:
            await self._connections.discard(room_group(conn.room_id), conn)
            logger.info("%s moved from room %s to %s", conn.connection_id, conn.room_id, keep_room)

    async def _publish_session(self, group: str, session: ClassSession, by: str) -> None:
        await self._connections.broadcast(
            group, "class-session-updated", ClassSessionSerializer(session).data
        )
        if session.is_active:
            return
        ended = str(session.id)
        for member in await self._connections.members(group):
            if member.session_id == ended:
                member.session_id = None
        await self._connections.broadcast(
            group,
            "class-session-ended",
            {"message": "Class session has ended", "ended_by": by, "session_id": ended},
        )

    @staticmethod
    def _is_teacher(conn: Connection) -> bool:
        return bool(conn.room_id and conn.user_id and conn.role == Role.TEACHER)

    @staticmethod
    async def _emit_error(conn: Connection, message: str) -> None:
        await conn.send("error", {"message": message})
