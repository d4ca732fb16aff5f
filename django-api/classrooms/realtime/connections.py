import asyncio
import logging
from typing import Any, Protocol

from classrooms.domain import Role

logger = logging.getLogger(__name__)


class JsonSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Connection:
    """One client socket plus the identity it acquired by joining."""

    def __init__(self, websocket: JsonSocket, connection_id: str):
        self.websocket = websocket
        self.connection_id = connection_id
        self.user_id: str | None = None
        self.room_id: str | None = None
        self.session_id: str | None = None
        self.role: Role | None = None

    def bind(self, user_id: str, room_id: str, role: Role) -> None:
        self.user_id = user_id
        self.room_id = room_id
        self.role = role

    def clear(self) -> None:
        self.user_id = None
        self.room_id = None
        self.session_id = None
        self.role = None

    async def send(self, event: str, data: Any) -> None:
        await self.websocket.send_json({"event": event, "data": data})


class ConnectionManager:
    def __init__(self):
        # group name -> set of Connection
        self.active_connections: dict[str, set[Connection]] = {}
        self._lock = asyncio.Lock()

    async def add(self, group: str, conn: Connection) -> None:
        async with self._lock:
            self.active_connections.setdefault(group, set()).add(conn)

    async def discard(self, group: str, conn: Connection) -> None:
        async with self._lock:
            if group in self.active_connections:
                self.active_connections[group].discard(conn)
                if not self.active_connections[group]:
                    del self.active_connections[group]

    async def members(self, group: str) -> set[Connection]:
        async with self._lock:
            return set(self.active_connections.get(group, ()))

    async def broadcast(
        self, group: str, event: str, data: Any, exclude: Connection | None = None
    ) -> None:
        for conn in await self.members(group):
            if conn is exclude:
                continue
            try:
                await conn.send(event, data)
            except Exception:
                # client went away mid-broadcast; drop it and keep going
                logger.warning(
                    "Dropping connection %s from %s after failed send",
                    conn.connection_id,
                    group,
                    exc_info=True,
                )
                await self.discard(group, conn)
