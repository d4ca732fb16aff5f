"""Channels websocket consumer that feeds client frames into the gateway.

Every socket in the process shares one gateway, so room broadcasts reach all
connections held by this server. Fan-out across processes is not provided.
"""

import functools
import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from classrooms.dependencies import get_lifecycle_service
from classrooms.realtime.connections import Connection
from classrooms.realtime.gateway import ClassroomGateway

logger = logging.getLogger(__name__)


@functools.cache
def get_gateway() -> ClassroomGateway:
    return ClassroomGateway(get_lifecycle_service())


class ClassroomConsumer(AsyncJsonWebsocketConsumer):
    """Handler for ws/classrooms"""

    gateway: ClassroomGateway
    connection: Connection

    async def connect(self):
        self.gateway = get_gateway()
        self.connection = self.gateway.open(self)
        await self.accept()

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        try:
            content = await self.decode_json(text_data)
        except (TypeError, ValueError):
            logger.warning("Unreadable frame from %s", self.connection.connection_id)
            await self.send_json({"event": "error", "data": {"message": "Malformed message"}})
            return
        await self.gateway.handle(self.connection, content)

    async def disconnect(self, code):
        await self.gateway.handle_disconnect(self.connection)
