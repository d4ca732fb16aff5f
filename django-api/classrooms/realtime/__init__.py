from classrooms.realtime.connections import Connection, ConnectionManager
from classrooms.realtime.gateway import ClassroomGateway

__all__ = ["ClassroomGateway", "Connection", "ConnectionManager"]
