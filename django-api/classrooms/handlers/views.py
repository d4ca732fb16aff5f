"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from classrooms.dependencies import get_lifecycle_service, get_report_service
from classrooms.domain.errors import DomainError, ErrorCode
from classrooms.handlers.serializers import (
    ActiveSessionSerializer,
    ClassroomCreateSerializer,
    ClassroomStateSerializer,
    ParticipantInputSerializer,
    ParticipantSerializer,
    SessionStateSerializer,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.CLASSROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PARTICIPANT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CLASSROOM_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.DUPLICATE_PARTICIPANT: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_IN_SESSION: status.HTTP_409_CONFLICT,
    ErrorCode.SESSION_ENDED: status.HTTP_409_CONFLICT,
    ErrorCode.MISSING_ASSOCIATION: status.HTTP_409_CONFLICT,
    ErrorCode.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class DomainAPIView(APIView):
    """APIView that renders domain errors as {code, message} responses."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            logger.info("%s %s rejected: %s", self.request.method, self.request.path, exc)
            return Response(
                {"code": exc.code.value, "message": exc.message},
                status=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
            )
        return super().handle_exception(exc)


class ClassroomCreateView(DomainAPIView):
    """Handler for POST /api/classrooms"""

    def post(self, request: Request) -> Response:
        serializer = ClassroomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = async_to_sync(get_lifecycle_service().create)(serializer.validated_data["name"])
        return Response({"data": result.data, "message": result.message}, status=result.status_code)


class ClassroomDetailView(DomainAPIView):
    """Handler for GET /api/classrooms/{classroom_id}"""

    def get(self, request: Request, classroom_id: str) -> Response:
        state = async_to_sync(get_lifecycle_service().find_by_classroom_id)(classroom_id)
        return Response(ClassroomStateSerializer(state).data)


class ClassroomParticipantsView(DomainAPIView):
    """Handler for POST /api/classrooms/{classroom_id}/participants"""

    def post(self, request: Request, classroom_id: str) -> Response:
        serializer = ParticipantInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        participant = async_to_sync(get_lifecycle_service().join_classroom)(
            classroom_id, serializer.to_domain()
        )
        return Response(ParticipantSerializer(participant).data, status=status.HTTP_201_CREATED)


class ClassroomReportView(DomainAPIView):
    """Handler for GET /api/classrooms/{classroom_id}/report"""

    def get(self, request: Request, classroom_id: str) -> Response:
        result = async_to_sync(get_report_service().get_classroom_report_by_id)(classroom_id)
        if not result.ok:
            return Response({"message": result.message}, status=result.status_code)
        return Response({"data": result.data, "message": result.message}, status=result.status_code)


class SessionListView(DomainAPIView):
    """Handler for GET /api/sessions, optionally ?classroom_id=..."""

    def get(self, request: Request) -> Response:
        service = get_lifecycle_service()
        classroom_id = request.query_params.get("classroom_id")
        if classroom_id:
            sessions = async_to_sync(service.active_sessions_list_with_room_id)(classroom_id)
        else:
            sessions = async_to_sync(service.active_sessions_list)()
        return Response(ActiveSessionSerializer(sessions, many=True).data)


class SessionDetailView(DomainAPIView):
    """Handler for GET /api/sessions/{session_id}"""

    def get(self, request: Request, session_id: str) -> Response:
        state = async_to_sync(get_lifecycle_service().find_by_class_session)(session_id)
        return Response(SessionStateSerializer(state).data)


class SessionParticipantsView(DomainAPIView):
    """Handler for POST /api/sessions/{session_id}/participants"""

    def post(self, request: Request, session_id: str) -> Response:
        serializer = ParticipantInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = get_lifecycle_service()
        session = async_to_sync(service.join_session_via_session_list)(
            session_id, serializer.to_domain()
        )
        state = async_to_sync(service.find_by_class_session)(str(session.id))
        return Response(SessionStateSerializer(state).data, status=status.HTTP_201_CREATED)
