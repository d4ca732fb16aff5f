"""Pytest configuration and shared fixtures."""

import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient

from classrooms.domain import ParticipantInput, Role
from classrooms.services import ClassroomLifecycleService, ClassroomReportService
from classrooms.stores.memory_store import InMemoryClassroomStore


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def store() -> InMemoryClassroomStore:
    return InMemoryClassroomStore()


@pytest.fixture
def service(store) -> ClassroomLifecycleService:
    return ClassroomLifecycleService(store)


@pytest.fixture
def report_service(store) -> ClassroomReportService:
    return ClassroomReportService(store)


@pytest.fixture
def teacher() -> ParticipantInput:
    return ParticipantInput(name="Tina", email="tina@example.com", role=Role.TEACHER)


@pytest.fixture
def student() -> ParticipantInput:
    return ParticipantInput(name="Bob", email="bob@example.com", role=Role.STUDENT)


@pytest.fixture
def room_id(service) -> str:
    return async_to_sync(service.create)("Algebra I").data["room_id"]
