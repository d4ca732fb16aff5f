"""Composition root: builds services over the configured store.

Services are cheap, stateless objects; each caller gets its own instance
instead of sharing a process-wide singleton.
"""

from classrooms.services import ClassroomLifecycleService, ClassroomReportService
from classrooms.stores.django_store import DjangoClassroomStore
from classrooms.stores.interfaces import ClassroomStore


def get_store() -> ClassroomStore:
    return DjangoClassroomStore()


def get_lifecycle_service(store: ClassroomStore | None = None) -> ClassroomLifecycleService:
    return ClassroomLifecycleService(store or get_store())


def get_report_service(store: ClassroomStore | None = None) -> ClassroomReportService:
    return ClassroomReportService(store or get_store())
