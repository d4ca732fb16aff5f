from classrooms.services.event_log import EventLogRecorder
from classrooms.services.lifecycle_service import ClassroomLifecycleService
from classrooms.services.report_service import ClassroomReportService
from classrooms.services.responses import ServiceResponse

__all__ = [
    "ClassroomLifecycleService",
    "ClassroomReportService",
    "EventLogRecorder",
    "ServiceResponse",
]
