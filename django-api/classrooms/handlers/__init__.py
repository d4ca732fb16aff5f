from classrooms.handlers.views import (
    ClassroomCreateView,
    ClassroomDetailView,
    ClassroomParticipantsView,
    ClassroomReportView,
    SessionDetailView,
    SessionListView,
    SessionParticipantsView,
)

__all__ = [
    "ClassroomCreateView",
    "ClassroomDetailView",
    "ClassroomParticipantsView",
    "ClassroomReportView",
    "SessionDetailView",
    "SessionListView",
    "SessionParticipantsView",
]
