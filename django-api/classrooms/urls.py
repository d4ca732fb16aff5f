from django.urls import path

from classrooms.handlers import (
    ClassroomCreateView,
    ClassroomDetailView,
    ClassroomParticipantsView,
    ClassroomReportView,
    SessionDetailView,
    SessionListView,
    SessionParticipantsView,
)

urlpatterns = [
    path("classrooms", ClassroomCreateView.as_view(), name="classroom-create"),
    path(
        "classrooms/<str:classroom_id>",
        ClassroomDetailView.as_view(),
        name="classroom-detail",
    ),
    path(
        "classrooms/<str:classroom_id>/participants",
        ClassroomParticipantsView.as_view(),
        name="classroom-participants",
    ),
    path(
        "classrooms/<str:classroom_id>/report",
        ClassroomReportView.as_view(),
        name="classroom-report",
    ),
    path("sessions", SessionListView.as_view(), name="session-list"),
    path("sessions/<str:session_id>", SessionDetailView.as_view(), name="session-detail"),
    path(
        "sessions/<str:session_id>/participants",
        SessionParticipantsView.as_view(),
        name="session-participants",
    ),
]
