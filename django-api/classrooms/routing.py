from django.urls import path

from classrooms.realtime.consumers import ClassroomConsumer

websocket_urlpatterns = [
    path("ws/classrooms", ClassroomConsumer.as_asgi(), name="classroom-socket"),
]
