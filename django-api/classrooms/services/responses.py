"""Tagged results returned by the read paths and by room creation."""

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

CLASSROOM_CREATED = "Class room created"
CLASSROOM_NOT_FOUND = "Class room not found"
CLASSROOM_REPORT = "Class room report"


@dataclass(frozen=True)
class ServiceResponse:
    status_code: HTTPStatus
    data: dict[str, Any] | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code < HTTPStatus.BAD_REQUEST
