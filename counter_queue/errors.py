"""Shared error types and the error envelope.

Request errors are raised by the queue logic and turned into an
`ErrorResponse` for the client that sent the request. They never reach the
broadcast topic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ErrorResponse:
    code: str
    message: str

    def to_message(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class QueueError(Exception):
    """Base class for recoverable, request-scoped failures."""

    code = "queue_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(self.code, self.message)


class InvalidCategory(QueueError):
    code = "invalid_category"


class EmptyQueue(QueueError):
    code = "empty_queue"


class NoActiveTicket(QueueError):
    code = "no_active_ticket"


class MalformedRequest(Exception):
    """Payload could not be interpreted. Logged and dropped, never answered."""
