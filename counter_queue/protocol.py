"""Message type names used on the wire.

Requests (client -> server) are JSON objects on the requests topic:

    {"type": "call-next", "client_id": "...", "request_id": "...", "payload": {...}}

`request_id` is optional; the server copies it into the broadcast caused by
the request as `requestId`.

Events (server -> one client or all) carry the same `type`/`payload` shape.
"""

from __future__ import annotations

from typing import Any

# -------------------- requests --------------------

CONNECT = "connect"
GENERATE_TICKET = "generate-ticket"
CALL_NEXT = "call-next"
FINISH_SERVICE = "finish-service"
REDIRECT_TICKET = "redirect-ticket"
DISCONNECT = "disconnect"
HEARTBEAT = "attendant-heartbeat"

# -------------------- events --------------------

INITIAL_STATE = "initial-state"
TICKET_GENERATED = "ticket-generated"
TICKET_CALLED = "ticket-called"
SERVICE_FINISHED = "service-finished"
TICKET_REDIRECTED = "ticket-redirected"
SESSIONS_EXPIRED = "sessions-expired"

GENERATE_ERROR = "generate-error"
CALL_ERROR = "call-error"
FINISH_ERROR = "finish-error"
REDIRECT_ERROR = "redirect-error"

# Broadcast events that carry a fresh `allQueues` snapshot.
STATE_EVENTS = (
    INITIAL_STATE,
    TICKET_GENERATED,
    TICKET_CALLED,
    SERVICE_FINISHED,
    TICKET_REDIRECTED,
    SESSIONS_EXPIRED,
)

ERROR_EVENTS = (GENERATE_ERROR, CALL_ERROR, FINISH_ERROR, REDIRECT_ERROR)


def envelope(event: str, payload: Any) -> dict[str, Any]:
    return {"type": event, "payload": payload}


def request(request_type: str, client_id: str, payload: Any = None, request_id: str | None = None) -> dict[str, Any]:
    msg = {"type": request_type, "client_id": client_id, "payload": payload}
    if request_id is not None:
        msg["request_id"] = request_id
    return msg
