from __future__ import annotations

# The Request Dispatcher is the *authoritative brain* of the system.
#
# It owns the queues, the attendant sessions and the ticket factory, applies
# each request as one atomic transition and then tells every observer about
# the new state. Errors are answered to the requester only and never change
# state.
#
# Transport lives elsewhere (`server.py`): this module is pure logic and can be
# tested with any object implementing the Broadcaster protocol.

import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from . import protocol
from .broadcaster import Broadcaster
from .categories import Category
from .errors import MalformedRequest, NoActiveTicket, QueueError
from .queue_store import QueueStore
from .sessions import AttendantSession, SessionRegistry
from .tickets import Ticket, TicketFactory, ticket_number


@dataclass
class CounterState:
    """Everything the server knows. Memory only, reset on restart."""

    queues: QueueStore = field(default_factory=QueueStore)
    sessions: SessionRegistry = field(default_factory=SessionRegistry)
    factory: TicketFactory = field(default_factory=TicketFactory)


class RequestDispatcher:
    """Validates requests, mutates CounterState and broadcasts the result.

    Every public operation runs under a single lock that also covers the
    broadcast, so events leave in the same order the mutations happened and
    each `allQueues` snapshot is the state right after its own mutation.
    """

    def __init__(
        self,
        *,
        broadcaster: Broadcaster,
        state: CounterState | None = None,
        log: Callable[[str], None] = print,
    ) -> None:
        self._lock = threading.Lock()
        self.broadcaster = broadcaster
        self.state = state or CounterState()
        self._log = log

        self._routes: dict[str, Callable[[str, Any, str | None], None]] = {
            protocol.CONNECT: self._on_connect,
            protocol.GENERATE_TICKET: self._on_generate_ticket,
            protocol.CALL_NEXT: self._on_call_next,
            protocol.FINISH_SERVICE: self._on_finish_service,
            protocol.REDIRECT_TICKET: self._on_redirect_ticket,
            protocol.DISCONNECT: self._on_disconnect,
            protocol.HEARTBEAT: self._on_heartbeat,
        }

    # -------------------- raw requests --------------------

    def handle(self, connection_id: str, request_type: Any, payload: Any, request_id: str | None = None) -> None:
        """Route one inbound request. Unknown or malformed requests are dropped.

        `request_id`, when the client sent one, is echoed in the resulting
        broadcast as `requestId` so the requester can recognise its own outcome.
        """
        route = self._routes.get(request_type) if isinstance(request_type, str) else None
        if route is None:
            self._log(f"[server] ignoring unknown request type {request_type!r} from {connection_id}")
            return
        try:
            route(connection_id, payload, request_id)
        except MalformedRequest as e:
            self._log(f"[server] ignoring malformed {request_type} from {connection_id}: {e}")

    def _on_connect(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        self.connect(connection_id)

    def _on_disconnect(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        self.disconnect(connection_id)

    def _on_heartbeat(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        self.heartbeat(_require_str(_require_dict(payload), "attendantId"))

    def _on_generate_ticket(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        self.generate_ticket(connection_id, payload, request_id=request_id)

    def _on_call_next(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        body = _require_dict(payload)
        self.call_next(
            connection_id,
            body.get("category"),
            counter_id=_require_str(body, "counterId"),
            attendant_id=_require_str(body, "attendantId"),
            request_id=request_id,
        )

    # A finish/redirect that names no attendant or no ticket cannot match a
    # held ticket: it is answered with NoActiveTicket, not dropped.

    def _on_finish_service(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        body = payload if isinstance(payload, dict) else {}
        self.finish_service(
            connection_id,
            ticket_number(body.get("ticket")),
            attendant_id=_optional_str(body, "attendantId"),
            request_id=request_id,
        )

    def _on_redirect_ticket(self, connection_id: str, payload: Any, request_id: str | None) -> None:
        body = payload if isinstance(payload, dict) else {}
        self.redirect_ticket(
            connection_id,
            ticket_number(body.get("ticket")),
            body.get("targetCategory"),
            attendant_id=_optional_str(body, "attendantId"),
            request_id=request_id,
        )

    # -------------------- connections --------------------

    def connect(self, connection_id: str) -> None:
        """Send the current queues to a newly connected client."""
        with self._lock:
            self.broadcaster.send_to(
                connection_id,
                protocol.INITIAL_STATE,
                {"allQueues": self.state.queues.snapshot()},
            )
        self._log(f"[server] client connected: {connection_id}")

    def disconnect(self, connection_id: str) -> None:
        # Sessions are keyed by attendant, not by connection: nothing to undo.
        self._log(f"[server] client disconnected: {connection_id}")

    def heartbeat(self, attendant_id: str) -> bool:
        """Keep an attendant's session alive while they serve a long ticket."""
        with self._lock:
            known = self.state.sessions.touch(attendant_id)
        if not known:
            self._log(f"[server] heartbeat from unknown attendant {attendant_id}")
        return known

    # -------------------- ticket lifecycle --------------------

    def generate_ticket(self, connection_id: str, category: Any, *, request_id: str | None = None) -> Ticket | None:
        with self._lock:
            st = self.state
            try:
                cat = Category.parse(category)
                ticket = st.factory.generate(cat, waiting=st.queues.waiting(cat))
            except QueueError as e:
                self._reject(connection_id, protocol.GENERATE_ERROR, e)
                return None

            st.queues.enqueue(cat, ticket)
            self.broadcaster.broadcast_all(
                protocol.TICKET_GENERATED,
                _tagged({"ticket": ticket.to_message(), "allQueues": st.queues.snapshot()}, request_id),
            )
        self._log(f"[server] ticket generated: {ticket.number} ({cat.label})")
        return ticket

    def call_next(
        self,
        connection_id: str,
        category: Any,
        *,
        counter_id: str,
        attendant_id: str,
        request_id: str | None = None,
    ) -> Ticket | None:
        with self._lock:
            st = self.state
            try:
                cat = Category.parse(category)
                ticket = st.queues.dequeue_front(cat)
            except QueueError as e:
                self._reject(connection_id, protocol.CALL_ERROR, e)
                return None

            st.sessions.bind(attendant_id, counter_id, ticket, called_from=cat)
            self.broadcaster.broadcast_all(
                protocol.TICKET_CALLED,
                _tagged(
                    {
                        "ticket": ticket.to_message(),
                        "counterId": counter_id,
                        "attendantId": attendant_id,
                        "allQueues": st.queues.snapshot(),
                    },
                    request_id,
                ),
            )
        self._log(f"[server] ticket {ticket.number} called to counter {counter_id} by {attendant_id}")
        return ticket

    def finish_service(
        self,
        connection_id: str,
        number: str | None,
        *,
        attendant_id: str | None,
        request_id: str | None = None,
    ) -> Ticket | None:
        with self._lock:
            st = self.state
            ticket = st.sessions.clear(attendant_id) if st.sessions.matches(attendant_id, number) else None
            if ticket is None:
                self._reject(
                    connection_id,
                    protocol.FINISH_ERROR,
                    NoActiveTicket("No ticket in service to finish."),
                )
                return None

            self.broadcaster.broadcast_all(
                protocol.SERVICE_FINISHED,
                _tagged(
                    {
                        "ticket": ticket.to_message(),
                        "attendantId": attendant_id,
                        "allQueues": st.queues.snapshot(),
                    },
                    request_id,
                ),
            )
        self._log(f"[server] service of {number} finished by {attendant_id}")
        return ticket

    def redirect_ticket(
        self,
        connection_id: str,
        number: str | None,
        target_category: Any,
        *,
        attendant_id: str | None,
        request_id: str | None = None,
    ) -> Ticket | None:
        """Move the attendant's ticket to the tail of another category queue.

        The ticket is enqueued unchanged: same number, category and creation
        time. Only the queue it waits in changes.
        """
        with self._lock:
            st = self.state
            try:
                if not st.sessions.matches(attendant_id, number):
                    raise NoActiveTicket("No ticket in service to redirect.")
                target = Category.parse(target_category)
            except QueueError as e:
                self._reject(connection_id, protocol.REDIRECT_ERROR, e)
                return None

            ticket = st.sessions.clear(attendant_id)
            if ticket is None:
                raise RuntimeError(f"session of {attendant_id} lost its ticket")
            st.queues.enqueue(target, ticket)
            self.broadcaster.broadcast_all(
                protocol.TICKET_REDIRECTED,
                _tagged(
                    {
                        "ticket": ticket.to_message(),
                        "targetCategory": target.label,
                        "attendantId": attendant_id,
                        "allQueues": st.queues.snapshot(),
                    },
                    request_id,
                ),
            )
        self._log(f"[server] ticket {number} redirected to {target.label} by {attendant_id}")
        return ticket

    # -------------------- session cleanup --------------------

    def expire_sessions(self, max_idle_seconds: float, *, now: float | None = None) -> list[AttendantSession]:
        """Drop idle attendant sessions and put their stranded tickets back.

        A stranded ticket goes to the tail of the queue it was called from,
        which after a redirect is not its category's queue. Not part of
        disconnect handling: the server calls this periodically only when a
        session TTL is configured.
        """
        with self._lock:
            st = self.state
            expired = st.sessions.expire(max_idle_seconds, now=now)
            if not expired:
                return []

            requeued: list[dict[str, Any]] = []
            for session in expired:
                ticket = session.current_ticket
                if ticket is not None:
                    st.queues.enqueue(session.called_from or ticket.category, ticket)
                    requeued.append(ticket.to_message())

            self.broadcaster.broadcast_all(
                protocol.SESSIONS_EXPIRED,
                {
                    "attendantIds": [s.attendant_id for s in expired],
                    "requeued": requeued,
                    "allQueues": st.queues.snapshot(),
                },
            )
        self._log(
            f"[server] expired {len(expired)} idle session(s), requeued {len(requeued)} ticket(s)"
        )
        return expired

    # -------------------- helpers --------------------

    def _reject(self, connection_id: str, event: str, error: QueueError) -> None:
        self.broadcaster.send_to(connection_id, event, error.to_response().to_message())
        self._log(f"[server] {event} -> {connection_id}: {error.message}")


def _tagged(payload: dict[str, Any], request_id: str | None) -> dict[str, Any]:
    if request_id is not None:
        payload["requestId"] = request_id
    return payload


def _require_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedRequest(f"object payload required, got {payload!r}")
    return payload


def _optional_str(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    # Counter ids are often typed as numbers by clients.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str) or not value:
        return None
    return value


def _require_str(body: dict[str, Any], key: str) -> str:
    value = _optional_str(body, key)
    if value is None:
        raise MalformedRequest(f"{key} required")
    return value
