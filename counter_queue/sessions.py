from __future__ import annotations

# Attendant sessions: which counter an attendant works at and which ticket,
# if any, they are currently serving.
#
# Sessions are created on the first call and are NOT removed when the
# attendant's connection goes away; a held ticket stays held. Cleanup is only
# done through `expire()`, which the server runs when a session TTL is set.

import time
from dataclasses import dataclass, field
from typing import Callable

from .categories import Category
from .tickets import Ticket


@dataclass
class AttendantSession:
    """In-memory state for one attendant."""

    attendant_id: str
    counter_id: str
    current_ticket: Ticket | None = None
    # Queue the held ticket was called from; differs from its category after a redirect.
    called_from: Category | None = None
    last_seen: float = field(default_factory=time.time)


class SessionRegistry:
    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._sessions: dict[str, AttendantSession] = {}

    def bind(
        self,
        attendant_id: str,
        counter_id: str,
        ticket: Ticket,
        *,
        called_from: Category | None = None,
    ) -> AttendantSession:
        """Attach `ticket` to the attendant, creating the session if needed.

        `called_from` is the queue the ticket was taken from (defaults to the
        ticket's category). A ticket the attendant was still holding is
        silently replaced.
        """
        now = self._clock()
        st = self._sessions.get(attendant_id)
        if st is None:
            st = AttendantSession(attendant_id=attendant_id, counter_id=counter_id, last_seen=now)
            self._sessions[attendant_id] = st
        st.counter_id = counter_id
        st.current_ticket = ticket
        st.called_from = called_from or ticket.category
        st.last_seen = now
        return st

    def clear(self, attendant_id: str) -> Ticket | None:
        """Drop the held ticket, keep the counter. Returns the dropped ticket."""
        st = self._sessions.get(attendant_id)
        if st is None:
            return None
        ticket = st.current_ticket
        st.current_ticket = None
        st.called_from = None
        st.last_seen = self._clock()
        return ticket

    def touch(self, attendant_id: str) -> bool:
        """Record activity for an attendant (heartbeat). False if unknown."""
        st = self._sessions.get(attendant_id)
        if st is None:
            return False
        st.last_seen = self._clock()
        return True

    def get(self, attendant_id: str) -> AttendantSession | None:
        return self._sessions.get(attendant_id)

    def get_current(self, attendant_id: str) -> Ticket | None:
        st = self._sessions.get(attendant_id)
        return st.current_ticket if st else None

    def matches(self, attendant_id: str | None, number: str | None) -> bool:
        """True iff the attendant currently holds a ticket with this number."""
        if attendant_id is None or number is None:
            return False
        current = self.get_current(attendant_id)
        return current is not None and current.number == number

    def holders(self) -> dict[str, Ticket]:
        """attendant_id -> held ticket, for attendants that hold one."""
        return {aid: st.current_ticket for aid, st in self._sessions.items() if st.current_ticket}

    def expire(self, max_idle_seconds: float, *, now: float | None = None) -> list[AttendantSession]:
        """Remove sessions idle for longer than `max_idle_seconds`.

        Returns the removed sessions; their `current_ticket` is whatever they
        were holding, so the caller can decide what to do with it.
        """
        if max_idle_seconds <= 0:
            raise ValueError("max_idle_seconds must be > 0")

        now = self._clock() if now is None else now
        expired = [st for st in self._sessions.values() if now - st.last_seen > max_idle_seconds]
        for st in expired:
            del self._sessions[st.attendant_id]
        return expired

    def __len__(self) -> int:
        return len(self._sessions)
