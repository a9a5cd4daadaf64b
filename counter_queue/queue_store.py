from __future__ import annotations

# Per-category FIFO queues of waiting tickets.
#
# Not thread-safe on its own: the dispatcher serializes every access.

from collections import deque
from typing import Any

from .categories import Category
from .errors import EmptyQueue
from .tickets import Ticket


class QueueStore:
    def __init__(self) -> None:
        self._queues: dict[Category, deque[Ticket]] = {c: deque() for c in Category}

    def enqueue(self, category: Category, ticket: Ticket) -> int:
        """Append to the tail. Returns the 1-based position of the ticket."""
        q = self._queues[category]
        q.append(ticket)
        return len(q)

    def dequeue_front(self, category: Category) -> Ticket:
        q = self._queues[category]
        if not q:
            raise EmptyQueue(f"No {category.label} tickets waiting.")
        return q.popleft()

    def waiting(self, category: Category) -> int:
        return len(self._queues[category])

    def tickets(self, category: Category) -> list[Ticket]:
        return list(self._queues[category])

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """Fresh wire copy of every queue, keyed by category display name.

        Nothing in the result is shared with the store, so a published
        snapshot is never changed by later mutations.
        """
        return {c.label: [t.to_message() for t in q] for c, q in self._queues.items()}
