from __future__ import annotations

# Tickets and the ticket factory.
#
# A ticket number is the category prefix followed by a sequence number padded
# to three digits: N001, N002, ... P001, ...
#
# Two numbering policies exist:
# - MONOTONIC: a per-category counter that never goes back. Numbers are unique
#   for the lifetime of the process.
# - QUEUE_LENGTH: sequence = tickets currently waiting + 1. Once tickets are
#   called the next generated number can repeat one already issued. Kept for
#   compatibility with existing deployments that rely on short numbers.

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .categories import Category


@dataclass(frozen=True)
class Ticket:
    """One unit of service demand. Never mutated once generated."""

    number: str
    category: Category
    created_at: float

    def to_message(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "category": self.category.label,
            "createdAt": self.created_at,
        }


def ticket_number(payload: Any) -> str | None:
    """Ticket number of a wire ticket (`{"number": ...}`), None if it has none."""
    if isinstance(payload, dict):
        number = payload.get("number")
        if isinstance(number, str) and number:
            return number
    return None


class NumberingPolicy(str, Enum):
    MONOTONIC = "monotonic"
    QUEUE_LENGTH = "queue-length"


class TicketFactory:
    def __init__(
        self,
        *,
        policy: NumberingPolicy = NumberingPolicy.MONOTONIC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.policy = policy
        self._clock = clock
        self._issued: dict[Category, int] = {c: 0 for c in Category}

    def generate(self, category: Category | str, *, waiting: int = 0) -> Ticket:
        """Create the next ticket for `category`.

        Args:
            category: a Category or its display name.
            waiting: current length of the category queue. Only used by the
                QUEUE_LENGTH policy.

        Raises:
            InvalidCategory: unknown category name.
        """
        cat = Category.parse(category)

        if self.policy is NumberingPolicy.QUEUE_LENGTH:
            seq = waiting + 1
        else:
            seq = self._issued[cat] + 1
        self._issued[cat] = max(self._issued[cat], seq)

        return Ticket(number=f"{cat.prefix}{seq:03d}", category=cat, created_at=self._clock())
