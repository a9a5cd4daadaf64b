from __future__ import annotations

# Service categories.
#
# The set is closed: adding a category means adding a member here. Each member
# carries its display name (used on the wire and as the queue key) and the
# single-letter prefix printed in front of ticket numbers.

from enum import Enum
from typing import Any

from .errors import InvalidCategory


class Category(Enum):
    NORMAL = ("Normal", "N")
    PRIORITY = ("Priority", "P")
    PICKUP = ("Pickup", "K")

    def __init__(self, label: str, prefix: str) -> None:
        self.label = label
        self.prefix = prefix

    def __str__(self) -> str:
        return self.label

    @classmethod
    def parse(cls, value: Any) -> Category:
        """Return the category named `value` or raise InvalidCategory.

        Only exact display names are accepted ("Normal", not "normal").
        """
        if isinstance(value, Category):
            return value
        for member in cls:
            if member.label == value:
                return member
        raise InvalidCategory(f"Invalid service category: {value}")

    @classmethod
    def labels(cls) -> list[str]:
        return [member.label for member in cls]
