"""Page of listing results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of records plus the metadata needed to walk the rest."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page

    def to_dict(self, relations: Iterable[str] = ()) -> dict[str, Any]:
        relations = list(relations)
        return {
            "items": [item.to_dict(relations) for item in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "last_page": self.last_page,
        }
