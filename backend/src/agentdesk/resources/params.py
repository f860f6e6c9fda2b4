"""Query parameters derived from an untyped request mapping.

Only recognized request keys participate; anything else is ignored rather
than rejected, which keeps listing total for arbitrary input.

Recognized keys: paginate, per_page, page, order_field, ranking, view_by,
exempted_relations, relations, plus any column name (equality filter).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

VIEW_ALL = "all"
VIEW_DELETED = "deleted"

DEFAULT_PER_PAGE = 20
DEFAULT_RANKING = "desc"


def is_truthy(value: Any) -> bool:
    """Explicit truthiness: only True, "true" or "1"."""
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() in {"true", "1"}


def should_paginate(value: Any) -> bool:
    """Pagination is opt-in."""
    return is_truthy(value)


def get_per_page(
    value: Any,
    default: int = DEFAULT_PER_PAGE,
    maximum: Optional[int] = None,
) -> int:
    """Page size from an int or digit string; the default for anything else."""
    if isinstance(value, bool):
        per_page = default
    elif isinstance(value, int):
        per_page = value
    elif isinstance(value, str) and value.strip().isdigit():
        per_page = int(value.strip())
    else:
        per_page = default

    if per_page < 1:
        per_page = default
    if maximum is not None:
        per_page = min(per_page, maximum)
    return per_page


def get_page(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    return 1


def get_ranking(value: Any) -> str:
    """Either "asc" or "desc"; anything other than desc orders ascending."""
    return "desc" if isinstance(value, str) and value.strip().lower() == "desc" else "asc"


def split_names(value: Any) -> list[str]:
    """Comma-separated string (or list of strings) to a list of non-empty names."""
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = value
    else:
        return []
    return [p.strip() for p in parts if isinstance(p, str) and p.strip()]


def is_present(value: Any) -> bool:
    """Whether a request value counts as supplied (None and "" do not)."""
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


@dataclass(frozen=True)
class QueryParams:
    """Validated listing parameters."""

    where: dict[str, Any] = field(default_factory=dict)
    order: dict[str, str] = field(default_factory=dict)
    paginate: Optional[int] = None
    page: int = 1
    view_by: Optional[str] = None
    filters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(
        cls,
        data: Mapping[str, Any] | None,
        fields: Iterable[str],
        per_page: int = DEFAULT_PER_PAGE,
        max_per_page: Optional[int] = None,
        ranking: str = DEFAULT_RANKING,
    ) -> "QueryParams":
        data = data or {}

        paginate = None
        page = 1
        if should_paginate(data.get("paginate")):
            paginate = get_per_page(data.get("per_page"), per_page, max_per_page)
            page = get_page(data.get("page"))

        order: dict[str, str] = {}
        order_field = data.get("order_field")
        if isinstance(order_field, str) and order_field:
            requested = data.get("ranking")
            order[order_field] = get_ranking(requested if requested else ranking)

        where = {
            name: data[name]
            for name in fields
            if name in data and is_present(data[name])
        }

        view_by = data.get("view_by")
        if view_by not in (VIEW_ALL, VIEW_DELETED):
            view_by = None

        return cls(
            where=where,
            order=order,
            paginate=paginate,
            page=page,
            view_by=view_by,
            filters={},
        )
