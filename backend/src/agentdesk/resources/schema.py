"""Schema introspection for resource models.

Every dynamic field reference coming from a request is validated here
before it reaches a query. Lookups go through the mapped table metadata,
never through getattr on arbitrary names.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import Column
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import RelationshipProperty


def column_list(model: type) -> list[str]:
    """Ordered column names of the model's table."""
    return list(model.__table__.columns.keys())


def has_column(model: type, column: Any) -> bool:
    """True when ``column`` names a column on the model's table."""
    return isinstance(column, str) and bool(column) and column in model.__table__.columns


def get_column(model: type, column: Any) -> Optional[Column]:
    """The table column for ``column``, or None when it is not recognized."""
    if not has_column(model, column):
        return None
    return model.__table__.columns[column]


def relation_names(model: type) -> list[str]:
    """Names of the ORM relationships mapped on the model."""
    return list(sa_inspect(model).relationships.keys())


def get_relationship(model: type, name: Any) -> Optional[RelationshipProperty]:
    if not isinstance(name, str) or name not in relation_names(model):
        return None
    return sa_inspect(model).relationships[name]


_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def coerce_value(column: Column, value: Any) -> Any:
    """Convert a loosely typed request value to the column's Python type.

    Raises ValueError when the value cannot represent that type.
    """
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if python_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES:
            return True
        if isinstance(value, str) and value.strip().lower() in _FALSE_VALUES:
            return False
        raise ValueError(f"{value!r} is not a boolean")

    if not isinstance(value, str):
        return value
    if python_type is int:
        return int(value.strip())
    if python_type is float:
        return float(value.strip())
    if python_type is datetime:
        return datetime.fromisoformat(value.strip())
    if python_type is date:
        return date.fromisoformat(value.strip())
    return value
