"""Resource contract shared by every model served through ResourceService.

A resource declares its capabilities as class attributes:

    __resource_relations__  relationships loaded by default on list/show
    __search_fields__       columns matched by keyword search
    __name_field__          column used for default alphabetical ordering
    __hidden_fields__       columns never serialized

and may override can_be_deleted() with a business-rule check.
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterable, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session


class ResourceMixin:
    """Explicit resource capabilities for declarative models."""

    __resource_relations__: ClassVar[tuple[str, ...]] = ()
    __search_fields__: ClassVar[tuple[str, ...]] = ()
    __name_field__: ClassVar[Optional[str]] = None
    __hidden_fields__: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def table_name(cls) -> str:
        return cls.__table__.name

    @classmethod
    def primary_key_name(cls) -> str:
        """Name of the single-column primary key (``id`` unless declared otherwise)."""
        pk = sa_inspect(cls).primary_key
        return pk[0].key if pk else "id"

    @classmethod
    def declared_relations(cls) -> tuple[str, ...]:
        return tuple(cls.__resource_relations__)

    @classmethod
    def search_fields(cls) -> tuple[str, ...]:
        return tuple(cls.__search_fields__)

    @classmethod
    def name_field(cls) -> Optional[str]:
        return cls.__name_field__

    @classmethod
    def supports_soft_delete(cls) -> bool:
        return "deleted_at" in cls.__table__.columns

    def can_be_deleted(self, db: Session) -> bool:
        """Business-rule deletability check. Resources override as needed."""
        return True

    def to_dict(self, relations: Iterable[str] = ()) -> dict[str, Any]:
        """Serialize columns plus the requested relations that are already loaded.

        Dotted relation paths serialize nested relations (``notes.customer``).
        Relations that were not loaded, or that the model does not declare,
        are left out.
        """
        data = {
            column.key: getattr(self, column.key)
            for column in self.__table__.columns
            if column.key not in self.__hidden_fields__
        }

        nested: dict[str, list[str]] = {}
        for path in relations:
            head, _, rest = path.partition(".")
            nested.setdefault(head, [])
            if rest:
                nested[head].append(rest)

        state = sa_inspect(self)
        mapper_relations = state.mapper.relationships
        for name, children in nested.items():
            if name not in self.declared_relations() or name not in mapper_relations:
                continue
            if name in state.unloaded:
                continue
            value = getattr(self, name)
            if value is None:
                data[name] = None
            elif isinstance(value, (list, set, tuple)):
                data[name] = [item.to_dict(children) for item in value]
            else:
                data[name] = value.to_dict(children)
        return data
