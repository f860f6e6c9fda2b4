"""Generic resource service: filtered listing and CRUD for any ResourceMixin model.

ResourceService: list, search, search_on_relationship, filter_by_date_range,
    find, store, show, update, delete, restore, can_delete, upload_photo.

Subclasses set ``model`` and optionally ``orderings`` (virtual field -> ordering
strategy), ``relation_search`` (relation -> searched fields) and ``per_page``,
and override the apply_filters / get_prepared_*_data hooks.

Lookups that find nothing return None (False for delete). Unknown field names
are dropped silently. Malformed date bounds raise InvalidDateError. Persistence
errors roll the session back and propagate unchanged.

A service is request-scoped: it holds the request's Session and an immutable
relation configuration. with_relations()/without_relations() return new
instances instead of mutating this one.
"""

from __future__ import annotations

import copy
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Callable, ClassVar, Mapping, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from agentdesk.config import Settings, get_settings
from agentdesk.exceptions import InvalidDateError
from agentdesk.resources.contract import ResourceMixin
from agentdesk.resources.pagination import Page
from agentdesk.resources.params import (
    VIEW_ALL,
    VIEW_DELETED,
    QueryParams,
    is_present,
    split_names,
)
from agentdesk.resources.schema import (
    coerce_value,
    column_list,
    get_column,
    get_relationship,
    has_column,
)
from agentdesk.resources.uploads import store_photo

logger = logging.getLogger(__name__)

OrderingStrategy = Callable[[Query, str], Query]

# Inclusive upper bound used for the end date of a created_at range.
END_OF_DAY = time(23, 59)


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO calendar date. Missing values yield None; bad ones raise."""
    if not is_present(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(
            message=f"Invalid date: {value!r}",
            detail=f"Expected an ISO date string, got {type(value).__name__}",
        )
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDateError(message=f"Invalid date: {value!r}", detail=str(e)) from e


def keyword_tokens(keyword: Any) -> list[str]:
    """Split a keyword on whitespace, collapsing runs of whitespace."""
    if not isinstance(keyword, str):
        return []
    return keyword.split()


class ResourceService:
    """Uniform listing/read/write contract over a ResourceMixin model."""

    model: ClassVar[Optional[type]] = None
    per_page: ClassVar[Optional[int]] = None
    ranking: ClassVar[str] = "desc"
    orderings: ClassVar[Mapping[str, OrderingStrategy]] = {}
    relation_search: ClassVar[Mapping[str, Sequence[str]]] = {}

    def __init__(
        self,
        db: Session,
        relations: Optional[Sequence[str]] = None,
        load_with_relations: bool = True,
        settings: Optional[Settings] = None,
    ) -> None:
        if self.model is None:
            raise TypeError(f"{type(self).__name__} must define a model")
        self.db = db
        self.settings = settings or get_settings()
        self._relations: tuple[str, ...] = (
            self._exposed(relations) if relations is not None else self.model.declared_relations()
        )
        self._load_with_relations = load_with_relations

    # -- Relation configuration ----------------------------------------------

    @property
    def relations(self) -> tuple[str, ...]:
        return self._relations

    @property
    def load_with_relations(self) -> bool:
        return self._load_with_relations

    def with_relations(self, relations: Optional[Sequence[str]] = None) -> "ResourceService":
        """A copy of this service that loads ``relations`` (or the current set)."""
        clone = copy.copy(self)
        if relations:
            clone._relations = self._exposed(relations)
        clone._load_with_relations = True
        return clone

    def _exposed(self, relations: Sequence[str]) -> tuple[str, ...]:
        """The paths of ``relations`` that resolve through declared relations only."""
        return tuple(path for path in relations if self._loader_option(path) is not None)

    def without_relations(self) -> "ResourceService":
        """A copy of this service that loads no relations."""
        clone = copy.copy(self)
        clone._load_with_relations = False
        return clone

    def relations_for(self, data: Mapping[str, Any] | None = None) -> list[str]:
        """Relations a listing with ``data`` would load.

        exempted_relations is evaluated first; when it is present the
        relations key is ignored.
        """
        if not self._load_with_relations:
            return []
        data = data or {}
        if is_present(data.get("exempted_relations")):
            exempted = set(split_names(data["exempted_relations"]))
            requested = [name for name in self._relations if name not in exempted]
        elif is_present(data.get("relations")):
            requested = split_names(data["relations"])
        else:
            requested = list(self._relations)
        return list(self._exposed(requested))

    def _loader_option(self, path: str):
        """selectinload chain for a (possibly dotted) relation path, or None if unknown.

        Every hop must be a relation its model declares in
        ``__resource_relations__``; other mapped relationships are not exposed.
        """
        model = self.model
        option = None
        for name in path.split("."):
            if not issubclass(model, ResourceMixin) or name not in model.declared_relations():
                return None
            relationship = get_relationship(model, name)
            if relationship is None:
                return None
            attribute = getattr(model, name)
            option = selectinload(attribute) if option is None else option.selectinload(attribute)
            model = relationship.mapper.class_
        return option

    def base_query(self, relations: Sequence[str] = ()) -> Query:
        """Query over the model with the given relations eagerly loaded."""
        query = self.db.query(self.model)
        options = [self._loader_option(path) for path in relations]
        options = [option for option in options if option is not None]
        if options:
            query = query.options(*options)
        return query

    # -- Listing -------------------------------------------------------------

    def valid_query_fields(self) -> list[str]:
        """Request keys accepted as equality filters. Hidden columns never are."""
        hidden = set(self.model.__hidden_fields__)
        return [name for name in column_list(self.model) if name not in hidden]

    def _visible_column(self, name: Any):
        """The column for ``name`` unless the model hides it from callers."""
        if name in self.model.__hidden_fields__:
            return None
        return get_column(self.model, name)

    def get_query_params(self, data: Mapping[str, Any] | None) -> QueryParams:
        return QueryParams.from_request(
            data,
            self.valid_query_fields(),
            per_page=self.per_page or self.settings.per_page,
            max_per_page=self.settings.max_per_page,
            ranking=self.ranking,
        )

    def list(self, data: Mapping[str, Any] | None = None) -> Page | list:
        """List resources matching the request parameters in ``data``.

        Returns a Page when pagination was requested, otherwise every match.
        """
        data = data or {}
        params = self.get_query_params(data)

        query = self.base_query(self.relations_for(data))

        for name, value in self._coerce(params.where).items():
            query = query.filter(get_column(self.model, name) == value)

        query = self.apply_filters(query, data)
        query = self.apply_ordering(query, params.order)
        query = self.apply_view_scope(query, params.view_by)

        if params.paginate:
            return self.paginate(query, params.paginate, params.page)
        return query.all()

    def paginate(self, query: Query, per_page: int, page: int = 1) -> Page:
        total = query.order_by(None).count()
        items = query.offset((page - 1) * per_page).limit(per_page).all()
        return Page(items=items, total=total, page=page, per_page=per_page)

    def apply_ordering(self, query: Query, order: Mapping[str, str]) -> Query:
        """Order by requested fields, then by the defaults not already requested.

        Real columns are ordered directly; other fields go through the
        ``orderings`` registry and are skipped when no strategy is registered.
        """
        for name, direction in order.items():
            column = self._visible_column(name)
            if column is not None:
                query = query.order_by(column.desc() if direction == "desc" else column.asc())
                continue

            strategy = self.orderings.get(name)
            if strategy is None:
                logger.debug("No ordering registered for %s.%s", self.model.table_name(), name)
                continue
            query = strategy(query, direction)

        defaults: dict[str, str] = {}
        name_field = self.model.name_field()
        if name_field:
            defaults[name_field] = "asc"
        defaults.setdefault("created_at", "desc")

        for name, direction in defaults.items():
            if name in order:
                continue
            column = get_column(self.model, name)
            if column is not None:
                query = query.order_by(column.desc() if direction == "desc" else column.asc())
        return query

    def apply_view_scope(self, query: Query, view_by: Optional[str] = None) -> Query:
        """Active rows by default; all rows or only deleted rows on request."""
        if not self.model.supports_soft_delete():
            return query
        deleted_at = get_column(self.model, "deleted_at")
        if view_by == VIEW_ALL:
            return query
        if view_by == VIEW_DELETED:
            return query.filter(deleted_at.isnot(None))
        return query.filter(deleted_at.is_(None))

    # -- Filters -------------------------------------------------------------

    def apply_filters(self, query: Query, data: Mapping[str, Any]) -> Query:
        """Keyword search and created_at range. Subclasses add their own filters."""
        keyword = data.get("keyword")
        if is_present(keyword):
            if self.relation_search:
                clauses = [self.search_clause(keyword)]
                clauses += [
                    self.relationship_search_clause(keyword, relation, fields)
                    for relation, fields in self.relation_search.items()
                ]
                clauses = [clause for clause in clauses if clause is not None]
                if clauses:
                    query = query.filter(or_(*clauses))
            else:
                query = self.search(query, keyword)

        if is_present(data.get("start_date")) or is_present(data.get("end_date")):
            query = self.filter_by_date_range(
                query, data.get("start_date"), data.get("end_date")
            )
        return query

    @staticmethod
    def _fields_match(model: type, fields: Sequence[str], tokens: Sequence[str]):
        """Any field contains every token (case-insensitive), or None if no field is valid."""
        per_field = []
        for name in fields:
            column = get_column(model, name)
            if column is None:
                continue
            per_field.append(
                and_(*[column.icontains(token, autoescape=True) for token in tokens])
            )
        return or_(*per_field) if per_field else None

    def search_clause(self, keyword: Any):
        tokens = keyword_tokens(keyword)
        if not tokens:
            return None
        return self._fields_match(self.model, self.model.search_fields(), tokens)

    def relationship_search_clause(
        self, keyword: Any, relation_name: str, fields: Sequence[str]
    ):
        tokens = keyword_tokens(keyword)
        if not tokens:
            return None
        relationship = get_relationship(self.model, relation_name)
        if relationship is None:
            return None
        match = self._fields_match(relationship.mapper.class_, fields, tokens)
        if match is None:
            return None
        attribute = getattr(self.model, relation_name)
        return attribute.any(match) if relationship.uselist else attribute.has(match)

    def search(self, query: Query, keyword: Any) -> Query:
        """Records where any search field contains all keyword tokens."""
        clause = self.search_clause(keyword)
        return query if clause is None else query.filter(clause)

    def search_on_relationship(
        self,
        query: Query,
        keyword: Any,
        relation_name: str,
        fields: Sequence[str],
    ) -> Query:
        """Like search(), also matching records with a related record whose fields match.

        The relationship match is ORed with the resource's own keyword match.
        """
        clauses = [
            self.search_clause(keyword),
            self.relationship_search_clause(keyword, relation_name, fields),
        ]
        clauses = [clause for clause in clauses if clause is not None]
        if not clauses:
            return query
        return query.filter(or_(*clauses))

    def filter_by_date_range(self, query: Query, start: Any = None, end: Any = None) -> Query:
        """Constrain created_at to [start 00:00:00, end 23:59:00].

        Raises InvalidDateError for a malformed bound.
        """
        start_date = parse_date(start)
        end_date = parse_date(end)
        created_at = get_column(self.model, "created_at")
        if created_at is None:
            return query
        if start_date is not None:
            query = query.filter(created_at >= datetime.combine(start_date, time.min))
        if end_date is not None:
            query = query.filter(created_at <= datetime.combine(end_date, END_OF_DAY))
        return query

    # -- Lookup --------------------------------------------------------------

    def find(
        self,
        value: Any,
        column: Optional[str] = None,
        include_deleted: bool = False,
    ):
        """First record whose ``column`` equals ``value``.

        None when nothing matches or when ``column`` is not a column of the table.
        """
        return self._find(value, column, view_by=VIEW_ALL if include_deleted else None)

    def _find(
        self,
        value: Any,
        column: Optional[str] = None,
        view_by: Optional[str] = None,
        relations: Sequence[str] = (),
    ):
        column = column or self.model.primary_key_name()
        if not has_column(self.model, column):
            return None
        query = self.apply_view_scope(self.base_query(relations), view_by)
        return query.filter(get_column(self.model, column) == value).first()

    def show(self, id: Any):
        """Record by primary key, with the configured relations loaded."""
        relations = list(self._relations) if self._load_with_relations else []
        return self._find(id, relations=relations)

    # -- Mutation ------------------------------------------------------------

    def get_valid_data(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        """Only the entries of ``data`` that name a column of the table."""
        if not data:
            return {}
        return self._coerce(
            {key: value for key, value in data.items() if has_column(self.model, key)}
        )

    def _coerce(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Convert values to their column types, dropping the ones that do not fit."""
        coerced = {}
        for name, value in data.items():
            column = get_column(self.model, name)
            if column is None:
                continue
            try:
                coerced[name] = coerce_value(column, value)
            except (TypeError, ValueError):
                logger.debug("Dropping %s=%r for %s", name, value, self.model.table_name())
        return coerced

    def get_prepared_save_data(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self.get_valid_data(data)

    def get_prepared_update_data(self, data: Mapping[str, Any], resource: Any) -> dict[str, Any]:
        valid = self.get_valid_data(data)
        valid.pop(self.model.primary_key_name(), None)
        return valid

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning(
                "Persistence failure during %s on %s", action, self.model.table_name(),
                exc_info=True,
            )
            raise

    def store(self, data: Mapping[str, Any] | None = None):
        """Create a record from the valid fields of ``data``; None if there are none."""
        payload = self.get_prepared_save_data(data or {})
        if not payload:
            return None

        resource = self.model(**payload)
        self.db.add(resource)
        self._commit("store")
        self.db.refresh(resource)
        return resource

    def update(self, id: Any, data: Mapping[str, Any] | None = None):
        """Merge the valid fields of ``data`` into the record and return its new state."""
        resource = self.find(id)
        if resource is None:
            return None

        payload = self.get_prepared_update_data(data or {}, resource)
        if payload:
            for key, value in payload.items():
                setattr(resource, key, value)
            self._commit("update")

        return self.show(id)

    def delete(self, id: Any) -> bool:
        """Soft delete (hard delete for resources without deleted_at)."""
        resource = self.find(id)
        if resource is None:
            return False

        if self.model.supports_soft_delete():
            resource.deleted_at = datetime.now(timezone.utc)
        else:
            self.db.delete(resource)
        self._commit("delete")
        return True

    def restore(self, id: Any):
        """Clear deleted_at on a soft-deleted record and return it with relations."""
        if not self.model.supports_soft_delete():
            return None
        resource = self._find(id, view_by=VIEW_DELETED)
        if resource is None:
            return None

        resource.deleted_at = None
        self._commit("restore")
        return self.show(id)

    def can_delete(self, id: Any) -> Optional[bool]:
        resource = self.find(id)
        if resource is None:
            return None
        return bool(resource.can_be_deleted(self.db))

    def upload_photo(self, resource: Any, upload: Any, folder: str):
        """Store an uploaded photo for ``resource``. See uploads.store_photo."""
        return store_photo(
            self.db,
            resource,
            upload,
            folder,
            upload_dir=self.settings.upload_dir,
        )
