"""
Search / Filter / Sort / Paginate
=================================

``SearchModel`` describes a list query. ``SearchQueryBuilder`` turns it
into SQLAlchemy clauses for one model.

Field paths are attribute names, optionally walking relationships:

    "name"                  column on the model
    "client.name"           column on a many-to-one relation   (has)
    "items.resource_id"     column on a one-to-many collection (any)

Filter keys:

    "status": "Signed"              exact match
    "client_id": "1,2" / [1, 2]     IN (values OR'ed within the field)
    "date.from" / "date.to"         inclusive range bounds
    "is_archived": "false"          booleans accept true/false/1/0

Filters are AND'ed together. Unknown fields raise ValidationError.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from sqlalchemy import (
    Boolean, Date, DateTime, Integer, Numeric, String, Text, or_, inspect as sa_inspect,
)
from sqlalchemy.orm import aliased
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from constants import Pagination, SortDirection, RANGE_FROM_SUFFIX, RANGE_TO_SUFFIX, DatabaseFields as DB
from database.db_utils import to_bool, to_date, to_datetime, to_decimal
from exceptions import InvalidValueError, ValidationError

logger = logging.getLogger(__name__)

_RESERVED_PARAMS = ("search", "sort", "page", "size")


@dataclass
class SortSpec:
    field: str
    direction: str = SortDirection.ASC

    def __post_init__(self):
        self.direction = (self.direction or SortDirection.ASC).strip().lower()
        if self.direction not in SortDirection.ALL:
            raise InvalidValueError("sort", self.direction, "direction must be 'asc' or 'desc'")
        if not self.field or not self.field.strip():
            raise InvalidValueError("sort", self.field, "empty sort field")
        self.field = self.field.strip()

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC

    @classmethod
    def parse(cls, text: str) -> "SortSpec":
        """``"name"``, ``"name:desc"`` or ``"-name"``."""
        text = text.strip()
        if text.startswith("-"):
            return cls(text[1:], SortDirection.DESC)
        name, _, direction = text.partition(":")
        return cls(name, direction or SortDirection.ASC)


@dataclass
class SearchModel:
    """Free-text search, ordered sort, paging and field filters for one list query."""

    search_term: Optional[str] = None
    sort: List[SortSpec] = field(default_factory=list)
    page: int = Pagination.DEFAULT_PAGE
    size: int = Pagination.DEFAULT_SIZE
    filters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.sort = [s if isinstance(s, SortSpec) else SortSpec(*s) for s in self.sort]

    @property
    def is_paginated(self) -> bool:
        return self.page > 0 and self.size > 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "SearchModel":
        """
        Build from query-string style parameters::

            {"search": "steel", "sort": "name:desc,id", "page": "2",
             "size": "20", "is_archived": "false"}

        Every key other than search/sort/page/size becomes a filter.
        """
        sort_param = params.get("sort") or ""
        if isinstance(sort_param, str):
            sort = [SortSpec.parse(part) for part in sort_param.split(",") if part.strip()]
        else:
            sort = [SortSpec.parse(part) for part in sort_param]

        page = _parse_int(params, "page", Pagination.DEFAULT_PAGE)
        size = _parse_int(params, "size", Pagination.DEFAULT_SIZE)
        for key, value in (("page", page), ("size", size)):
            if value < 0:
                raise InvalidValueError(key, value, "must not be negative")
        if size > Pagination.MAX_SIZE:
            raise InvalidValueError("size", size, f"must not exceed {Pagination.MAX_SIZE}")

        search = params.get("search")
        filters = {k: v for k, v in params.items() if k not in _RESERVED_PARAMS}
        return cls(
            search_term=search.strip() if isinstance(search, str) and search.strip() else None,
            sort=sort,
            page=page,
            size=size,
            filters=filters,
        )


def _parse_int(params: Mapping[str, Any], key: str, default: int) -> int:
    value = params.get(key)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidValueError(key, value, "must be an integer")


# ─── Path resolution ─────────────────────────────────────────────────────────

def _resolve(model, path: str):
    """Return (relationship attributes walked, final column attribute)."""
    parts = path.split(".")
    mapper = sa_inspect(model)
    current = model
    walked = []
    for part in parts[:-1]:
        rel = mapper.relationships.get(part)
        if rel is None:
            raise ValidationError(f"Unknown field '{path}' for {model.__name__}", field=path)
        walked.append(getattr(current, part))
        mapper = rel.mapper
        current = mapper.class_
    name = parts[-1]
    if name not in mapper.column_attrs.keys():
        raise ValidationError(f"Unknown field '{path}' for {model.__name__}", field=path)
    return walked, getattr(current, name)


def path_condition(model, path: str, build: Callable[[Any], ColumnElement]) -> ColumnElement:
    """Apply ``build`` to the column at ``path``, wrapping relationship hops in any()/has()."""
    walked, column = _resolve(model, path)
    cond = build(column)
    for attr in reversed(walked):
        cond = attr.any(cond) if attr.property.uselist else attr.has(cond)
    return cond


def coerce_value(column, path: str, value: Any):
    """Convert a raw filter value (usually a string) to the column's Python type."""
    if value is None:
        return None
    col_type = column.type
    if isinstance(col_type, Boolean):
        result = to_bool(value)
    elif isinstance(col_type, Integer):
        try:
            result = int(value) if not isinstance(value, bool) else None
        except (TypeError, ValueError):
            result = None
    elif isinstance(col_type, Numeric):
        result = to_decimal(value)
    elif isinstance(col_type, DateTime):
        result = to_datetime(value)
    elif isinstance(col_type, Date):
        result = to_date(value)
    elif isinstance(col_type, (String, Text)):
        result = str(value).strip()
    else:
        result = value
    if result is None:
        raise InvalidValueError(path, value, f"cannot be read as {type(col_type).__name__}")
    return result


def _split_values(value: Any) -> Sequence[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str) and "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


# ─── Builder ─────────────────────────────────────────────────────────────────

class SearchQueryBuilder:
    """
    Composes WHERE and ORDER BY clauses for ``model`` from a SearchModel.

    ``search_fields`` lists the string paths matched by the free-text term.
    """

    def __init__(self, model, search_fields: Sequence[str] = ()):
        self.model = model
        self.search_fields = tuple(search_fields)

    # ---------- WHERE ----------
    def where_clauses(self, search: SearchModel) -> List[ColumnElement]:
        clauses = []

        term = (search.search_term or "").strip()
        if term:
            if not self.search_fields:
                raise ValidationError(
                    f"{self.model.__name__} does not support free-text search", field="search"
                )
            pattern = "%" + _escape_like(term) + "%"
            clauses.append(or_(*[
                path_condition(self.model, path, lambda c: c.ilike(pattern, escape="\\"))
                for path in self.search_fields
            ]))

        for key, value in (search.filters or {}).items():
            clauses.append(self.filter_clause(key, value))
        return clauses

    def filter_clause(self, key: str, value: Any) -> ColumnElement:
        if key.endswith(RANGE_FROM_SUFFIX):
            path = key[: -len(RANGE_FROM_SUFFIX)]
            return path_condition(self.model, path, lambda c: c >= coerce_value(c, key, value))
        if key.endswith(RANGE_TO_SUFFIX):
            path = key[: -len(RANGE_TO_SUFFIX)]
            return path_condition(self.model, path, lambda c: c <= coerce_value(c, key, value))

        def build(column):
            values = [coerce_value(column, key, v) for v in _split_values(value)]
            if not values:
                raise InvalidValueError(key, value, "no filter values")
            if values == [None]:
                return column.is_(None)
            if len(values) == 1:
                return column == values[0]
            return column.in_(values)

        return path_condition(self.model, key, build)

    # ---------- ORDER BY ----------
    def apply_sort(self, stmt: Select, search: SearchModel) -> Select:
        """Order by the requested fields, then id ascending as the tie-break."""
        joined: Dict[str, Any] = {}
        order = []
        has_id = False
        for spec in search.sort:
            column, stmt = self._sort_column(stmt, spec.field, joined)
            if spec.field == DB.ID:
                has_id = True
            order.append(column.desc() if spec.descending else column.asc())
        if not has_id:
            order.append(self.model.id.asc())
        return stmt.order_by(*order)

    def _sort_column(self, stmt: Select, path: str, joined: Dict[str, Any]) -> Tuple[Any, Select]:
        parts = path.split(".")
        mapper = sa_inspect(self.model)
        if len(parts) == 1:
            if path not in mapper.column_attrs.keys():
                raise ValidationError(f"Unknown sort field '{path}' for {self.model.__name__}", field=path)
            return getattr(self.model, path), stmt

        if len(parts) != 2:
            raise ValidationError(f"Sort field '{path}' is nested too deep", field=path)

        rel_name, col_name = parts
        rel = mapper.relationships.get(rel_name)
        if rel is None or rel.uselist:
            raise ValidationError(
                f"Cannot sort {self.model.__name__} by '{path}'", field=path
            )
        if col_name not in rel.mapper.column_attrs.keys():
            raise ValidationError(f"Unknown sort field '{path}' for {self.model.__name__}", field=path)

        target = joined.get(rel_name)
        if target is None:
            target = aliased(rel.mapper.class_)
            stmt = stmt.outerjoin(getattr(self.model, rel_name).of_type(target))
            joined[rel_name] = target
        return getattr(target, col_name), stmt


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
