"""
BaseCRUD - generic repository
=============================

Single point of persistence access for one entity type.

Session handling:
    session_factory may be a Session, a sessionmaker, or a callable
    returning either (``get_session_local``). A session the repository
    opened itself is committed on success, rolled back on failure and
    closed. A shared session (one passed in directly, or flagged by
    ``unit_of_work``) is only flushed; its owner decides.

Failure policy:
    read paths return None, delete paths return False for missing rows;
    ``update`` raises NotFoundError; SQLAlchemy failures surface as
    PersistenceError.

Usage:
    class ResourcesCRUD(ArchivableCRUD[Resource]):
        def __init__(self, session_factory=None):
            super().__init__(Resource, session_factory)
"""
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar
import logging

from sqlalchemy import func, literal, select, inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.interfaces import LoaderOption

from constants import DatabaseFields as DB
from database.crud.search import SearchModel, SearchQueryBuilder
from database.db_utils import utc_now
from database.models.base import resolve_session
from exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BaseCRUD(Generic[T]):
    """
    Generic repository: create / get / query / update / delete / detach.

    Subclasses declare:
        relations      path → loader option, the only accepted ``includes``
        search_fields  string column paths matched by the free-text search term
    """

    relations: Dict[str, LoaderOption] = {}
    search_fields: Tuple[str, ...] = ()

    # Never copied from the incoming entity by update()
    protected_fields: Tuple[str, ...] = (DB.ID, DB.CREATED_AT, DB.UPDATED_AT)

    def __init__(self, model: type, session_factory=None):
        self.model = model
        self.session_factory = session_factory
        self.table_name = getattr(model, "__tablename__", model.__name__.lower())
        self._query_builder = SearchQueryBuilder(model, self.search_fields)

    # ========================================================================
    # Session Management
    # ========================================================================

    @contextmanager
    def get_session(self):
        """
        Yield a session for one repository call.

        Owned sessions commit on success; shared ones are flushed.
        """
        session, owned = resolve_session(self.session_factory)
        try:
            yield session
            if owned:
                session.commit()
            else:
                session.flush()
        except SQLAlchemyError as e:
            if owned:
                session.rollback()
            logger.error(f"Database error in {self.model.__name__}: {e}", exc_info=True)
            raise PersistenceError(
                f"Database operation on {self.model.__name__} failed", detail=str(e)
            ) from e
        except Exception:
            if owned:
                session.rollback()
            raise
        finally:
            if owned:
                session.close()

    # ========================================================================
    # Helpers
    # ========================================================================

    def _loader_options(self, includes: Iterable[str]) -> List[LoaderOption]:
        options = []
        for path in includes or ():
            option = self.relations.get(path)
            if option is None:
                raise ValidationError(
                    f"'{path}' is not a loadable relation of {self.model.__name__}. "
                    f"Allowed: {sorted(self.relations)}",
                    field="includes",
                )
            options.append(option)
        return options

    def _stamp_create(self, obj: Any) -> None:
        if getattr(obj, "created_at", None) is None:
            obj.created_at = utc_now()

    def _stamp_update(self, obj: Any) -> None:
        if hasattr(obj, "updated_at"):
            obj.updated_at = utc_now()

    def _check_foreign_keys(self, session: Session, obj: Any) -> None:
        """
        Every non-null FK on ``obj`` (and on owned child collections) must point
        at an existing row.
        """
        mapper = sa_inspect(type(obj))
        for column in mapper.local_table.columns:
            for fk in column.foreign_keys:
                value = getattr(obj, column.key, None)
                if value is None:
                    continue
                target = fk.column
                # pending changes must not hit the database before they are checked
                with session.no_autoflush:
                    found = session.execute(
                        select(literal(1)).select_from(target.table).where(target == value).limit(1)
                    ).first()
                if found is None:
                    raise ValidationError(
                        f"{type(obj).__name__}.{column.key}={value} refers to a missing "
                        f"{target.table.name} row",
                        field=column.key,
                    )

        for rel in mapper.relationships:
            if rel.uselist and rel.cascade.delete_orphan:
                for child in getattr(obj, rel.key):
                    self._check_foreign_keys(session, child)

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def create(self, obj: T) -> T:
        """
        Persist a new entity and return it with its generated id.

        Raises:
            ValidationError: a foreign key points at a missing row
            PersistenceError: the database rejected the insert
        """
        with self.get_session() as session:
            self._check_foreign_keys(session, obj)
            self._stamp_create(obj)
            session.add(obj)
            session.flush()
            logger.info(f"Created {self.model.__name__} id={obj.id}")
            return obj

    def get_by_id(self, id: Any, includes: Iterable[str] = ()) -> Optional[T]:
        options = self._loader_options(includes)
        with self.get_session() as session:
            return session.get(self.model, id, options=options)

    def get_by_ids(self, ids: Iterable[Any]) -> Dict[Any, T]:
        """Fetch several rows at once, keyed by id. Missing ids are simply absent."""
        ids = {i for i in ids if i is not None}
        if not ids:
            return {}
        with self.get_session() as session:
            rows = session.scalars(select(self.model).where(self.model.id.in_(ids)))
            return {row.id: row for row in rows}

    def get_first_or_default(self, *predicates, includes: Iterable[str] = ()) -> Optional[T]:
        """First row (by id) matching every predicate, or None."""
        options = self._loader_options(includes)
        stmt = select(self.model).where(*predicates).options(*options).order_by(self.model.id).limit(1)
        with self.get_session() as session:
            return session.scalars(stmt).first()

    def query_by(
        self,
        search: Optional[SearchModel] = None,
        includes: Iterable[str] = (),
    ) -> Tuple[List[T], int]:
        """
        Filtered, sorted, paginated list plus the total number of matches.

        The total is counted before paging, so it does not depend on page/size.
        """
        search = search or SearchModel()
        options = self._loader_options(includes)
        base = select(self.model).where(*self._query_builder.where_clauses(search))
        stmt = self._query_builder.apply_sort(base, search).options(*options)
        if search.is_paginated:
            stmt = stmt.offset(search.offset).limit(search.size)

        with self.get_session() as session:
            total = session.scalar(select(func.count()).select_from(base.subquery()))
            items = list(session.scalars(stmt))
            logger.debug(
                f"{self.model.__name__} query: {len(items)} of {total} "
                f"(page={search.page}, size={search.size})"
            )
            return items, total or 0

    def get_count(self, *predicates) -> int:
        stmt = select(func.count()).select_from(self.model).where(*predicates)
        with self.get_session() as session:
            return session.scalar(stmt) or 0

    def exists(self, *predicates) -> bool:
        return self.get_count(*predicates) > 0

    def exists_ci(self, field: str, value: str, *, exclude_id: Any = None) -> bool:
        """Case-insensitive, whitespace-trimmed match on a string column."""
        column = getattr(self.model, field)
        predicates = [func.lower(column) == (value or "").strip().lower()]
        if exclude_id is not None:
            predicates.append(self.model.id != exclude_id)
        return self.exists(*predicates)

    def update(self, obj: T) -> T:
        """
        Replace the stored row's scalar fields with ``obj``'s (last write wins).

        ``obj`` may be the attached instance itself, a detached copy, or a
        transient instance carrying the id.

        Raises:
            NotFoundError: no row with ``obj.id``
        """
        with self.get_session() as session:
            existing = session.get(self.model, obj.id)
            if existing is None:
                raise NotFoundError(self.model.__name__, obj.id)

            if existing is not obj:
                for attr in sa_inspect(self.model).column_attrs:
                    if attr.key in self.protected_fields:
                        continue
                    setattr(existing, attr.key, getattr(obj, attr.key))

            self._check_foreign_keys(session, existing)
            self._stamp_update(existing)
            session.flush()
            logger.info(f"Updated {self.model.__name__} id={existing.id}")
            return existing

    def delete(self, id: Any) -> bool:
        """Remove the row. False when it does not exist."""
        with self.get_session() as session:
            obj = session.get(self.model, id)
            if obj is None:
                logger.debug(f"{self.model.__name__} id={id} not found for delete")
                return False
            session.delete(obj)
            session.flush()
            logger.info(f"Deleted {self.model.__name__} id={id}")
            return True

    def detach(self, obj: T) -> None:
        """
        Drop ``obj`` from its session's identity map so in-memory edits
        are never flushed. No-op for transient or already detached objects.
        """
        session = sa_inspect(obj).session
        if session is not None:
            session.expunge(obj)

    def delete_where(self, *predicates) -> int:
        """Bulk delete; returns the number of rows removed."""
        with self.get_session() as session:
            rows = list(session.scalars(select(self.model).where(*predicates)))
            for row in rows:
                session.delete(row)
            session.flush()
            return len(rows)

    def bulk_create(self, objects: Sequence[T]) -> List[T]:
        with self.get_session() as session:
            for obj in objects:
                self._stamp_create(obj)
                session.add(obj)
            session.flush()
            return list(objects)
