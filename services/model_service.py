"""
services/model_service.py
=========================
Generic service layer: DTO → entity → repository → response DTO.

Every public operation runs in one unit of work (one session, one commit).
Validation happens before the repository is asked to write anything.

    class ResourceService(ArchivableService[Resource, ResourceCreate, ResourceUpdate, ResourceResponse]):
        model = Resource
        crud_class = ResourcesCRUD
        response_type = ResourceResponse
        unique_fields = ("name",)
"""
from dataclasses import fields, is_dataclass, replace
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar
import logging

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from database.crud.base_crud import BaseCRUD
from database.crud.archivable_crud import ArchivableCRUD
from database.crud.search import SearchModel
from database.models.base import unit_of_work
from exceptions import DuplicateError, MissingFieldError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")   # entity
C = TypeVar("C")   # create DTO
U = TypeVar("U")   # update DTO
R = TypeVar("R")   # response DTO


def map_fields(source: Any, target_type: type, **overrides) -> Any:
    """
    Build ``target_type`` from the same-named attributes of ``source``.

    Targets may be dataclasses (DTOs) or mapped models (columns only).
    """
    if is_dataclass(target_type):
        names = [f.name for f in fields(target_type)]
    else:
        names = [attr.key for attr in sa_inspect(target_type).column_attrs]
    values = {
        name: getattr(source, name)
        for name in names
        if name not in overrides and hasattr(source, name)
    }
    values.update(overrides)
    return target_type(**values)


def require_active(crud: ArchivableCRUD, id_value: Any, field: str, label: str):
    """Related entity must exist and must not be archived."""
    if id_value is None:
        raise MissingFieldError(field)
    entity = crud.get_by_id(id_value)
    if entity is None:
        raise ValidationError(f"{label} with id={id_value} does not exist", field=field)
    if entity.is_archived:
        raise ValidationError(f"{label} '{entity.name}' is archived", field=field)
    return entity


class ModelService(Generic[T, C, U, R]):
    """
    create / get_by_id / query / update / delete over one repository.

    Subclasses set ``model``, ``crud_class`` and ``response_type`` and may
    override the validate_* / to_* hooks.
    """

    model: Type[T]
    crud_class: Type[BaseCRUD]
    response_type: Type[R]
    includes: Tuple[str, ...] = ()

    required_fields: Tuple[str, ...] = ()
    # Case-insensitive unique string columns, archived rows included
    unique_fields: Tuple[str, ...] = ()

    def __init__(self, session_factory=None):
        self.session_factory = session_factory

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    def repository(self, session: Session) -> BaseCRUD:
        return self.crud_class(session)

    # ========================================================================
    # Hooks
    # ========================================================================

    def normalize(self, dto):
        """Trim the string fields that must be unique or present."""
        changes = {}
        for name in set(self.required_fields) | set(self.unique_fields):
            value = getattr(dto, name, None)
            if isinstance(value, str):
                changes[name] = value.strip()
        return replace(dto, **changes) if changes and is_dataclass(dto) else dto

    def validate(self, session: Session, dto, existing: Optional[T] = None) -> None:
        """Shape and uniqueness checks shared by create and update."""
        for name in self.required_fields:
            value = getattr(dto, name, None)
            if value is None or (isinstance(value, str) and not value):
                raise MissingFieldError(name)

        repo = self.repository(session)
        exclude_id = existing.id if existing is not None else None
        for name in self.unique_fields:
            value = getattr(dto, name)
            if repo.exists_ci(name, value, exclude_id=exclude_id):
                raise DuplicateError(self.entity_name, name, value)

    def to_entity(self, session: Session, dto: C) -> T:
        return map_fields(dto, self.model)

    def apply_update(self, session: Session, entity: T, dto: U) -> None:
        for attr in sa_inspect(self.model).column_attrs:
            if attr.key != "id" and hasattr(dto, attr.key):
                setattr(entity, attr.key, getattr(dto, attr.key))

    def to_response(self, entity: T) -> R:
        return map_fields(entity, self.response_type)

    def before_delete(self, session: Session, entity: T) -> None:
        """Raise ValidationError to refuse the delete."""

    # ========================================================================
    # Operations
    # ========================================================================

    def create(self, dto: C) -> R:
        dto = self.normalize(dto)
        with unit_of_work(self.session_factory) as session:
            self.validate(session, dto)
            entity = self.repository(session).create(self.to_entity(session, dto))
            self.after_create(session, entity)
            logger.info(f"{self.entity_name} created: id={entity.id}")
            return self.to_response(entity)

    def after_create(self, session: Session, entity: T) -> None:
        pass

    def get_by_id(self, id: Any) -> R:
        with unit_of_work(self.session_factory) as session:
            entity = self.repository(session).get_by_id(id, includes=self.includes)
            if entity is None:
                raise NotFoundError(self.entity_name, id)
            return self.to_response(entity)

    def query(self, search: Optional[SearchModel] = None) -> Tuple[List[R], int]:
        with unit_of_work(self.session_factory) as session:
            items, total = self.repository(session).query_by(search, includes=self.includes)
            return [self.to_response(item) for item in items], total

    def update(self, dto: U) -> R:
        dto = self.normalize(dto)
        with unit_of_work(self.session_factory) as session:
            repo = self.repository(session)
            existing = repo.get_by_id(dto.id, includes=self.includes)
            if existing is None:
                raise NotFoundError(self.entity_name, dto.id)
            self.validate(session, dto, existing)
            self.apply_update(session, existing, dto)
            entity = repo.update(existing)
            logger.info(f"{self.entity_name} updated: id={entity.id}")
            return self.to_response(entity)

    def delete(self, id: Any) -> None:
        with unit_of_work(self.session_factory) as session:
            repo = self.repository(session)
            entity = repo.get_by_id(id, includes=self.includes)
            if entity is None:
                raise NotFoundError(self.entity_name, id)
            self.before_delete(session, entity)
            self._remove(repo, id)
            logger.info(f"{self.entity_name} deleted: id={id}")

    def _remove(self, repo: BaseCRUD, id: Any) -> None:
        repo.delete(id)


class ArchivableService(ModelService[T, C, U, R]):
    """
    Adds archive / unarchive. ``delete`` here removes the row for good and is
    refused while anything still references the entity.
    """

    required_fields = ("name",)
    unique_fields = ("name",)

    def in_use_reason(self, session: Session, entity: T) -> Optional[str]:
        return None

    def before_delete(self, session: Session, entity: T) -> None:
        reason = self.in_use_reason(session, entity)
        if reason:
            raise ValidationError(
                f"{self.entity_name} '{entity.name}' cannot be deleted: {reason}. Archive it instead.",
                code="IN_USE",
            )

    def _remove(self, repo: ArchivableCRUD, id: Any) -> None:
        repo.hard_delete(id)

    def archive(self, id: Any) -> R:
        return self._set_archived(id, True)

    def unarchive(self, id: Any) -> R:
        return self._set_archived(id, False)

    def _set_archived(self, id: Any, archived: bool) -> R:
        with unit_of_work(self.session_factory) as session:
            repo = self.repository(session)
            done = repo.archive(id) if archived else repo.unarchive(id)
            if not done:
                raise NotFoundError(self.entity_name, id)
            return self.to_response(repo.get_by_id(id))
