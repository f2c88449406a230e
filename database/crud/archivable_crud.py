"""
ArchivableCRUD - repository for entities carrying an archived flag
==================================================================

``delete`` is a soft delete (sets is_archived / archived_at).
``hard_delete`` removes the row.
"""
from typing import Any, TypeVar
import logging

from constants import DatabaseFields as DB
from database.crud.base_crud import BaseCRUD

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ArchivableCRUD(BaseCRUD[T]):

    protected_fields = BaseCRUD.protected_fields + (DB.IS_ARCHIVED, DB.ARCHIVED_AT)

    def delete(self, id: Any) -> bool:
        """Soft delete. False when the row does not exist."""
        return self.archive(id)

    def hard_delete(self, id: Any) -> bool:
        return super().delete(id)

    def archive(self, id: Any) -> bool:
        with self.get_session() as session:
            obj = session.get(self.model, id)
            if obj is None:
                return False
            if not obj.is_archived:
                obj.archive()
                self._stamp_update(obj)
                logger.info(f"Archived {self.model.__name__} id={id}")
            return True

    def unarchive(self, id: Any) -> bool:
        with self.get_session() as session:
            obj = session.get(self.model, id)
            if obj is None:
                return False
            if obj.is_archived:
                obj.unarchive()
                self._stamp_update(obj)
                logger.info(f"Unarchived {self.model.__name__} id={id}")
            return True

    def active(self):
        """Predicate selecting non-archived rows."""
        return self.model.is_archived.is_(False)
