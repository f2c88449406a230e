"""
Column mixins shared by the warehouse models.

TimestampMixin   created_at (set on insert) / updated_at (set on update)
ArchivableMixin  is_archived + archived_at soft-delete flag
"""
from sqlalchemy import Boolean, Column, DateTime, Integer

from database.db_utils import utc_now


class TimestampMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=True)


class ArchivableMixin(TimestampMixin):
    is_archived = Column(Boolean, nullable=False, default=False, server_default="0", index=True)
    archived_at = Column(DateTime, nullable=True)

    def archive(self):
        self.is_archived = True
        self.archived_at = utc_now()

    def unarchive(self):
        self.is_archived = False
        self.archived_at = None
