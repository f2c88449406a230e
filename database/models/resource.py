from sqlalchemy import Column, String, func, Index
from database.models import Base
from database.mixins import ArchivableMixin


class Resource(ArchivableMixin, Base):
    __tablename__ = "resources"

    name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Resource(id={self.id}, name={self.name!r}, archived={self.is_archived})>"

Index("uq_resources_name_ci", func.lower(Resource.name), unique=True)
