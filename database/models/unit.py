from sqlalchemy import Column, String, func, Index
from database.models import Base
from database.mixins import ArchivableMixin


class Unit(ArchivableMixin, Base):
    __tablename__ = "units"

    name = Column(String(64), nullable=False)

    def __repr__(self):
        return f"<Unit(id={self.id}, name={self.name!r}, archived={self.is_archived})>"

Index("uq_units_name_ci", func.lower(Unit.name), unique=True)
