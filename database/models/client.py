from sqlalchemy import Column, String, Text, func, Index
from database.models import Base
from database.mixins import ArchivableMixin


class Client(ArchivableMixin, Base):
    __tablename__ = "clients"

    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Client(id={self.id}, name={self.name!r}, archived={self.is_archived})>"

Index("uq_clients_name_ci", func.lower(Client.name), unique=True)
