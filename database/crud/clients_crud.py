from database.crud.archivable_crud import ArchivableCRUD
from database.models.client import Client


class ClientsCRUD(ArchivableCRUD[Client]):
    search_fields = ("name", "address")

    def __init__(self, session_factory=None):
        super().__init__(Client, session_factory)
