from database.crud.archivable_crud import ArchivableCRUD
from database.models.unit import Unit


class UnitsCRUD(ArchivableCRUD[Unit]):
    search_fields = ("name",)

    def __init__(self, session_factory=None):
        super().__init__(Unit, session_factory)
