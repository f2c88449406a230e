from database.crud.archivable_crud import ArchivableCRUD
from database.models.resource import Resource


class ResourcesCRUD(ArchivableCRUD[Resource]):
    search_fields = ("name",)

    def __init__(self, session_factory=None):
        super().__init__(Resource, session_factory)
