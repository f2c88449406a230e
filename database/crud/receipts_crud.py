from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from database.crud.base_crud import BaseCRUD
from database.models.receipt import ReceiptDocument, ReceiptItem


class ReceiptsCRUD(BaseCRUD[ReceiptDocument]):
    relations = {
        "items": selectinload(ReceiptDocument.items),
        "items.resource": selectinload(ReceiptDocument.items).selectinload(ReceiptItem.resource),
        "items.unit": selectinload(ReceiptDocument.items).selectinload(ReceiptItem.unit),
    }
    search_fields = ("number", "items.resource.name", "items.unit.name")

    def __init__(self, session_factory=None):
        super().__init__(ReceiptDocument, session_factory)

    def count_items_using(self, *, resource_id=None, unit_id=None) -> int:
        """Receipt lines that reference the given resource and/or unit."""
        stmt = select(func.count()).select_from(ReceiptItem)
        if resource_id is not None:
            stmt = stmt.where(ReceiptItem.resource_id == resource_id)
        if unit_id is not None:
            stmt = stmt.where(ReceiptItem.unit_id == unit_id)
        with self.get_session() as session:
            return session.scalar(stmt) or 0
