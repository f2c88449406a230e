from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from constants import DatabaseFields as DB
from database.crud.base_crud import BaseCRUD
from database.models.shipment import ShipmentDocument, ShipmentItem


class ShipmentsCRUD(BaseCRUD[ShipmentDocument]):
    relations = {
        "client": selectinload(ShipmentDocument.client),
        "items": selectinload(ShipmentDocument.items),
        "items.resource": selectinload(ShipmentDocument.items).selectinload(ShipmentItem.resource),
        "items.unit": selectinload(ShipmentDocument.items).selectinload(ShipmentItem.unit),
    }
    search_fields = ("number", "client.name", "items.resource.name", "items.unit.name")

    # status only moves through sign()
    protected_fields = BaseCRUD.protected_fields + (DB.STATUS,)

    def __init__(self, session_factory=None):
        super().__init__(ShipmentDocument, session_factory)

    def count_items_using(self, *, resource_id=None, unit_id=None) -> int:
        stmt = select(func.count()).select_from(ShipmentItem)
        if resource_id is not None:
            stmt = stmt.where(ShipmentItem.resource_id == resource_id)
        if unit_id is not None:
            stmt = stmt.where(ShipmentItem.unit_id == unit_id)
        with self.get_session() as session:
            return session.scalar(stmt) or 0

    def count_for_client(self, client_id: int) -> int:
        return self.get_count(ShipmentDocument.client_id == client_id)
