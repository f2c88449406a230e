"""Resources: archivable, unique name, in-use guard on delete."""
from typing import Optional

from sqlalchemy.orm import Session

from database.crud.balances_crud import BalancesCRUD
from database.crud.receipts_crud import ReceiptsCRUD
from database.crud.resources_crud import ResourcesCRUD
from database.crud.shipments_crud import ShipmentsCRUD
from database.models.resource import Resource
from services.dto import ResourceCreate, ResourceResponse, ResourceUpdate
from services.model_service import ArchivableService


def usage_reason(session: Session, **key) -> Optional[str]:
    """Describe what still references a resource or unit, or None."""
    parts = []
    receipts = ReceiptsCRUD(session).count_items_using(**key)
    if receipts:
        parts.append(f"{receipts} receipt item(s)")
    shipments = ShipmentsCRUD(session).count_items_using(**key)
    if shipments:
        parts.append(f"{shipments} shipment item(s)")
    balances = BalancesCRUD(session).count_using(**key)
    if balances:
        parts.append(f"{balances} balance row(s)")
    if not parts:
        return None
    return "referenced by " + ", ".join(parts)


class ResourceService(ArchivableService[Resource, ResourceCreate, ResourceUpdate, ResourceResponse]):
    model = Resource
    crud_class = ResourcesCRUD
    response_type = ResourceResponse

    def in_use_reason(self, session: Session, entity: Resource) -> Optional[str]:
        return usage_reason(session, resource_id=entity.id)
