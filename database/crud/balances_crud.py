from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from constants import ShipmentStatus
from database.crud.base_crud import BaseCRUD
from database.models.balance import Balance
from database.models.receipt import ReceiptItem
from database.models.shipment import ShipmentDocument, ShipmentItem


class BalancesCRUD(BaseCRUD[Balance]):
    relations = {
        "resource": selectinload(Balance.resource),
        "unit": selectinload(Balance.unit),
    }
    search_fields = ("resource.name", "unit.name")

    def __init__(self, session_factory=None):
        super().__init__(Balance, session_factory)

    def get_for(self, resource_id: int, unit_id: int) -> Optional[Balance]:
        return self.get_first_or_default(
            Balance.resource_id == resource_id, Balance.unit_id == unit_id
        )

    def count_using(self, *, resource_id=None, unit_id=None) -> int:
        predicates = []
        if resource_id is not None:
            predicates.append(Balance.resource_id == resource_id)
        if unit_id is not None:
            predicates.append(Balance.unit_id == unit_id)
        return self.get_count(*predicates)

    def totals_from_documents(self) -> Dict[Tuple[int, int], Decimal]:
        """Receipt quantities minus signed shipment quantities, per (resource, unit)."""
        received = (
            select(ReceiptItem.resource_id, ReceiptItem.unit_id, func.sum(ReceiptItem.quantity))
            .group_by(ReceiptItem.resource_id, ReceiptItem.unit_id)
        )
        shipped = (
            select(ShipmentItem.resource_id, ShipmentItem.unit_id, func.sum(ShipmentItem.quantity))
            .join(ShipmentDocument, ShipmentItem.document_id == ShipmentDocument.id)
            .where(ShipmentDocument.status == ShipmentStatus.SIGNED.value)
            .group_by(ShipmentItem.resource_id, ShipmentItem.unit_id)
        )
        totals: Dict[Tuple[int, int], Decimal] = {}
        with self.get_session() as session:
            for resource_id, unit_id, qty in session.execute(received):
                totals[(resource_id, unit_id)] = Decimal(str(qty or 0))
            for resource_id, unit_id, qty in session.execute(shipped):
                key = (resource_id, unit_id)
                totals[key] = totals.get(key, Decimal("0")) - Decimal(str(qty or 0))
        return totals
