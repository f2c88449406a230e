"""
Receipt documents bring goods in.

Every change to a receipt's lines is mirrored on the balances in the same
unit of work: create adds, update applies the net difference, delete
subtracts (and is refused when the goods have already left).
"""
import logging

from sqlalchemy.orm import Session

from database.crud.receipts_crud import ReceiptsCRUD
from database.models.receipt import ReceiptDocument, ReceiptItem
from services.balance_service import BalanceService, collect_quantities, merge_changes
from services.document_service import DocumentService
from services.dto import ReceiptCreate, ReceiptResponse, ReceiptUpdate

logger = logging.getLogger(__name__)


class ReceiptService(DocumentService[ReceiptDocument, ReceiptCreate, ReceiptUpdate, ReceiptResponse]):
    model = ReceiptDocument
    item_model = ReceiptItem
    crud_class = ReceiptsCRUD
    response_type = ReceiptResponse

    def after_create(self, session: Session, entity: ReceiptDocument) -> None:
        BalanceService(session).apply_changes(collect_quantities(entity.items))

    def apply_update(self, session: Session, entity: ReceiptDocument, dto: ReceiptUpdate) -> None:
        before = collect_quantities(entity.items, sign=-1)
        super().apply_update(session, entity, dto)
        after = collect_quantities(entity.items)
        BalanceService(session).apply_changes(merge_changes(before, after))

    def before_delete(self, session: Session, entity: ReceiptDocument) -> None:
        BalanceService(session).apply_changes(collect_quantities(entity.items, sign=-1))
