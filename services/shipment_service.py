"""
Shipment documents send goods out to a client.

A shipment is created as Draft, may be edited or deleted while Draft, and
is signed exactly once. Signing checks that every line is covered by the
current balance and then takes the quantities out.
"""
from typing import Any
import logging

from sqlalchemy.orm import Session

from constants import ShipmentStatus
from database.crud.clients_crud import ClientsCRUD
from database.crud.shipments_crud import ShipmentsCRUD
from database.models.base import unit_of_work
from database.models.shipment import ShipmentDocument, ShipmentItem
from exceptions import InvalidStateError, NotFoundError
from services.balance_service import BalanceService, collect_quantities
from services.document_service import DocumentService
from services.dto import ShipmentCreate, ShipmentResponse, ShipmentUpdate
from services.model_service import require_active

logger = logging.getLogger(__name__)


class ShipmentService(DocumentService[ShipmentDocument, ShipmentCreate, ShipmentUpdate, ShipmentResponse]):
    model = ShipmentDocument
    item_model = ShipmentItem
    crud_class = ShipmentsCRUD
    response_type = ShipmentResponse
    includes = ("client", "items.resource", "items.unit")
    require_items = True

    def validate(self, session: Session, dto, existing=None) -> None:
        if existing is not None:
            self._ensure_draft(existing, "edited")
        super().validate(session, dto, existing)
        require_active(ClientsCRUD(session), dto.client_id, "client_id", "Client")

    def to_entity(self, session: Session, dto: ShipmentCreate) -> ShipmentDocument:
        entity = super().to_entity(session, dto)
        entity.status = ShipmentStatus.DRAFT.value
        return entity

    def before_delete(self, session: Session, entity: ShipmentDocument) -> None:
        self._ensure_draft(entity, "deleted")

    def to_response(self, entity: ShipmentDocument, **extra) -> ShipmentResponse:
        client_name = entity.client.name if entity.client is not None else ""
        return super().to_response(entity, client_name=client_name)

    def sign(self, id: Any) -> ShipmentResponse:
        """
        Draft → Signed, taking the shipped quantities off the balances.

        Raises:
            NotFoundError: no such shipment
            InvalidStateError: already signed
            InsufficientBalanceError: some line is not covered
        """
        with unit_of_work(self.session_factory) as session:
            repo = self.repository(session)
            entity = repo.get_by_id(id, includes=self.includes)
            if entity is None:
                raise NotFoundError(self.entity_name, id)
            if entity.is_signed:
                raise InvalidStateError(
                    f"Shipment '{entity.number}' is already signed", code="SHIPMENT_SIGNED"
                )

            BalanceService(session).apply_changes(collect_quantities(entity.items, sign=-1))
            entity.status = ShipmentStatus.SIGNED.value
            entity = repo.update(entity)
            logger.info(f"Shipment signed: id={entity.id} number={entity.number!r}")
            return self.to_response(entity)

    @staticmethod
    def _ensure_draft(entity: ShipmentDocument, action: str) -> None:
        if entity.is_signed:
            raise InvalidStateError(
                f"Signed shipment '{entity.number}' cannot be {action}", code="SHIPMENT_SIGNED"
            )
