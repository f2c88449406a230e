"""Clients: archivable, unique name, cannot be deleted while shipments reference them."""
from typing import Optional

from sqlalchemy.orm import Session

from database.crud.clients_crud import ClientsCRUD
from database.crud.shipments_crud import ShipmentsCRUD
from database.models.client import Client
from services.dto import ClientCreate, ClientResponse, ClientUpdate
from services.model_service import ArchivableService


class ClientService(ArchivableService[Client, ClientCreate, ClientUpdate, ClientResponse]):
    model = Client
    crud_class = ClientsCRUD
    response_type = ClientResponse

    def in_use_reason(self, session: Session, entity: Client) -> Optional[str]:
        count = ShipmentsCRUD(session).count_for_client(entity.id)
        if count:
            return f"referenced by {count} shipment document(s)"
        return None
