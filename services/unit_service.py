"""Units of measure: archivable, unique name, in-use guard on delete."""
from typing import Optional

from sqlalchemy.orm import Session

from database.crud.units_crud import UnitsCRUD
from database.models.unit import Unit
from services.dto import UnitCreate, UnitResponse, UnitUpdate
from services.model_service import ArchivableService
from services.resource_service import usage_reason


class UnitService(ArchivableService[Unit, UnitCreate, UnitUpdate, UnitResponse]):
    model = Unit
    crud_class = UnitsCRUD
    response_type = UnitResponse

    def in_use_reason(self, session: Session, entity: Unit) -> Optional[str]:
        return usage_reason(session, unit_id=entity.id)
