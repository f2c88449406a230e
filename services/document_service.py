"""
services/document_service.py
============================
Shared plumbing for receipt and shipment documents: number uniqueness,
item validation and item replacement on update.
"""
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from constants import QUANTITY_PRECISION, QUANTITY_SCALE
from database.crud.resources_crud import ResourcesCRUD
from database.crud.units_crud import UnitsCRUD
from database.db_utils import to_date, to_decimal
from exceptions import InvalidValueError, MissingFieldError, ValidationError
from services.dto import DocumentItemInput, DocumentItemResponse
from services.model_service import ModelService, map_fields, require_active, C, R, T, U

logger = logging.getLogger(__name__)

QUANTITY_STEP = Decimal(1).scaleb(-QUANTITY_SCALE)
QUANTITY_LIMIT = Decimal(10) ** (QUANTITY_PRECISION - QUANTITY_SCALE)


def check_quantity(value, field: str) -> Decimal:
    """
    Item quantities are finite, positive, and fit Numeric(precision, scale)
    exactly, so what is validated is what gets stored.

    Raises:
        InvalidValueError: with ``field`` as the offending path
    """
    quantity = to_decimal(value)
    if quantity is None:
        raise InvalidValueError(field, value, "must be a finite number")
    if quantity <= 0:
        raise InvalidValueError(field, value, "must be greater than zero")
    if quantity >= QUANTITY_LIMIT:
        raise InvalidValueError(field, value, f"must be less than {QUANTITY_LIMIT}")
    if quantity != quantity.quantize(QUANTITY_STEP):
        raise InvalidValueError(field, value, f"at most {QUANTITY_SCALE} decimal places")
    return quantity


class DocumentService(ModelService[T, C, U, R]):

    item_model: type
    includes = ("items.resource", "items.unit")
    required_fields = ("number",)
    unique_fields = ("number",)
    require_items = False

    def normalize(self, dto):
        dto = super().normalize(dto)
        items = [
            replace(item, quantity=_coerce(item.quantity))
            for item in (dto.items or [])
        ]
        return replace(dto, date=to_date(dto.date), items=items)

    def validate(self, session: Session, dto, existing=None) -> None:
        super().validate(session, dto, existing)
        if dto.date is None:
            raise MissingFieldError("date")
        self.validate_items(session, dto.items)

    def validate_items(self, session: Session, items: List[DocumentItemInput]) -> None:
        if self.require_items and not items:
            raise ValidationError("Document must contain at least one item", field="items")

        resources = ResourcesCRUD(session)
        units = UnitsCRUD(session)
        for idx, item in enumerate(items):
            prefix = f"items[{idx}]"
            check_quantity(item.quantity, f"{prefix}.quantity")
            require_active(resources, item.resource_id, f"{prefix}.resource_id", "Resource")
            require_active(units, item.unit_id, f"{prefix}.unit_id", "Unit")

    def build_items(self, items: List[DocumentItemInput]) -> list:
        return [
            self.item_model(resource_id=item.resource_id, unit_id=item.unit_id, quantity=item.quantity)
            for item in items
        ]

    def to_entity(self, session: Session, dto):
        entity = super().to_entity(session, dto)
        entity.items = self.build_items(dto.items)
        return entity

    def apply_update(self, session: Session, entity, dto) -> None:
        super().apply_update(session, entity, dto)
        # items are replaced wholesale; delete-orphan drops the old rows
        entity.items.clear()
        entity.items.extend(self.build_items(dto.items))

    @staticmethod
    def item_response(item) -> DocumentItemResponse:
        return map_fields(
            item, DocumentItemResponse,
            resource_name=item.resource.name if item.resource is not None else "",
            unit_name=item.unit.name if item.unit is not None else "",
        )

    def to_response(self, entity, **extra) -> R:
        return map_fields(
            entity, self.response_type,
            items=[self.item_response(item) for item in entity.items],
            **extra,
        )


def _coerce(value):
    """Decimal when possible; the raw value otherwise, so the error can quote it."""
    quantity = to_decimal(value)
    return quantity if quantity is not None else value
