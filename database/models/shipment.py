# database/models/shipment.py
from sqlalchemy import Column, Integer, String, Date, ForeignKey, Numeric, func, Index
from sqlalchemy.orm import relationship
from constants import ShipmentStatus, QUANTITY_PRECISION, QUANTITY_SCALE
from database.models import Base
from database.mixins import TimestampMixin


class ShipmentDocument(TimestampMixin, Base):
    __tablename__ = "shipment_documents"

    number = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=ShipmentStatus.DRAFT.value,
                    server_default=ShipmentStatus.DRAFT.value)

    client = relationship("Client")
    items = relationship(
        "ShipmentItem",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ShipmentItem.id",
    )

    @property
    def is_signed(self) -> bool:
        return self.status == ShipmentStatus.SIGNED.value

    def __repr__(self):
        return f"<ShipmentDocument(id={self.id}, number={self.number!r}, status={self.status})>"

Index("uq_shipment_documents_number_ci", func.lower(ShipmentDocument.number), unique=True)
Index("idx_shipment_documents_date", ShipmentDocument.date)
Index("idx_shipment_documents_status", ShipmentDocument.status)


class ShipmentItem(TimestampMixin, Base):
    __tablename__ = "shipment_items"

    document_id = Column(
        Integer, ForeignKey("shipment_documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False)

    document = relationship("ShipmentDocument", back_populates="items")
    resource = relationship("Resource")
    unit = relationship("Unit")

    def __repr__(self):
        return (
            f"<ShipmentItem(id={self.id}, resource_id={self.resource_id}, "
            f"unit_id={self.unit_id}, quantity={self.quantity})>"
        )

Index("idx_shipment_items_resource_unit", ShipmentItem.resource_id, ShipmentItem.unit_id)
