# database/models/receipt.py
from sqlalchemy import Column, Integer, String, Date, ForeignKey, Numeric, func, Index
from sqlalchemy.orm import relationship
from constants import QUANTITY_PRECISION, QUANTITY_SCALE
from database.models import Base
from database.mixins import TimestampMixin


class ReceiptDocument(TimestampMixin, Base):
    __tablename__ = "receipt_documents"

    number = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)

    items = relationship(
        "ReceiptItem",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReceiptItem.id",
    )

    def __repr__(self):
        return f"<ReceiptDocument(id={self.id}, number={self.number!r})>"

Index("uq_receipt_documents_number_ci", func.lower(ReceiptDocument.number), unique=True)
Index("idx_receipt_documents_date", ReceiptDocument.date)


class ReceiptItem(TimestampMixin, Base):
    __tablename__ = "receipt_items"

    document_id = Column(
        Integer, ForeignKey("receipt_documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False)

    document = relationship("ReceiptDocument", back_populates="items")
    resource = relationship("Resource")
    unit = relationship("Unit")

    def __repr__(self):
        return (
            f"<ReceiptItem(id={self.id}, resource_id={self.resource_id}, "
            f"unit_id={self.unit_id}, quantity={self.quantity})>"
        )

Index("idx_receipt_items_resource_unit", ReceiptItem.resource_id, ReceiptItem.unit_id)
