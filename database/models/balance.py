# database/models/balance.py
from sqlalchemy import Column, Integer, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from constants import QUANTITY_PRECISION, QUANTITY_SCALE
from database.models import Base
from database.mixins import TimestampMixin


class Balance(TimestampMixin, Base):
    """On-hand quantity per (resource, unit). Rows exist only while quantity > 0."""

    __tablename__ = "balances"
    __table_args__ = (
        UniqueConstraint("resource_id", "unit_id", name="uq_balances_resource_unit"),
    )

    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False, default=0)

    resource = relationship("Resource")
    unit = relationship("Unit")

    def __repr__(self):
        return (
            f"<Balance(resource_id={self.resource_id}, unit_id={self.unit_id}, "
            f"quantity={self.quantity})>"
        )
