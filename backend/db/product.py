"""
Product stock record.

Only `on_hand` is stored. It is kept in the product's *primary* unit:
- piece-kind products ('piece'): number of pieces, one piece == one container;
- continuous-kind products ('ml', 'l', 'g', 'kg', 'cm', 'm'): total fine quantity.

The container view (`container_count`) and the fine view (`fine_quantity`) are
derived on read, so they can never drift apart.
"""

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID

from .database import Base

PIECE_UNIT = "piece"
CONTINUOUS_UNITS = ("ml", "l", "g", "kg", "cm", "m")
PRODUCT_UNITS = (PIECE_UNIT,) + CONTINUOUS_UNITS


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("on_hand >= 0", name="ck_products_on_hand_non_negative"),
        CheckConstraint("capacity_per_container >= 0", name="ck_products_capacity_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sku = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)

    unit = Column(String, nullable=False, default=PIECE_UNIT)
    capacity_per_container = Column(Numeric(12, 3), nullable=False, default=1)
    on_hand = Column(Numeric(14, 3), nullable=False, default=0)

    # Floor in containers; NULL means "use the global setting".
    low_stock_threshold = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    @property
    def is_piece(self) -> bool:
        return (self.unit or "").strip().lower() == PIECE_UNIT

    @property
    def capacity(self) -> Decimal:
        return Decimal(str(self.capacity_per_container or 0))

    @property
    def primary_quantity(self) -> Decimal:
        return Decimal(str(self.on_hand or 0))

    @property
    def container_count(self) -> int:
        if self.is_piece:
            return int(self.primary_quantity)
        if self.capacity <= 0:
            return 0
        return int(self.primary_quantity // self.capacity)

    @property
    def fine_quantity(self) -> Decimal:
        if self.is_piece:
            return self.primary_quantity * self.capacity
        return self.primary_quantity

    @property
    def to_schema(self):
        """Stock view with both derived counters"""
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "unit": self.unit,
            "capacity_per_container": float(self.capacity),
            "on_hand": float(self.primary_quantity),
            "container_count": self.container_count,
            "fine_quantity": float(self.fine_quantity),
            "low_stock_threshold": self.low_stock_threshold,
            "is_active": bool(self.is_active),
        }
