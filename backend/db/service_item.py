import uuid

from sqlalchemy import JSON, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .database import Base


class ServiceItem(Base):
    """Salon service (haircut, colouring, ...) as sold at checkout"""
    __tablename__ = "service_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False, default=30)

    consumables = relationship(
        "ServiceConsumable",
        back_populates="service",
        cascade="all, delete-orphan",
    )


class ServiceConsumable(Base):
    """Product consumed each time the service is rendered.

    `quantity_overrides` maps a customer attribute (e.g. 'male', 'female') to the
    amount used for that customer; `default_quantity` applies otherwise.
    """
    __tablename__ = "service_consumables"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_id = Column(UUID(as_uuid=True), ForeignKey("service_items.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    default_quantity = Column(Numeric(12, 3), nullable=False)
    quantity_overrides = Column(JSON, nullable=True)
    unit = Column(String, nullable=False)  # 'ml', 'g', 'piece', ...

    service = relationship("ServiceItem", back_populates="consumables")
    product = relationship("Product")
