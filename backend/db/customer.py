import uuid

from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID

from .database import Base


class Customer(Base):
    """Salon customer. Only `gender` matters to inventory: it selects consumable overrides."""
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True, index=True)
    gender = Column(String, nullable=False, default="other")  # 'male' | 'female' | 'other'
