from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from sqlalchemy import Column, String

from .database import Base


class User(SQLAlchemyBaseUserTableUUID, Base):
    """Staff account (billing staff, managers). Authentication is handled by fastapi-users."""
    __tablename__ = "users"

    full_name = Column(String, nullable=True)

    @property
    def to_schema(self):
        """Convert User model to schema dictionary format"""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
        }
