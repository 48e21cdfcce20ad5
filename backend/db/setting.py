from sqlalchemy import Column, String, Text

from .database import Base

GLOBAL_LOW_STOCK_THRESHOLD_KEY = "globalLowStockThreshold"


class Setting(Base):
    """Operator-editable key/value settings (values stored as text)."""
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
