"""SQLAlchemy models. Importing the package registers every table on `Base.metadata`."""

from .database import Base
from .users import User
from .customer import Customer
from .product import Product
from .service_item import ServiceItem, ServiceConsumable
from .setting import Setting

__all__ = [
    "Base",
    "User",
    "Customer",
    "Product",
    "ServiceItem",
    "ServiceConsumable",
    "Setting",
]
