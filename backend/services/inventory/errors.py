class InventoryError(Exception):
    """Base class for inventory engine errors."""


class NotFound(InventoryError):
    """A service or product id does not resolve."""


class ValidationError(InventoryError):
    """The request is malformed (e.g. empty service id list)."""


class InsufficientStock(InventoryError):
    """Deducting would drive a product balance negative."""

    def __init__(self, product_id, product_name: str, available, requested):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock for {product_name}.")


class InvalidQuantity(InventoryError):
    """The amount cannot be taken from this product (e.g. half a piece)."""
