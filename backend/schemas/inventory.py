from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


AlertLevelOut = Literal["ok", "low", "critical", "insufficient"]


class InventoryCheckoutRequest(BaseModel):
    service_ids: List[UUID]
    customer_id: Optional[UUID] = None
    # Explicit attribute wins over the customer's stored one.
    customer_attribute: Optional[str] = None

    @field_validator("service_ids")
    @classmethod
    def _service_ids_required(cls, v: List[UUID]) -> List[UUID]:
        if not v:
            raise ValueError("Service IDs are required")
        return v

    @field_validator("customer_attribute")
    @classmethod
    def _strip_attribute(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class UsageDeductionOut(BaseModel):
    product_id: UUID
    product_name: Optional[str] = None
    quantity_to_deduct: float
    unit: str


class ImpactSummaryOut(BaseModel):
    product_id: UUID
    product_name: str
    current_quantity: float
    usage_quantity: float
    remaining_after_usage: float
    percentage_remaining: float
    unit: str
    alert_level: AlertLevelOut


class InventoryPreviewResponse(BaseModel):
    customer_attribute: Optional[str] = None
    inventory_impact: List[ImpactSummaryOut]
    total_updates: List[UsageDeductionOut]


class LowStockProductOut(BaseModel):
    product_id: UUID
    name: str
    sku: str
    container_count: int
    fine_quantity: float
    unit: str
    threshold: int


class DeductionResultOut(BaseModel):
    all_succeeded: bool
    errors: List[str]
    updated: List[UUID]
    low_stock_products: List[LowStockProductOut]


class LowStockAlertOut(BaseModel):
    product_id: UUID
    name: str
    sku: str
    current_quantity: float
    container_count: int
    quantity_per_item: float
    unit: str
    stock_percentage: int
    threshold: int
    alert_level: AlertLevelOut


class LowStockAlertsResponse(BaseModel):
    alerts: List[LowStockAlertOut]


class StockOut(BaseModel):
    id: UUID
    sku: str
    name: str
    unit: str
    capacity_per_container: float
    on_hand: float
    container_count: int
    fine_quantity: float
    low_stock_threshold: Optional[int] = None
    is_active: bool
