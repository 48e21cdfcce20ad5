import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.service_item import ServiceConsumable, ServiceItem

from .errors import NotFound, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UsageDeduction:
    product_id: uuid.UUID
    amount: Decimal
    unit: str
    product_name: Optional[str] = None


def normalize_attribute(attribute: Optional[str]) -> Optional[str]:
    a = (attribute or "").strip().lower()
    return a or None


def parse_service_ids(service_ids: Iterable) -> List[uuid.UUID]:
    """Validate the checkout's service id list. Order and duplicates are kept."""
    if service_ids is None or isinstance(service_ids, (str, bytes)):
        raise ValidationError("Service IDs are required")
    out: List[uuid.UUID] = []
    for raw in service_ids:
        if isinstance(raw, uuid.UUID):
            out.append(raw)
            continue
        try:
            out.append(uuid.UUID(str(raw)))
        except (TypeError, ValueError):
            raise ValidationError(f"Malformed service id: {raw!r}")
    if not out:
        raise ValidationError("Service IDs are required")
    return out


def select_quantity(consumable: ServiceConsumable, attribute: Optional[str]) -> Decimal:
    """Attribute-specific quantity when the policy defines one, else the default."""
    overrides = consumable.quantity_overrides or {}
    key = normalize_attribute(attribute)
    if key is not None and overrides.get(key) is not None:
        return Decimal(str(overrides[key]))
    return Decimal(str(consumable.default_quantity or 0))


async def calculate_service_usage(
    db: AsyncSession,
    service_id: uuid.UUID,
    attribute: Optional[str] = None,
) -> List[UsageDeduction]:
    res = await db.execute(
        select(ServiceItem)
        .options(selectinload(ServiceItem.consumables).selectinload(ServiceConsumable.product))
        .where(ServiceItem.id == service_id)
        .execution_options(populate_existing=True)
    )
    service = res.scalar_one_or_none()
    if service is None:
        raise NotFound(f"Service with id {service_id} not found")

    out: List[UsageDeduction] = []
    for consumable in service.consumables or []:
        product = consumable.product
        out.append(
            UsageDeduction(
                product_id=consumable.product_id,
                amount=select_quantity(consumable, attribute),
                unit=consumable.unit or (product.unit if product else ""),
                product_name=product.name if product else None,
            )
        )
    logger.debug("service usage calculated", service_id=str(service_id), attribute=attribute, deductions=len(out))
    return out
