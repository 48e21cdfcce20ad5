"""
Alert tiers for remaining stock.

Two rule sets exist and are intentionally different:
- per-checkout preview (`classify`): critical <= 10 %, low <= 20 %;
- standalone low-stock sweep (`classify_sweep`), full containers as a share of
  the product's low-stock threshold: critical < 10 %, low < 25 %.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.product import Product
from db.setting import GLOBAL_LOW_STOCK_THRESHOLD_KEY, Setting

logger = structlog.get_logger(__name__)

PREVIEW_CRITICAL_PCT = Decimal("10")
PREVIEW_LOW_PCT = Decimal("20")
SWEEP_CRITICAL_PCT = Decimal("10")
SWEEP_LOW_PCT = Decimal("25")


class AlertLevel(str, Enum):
    OK = "ok"
    LOW = "low"
    CRITICAL = "critical"
    INSUFFICIENT = "insufficient"


def classify(remaining_amount: Decimal | float, percentage_remaining: Decimal | float) -> AlertLevel:
    remaining = Decimal(str(remaining_amount))
    pct = Decimal(str(percentage_remaining))
    if remaining < 0:
        return AlertLevel.INSUFFICIENT
    if pct <= PREVIEW_CRITICAL_PCT:
        return AlertLevel.CRITICAL
    if pct <= PREVIEW_LOW_PCT:
        return AlertLevel.LOW
    return AlertLevel.OK


def classify_sweep(stock_percentage: Decimal | float) -> Optional[AlertLevel]:
    """Sweep tier, or None when the product does not need an alert."""
    pct = Decimal(str(stock_percentage))
    if pct < SWEEP_CRITICAL_PCT:
        return AlertLevel.CRITICAL
    if pct < SWEEP_LOW_PCT:
        return AlertLevel.LOW
    return None


async def get_global_low_stock_threshold(db: AsyncSession) -> int:
    res = await db.execute(select(Setting).where(Setting.key == GLOBAL_LOW_STOCK_THRESHOLD_KEY))
    setting = res.scalar_one_or_none()
    if setting is None:
        return settings.default_low_stock_threshold
    try:
        return int(str(setting.value).strip())
    except ValueError:
        logger.warning("invalid low stock threshold setting", value=setting.value)
        return settings.default_low_stock_threshold


def effective_threshold(product: Product, global_threshold: int) -> int:
    if product.low_stock_threshold is not None:
        return int(product.low_stock_threshold)
    return global_threshold


@dataclass(frozen=True)
class LowStockAlert:
    product_id: uuid.UUID
    name: str
    sku: str
    current_amount: Decimal
    container_count: int
    capacity_per_container: Decimal
    unit: str
    stock_percentage: int
    threshold: int
    alert_level: AlertLevel


async def low_stock_sweep(db: AsyncSession) -> List[LowStockAlert]:
    """Read-only pass over all active products, lowest stock first.

    Products whose effective threshold is 0 are never flagged.
    """
    global_threshold = await get_global_low_stock_threshold(db)
    res = await db.execute(select(Product).where(Product.is_active == True))  # noqa: E712

    flagged: List[tuple[Decimal, LowStockAlert]] = []
    for product in res.scalars().all():
        threshold = effective_threshold(product, global_threshold)
        if threshold <= 0:
            continue
        pct = Decimal(product.container_count) / Decimal(threshold) * 100
        level = classify_sweep(pct)
        if level is None:
            continue
        flagged.append(
            (
                pct,
                LowStockAlert(
                    product_id=product.id,
                    name=product.name,
                    sku=product.sku,
                    current_amount=product.fine_quantity,
                    container_count=product.container_count,
                    capacity_per_container=product.capacity,
                    unit=product.unit,
                    stock_percentage=int(round(pct)),
                    threshold=threshold,
                    alert_level=level,
                ),
            )
        )

    flagged.sort(key=lambda pair: pair[0])
    alerts = [a for (_pct, a) in flagged]
    logger.info("low stock sweep finished", flagged=len(alerts))
    return alerts
