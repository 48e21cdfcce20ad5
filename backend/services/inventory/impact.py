import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.product import Product

from .alerts import AlertLevel, classify
from .usage import UsageDeduction, calculate_service_usage, parse_service_ids

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ImpactSummary:
    product_id: uuid.UUID
    product_name: str
    current_amount: Decimal
    requested_amount: Decimal
    remaining_amount: Decimal
    percentage_remaining: Decimal
    unit: str
    alert_level: AlertLevel


def consolidate(deductions: Iterable[UsageDeduction]) -> List[UsageDeduction]:
    """Merge deductions per product by summing amounts.

    The result is sorted by product id, so any ordering of the same multiset of
    deductions produces the same list.
    """
    totals: Dict[uuid.UUID, Decimal] = {}
    first_seen: Dict[uuid.UUID, UsageDeduction] = {}
    for d in deductions:
        totals[d.product_id] = totals.get(d.product_id, Decimal("0")) + Decimal(str(d.amount))
        first_seen.setdefault(d.product_id, d)

    out: List[UsageDeduction] = []
    for product_id in sorted(totals, key=str):
        seen = first_seen[product_id]
        out.append(
            UsageDeduction(
                product_id=product_id,
                amount=totals[product_id],
                unit=seen.unit,
                product_name=seen.product_name,
            )
        )
    return out


async def aggregate_usage(
    db: AsyncSession,
    service_ids: Iterable,
    attribute: Optional[str] = None,
) -> List[UsageDeduction]:
    """Consolidated deductions for every service of one checkout.

    Raises ValidationError / NotFound before anything is read from stock.
    """
    ids = parse_service_ids(service_ids)
    usage: List[UsageDeduction] = []
    for service_id in ids:
        usage.extend(await calculate_service_usage(db, service_id, attribute))
    return consolidate(usage)


def project_remaining(product: Product, requested: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """(current, remaining, percentage_remaining) in the product's primary unit.

    The percentage is taken against the full-container capacity at read time
    (container_count x capacity_per_container).
    """
    current = product.primary_quantity
    remaining = current - requested
    initial_capacity = Decimal(product.container_count) * product.capacity
    if initial_capacity <= 0:
        return current, remaining, Decimal("0")
    remaining_fine = remaining * product.capacity if product.is_piece else remaining
    return current, remaining, remaining_fine / initial_capacity * 100


async def summarize_impact(db: AsyncSession, deductions: List[UsageDeduction]) -> List[ImpactSummary]:
    """Advisory, read-only impact of consolidated deductions on stock."""
    out: List[ImpactSummary] = []
    for d in deductions:
        res = await db.execute(
            select(Product).where(Product.id == d.product_id).execution_options(populate_existing=True)
        )
        product = res.scalar_one_or_none()
        if product is None:
            logger.warning("preview skipped missing product", product_id=str(d.product_id))
            continue

        current, remaining, pct = project_remaining(product, d.amount)
        out.append(
            ImpactSummary(
                product_id=product.id,
                product_name=product.name,
                current_amount=current,
                requested_amount=d.amount,
                remaining_amount=remaining,
                percentage_remaining=pct,
                unit=product.unit,
                alert_level=classify(remaining, pct),
            )
        )

    logger.info(
        "inventory impact previewed",
        products=len(out),
        insufficient=sum(1 for s in out if s.alert_level == AlertLevel.INSUFFICIENT),
    )
    return out


async def preview_impact(
    db: AsyncSession,
    service_ids: Iterable,
    attribute: Optional[str] = None,
) -> List[ImpactSummary]:
    deductions = await aggregate_usage(db, service_ids, attribute)
    return await summarize_impact(db, deductions)
