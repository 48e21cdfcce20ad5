"""
Stock mutation for finalized sales.

Deductions are applied product by product. Each product is its own unit of
work: a failure for one product is recorded in `errors` and the loop moves on,
products already deducted stay deducted. Whether a partial failure blocks the
sale is the caller's decision.

The decrement is a single conditional UPDATE (`on_hand >= amount` in the WHERE
clause), so two concurrent checkouts cannot both pass the sufficiency check
against the same stale balance.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.product import Product

from .alerts import effective_threshold, get_global_low_stock_threshold
from .errors import InsufficientStock, InvalidQuantity, NotFound
from .impact import aggregate_usage
from .usage import UsageDeduction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LowStockProduct:
    product_id: uuid.UUID
    name: str
    sku: str
    container_count: int
    fine_quantity: Decimal
    unit: str
    threshold: int


@dataclass
class DeductionResult:
    all_succeeded: bool = True
    errors: List[str] = field(default_factory=list)
    updated: List[uuid.UUID] = field(default_factory=list)
    low_stock_products: List[LowStockProduct] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.all_succeeded = False
        self.errors.append(message)


async def decrement_stock(db: AsyncSession, product_id: uuid.UUID, amount: Decimal) -> Product:
    """Atomically deduct `amount` primary units from one product and commit.

    Raises NotFound / InvalidQuantity / InsufficientStock without touching the balance.
    """
    res = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    product = res.scalar_one_or_none()
    if product is None:
        raise NotFound(f"Product with ID {product_id} not found.")
    if product.is_piece and amount != amount.to_integral_value():
        raise InvalidQuantity(f"Cannot deduct {amount} pieces of {product.name}: piece stock is counted in whole units.")

    stock_tbl = Product.__table__
    stmt = (
        update(stock_tbl)
        .where(stock_tbl.c.id == product_id)
        .where(stock_tbl.c.on_hand >= amount)
        .values(on_hand=stock_tbl.c.on_hand - amount)
        .returning(stock_tbl.c.on_hand)
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        raise InsufficientStock(product.id, product.name, product.primary_quantity, amount)

    await db.commit()
    await db.refresh(product)
    return product


async def apply_deductions(
    db: AsyncSession,
    deductions: Iterable[UsageDeduction],
    global_threshold: Optional[int] = None,
) -> DeductionResult:
    result = DeductionResult()
    if global_threshold is None:
        global_threshold = await get_global_low_stock_threshold(db)

    for d in deductions:
        amount = Decimal(str(d.amount))
        if amount <= 0:
            continue
        try:
            product = await decrement_stock(db, d.product_id, amount)
        except NotFound as e:
            logger.warning("deduction skipped, product missing", product_id=str(d.product_id))
            result.fail(str(e))
            continue
        except InvalidQuantity as e:
            logger.warning("deduction rejected, fractional piece amount", product_id=str(d.product_id), amount=str(amount))
            result.fail(str(e))
            continue
        except InsufficientStock as e:
            logger.warning(
                "deduction rejected, insufficient stock",
                product_id=str(e.product_id),
                available=str(e.available),
                requested=str(e.requested),
            )
            result.fail(str(e))
            continue
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("deduction failed", product_id=str(d.product_id))
            result.fail(f"Failed to update product {d.product_name or d.product_id}: {e}")
            continue

        result.updated.append(product.id)
        logger.info(
            "stock deducted",
            product_id=str(product.id),
            amount=str(amount),
            unit=product.unit,
            on_hand=str(product.primary_quantity),
        )

        threshold = effective_threshold(product, global_threshold)
        if product.container_count <= threshold:
            result.low_stock_products.append(
                LowStockProduct(
                    product_id=product.id,
                    name=product.name,
                    sku=product.sku,
                    container_count=product.container_count,
                    fine_quantity=product.fine_quantity,
                    unit=product.unit,
                    threshold=threshold,
                )
            )

    return result


async def apply_service_deductions(
    db: AsyncSession,
    service_ids: Iterable,
    attribute: Optional[str] = None,
) -> DeductionResult:
    """Aggregate a checkout's services and deduct the totals from stock."""
    deductions = await aggregate_usage(db, service_ids, attribute)
    return await apply_deductions(db, deductions)
