from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from db.customer import Customer as CustomerModel
from db.database import get_async_session
from db.users import User
from schemas.inventory import (
    DeductionResultOut,
    ImpactSummaryOut,
    InventoryCheckoutRequest,
    InventoryPreviewResponse,
    LowStockProductOut,
    UsageDeductionOut,
)
from services.inventory import (
    ImpactSummary,
    InventoryError,
    NotFound,
    UsageDeduction,
    ValidationError,
    aggregate_usage,
    apply_deductions,
    summarize_impact,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


def _engine_error_to_http(e: InventoryError) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


async def _resolve_customer_attribute(db: AsyncSession, payload: InventoryCheckoutRequest) -> Optional[str]:
    if payload.customer_attribute:
        return payload.customer_attribute
    if not payload.customer_id:
        return None
    res = await db.execute(select(CustomerModel).where(CustomerModel.id == payload.customer_id))
    customer = res.scalar_one_or_none()
    if not customer:
        logger.warning("customer not found, using default quantities", customer_id=str(payload.customer_id))
        return None
    return (customer.gender or "").strip().lower() or None


def _deduction_out(d: UsageDeduction) -> UsageDeductionOut:
    return UsageDeductionOut(
        product_id=d.product_id,
        product_name=d.product_name,
        quantity_to_deduct=float(d.amount),
        unit=d.unit,
    )


def _impact_out(s: ImpactSummary) -> ImpactSummaryOut:
    return ImpactSummaryOut(
        product_id=s.product_id,
        product_name=s.product_name,
        current_quantity=float(s.current_amount),
        usage_quantity=float(s.requested_amount),
        remaining_after_usage=float(s.remaining_amount),
        percentage_remaining=float(s.percentage_remaining),
        unit=s.unit,
        alert_level=s.alert_level.value,
    )


@router.post("/inventory-preview", response_model=InventoryPreviewResponse)
async def inventory_preview(
    payload: InventoryCheckoutRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Dry-run the stock impact of a checkout.

    Nothing is written; products that would go negative are reported as `insufficient`.
    """
    try:
        attribute = await _resolve_customer_attribute(db, payload)
        deductions: List[UsageDeduction] = await aggregate_usage(db, payload.service_ids, attribute)
        impact = await summarize_impact(db, deductions)
        return InventoryPreviewResponse(
            customer_attribute=attribute,
            inventory_impact=[_impact_out(s) for s in impact],
            total_updates=[_deduction_out(d) for d in deductions],
        )
    except HTTPException:
        raise
    except InventoryError as e:
        raise _engine_error_to_http(e)
    except Exception as e:
        logger.exception("inventory preview failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to calculate inventory impact: {e}",
        )


@router.post("/inventory-deductions", response_model=DeductionResultOut)
async def inventory_deductions(
    payload: InventoryCheckoutRequest,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Deduct a finalized sale's consumables from stock.

    Each product is deducted independently; per-product failures are listed in
    `errors` and never fail the request. The caller decides whether they block the sale.
    """
    try:
        attribute = await _resolve_customer_attribute(db, payload)
        deductions = await aggregate_usage(db, payload.service_ids, attribute)
        result = await apply_deductions(db, deductions)
    except HTTPException:
        raise
    except InventoryError as e:
        raise _engine_error_to_http(e)
    except Exception as e:
        await db.rollback()
        logger.exception("inventory deduction failed", user_id=str(user.id))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to apply inventory updates: {e}",
        )

    if not result.all_succeeded:
        logger.warning("inventory update warnings", errors=result.errors, user_id=str(user.id))

    return DeductionResultOut(
        all_succeeded=result.all_succeeded,
        errors=result.errors,
        updated=result.updated,
        low_stock_products=[
            LowStockProductOut(
                product_id=p.product_id,
                name=p.name,
                sku=p.sku,
                container_count=p.container_count,
                fine_quantity=float(p.fine_quantity),
                unit=p.unit,
                threshold=p.threshold,
            )
            for p in result.low_stock_products
        ],
    )
