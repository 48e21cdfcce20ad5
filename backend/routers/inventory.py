from typing import List
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_async_session
from db.product import Product as ProductModel
from schemas.inventory import LowStockAlertOut, LowStockAlertsResponse, StockOut
from services.inventory import low_stock_sweep

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/alerts", response_model=LowStockAlertsResponse)
async def low_stock_alerts(db: AsyncSession = Depends(get_async_session)):
    """
    Products whose full containers are below 25% of their low-stock threshold, lowest first.

    `critical` below 10%, `low` below 25%. This cutoff is independent of the
    checkout preview's tiers.
    """
    try:
        alerts = await low_stock_sweep(db)
    except Exception as e:
        logger.exception("low stock sweep failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return LowStockAlertsResponse(
        alerts=[
            LowStockAlertOut(
                product_id=a.product_id,
                name=a.name,
                sku=a.sku,
                current_quantity=float(a.current_amount),
                container_count=a.container_count,
                quantity_per_item=float(a.capacity_per_container),
                unit=a.unit,
                stock_percentage=a.stock_percentage,
                threshold=a.threshold,
                alert_level=a.alert_level.value,
            )
            for a in alerts
        ]
    )


@router.get("/stock", response_model=List[StockOut])
async def get_stock(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(ProductModel)
    if not include_inactive:
        stmt = stmt.where(ProductModel.is_active == True)  # noqa: E712
    res = await db.execute(stmt.order_by(func.lower(ProductModel.name).asc()))
    return [p.to_schema for p in res.scalars().all()]


@router.get("/stock/{product_id}", response_model=StockOut)
async def get_stock_for_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(select(ProductModel).where(ProductModel.id == product_id))
    product = res.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product.to_schema
