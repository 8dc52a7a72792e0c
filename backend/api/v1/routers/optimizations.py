"""
Cost Optimization Router — history of EOQ / reorder point runs.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from db.models import CostOptimization, InventoryItem

router = APIRouter(prefix="/api/v1/cost-optimization", tags=["cost-optimization"])


class CostOptimizationResponse(BaseModel):
    id: UUID
    item_id: UUID | None
    item_name: str | None
    eoq: int | None
    reorder_point: int | None
    safety_stock: int | None
    optimal_order_quantity: int | None
    estimated_annual_cost: float | None
    calculation_date: datetime
    parameters: dict[str, Any] | None


@router.get("/", response_model=list[CostOptimizationResponse])
async def list_cost_optimizations(
    item_id: UUID | None = None,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Optimization runs newest first, with item name."""
    query = select(
        CostOptimization.id,
        CostOptimization.item_id,
        InventoryItem.item_name,
        CostOptimization.eoq,
        CostOptimization.reorder_point,
        CostOptimization.safety_stock,
        CostOptimization.optimal_order_quantity,
        CostOptimization.estimated_annual_cost,
        CostOptimization.calculation_date,
        CostOptimization.parameters,
    ).outerjoin(InventoryItem, InventoryItem.id == CostOptimization.item_id)
    if item_id:
        query = query.where(CostOptimization.item_id == item_id)
    query = query.order_by(CostOptimization.calculation_date.desc()).limit(limit)

    result = await db.execute(query)
    return [CostOptimizationResponse(**row._mapping) for row in result.all()]
