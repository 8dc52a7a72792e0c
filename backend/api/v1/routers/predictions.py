"""
Predictions Router — latest estimates, estimate history, model registry.

Endpoints:
  GET /api/v1/predictions/                — Latest estimate per item
  GET /api/v1/predictions/history         — Append-only estimate history
  GET /api/v1/predictions/models          — Registered model versions
  GET /api/v1/predictions/models/active   — Model used by prediction runs
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from db.models import InventoryItem, ModelRegistry, Prediction, PredictionHistory
from ml.registry import resolve_active_model

router = APIRouter(prefix="/api/v1/predictions", tags=["predictions"])


class LatestPredictionResponse(BaseModel):
    item_id: UUID
    item_name: str
    item_type: str
    current_stock: int
    estimated_demand: float
    inventory_shortfall: float
    replenishment_needs: float
    predicted_by: str | None
    created_at: datetime


class PredictionHistoryResponse(BaseModel):
    id: UUID
    item_id: UUID | None
    model_version_id: UUID | None
    predicted_demand: float
    confidence_score: float | None
    feature_values: dict[str, Any]
    feature_contributions: dict[str, Any] | None
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ModelResponse(BaseModel):
    id: UUID
    model_version: str
    model_type: str
    training_date: datetime
    mae: float
    rmse: float | None
    r2_score: float | None
    dataset_summary: dict[str, Any] | None
    feature_importance: dict[str, Any] | None
    hyperparameters: dict[str, Any] | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


@router.get("/", response_model=list[LatestPredictionResponse])
async def list_latest_predictions(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Latest estimate per item, with item name and stock."""
    result = await db.execute(
        select(
            Prediction.item_id,
            InventoryItem.item_name,
            InventoryItem.item_type,
            InventoryItem.current_stock,
            Prediction.estimated_demand,
            Prediction.inventory_shortfall,
            Prediction.replenishment_needs,
            Prediction.predicted_by,
            Prediction.created_at,
        )
        .join(InventoryItem, InventoryItem.id == Prediction.item_id)
        .order_by(InventoryItem.item_name)
    )
    return [LatestPredictionResponse(**row._mapping) for row in result.all()]


@router.get("/history", response_model=list[PredictionHistoryResponse])
async def list_prediction_history(
    item_id: UUID | None = None,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    query = select(PredictionHistory)
    if item_id:
        query = query.where(PredictionHistory.item_id == item_id)
    query = query.order_by(PredictionHistory.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/models", response_model=list[ModelResponse])
async def list_models(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    result = await db.execute(select(ModelRegistry).order_by(ModelRegistry.created_at.desc()))
    return result.scalars().all()


@router.get("/models/active")
async def get_active_model(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Active model; 500 ``{"error": "No active model found"}`` when none."""
    model = await resolve_active_model(db)
    return {
        "model_id": str(model.model_id),
        "model_version": model.model_version,
        "metrics": model.metrics,
    }
