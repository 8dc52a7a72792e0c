"""
Functions Router — prediction, cost optimization and seeding runs.

All endpoints take POST + JSON and a bearer token, and answer failures
with ``{"error": message}``: 401 for authentication, 500 otherwise.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core.config import get_settings
from core.errors import MedStockError, StorePersistenceFailure, error_response
from inventory.estimator import estimate_demand
from inventory.optimizer import OptimizerConfig
from inventory.runs import run_cost_optimization, run_predictions
from inventory.seed import seed_sample_data
from ml.registry import resolve_active_model

router = APIRouter(prefix="/api/v1/functions", tags=["functions"])
logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


# ─── Schemas ────────────────────────────────────────────────────────────────


class SinglePrediction(BaseModel):
    """Ad-hoc item fields for demo mode; nothing is persisted."""

    item_name: str | None = None
    item_type: str | None = None
    current_stock: int = Field(ge=0)
    min_required: int = Field(ge=0)
    max_capacity: int = Field(ge=0)
    avg_usage_per_day: int = Field(ge=0)
    restock_lead_time: int = Field(ge=0)
    unit_cost: float = Field(0.0, ge=0)
    vendor_name: str | None = None


class PredictionRequest(BaseModel):
    run_all: bool = False
    item_id: UUID | None = None
    single_prediction: SinglePrediction | None = None


class OptimizationRequest(BaseModel):
    run_all: bool = False
    item_id: UUID | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.options("/{function_name}")
async def function_preflight(function_name: str):
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/run-predictions")
async def run_predictions_endpoint(
    body: PredictionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """
    Estimate demand for one item, all items, or an ad-hoc item.

    With ``single_prediction`` the estimate is returned directly (demo
    mode). Otherwise results are persisted and a batch report returned;
    items whose writes fail are listed in ``failures``.
    """
    body = body or PredictionRequest()
    settings = get_settings()
    try:
        model = await resolve_active_model(db)

        if body.single_prediction is not None:
            estimate = estimate_demand(body.single_prediction, model.estimator)
            return {"success": True, **estimate.to_dict(), "model_version": model.model_version}

        batch = await run_predictions(
            db,
            model,
            user_id=user.get("sub"),
            item_id=body.item_id,
            run_all=body.run_all,
            confidence_score=settings.prediction_confidence_score,
        )
    except MedStockError as exc:
        logger.warning("functions.run_predictions_failed", error=exc.message)
        return error_response(exc)
    except Exception as exc:
        logger.exception("functions.run_predictions_error")
        return error_response(exc)

    return {
        "success": True,
        "predictions": batch.successes,
        "alerts_generated": batch.alerts_generated,
        "alerts_error": batch.alerts_error,
        "model_version": batch.model_version,
        "failures": batch.failures,
        "status": batch.status,
    }


@router.post("/calculate-cost-optimization")
async def calculate_cost_optimization_endpoint(
    body: OptimizationRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Compute EOQ, reorder point and safety stock; persist one row per item."""
    body = body or OptimizationRequest()
    config = OptimizerConfig.from_settings(get_settings())
    try:
        report = await run_cost_optimization(db, config, item_id=body.item_id, run_all=body.run_all)
    except MedStockError as exc:
        logger.warning("functions.cost_optimization_failed", error=exc.message)
        return error_response(exc)
    except Exception as exc:
        logger.exception("functions.cost_optimization_error")
        return error_response(exc)

    return {
        "success": True,
        "optimizations": report.successes,
        "total_items": len(report.successes),
        "failures": report.failures,
        "status": report.status,
    }


@router.post("/seed-sample-data")
async def seed_sample_data_endpoint(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Load the sample hospital catalog, model and alerts. Safe to re-run."""
    settings = get_settings()
    try:
        stats = await seed_sample_data(
            db,
            user_id=user.get("sub"),
            confidence_score=settings.prediction_confidence_score,
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("functions.seed_persist_failed", error=str(exc))
        return error_response(StorePersistenceFailure("Failed to seed sample data"))
    except MedStockError as exc:
        logger.warning("functions.seed_failed", error=exc.message)
        return error_response(exc)
    except Exception as exc:
        logger.exception("functions.seed_error")
        return error_response(exc)

    return {
        "success": True,
        "message": "Sample data seeded successfully",
        "stats": stats.to_dict(),
    }

