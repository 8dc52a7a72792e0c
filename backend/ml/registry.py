"""
Model Registry — resolve the active estimator configuration.

The active model is looked up once per request and passed down as an
immutable ActiveModel value; nothing below the request handler queries
the registry again.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NoActiveModel
from db.models import ModelRegistry
from inventory.estimator import DEFAULT_ESTIMATOR_CONFIG, EstimatorConfig

logger = structlog.get_logger()

SAMPLE_MODEL = {
    "model_version": "v1.0.0",
    "model_type": "GradientBoosting",
    "mae": 157.17,
    "rmse": 215.72,
    "r2_score": 0.92,
    "is_active": True,
    "feature_importance": {
        "Avg_Usage_Per_Day": 0.45,
        "Restock_Lead_Time": 0.30,
        "Current_Stock": 0.15,
        "Unit_Cost": 0.10,
    },
    "hyperparameters": {
        "n_estimators": 100,
        "learning_rate": 0.1,
        "max_depth": 3,
        "random_state": 42,
    },
    "dataset_summary": {
        "total_samples": 500,
        "train_samples": 350,
        "val_samples": 75,
        "test_samples": 75,
    },
}


@dataclass(frozen=True)
class ActiveModel:
    """The registry row in effect for one request."""

    model_id: uuid.UUID
    model_version: str
    estimator: EstimatorConfig = DEFAULT_ESTIMATOR_CONFIG
    metrics: dict[str, Any] = field(default_factory=dict)


def _to_active_model(row: ModelRegistry) -> ActiveModel:
    return ActiveModel(
        model_id=row.id,
        model_version=row.model_version,
        metrics={"mae": row.mae, "rmse": row.rmse, "r2_score": row.r2_score},
    )


async def resolve_active_model(db: AsyncSession) -> ActiveModel:
    """Most recently created active model; raises NoActiveModel if none."""
    result = await db.execute(
        select(ModelRegistry)
        .where(ModelRegistry.is_active.is_(True))
        .order_by(ModelRegistry.created_at.desc())
        .limit(1)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NoActiveModel()
    return _to_active_model(row)


async def upsert_model_version(
    db: AsyncSession,
    definition: dict[str, Any],
    created_by: str | None = None,
) -> tuple[ModelRegistry, bool]:
    """
    Insert or update a registry row keyed on model_version.

    Returns (row, created). Does not commit.
    """
    result = await db.execute(select(ModelRegistry).where(ModelRegistry.model_version == definition["model_version"]))
    row = result.scalar_one_or_none()
    created = row is None
    if row is None:
        row = ModelRegistry(model_version=definition["model_version"], created_by=created_by)
        db.add(row)

    for key, value in definition.items():
        if key != "model_version":
            setattr(row, key, value)
    row.training_date = datetime.utcnow()

    await db.flush()
    logger.info("model_registry.upserted", model_version=row.model_version, created=created)
    return row, created
