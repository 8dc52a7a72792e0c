"""
Prediction and cost-optimization runs over inventory items.

Each run loads one item (item_id) or all items, computes per item, and
commits per item so one failed write never rolls back its neighbours.
Every item ends up in the batch report as either a success or a failure;
nothing is dropped silently.

Workflow (predictions):
  1. Load items → NoItemsFound if empty
  2. Per item: estimate → upsert latest prediction → append history → commit
  3. Threshold alerts for items that persisted
  4. Batch-persist alerts, publish to real-time subscribers
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.engine import AlertCandidate, create_alerts, evaluate_stock_alert, publish_alerts
from core.errors import InvalidOptimizationInput, NoItemsFound
from db.models import CostOptimization, InventoryItem, Prediction, PredictionHistory
from inventory.estimator import DemandEstimate, estimate_demand, feature_values
from inventory.optimizer import CostOptimizationResult, OptimizerConfig, optimize_costs, should_reorder
from ml.registry import ActiveModel

logger = structlog.get_logger()

BatchStatus = Literal["complete", "partial", "failed"]

# Dialect inserts that support ON CONFLICT DO UPDATE.
UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


@dataclass(frozen=True)
class ItemSnapshot:
    """Plain copy of an inventory row, safe to use after a rollback."""

    id: uuid.UUID
    item_name: str
    item_type: str
    current_stock: int
    min_required: int
    max_capacity: int
    unit_cost: float
    avg_usage_per_day: int
    restock_lead_time: int

    @classmethod
    def from_row(cls, row: InventoryItem) -> "ItemSnapshot":
        return cls(
            id=row.id,
            item_name=row.item_name,
            item_type=row.item_type,
            current_stock=row.current_stock,
            min_required=row.min_required,
            max_capacity=row.max_capacity,
            unit_cost=float(row.unit_cost),
            avg_usage_per_day=row.avg_usage_per_day,
            restock_lead_time=row.restock_lead_time,
        )


@dataclass
class ItemOutcome:
    """Result for one item in a batch run: either a result or an error."""

    item_id: uuid.UUID
    result: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def successes(self) -> list[dict[str, Any]]:
        return [o.result for o in self.outcomes if o.ok and o.result is not None]

    @property
    def failures(self) -> list[dict[str, str]]:
        return [{"item_id": str(o.item_id), "error": o.error} for o in self.outcomes if not o.ok]

    @property
    def status(self) -> BatchStatus:
        failed = sum(1 for o in self.outcomes if not o.ok)
        if failed == 0:
            return "complete"
        if failed == len(self.outcomes):
            return "failed"
        return "partial"


@dataclass
class PredictionBatch(BatchReport):
    model_version: str = ""
    alerts_generated: int = 0
    alerts_error: str | None = None

    @property
    def status(self) -> BatchStatus:
        status = super().status
        if status == "complete" and self.alerts_error is not None:
            return "partial"
        return status


# ──────────────────────────────────────────────────────────────────────────
# Shared persistence helpers
# ──────────────────────────────────────────────────────────────────────────


async def load_items(db: AsyncSession, item_id: uuid.UUID | None = None, run_all: bool = False) -> list[ItemSnapshot]:
    """Load one item (item_id without run_all) or every item."""
    query = select(InventoryItem).order_by(InventoryItem.item_name)
    if not run_all and item_id is not None:
        query = query.where(InventoryItem.id == item_id)
    result = await db.execute(query)
    items = [ItemSnapshot.from_row(row) for row in result.scalars().all()]
    if not items:
        raise NoItemsFound()
    return items


async def upsert_latest_prediction(
    db: AsyncSession,
    item_id: uuid.UUID,
    estimate: DemandEstimate,
    predicted_by: str | None,
) -> None:
    """
    Insert or overwrite the single dashboard prediction row for an item.

    Issued as one INSERT ... ON CONFLICT (item_id) DO UPDATE, so concurrent
    runs for the same item never collide on the unique key; the last write
    wins. Does not commit.
    """
    values = {
        "estimated_demand": estimate.estimated_demand,
        "inventory_shortfall": estimate.inventory_shortfall,
        "replenishment_needs": estimate.replenishment_needs,
        "predicted_by": predicted_by,
    }
    insert = UPSERT_INSERTS[db.get_bind().dialect.name]
    stmt = insert(Prediction).values(item_id=item_id, **values)
    stmt = stmt.on_conflict_do_update(index_elements=[Prediction.item_id], set_=values)
    await db.execute(stmt)


def build_history_row(
    item: ItemSnapshot,
    estimate: DemandEstimate,
    model: ActiveModel,
    confidence_score: float,
    created_by: str | None,
) -> PredictionHistory:
    return PredictionHistory(
        item_id=item.id,
        model_version_id=model.model_id,
        predicted_demand=estimate.estimated_demand,
        confidence_score=confidence_score,
        feature_values=feature_values(item),
        feature_contributions=estimate.feature_contributions,
        created_by=created_by,
    )


# ──────────────────────────────────────────────────────────────────────────
# Prediction Run
# ──────────────────────────────────────────────────────────────────────────


async def run_predictions(
    db: AsyncSession,
    model: ActiveModel,
    user_id: str | None,
    item_id: uuid.UUID | None = None,
    run_all: bool = False,
    confidence_score: float = 0.85,
) -> PredictionBatch:
    """Estimate demand for the selected items, persist results and alerts."""
    items = await load_items(db, item_id=item_id, run_all=run_all)
    batch = PredictionBatch(model_version=model.model_version)
    candidates: list[AlertCandidate] = []

    for item in items:
        estimate = estimate_demand(item, model.estimator)
        try:
            await upsert_latest_prediction(db, item.id, estimate, user_id)
            db.add(build_history_row(item, estimate, model, confidence_score, user_id))
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning("predictions.item_failed", item_id=str(item.id), error=str(exc))
            batch.outcomes.append(ItemOutcome(item_id=item.id, error="Failed to persist prediction"))
            continue

        batch.outcomes.append(ItemOutcome(item_id=item.id, result={"item_id": str(item.id), **estimate.to_dict()}))

        candidate = evaluate_stock_alert(
            item.id,
            item.item_name,
            item.current_stock,
            item.min_required,
            estimate.estimated_demand,
        )
        if candidate is not None:
            candidates.append(candidate)

    if candidates:
        try:
            created = await create_alerts(db, candidates)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("predictions.alerts_failed", count=len(candidates), error=str(exc))
            batch.alerts_error = "Failed to persist alerts"
        else:
            batch.alerts_generated = len(created)
            await publish_alerts(created)

    logger.info(
        "predictions.completed",
        model_version=model.model_version,
        predictions=len(batch.successes),
        failures=len(batch.failures),
        alerts=batch.alerts_generated,
        alerts_failed=batch.alerts_error is not None,
    )
    return batch


# ──────────────────────────────────────────────────────────────────────────
# Cost Optimization Run
# ──────────────────────────────────────────────────────────────────────────


def _optimization_summary(item: ItemSnapshot, result: CostOptimizationResult) -> dict[str, Any]:
    return {
        "item_id": str(item.id),
        "item_name": item.item_name,
        "eoq": result.eoq,
        "reorder_point": result.reorder_point,
        "safety_stock": result.safety_stock,
        "optimal_order_quantity": result.optimal_order_quantity,
        "estimated_annual_cost": result.estimated_annual_cost,
        "current_stock": item.current_stock,
        "should_reorder": should_reorder(item.current_stock, result.raw_reorder_point),
    }


async def run_cost_optimization(
    db: AsyncSession,
    config: OptimizerConfig,
    item_id: uuid.UUID | None = None,
    run_all: bool = False,
) -> BatchReport:
    """Compute and persist EOQ/ROP/safety stock for the selected items."""
    items = await load_items(db, item_id=item_id, run_all=run_all)
    report = BatchReport()

    for item in items:
        try:
            result = optimize_costs(item, config)
        except InvalidOptimizationInput as exc:
            logger.warning("cost_optimization.item_invalid", item_id=str(item.id), error=exc.message)
            report.outcomes.append(ItemOutcome(item_id=item.id, error=exc.message))
            continue

        try:
            db.add(
                CostOptimization(
                    item_id=item.id,
                    eoq=result.eoq,
                    reorder_point=result.reorder_point,
                    safety_stock=result.safety_stock,
                    optimal_order_quantity=result.optimal_order_quantity,
                    estimated_annual_cost=result.estimated_annual_cost,
                    parameters=result.parameters,
                )
            )
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning("cost_optimization.item_failed", item_id=str(item.id), error=str(exc))
            report.outcomes.append(ItemOutcome(item_id=item.id, error="Failed to persist cost optimization"))
            continue

        report.outcomes.append(ItemOutcome(item_id=item.id, result=_optimization_summary(item, result)))

    logger.info(
        "cost_optimization.completed",
        optimizations=len(report.successes),
        failures=len(report.failures),
    )
    return report
