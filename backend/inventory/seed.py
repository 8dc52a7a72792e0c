"""
Sample data seeding for demos and local development.

Upserts the catalog by item_name and the sample model by model_version,
records one estimate per item through the shared estimator, and raises
shortage alerts for items below their minimum. Running it twice leaves
items, model, dashboard predictions and alerts unchanged; only the
append-only prediction history grows.
"""

from dataclasses import asdict, dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.engine import create_alerts, deduplicate_alerts, evaluate_shortage_alert
from db.models import InventoryItem
from inventory.estimator import estimate_demand
from inventory.runs import ItemSnapshot, build_history_row, upsert_latest_prediction
from ml.registry import SAMPLE_MODEL, ActiveModel, upsert_model_version

logger = structlog.get_logger()

CATALOG = [
    {
        "item_name": "Ventilator",
        "item_type": "Equipment",
        "current_stock": 2487,
        "min_required": 656,
        "max_capacity": 3556,
        "unit_cost": 5832.29,
        "avg_usage_per_day": 55,
        "restock_lead_time": 12,
        "vendor_name": "MedSupply Inc",
    },
    {
        "item_name": "Surgical Mask",
        "item_type": "PPE",
        "current_stock": 2371,
        "min_required": 384,
        "max_capacity": 5562,
        "unit_cost": 16062.98,
        "avg_usage_per_day": 470,
        "restock_lead_time": 6,
        "vendor_name": "HealthCare Supplies",
    },
    {
        "item_name": "IV Drip",
        "item_type": "Medical Supplies",
        "current_stock": 2410,
        "min_required": 338,
        "max_capacity": 1013,
        "unit_cost": 15426.53,
        "avg_usage_per_day": 158,
        "restock_lead_time": 12,
        "vendor_name": "PharmaTech",
    },
    {
        "item_name": "Surgical Gloves",
        "item_type": "PPE",
        "current_stock": 1542,
        "min_required": 264,
        "max_capacity": 1018,
        "unit_cost": 4467.55,
        "avg_usage_per_day": 108,
        "restock_lead_time": 17,
        "vendor_name": "MedSupply Inc",
    },
    {
        "item_name": "Syringes",
        "item_type": "Medical Supplies",
        "current_stock": 2038,
        "min_required": 438,
        "max_capacity": 1131,
        "unit_cost": 744.10,
        "avg_usage_per_day": 207,
        "restock_lead_time": 15,
        "vendor_name": "HealthCare Supplies",
    },
    {
        "item_name": "Bandages",
        "item_type": "Medical Supplies",
        "current_stock": 1850,
        "min_required": 500,
        "max_capacity": 2500,
        "unit_cost": 125.50,
        "avg_usage_per_day": 95,
        "restock_lead_time": 10,
        "vendor_name": "PharmaTech",
    },
    {
        "item_name": "X-Ray Film",
        "item_type": "Equipment",
        "current_stock": 320,
        "min_required": 150,
        "max_capacity": 800,
        "unit_cost": 2350.00,
        "avg_usage_per_day": 12,
        "restock_lead_time": 14,
        "vendor_name": "MedSupply Inc",
    },
    {
        "item_name": "Oxygen Tanks",
        "item_type": "Equipment",
        "current_stock": 180,
        "min_required": 200,
        "max_capacity": 500,
        "unit_cost": 8500.00,
        "avg_usage_per_day": 8,
        "restock_lead_time": 20,
        "vendor_name": "PharmaTech",
    },
]


@dataclass
class SeedStats:
    inventory_items: int = 0
    predictions: int = 0
    alerts: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


async def upsert_catalog_item(db: AsyncSession, data: dict) -> InventoryItem:
    result = await db.execute(select(InventoryItem).where(InventoryItem.item_name == data["item_name"]))
    item = result.scalar_one_or_none()
    if item is None:
        item = InventoryItem(item_name=data["item_name"])
        db.add(item)
    for key, value in data.items():
        setattr(item, key, value)
    return item


async def seed_sample_data(
    db: AsyncSession,
    user_id: str | None = None,
    confidence_score: float = 0.85,
) -> SeedStats:
    """Seed catalog, model, predictions and shortage alerts. Commits once."""
    stats = SeedStats()

    items = [await upsert_catalog_item(db, data) for data in CATALOG]
    await db.flush()
    stats.inventory_items = len(items)

    model_row, created = await upsert_model_version(db, SAMPLE_MODEL, created_by=user_id)
    model = ActiveModel(model_id=model_row.id, model_version=model_row.model_version)
    snapshots = [ItemSnapshot.from_row(item) for item in items]

    candidates = []
    for item in snapshots:
        estimate = estimate_demand(item, model.estimator)
        db.add(build_history_row(item, estimate, model, confidence_score, user_id))
        await upsert_latest_prediction(db, item.id, estimate, user_id)
        stats.predictions += 1

        candidate = evaluate_shortage_alert(item.id, item.item_name, item.current_stock, item.min_required)
        if candidate is not None:
            candidates.append(candidate)

    await db.commit()

    fresh = await deduplicate_alerts(db, candidates)
    created_alerts = await create_alerts(db, fresh)
    stats.alerts = len(created_alerts)

    logger.info("seed.completed", model_created=created, **stats.to_dict())
    return stats
