"""
Demand Estimator — lead-time demand, shortfall and replenishment need.

Formula:
  Estimated Demand    = Avg Usage Per Day × Restock Lead Time
  Inventory Shortfall = max(0, Min Required − Current Stock)
  Replenishment Needs = max(0, Estimated Demand − Current Stock)

Feature contributions are fixed weights scaled by the ratio of each input
to estimated demand (usage, lead time) or max capacity (stock, minimum).
A zero denominator is replaced by 1.

This is the only implementation of the formula; prediction runs, demo
mode, CSV upload and sample-data seeding all call estimate_demand().
"""

from dataclasses import dataclass, field
from typing import Any, Protocol


class ItemFields(Protocol):
    """Anything exposing the numeric inventory fields (ORM row, request payload)."""

    current_stock: int
    min_required: int
    max_capacity: int
    avg_usage_per_day: int
    restock_lead_time: int


@dataclass(frozen=True)
class EstimatorConfig:
    """Contribution weights for the four estimator inputs."""

    usage_weight: float = 0.4
    lead_time_weight: float = 0.3
    current_stock_weight: float = 0.15
    min_required_weight: float = 0.15


@dataclass
class DemandEstimate:
    estimated_demand: int
    inventory_shortfall: int
    replenishment_needs: int
    feature_contributions: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_demand": self.estimated_demand,
            "inventory_shortfall": self.inventory_shortfall,
            "replenishment_needs": self.replenishment_needs,
            "feature_contributions": dict(self.feature_contributions),
        }


DEFAULT_ESTIMATOR_CONFIG = EstimatorConfig()


def estimate_demand(item: ItemFields, config: EstimatorConfig = DEFAULT_ESTIMATOR_CONFIG) -> DemandEstimate:
    """Estimate demand over the restock lead time for one item."""
    estimated_demand = item.avg_usage_per_day * item.restock_lead_time
    inventory_shortfall = max(0, item.min_required - item.current_stock)
    replenishment_needs = max(0, estimated_demand - item.current_stock)

    demand_base = estimated_demand or 1
    capacity_base = item.max_capacity or 1
    feature_contributions = {
        "avg_usage_per_day": item.avg_usage_per_day / demand_base * config.usage_weight,
        "restock_lead_time": item.restock_lead_time / demand_base * config.lead_time_weight,
        "current_stock": item.current_stock / capacity_base * config.current_stock_weight,
        "min_required": item.min_required / capacity_base * config.min_required_weight,
    }

    return DemandEstimate(
        estimated_demand=estimated_demand,
        inventory_shortfall=inventory_shortfall,
        replenishment_needs=replenishment_needs,
        feature_contributions=feature_contributions,
    )


def feature_values(item: ItemFields) -> dict[str, int]:
    """Raw inputs recorded alongside each prediction history row."""
    return {
        "current_stock": item.current_stock,
        "min_required": item.min_required,
        "avg_usage_per_day": item.avg_usage_per_day,
        "restock_lead_time": item.restock_lead_time,
    }
