"""
Cost Optimizer — EOQ, safety stock and reorder point per inventory item.

Algorithm:
  Annual Demand  = Avg Usage Per Day × 365
  Holding Cost   = Unit Cost × Holding Cost Rate (25%/year)
  EOQ            = √((2 × Annual Demand × Order Cost) / Holding Cost)
  Safety Stock   = Z(1.65) × (0.2 × Avg Usage Per Day) × √(Lead Time)
  ROP            = (Avg Usage Per Day × Lead Time) + Safety Stock
  Order Qty      = min(⌈EOQ⌉, Max Capacity)
  Annual Cost    = Ordering Cost + Holding Cost + Purchase Cost

Zero denominators:
  - no demand                       → EOQ 0, no orders per year
  - demand with zero holding cost   → InvalidOptimizationInput
  - demand with zero order quantity → InvalidOptimizationInput
"""

import math
from dataclasses import dataclass, field
from typing import Any, Protocol

from core.config import Settings
from core.errors import InvalidOptimizationInput


class CostedItem(Protocol):
    current_stock: int
    max_capacity: int
    unit_cost: float
    avg_usage_per_day: int
    restock_lead_time: int


@dataclass(frozen=True)
class OptimizerConfig:
    """Cost assumptions, resolved from settings once per request."""

    ordering_cost: float = 50.0
    holding_cost_rate: float = 0.25
    service_level_z: float = 1.65
    demand_std_dev_ratio: float = 0.2
    days_per_year: int = 365

    @classmethod
    def from_settings(cls, settings: Settings) -> "OptimizerConfig":
        return cls(
            ordering_cost=settings.ordering_cost,
            holding_cost_rate=settings.holding_cost_rate,
            service_level_z=settings.service_level_z,
            demand_std_dev_ratio=settings.demand_std_dev_ratio,
            days_per_year=settings.days_per_year,
        )


@dataclass
class CostOptimizationResult:
    """Result of one cost optimization run for an item."""

    eoq: int
    reorder_point: int
    safety_stock: int
    optimal_order_quantity: int
    estimated_annual_cost: float
    raw_reorder_point: float
    parameters: dict[str, Any] = field(default_factory=dict)


def calculate_eoq(annual_demand: float, ordering_cost: float, holding_cost_per_unit: float) -> float:
    """
    Economic Order Quantity (Wilson formula).

    EOQ = √((2 × D × S) / H)
    Where: D = annual demand, S = order cost, H = annual holding cost per unit
    """
    if annual_demand <= 0:
        return 0.0
    if holding_cost_per_unit <= 0:
        raise InvalidOptimizationInput(
            "Cannot compute EOQ: holding cost per unit is 0 (unit_cost must be greater than 0)"
        )
    return math.sqrt((2 * annual_demand * ordering_cost) / holding_cost_per_unit)


def calculate_safety_stock(
    daily_demand: float,
    lead_time_days: float,
    z_score: float = 1.65,
    demand_std_dev_ratio: float = 0.2,
) -> float:
    """Safety stock assuming demand std dev is a fixed share of daily demand."""
    demand_std_dev = daily_demand * demand_std_dev_ratio
    lead_time_std_dev = math.sqrt(lead_time_days)
    return z_score * demand_std_dev * lead_time_std_dev


def calculate_reorder_point(daily_demand: float, lead_time_days: float, safety_stock: float) -> float:
    return daily_demand * lead_time_days + safety_stock


def should_reorder(current_stock: int, reorder_point: float) -> bool:
    return current_stock <= reorder_point


def optimize_costs(item: CostedItem, config: OptimizerConfig = OptimizerConfig()) -> CostOptimizationResult:
    """Compute EOQ, safety stock, reorder point and annual cost for one item."""
    annual_demand = item.avg_usage_per_day * config.days_per_year
    holding_cost_per_unit = item.unit_cost * config.holding_cost_rate

    eoq = calculate_eoq(annual_demand, config.ordering_cost, holding_cost_per_unit)
    safety_stock = calculate_safety_stock(
        item.avg_usage_per_day,
        item.restock_lead_time,
        z_score=config.service_level_z,
        demand_std_dev_ratio=config.demand_std_dev_ratio,
    )
    reorder_point = calculate_reorder_point(item.avg_usage_per_day, item.restock_lead_time, safety_stock)

    optimal_order_qty = min(math.ceil(eoq), item.max_capacity)

    if annual_demand <= 0:
        number_of_orders = 0.0
    elif optimal_order_qty <= 0:
        raise InvalidOptimizationInput(
            "Cannot compute order frequency: optimal order quantity is 0 (max_capacity must be greater than 0)"
        )
    else:
        number_of_orders = annual_demand / optimal_order_qty

    annual_ordering_cost = number_of_orders * config.ordering_cost
    average_inventory = optimal_order_qty / 2 + safety_stock
    annual_holding_cost = average_inventory * holding_cost_per_unit
    estimated_annual_cost = annual_ordering_cost + annual_holding_cost + annual_demand * item.unit_cost

    return CostOptimizationResult(
        eoq=math.ceil(eoq),
        reorder_point=math.ceil(reorder_point),
        safety_stock=math.ceil(safety_stock),
        optimal_order_quantity=optimal_order_qty,
        estimated_annual_cost=estimated_annual_cost,
        raw_reorder_point=reorder_point,
        parameters={
            "annual_demand": annual_demand,
            "ordering_cost": config.ordering_cost,
            "holding_cost_rate": config.holding_cost_rate,
            "holding_cost_per_unit": holding_cost_per_unit,
            "number_of_orders": number_of_orders,
            "annual_ordering_cost": annual_ordering_cost,
            "annual_holding_cost": annual_holding_cost,
        },
    )
