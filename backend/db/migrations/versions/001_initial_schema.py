"""
Initial schema - all 6 tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Inventory items
    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_name", sa.String(255), nullable=False, unique=True),
        sa.Column("item_type", sa.String(50), nullable=False),
        sa.Column("current_stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("min_required", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Float, nullable=False, server_default="0"),
        sa.Column("avg_usage_per_day", sa.Integer, nullable=False, server_default="0"),
        sa.Column("restock_lead_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("vendor_name", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "item_type IN ('Equipment', 'Consumable', 'PPE', 'Medical Supplies')", name="ck_item_type"
        ),
        sa.CheckConstraint("current_stock >= 0", name="ck_item_current_stock"),
        sa.CheckConstraint("min_required >= 0", name="ck_item_min_required"),
        sa.CheckConstraint("max_capacity >= 0", name="ck_item_max_capacity"),
        sa.CheckConstraint("unit_cost >= 0", name="ck_item_unit_cost"),
        sa.CheckConstraint("avg_usage_per_day >= 0", name="ck_item_avg_usage"),
        sa.CheckConstraint("restock_lead_time >= 0", name="ck_item_lead_time"),
    )

    # 2. Latest prediction per item
    op.create_table(
        "predictions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "item_id",
            sa.Uuid(),
            sa.ForeignKey("inventory_items.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("estimated_demand", sa.Float, nullable=False),
        sa.Column("inventory_shortfall", sa.Float, nullable=False),
        sa.Column("replenishment_needs", sa.Float, nullable=False),
        sa.Column("predicted_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    # 3. Model registry
    op.create_table(
        "model_registry",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("model_version", sa.String(50), nullable=False, unique=True),
        sa.Column("model_type", sa.String(50), nullable=False, server_default="GradientBoosting"),
        sa.Column("training_date", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("mae", sa.Float, nullable=False),
        sa.Column("rmse", sa.Float),
        sa.Column("r2_score", sa.Float),
        sa.Column("dataset_summary", sa.JSON),
        sa.Column("feature_importance", sa.JSON),
        sa.Column("hyperparameters", sa.JSON),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_model_registry_is_active", "model_registry", ["is_active"])

    # 4. Prediction history
    op.create_table(
        "prediction_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("inventory_items.id", ondelete="CASCADE")),
        sa.Column("model_version_id", sa.Uuid(), sa.ForeignKey("model_registry.id")),
        sa.Column("predicted_demand", sa.Float, nullable=False),
        sa.Column("confidence_score", sa.Float),
        sa.Column("feature_values", sa.JSON, nullable=False),
        sa.Column("feature_contributions", sa.JSON),
        sa.Column("created_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_prediction_history_item_id", "prediction_history", ["item_id"])
    op.create_index("ix_prediction_history_created_at", "prediction_history", ["created_at"])

    # 5. Cost optimization
    op.create_table(
        "cost_optimization",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("inventory_items.id", ondelete="CASCADE")),
        sa.Column("eoq", sa.Integer),
        sa.Column("reorder_point", sa.Integer),
        sa.Column("safety_stock", sa.Integer),
        sa.Column("optimal_order_quantity", sa.Integer),
        sa.Column("estimated_annual_cost", sa.Float),
        sa.Column("calculation_date", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("parameters", sa.JSON),
    )
    op.create_index("ix_cost_optimization_item_date", "cost_optimization", ["item_id", "calculation_date"])

    # 6. Alerts history
    op.create_table(
        "alerts_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("alert_type", sa.String(50), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("metadata", sa.JSON),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("inventory_items.id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime),
        sa.Column("resolved_by", sa.String(255)),
        sa.CheckConstraint("severity IN ('info', 'warning', 'critical')", name="ck_alert_severity"),
    )
    op.create_index("ix_alerts_history_created_at", "alerts_history", ["created_at"])
    op.create_index("ix_alerts_history_is_read", "alerts_history", ["is_read"])


def downgrade() -> None:
    tables = [
        "alerts_history",
        "cost_optimization",
        "prediction_history",
        "model_registry",
        "predictions",
        "inventory_items",
    ]
    for table in tables:
        op.drop_table(table)
