"""
MedStock Database Models

Tables:
  1. inventory_items     - Hospital stock catalog (equipment, consumables, PPE, supplies)
  2. predictions         - Latest demand estimate per item (one row per item)
  3. prediction_history  - Every demand estimate with model attribution (append-only)
  4. model_registry      - Versioned estimator configurations
  5. cost_optimization   - EOQ / reorder point / safety stock runs (append-only)
  6. alerts_history      - Stock alerts with read/resolve state
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    types,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from db.session import Base

ITEM_TYPES = ("Equipment", "Consumable", "PPE", "Medical Supplies")
ALERT_SEVERITIES = ("info", "warning", "critical")


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL UUID when available, stores as CHAR(36) on SQLite.
    """

    impl = types.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(types.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value) if isinstance(value, uuid.UUID) else str(uuid.UUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


def _item_type_check() -> str:
    allowed = ", ".join(f"'{t}'" for t in ITEM_TYPES)
    return f"item_type IN ({allowed})"


# ─── 1. Inventory Items ─────────────────────────────────────────────────────


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    item_name = Column(String(255), nullable=False, unique=True)
    item_type = Column(String(50), nullable=False)
    current_stock = Column(Integer, nullable=False, default=0)
    min_required = Column(Integer, nullable=False, default=0)
    max_capacity = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Float, nullable=False, default=0.0)
    avg_usage_per_day = Column(Integer, nullable=False, default=0)
    restock_lead_time = Column(Integer, nullable=False, default=0)
    vendor_name = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(_item_type_check(), name="ck_item_type"),
        CheckConstraint("current_stock >= 0", name="ck_item_current_stock"),
        CheckConstraint("min_required >= 0", name="ck_item_min_required"),
        CheckConstraint("max_capacity >= 0", name="ck_item_max_capacity"),
        CheckConstraint("unit_cost >= 0", name="ck_item_unit_cost"),
        CheckConstraint("avg_usage_per_day >= 0", name="ck_item_avg_usage"),
        CheckConstraint("restock_lead_time >= 0", name="ck_item_lead_time"),
    )

    prediction = relationship(
        "Prediction", back_populates="item", uselist=False, cascade="all, delete-orphan"
    )
    prediction_history = relationship(
        "PredictionHistory", back_populates="item", cascade="all, delete-orphan"
    )
    cost_optimizations = relationship(
        "CostOptimization", back_populates="item", cascade="all, delete-orphan"
    )
    # Alerts outlive their item: deleting an item nulls alerts_history.item_id.
    alerts = relationship("AlertHistory", back_populates="item")


# ─── 2. Predictions (latest per item) ───────────────────────────────────────


class Prediction(Base):
    __tablename__ = "predictions"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    item_id = Column(
        GUID(), ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    estimated_demand = Column(Float, nullable=False)
    inventory_shortfall = Column(Float, nullable=False)
    replenishment_needs = Column(Float, nullable=False)
    predicted_by = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    item = relationship("InventoryItem", back_populates="prediction")


# ─── 3. Model Registry ──────────────────────────────────────────────────────


class ModelRegistry(Base):
    """
    Versioned estimator configuration.

    The authoritative row is the most recently created row with
    is_active = true; callers resolve it once per request.
    """

    __tablename__ = "model_registry"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    model_version = Column(String(50), nullable=False, unique=True)
    model_type = Column(String(50), nullable=False, default="GradientBoosting")
    training_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    mae = Column(Float, nullable=False)
    rmse = Column(Float)
    r2_score = Column(Float)
    dataset_summary = Column(JSON)
    feature_importance = Column(JSON)
    hyperparameters = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_model_registry_is_active", "is_active"),)


# ─── 4. Prediction History ──────────────────────────────────────────────────


class PredictionHistory(Base):
    __tablename__ = "prediction_history"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    item_id = Column(GUID(), ForeignKey("inventory_items.id", ondelete="CASCADE"))
    model_version_id = Column(GUID(), ForeignKey("model_registry.id"))
    predicted_demand = Column(Float, nullable=False)
    confidence_score = Column(Float)
    feature_values = Column(JSON, nullable=False)
    feature_contributions = Column(JSON)
    created_by = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_prediction_history_item_id", "item_id"),
        Index("ix_prediction_history_created_at", "created_at"),
    )

    item = relationship("InventoryItem", back_populates="prediction_history")
    model = relationship("ModelRegistry")


# ─── 5. Cost Optimization ───────────────────────────────────────────────────


class CostOptimization(Base):
    __tablename__ = "cost_optimization"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    item_id = Column(GUID(), ForeignKey("inventory_items.id", ondelete="CASCADE"))
    eoq = Column(Integer)
    reorder_point = Column(Integer)
    safety_stock = Column(Integer)
    optimal_order_quantity = Column(Integer)
    estimated_annual_cost = Column(Float)
    calculation_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    parameters = Column(JSON)

    __table_args__ = (Index("ix_cost_optimization_item_date", "item_id", "calculation_date"),)

    item = relationship("InventoryItem", back_populates="cost_optimizations")


# ─── 6. Alerts History ──────────────────────────────────────────────────────


class AlertHistory(Base):
    __tablename__ = "alerts_history"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    alert_metadata = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    item_id = Column(GUID(), ForeignKey("inventory_items.id", ondelete="SET NULL"))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    resolved_at = Column(DateTime)
    resolved_by = Column(String(255))

    __table_args__ = (
        Index("ix_alerts_history_created_at", "created_at"),
        Index("ix_alerts_history_is_read", "is_read"),
        CheckConstraint("severity IN ('info', 'warning', 'critical')", name="ck_alert_severity"),
    )

    item = relationship("InventoryItem", back_populates="alerts")
