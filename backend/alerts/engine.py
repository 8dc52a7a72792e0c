"""
Alert Engine — Stock threshold classification and alert lifecycle.

Alert Types:
  - critical_stock: stock below 10% of minimum required
  - low_stock: stock between 10% and 20% of minimum required,
               or (seeded demo data) any stock below the minimum
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from db.models import AlertHistory

logger = structlog.get_logger()

# ──────────────────────────────────────────────────────────────────────────
# Detection Rules
# ──────────────────────────────────────────────────────────────────────────

# Percent of minimum required; upper bounds are exclusive.
STOCK_PERCENT_THRESHOLDS = {
    "critical": 10.0,
    "warning": 20.0,
}

# Seeded shortage alerts go critical below half the minimum.
SHORTAGE_CRITICAL_RATIO = 0.5


@dataclass
class AlertCandidate:
    """An alert computed in memory, not yet persisted."""

    alert_type: str
    severity: str
    title: str
    message: str
    item_id: uuid.UUID | None
    metadata: dict[str, Any] = field(default_factory=dict)


def stock_percentage(current_stock: float, min_required: float) -> float | None:
    """Current stock as a percent of the minimum. None when nothing is required."""
    if min_required <= 0:
        return None
    return current_stock / min_required * 100


def classify_stock_percentage(pct: float | None) -> str | None:
    """Return 'critical', 'warning' or None (no alert)."""
    if pct is None:
        return None
    if pct < STOCK_PERCENT_THRESHOLDS["critical"]:
        return "critical"
    if pct < STOCK_PERCENT_THRESHOLDS["warning"]:
        return "warning"
    return None


def evaluate_stock_alert(
    item_id: uuid.UUID | None,
    item_name: str,
    current_stock: int,
    min_required: int,
    predicted_demand: float,
) -> AlertCandidate | None:
    """Build a threshold alert for one item, or None if stock is healthy."""
    pct = stock_percentage(current_stock, min_required)
    severity = classify_stock_percentage(pct)
    if severity is None:
        return None

    metadata = {
        "current_stock": current_stock,
        "min_required": min_required,
        "predicted_demand": predicted_demand,
    }
    if severity == "critical":
        return AlertCandidate(
            alert_type="critical_stock",
            severity="critical",
            title=f"Critical Stock Alert: {item_name}",
            message=f"Item is at {pct:.1f}% of minimum required. Immediate action needed.",
            item_id=item_id,
            metadata=metadata,
        )
    return AlertCandidate(
        alert_type="low_stock",
        severity="warning",
        title=f"Low Stock Warning: {item_name}",
        message=f"Item is at {pct:.1f}% of minimum required. Consider restocking soon.",
        item_id=item_id,
        metadata=metadata,
    )


def evaluate_shortage_alert(
    item_id: uuid.UUID | None,
    item_name: str,
    current_stock: int,
    min_required: int,
) -> AlertCandidate | None:
    """Below-minimum alert used when seeding demo data."""
    if current_stock >= min_required:
        return None
    severity = "critical" if current_stock < min_required * SHORTAGE_CRITICAL_RATIO else "warning"
    return AlertCandidate(
        alert_type="low_stock",
        severity=severity,
        title=f"Low Stock Alert: {item_name}",
        message=f"{item_name} stock ({current_stock}) is below minimum required ({min_required})",
        item_id=item_id,
        metadata={
            "current_stock": current_stock,
            "min_required": min_required,
            "shortfall": min_required - current_stock,
        },
    )


# ──────────────────────────────────────────────────────────────────────────
# Alert Deduplication
# ──────────────────────────────────────────────────────────────────────────


async def deduplicate_alerts(
    db: AsyncSession,
    candidates: list[AlertCandidate],
) -> list[AlertCandidate]:
    """
    Filter out candidates that already have an unresolved alert for the
    same item + alert_type combination.
    """
    if not candidates:
        return []

    existing = await db.execute(
        select(AlertHistory.item_id, AlertHistory.alert_type).where(AlertHistory.resolved_at.is_(None))
    )
    existing_keys = {(row.item_id, row.alert_type) for row in existing.all()}

    return [c for c in candidates if (c.item_id, c.alert_type) not in existing_keys]


# ──────────────────────────────────────────────────────────────────────────
# Alert Creation + Publishing
# ──────────────────────────────────────────────────────────────────────────


async def create_alerts(
    db: AsyncSession,
    candidates: list[AlertCandidate],
) -> list[AlertHistory]:
    """Persist alerts to database and return created records."""
    created = []
    for candidate in candidates:
        alert = AlertHistory(
            alert_type=candidate.alert_type,
            severity=candidate.severity,
            title=candidate.title,
            message=candidate.message,
            item_id=candidate.item_id,
            alert_metadata=candidate.metadata,
        )
        db.add(alert)
        created.append(alert)

    if created:
        await db.commit()
    return created


def serialize_alert(alert: AlertHistory) -> dict[str, Any]:
    return {
        "id": str(alert.id),
        "alert_type": alert.alert_type,
        "severity": alert.severity,
        "title": alert.title,
        "message": alert.message,
        "item_id": str(alert.item_id) if alert.item_id else None,
        "metadata": alert.alert_metadata or {},
        "created_at": alert.created_at.isoformat() if alert.created_at else None,
    }


async def publish_alerts(alerts: list[AlertHistory]) -> int:
    """
    Publish new alerts to Redis pub/sub for real-time WebSocket delivery.
    Returns number of subscribers notified. Publishing is best-effort:
    the alerts are already persisted, so Redis failures are only logged.
    """
    settings = get_settings()
    if not alerts or not settings.alerts_realtime_enabled:
        return 0

    redis = aioredis.from_url(settings.redis_url)
    try:
        total_subs = 0
        for alert in alerts:
            payload = json.dumps({"type": "alert", "payload": serialize_alert(alert)})
            total_subs += await redis.publish(settings.alerts_channel, payload)
        return total_subs
    except RedisError as exc:
        logger.warning("alerts.publish_failed", count=len(alerts), error=str(exc))
        return 0
    finally:
        await redis.aclose()
