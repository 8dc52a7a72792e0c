"""
Alerts Router — Alert management endpoints.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from db.models import AlertHistory

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class AlertResponse(BaseModel):
    id: UUID
    alert_type: str
    severity: str
    title: str
    message: str
    metadata: dict | None = Field(None, validation_alias="alert_metadata")
    is_read: bool
    item_id: UUID | None
    created_at: datetime
    resolved_at: datetime | None
    resolved_by: str | None

    model_config = {"from_attributes": True}


class AlertSummary(BaseModel):
    total: int
    unread: int
    unresolved: int
    critical: int
    warning: int


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[AlertResponse])
async def list_alerts(
    unread_only: bool = False,
    severity: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """List alerts newest first."""
    query = select(AlertHistory)
    if unread_only:
        query = query.where(AlertHistory.is_read.is_(False))
    if severity:
        query = query.where(AlertHistory.severity == severity)
    query = query.order_by(AlertHistory.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/summary", response_model=AlertSummary)
async def get_alert_summary(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Get alert summary counts."""

    async def count(*conditions) -> int:
        query = select(func.count(AlertHistory.id)).where(*conditions)
        return (await db.execute(query)).scalar() or 0

    return AlertSummary(
        total=await count(),
        unread=await count(AlertHistory.is_read.is_(False)),
        unresolved=await count(AlertHistory.resolved_at.is_(None)),
        critical=await count(AlertHistory.severity == "critical"),
        warning=await count(AlertHistory.severity == "warning"),
    )


@router.post("/read-all")
async def mark_all_alerts_read(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    result = await db.execute(
        update(AlertHistory).where(AlertHistory.is_read.is_(False)).values(is_read=True)
    )
    await db.commit()
    return {"updated": result.rowcount}


@router.patch("/{alert_id}/read", response_model=AlertResponse)
async def mark_alert_read(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    alert = await db.get(AlertHistory, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    alert.is_read = True
    await db.commit()
    await db.refresh(alert)
    return alert


@router.patch("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Resolve an alert; resolved alerts no longer block new ones for the item."""
    alert = await db.get(AlertHistory, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    if alert.resolved_at is not None:
        raise HTTPException(status_code=400, detail="Alert is already resolved")

    alert.resolved_at = datetime.utcnow()
    alert.resolved_by = user.get("sub")
    alert.is_read = True
    await db.commit()
    await db.refresh(alert)
    return alert
