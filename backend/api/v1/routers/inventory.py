"""
Inventory Router — Hospital stock catalog: list, edit, restock, delete.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, require_roles
from db.models import InventoryItem

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])

ItemType = Literal["Equipment", "Consumable", "PPE", "Medical Supplies"]


# ─── Schemas ────────────────────────────────────────────────────────────────


class InventoryItemCreate(BaseModel):
    item_name: str = Field(min_length=1, max_length=255)
    item_type: ItemType
    current_stock: int = Field(0, ge=0)
    min_required: int = Field(0, ge=0)
    max_capacity: int = Field(0, ge=0)
    unit_cost: float = Field(0.0, ge=0)
    avg_usage_per_day: int = Field(0, ge=0)
    restock_lead_time: int = Field(0, ge=0)
    vendor_name: str | None = None


class InventoryItemUpdate(BaseModel):
    item_name: str | None = Field(None, min_length=1, max_length=255)
    item_type: ItemType | None = None
    current_stock: int | None = Field(None, ge=0)
    min_required: int | None = Field(None, ge=0)
    max_capacity: int | None = Field(None, ge=0)
    unit_cost: float | None = Field(None, ge=0)
    avg_usage_per_day: int | None = Field(None, ge=0)
    restock_lead_time: int | None = Field(None, ge=0)
    vendor_name: str | None = None


class InventoryItemResponse(BaseModel):
    id: UUID
    item_name: str
    item_type: str
    current_stock: int
    min_required: int
    max_capacity: int
    unit_cost: float
    avg_usage_per_day: int
    restock_lead_time: int
    vendor_name: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventorySummary(BaseModel):
    total_items: int
    low_stock_items: int
    critical_items: int
    total_value: float


# ─── Helpers ─────────────────────────────────────────────────────────────────


async def _get_item_or_404(db: AsyncSession, item_id: UUID) -> InventoryItem:
    item = await db.get(InventoryItem, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


async def _commit_or_409(db: AsyncSession, item_name: str | None) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Inventory item '{item_name}' already exists",
        ) from exc


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/summary", response_model=InventorySummary)
async def get_inventory_summary(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Dashboard counts: below minimum, below half of minimum, stock value."""
    total = (await db.execute(select(func.count(InventoryItem.id)))).scalar() or 0
    low = (
        await db.execute(
            select(func.count(InventoryItem.id)).where(InventoryItem.current_stock < InventoryItem.min_required)
        )
    ).scalar() or 0
    critical = (
        await db.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.current_stock < InventoryItem.min_required * 0.5
            )
        )
    ).scalar() or 0
    total_value = (
        await db.execute(select(func.coalesce(func.sum(InventoryItem.current_stock * InventoryItem.unit_cost), 0)))
    ).scalar() or 0

    return InventorySummary(
        total_items=total,
        low_stock_items=low,
        critical_items=critical,
        total_value=float(total_value),
    )


@router.get("/", response_model=list[InventoryItemResponse])
async def list_inventory(
    search: str | None = None,
    item_type: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """List items ordered by name, optionally filtered by name substring and type."""
    query = select(InventoryItem)
    if search:
        query = query.where(InventoryItem.item_name.ilike(f"%{search}%"))
    if item_type:
        query = query.where(InventoryItem.item_type == item_type)
    query = query.order_by(InventoryItem.item_name).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_inventory_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    return await _get_item_or_404(db, item_id)


@router.post("/", response_model=InventoryItemResponse, status_code=201)
async def create_inventory_item(
    body: InventoryItemCreate,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(require_roles("admin", "inventory_manager")),
):
    item = InventoryItem(**body.model_dump())
    db.add(item)
    await _commit_or_409(db, body.item_name)
    await db.refresh(item)
    return item


@router.patch("/{item_id}", response_model=InventoryItemResponse)
async def update_inventory_item(
    item_id: UUID,
    body: InventoryItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(require_roles("admin", "inventory_manager")),
):
    """Partial update; also used to restock (set current_stock)."""
    item = await _get_item_or_404(db, item_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is None and key != "vendor_name":
            continue
        setattr(item, key, value)
    await _commit_or_409(db, body.item_name)
    await db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=204)
async def delete_inventory_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(require_roles("admin")),
):
    """Delete an item with its predictions and optimizations; alerts are kept."""
    item = await _get_item_or_404(db, item_id)
    await db.delete(item)
    await db.commit()
