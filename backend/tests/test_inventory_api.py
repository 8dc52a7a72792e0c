"""
API Integration Tests — Inventory endpoints.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from db.models import AlertHistory, CostOptimization, Prediction

NEW_ITEM = {
    "item_name": "Surgical Gloves",
    "item_type": "PPE",
    "current_stock": 1542,
    "min_required": 264,
    "max_capacity": 1018,
    "unit_cost": 4467.55,
    "avg_usage_per_day": 108,
    "restock_lead_time": 17,
    "vendor_name": "MedSupply Inc",
}


@pytest.mark.asyncio
class TestInventoryAPI:
    async def test_create_and_get(self, client: AsyncClient):
        resp = await client.post("/api/v1/inventory/", json=NEW_ITEM)
        assert resp.status_code == 201
        created = resp.json()
        assert created["item_name"] == "Surgical Gloves"
        assert created["item_type"] == "PPE"

        resp = await client.get(f"/api/v1/inventory/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["current_stock"] == 1542

    async def test_create_rejects_negative_stock(self, client: AsyncClient):
        resp = await client.post("/api/v1/inventory/", json={**NEW_ITEM, "current_stock": -1})
        assert resp.status_code == 422

    async def test_create_rejects_unknown_type(self, client: AsyncClient):
        resp = await client.post("/api/v1/inventory/", json={**NEW_ITEM, "item_type": "Furniture"})
        assert resp.status_code == 422

    async def test_duplicate_name_conflict(self, client: AsyncClient):
        await client.post("/api/v1/inventory/", json=NEW_ITEM)
        resp = await client.post("/api/v1/inventory/", json=NEW_ITEM)
        assert resp.status_code == 409

    async def test_list_ordered_and_filtered(self, client: AsyncClient, make_item):
        await make_item(item_name="Ventilator")
        await make_item(item_name="Bandages", item_type="Medical Supplies")
        await make_item(item_name="Surgical Mask", item_type="PPE")

        names = [i["item_name"] for i in (await client.get("/api/v1/inventory/")).json()]
        assert names == ["Bandages", "Surgical Mask", "Ventilator"]

        resp = await client.get("/api/v1/inventory/", params={"search": "mask"})
        assert [i["item_name"] for i in resp.json()] == ["Surgical Mask"]

        resp = await client.get("/api/v1/inventory/", params={"item_type": "Medical Supplies"})
        assert [i["item_name"] for i in resp.json()] == ["Bandages"]

    async def test_restock(self, client: AsyncClient, make_item):
        item = await make_item(current_stock=10)
        resp = await client.patch(f"/api/v1/inventory/{item.id}", json={"current_stock": 900})
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_stock"] == 900
        assert data["item_name"] == "Ventilator"

    async def test_get_missing_item(self, client: AsyncClient):
        resp = await client.get(f"/api/v1/inventory/{uuid.uuid4()}")
        assert resp.status_code == 404

    async def test_summary(self, client: AsyncClient, make_item):
        await make_item(item_name="Ventilator", current_stock=100, min_required=50, unit_cost=10.0)
        await make_item(item_name="Oxygen Tanks", current_stock=180, min_required=200, unit_cost=5.0)
        await make_item(item_name="Gauze", item_type="Consumable", current_stock=20, min_required=200, unit_cost=1.0)

        resp = await client.get("/api/v1/inventory/summary")
        assert resp.status_code == 200
        assert resp.json() == {
            "total_items": 3,
            "low_stock_items": 2,
            "critical_items": 1,
            "total_value": pytest.approx(100 * 10.0 + 180 * 5.0 + 20 * 1.0),
        }

    async def test_delete_cascades_but_keeps_alerts(self, client: AsyncClient, test_db, active_model, make_item):
        item = await make_item(current_stock=5, min_required=200)
        item_id = item.id
        await client.post("/api/v1/functions/run-predictions", json={"item_id": str(item_id)})
        await client.post("/api/v1/functions/calculate-cost-optimization", json={"item_id": str(item_id)})

        resp = await client.delete(f"/api/v1/inventory/{item_id}")
        assert resp.status_code == 204

        assert (await test_db.execute(select(Prediction))).scalars().all() == []
        assert (await test_db.execute(select(CostOptimization))).scalars().all() == []
        alert = (await test_db.execute(select(AlertHistory))).scalar_one()
        assert alert.item_id is None


@pytest.mark.asyncio
class TestInventoryRoles:
    async def test_nurse_cannot_create(self, client: AsyncClient, mock_user):
        mock_user["role"] = "nurse"
        resp = await client.post("/api/v1/inventory/", json=NEW_ITEM)
        assert resp.status_code == 403

    async def test_inventory_manager_can_update_but_not_delete(self, client: AsyncClient, mock_user, make_item):
        item = await make_item()
        mock_user["role"] = "inventory_manager"

        resp = await client.patch(f"/api/v1/inventory/{item.id}", json={"min_required": 700})
        assert resp.status_code == 200

        resp = await client.delete(f"/api/v1/inventory/{item.id}")
        assert resp.status_code == 403

    async def test_roles_from_app_metadata(self, client: AsyncClient, mock_user):
        mock_user.pop("role")
        mock_user["app_metadata"] = {"roles": ["inventory_manager"]}
        resp = await client.post("/api/v1/inventory/", json=NEW_ITEM)
        assert resp.status_code == 201
