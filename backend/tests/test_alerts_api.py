"""
API Integration Tests — Alert endpoints.
"""

import asyncio
import uuid
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient
from starlette.websockets import WebSocketDisconnect

from alerts.websocket import stream_alerts
from api.main import app
from db.models import AlertHistory


@pytest.fixture
async def seeded_alerts(test_db, make_item):
    item = await make_item(item_name="Oxygen Tanks", current_stock=10, min_required=200)
    now = datetime.utcnow()
    alerts = [
        AlertHistory(
            alert_type="critical_stock",
            severity="critical",
            title="Critical Stock Alert: Oxygen Tanks",
            message="Item is at 5.0% of minimum required. Immediate action needed.",
            item_id=item.id,
            alert_metadata={"current_stock": 10, "min_required": 200},
            created_at=now,
        ),
        AlertHistory(
            alert_type="low_stock",
            severity="warning",
            title="Low Stock Warning: Bandages",
            message="Item is at 15.0% of minimum required. Consider restocking soon.",
            created_at=now - timedelta(hours=1),
        ),
        AlertHistory(
            alert_type="low_stock",
            severity="warning",
            title="Low Stock Warning: Syringes",
            message="Item is at 12.0% of minimum required. Consider restocking soon.",
            is_read=True,
            created_at=now - timedelta(hours=2),
        ),
    ]
    test_db.add_all(alerts)
    await test_db.commit()
    return [a.id for a in alerts]


@pytest.mark.asyncio
class TestAlertsAPI:
    async def test_list_newest_first(self, client: AsyncClient, seeded_alerts):
        resp = await client.get("/api/v1/alerts/")
        assert resp.status_code == 200
        data = resp.json()
        assert [a["id"] for a in data] == [str(i) for i in seeded_alerts]
        assert data[0]["metadata"] == {"current_stock": 10, "min_required": 200}

    async def test_unread_only(self, client: AsyncClient, seeded_alerts):
        data = (await client.get("/api/v1/alerts/", params={"unread_only": True})).json()
        assert len(data) == 2
        assert all(a["is_read"] is False for a in data)

    async def test_summary(self, client: AsyncClient, seeded_alerts):
        resp = await client.get("/api/v1/alerts/summary")
        assert resp.json() == {"total": 3, "unread": 2, "unresolved": 3, "critical": 1, "warning": 2}

    async def test_mark_read(self, client: AsyncClient, seeded_alerts):
        resp = await client.patch(f"/api/v1/alerts/{seeded_alerts[0]}/read")
        assert resp.status_code == 200
        assert resp.json()["is_read"] is True

    async def test_mark_all_read(self, client: AsyncClient, seeded_alerts):
        resp = await client.post("/api/v1/alerts/read-all")
        assert resp.json() == {"updated": 2}
        summary = (await client.get("/api/v1/alerts/summary")).json()
        assert summary["unread"] == 0

    async def test_resolve(self, client: AsyncClient, seeded_alerts):
        resp = await client.patch(f"/api/v1/alerts/{seeded_alerts[1]}/resolve")
        assert resp.status_code == 200
        data = resp.json()
        assert data["resolved_at"] is not None
        assert data["resolved_by"] == "auth|test-user-id"
        assert data["is_read"] is True

        resp = await client.patch(f"/api/v1/alerts/{seeded_alerts[1]}/resolve")
        assert resp.status_code == 400

    async def test_missing_alert(self, client: AsyncClient):
        resp = await client.patch(f"/api/v1/alerts/{uuid.uuid4()}/read")
        assert resp.status_code == 404



def test_websocket_rejects_invalid_token():
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/alerts?token=not-a-jwt"):
            pass
    assert exc_info.value.code == 4001


# ── Alert stream ───────────────────────────────────────────────────────


class FakeWebSocket:
    def __init__(self, disconnect_on_text=False, max_heartbeats=None):
        self.sent = []
        self.disconnect_on_text = disconnect_on_text
        self.max_heartbeats = max_heartbeats

    async def send_text(self, data):
        if self.disconnect_on_text:
            raise WebSocketDisconnect(code=1001)
        self.sent.append(data)

    async def send_json(self, data):
        if self.max_heartbeats is not None and len(self.sent) >= self.max_heartbeats:
            raise WebSocketDisconnect(code=1001)
        self.sent.append(data)


class FakePubSub:
    def __init__(self, messages, hold_open=False):
        self.messages = messages
        self.hold_open = hold_open

    async def listen(self):
        for message in self.messages:
            yield message
        if self.hold_open:
            await asyncio.Event().wait()


def _stream_tasks():
    return [t for t in asyncio.all_tasks() if t.get_name().startswith("alerts.ws_")]


async def test_stream_forwards_until_pubsub_ends():
    websocket = FakeWebSocket()
    pubsub = FakePubSub(
        [
            {"type": "subscribe", "data": 1},
            {"type": "message", "data": b'{"type": "alert"}'},
        ]
    )

    await stream_alerts(websocket, pubsub, heartbeat_seconds=3600)

    assert websocket.sent == ['{"type": "alert"}']
    assert _stream_tasks() == []


async def test_stream_disconnect_cancels_heartbeat():
    websocket = FakeWebSocket(disconnect_on_text=True)
    pubsub = FakePubSub([{"type": "message", "data": "payload"}], hold_open=True)

    with pytest.raises(WebSocketDisconnect):
        await stream_alerts(websocket, pubsub, heartbeat_seconds=3600)

    assert _stream_tasks() == []


async def test_heartbeat_disconnect_cancels_listener():
    websocket = FakeWebSocket(max_heartbeats=1)
    pubsub = FakePubSub([], hold_open=True)

    with pytest.raises(WebSocketDisconnect):
        await stream_alerts(websocket, pubsub, heartbeat_seconds=0.01)

    assert websocket.sent == [{"type": "heartbeat", "payload": {}}]
    assert _stream_tasks() == []
