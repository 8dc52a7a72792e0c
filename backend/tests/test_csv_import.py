"""
Tests for the CSV demo import: header mapping, validation, estimates.
"""

import pytest
from httpx import AsyncClient

from inventory.csv_import import REQUIRED_COLUMNS, map_headers, parse_csv, run_csv_predictions

CSV_TEXT = (
    "Item Name,Item Type,Current Stock,Min Required,Max Capacity,Avg Usage Per Day,Restock Lead Time,Unit Cost,Vendor\n"
    "Ventilator,Equipment,2487,656,3556,55,12,5832.29,MedSupply Inc\n"
    "Oxygen Tanks,Equipment,180,200,500,8,20,8500,PharmaTech\n"
)


class TestHeaderMapping:
    def test_spaced_headers(self):
        mapping = map_headers([h.strip().lower() for h in CSV_TEXT.splitlines()[0].split(",")])
        assert mapping["item_name"] == "item name"
        assert mapping["avg_usage_per_day"] == "avg usage per day"
        assert set(REQUIRED_COLUMNS) <= set(mapping)

    def test_snake_case_headers(self):
        assert map_headers(list(REQUIRED_COLUMNS)) == {c: c for c in REQUIRED_COLUMNS}

    def test_substring_match(self):
        mapping = map_headers(["current_stock_units"])
        assert mapping == {"current_stock": "current_stock_units"}


class TestParseCsv:
    def test_counts_and_preview(self):
        rows = "\n".join(f"Item {i},PPE,1,1,1,1,1,1" for i in range(15))
        parsed = parse_csv(",".join(REQUIRED_COLUMNS) + "\n" + rows + "\n")
        assert parsed.total_rows == 15
        assert len(parsed.preview) == 10
        assert parsed.missing_columns == []

    def test_missing_columns(self):
        parsed = parse_csv("item_name,current_stock\nVentilator,10\n")
        assert parsed.missing_columns == [
            "item_type",
            "min_required",
            "max_capacity",
            "avg_usage_per_day",
            "restock_lead_time",
            "unit_cost",
        ]

    def test_blank_lines_skipped(self):
        parsed = parse_csv(CSV_TEXT + "\n,,,,,,,,\n")
        assert parsed.total_rows == 2


class TestRunCsvPredictions:
    def test_estimates_each_row(self):
        report = run_csv_predictions(CSV_TEXT)
        assert report["total_rows"] == 2
        assert report["errors"] == []
        ventilator, oxygen = report["predictions"]
        assert ventilator["row"] == 1
        assert ventilator["estimated_demand"] == 660
        assert oxygen["item_name"] == "Oxygen Tanks"
        assert oxygen["inventory_shortfall"] == 20

    def test_invalid_rows_reported(self):
        text = CSV_TEXT + "Broken,PPE,abc,1,1,1,1,1,\nNegative,PPE,-5,1,1,1,1,1,\n"
        report = run_csv_predictions(text)
        assert len(report["predictions"]) == 2
        assert [e["row"] for e in report["errors"]] == [3, 4]
        assert report["errors"][0]["error"].startswith("current_stock")

    def test_missing_columns_skip_estimates(self):
        report = run_csv_predictions("item_name,current_stock\nVentilator,10\n")
        assert report["predictions"] == []
        assert "unit_cost" in report["missing_columns"]
        assert report["preview"] == [{"item_name": "Ventilator", "current_stock": "10"}]


@pytest.mark.asyncio
class TestCsvUploadAPI:
    async def test_upload(self, client: AsyncClient, active_model):
        resp = await client.post(
            "/api/v1/demo/csv-predictions",
            files={"file": ("inventory.csv", CSV_TEXT.encode(), "text/csv")},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["model_version"] == "v1.0.0"
        assert data["total_rows"] == 2
        assert len(data["predictions"]) == 2

    async def test_upload_requires_active_model(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/demo/csv-predictions",
            files={"file": ("inventory.csv", CSV_TEXT.encode(), "text/csv")},
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "No active model found"}

    async def test_upload_too_large(self, client: AsyncClient, active_model, monkeypatch):
        from api.v1.routers import demo as demo_module
        from core.config import Settings

        monkeypatch.setattr(demo_module, "get_settings", lambda: Settings(csv_upload_max_bytes=10))
        resp = await client.post(
            "/api/v1/demo/csv-predictions",
            files={"file": ("inventory.csv", CSV_TEXT.encode(), "text/csv")},
        )
        assert resp.status_code == 413
