"""
CSV demo import: map uploaded columns onto inventory fields and estimate
demand for every row without persisting anything.

Header mapping: a header matches a required column when the header,
lower-cased with underscores and whitespace removed, contains the column
name with underscores removed ("Avg Usage Per Day" → avg_usage_per_day).
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from inventory.estimator import DEFAULT_ESTIMATOR_CONFIG, EstimatorConfig, estimate_demand

REQUIRED_COLUMNS = (
    "item_name",
    "item_type",
    "current_stock",
    "min_required",
    "max_capacity",
    "avg_usage_per_day",
    "restock_lead_time",
    "unit_cost",
)
PREVIEW_ROWS = 10


class CsvItemRow(BaseModel):
    item_name: str = Field(min_length=1)
    item_type: str
    current_stock: int = Field(ge=0)
    min_required: int = Field(ge=0)
    max_capacity: int = Field(ge=0)
    avg_usage_per_day: int = Field(ge=0)
    restock_lead_time: int = Field(ge=0)
    unit_cost: float = Field(ge=0)
    vendor_name: str | None = None


@dataclass
class CsvParseResult:
    headers: list[str]
    column_mapping: dict[str, str]
    missing_columns: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def preview(self) -> list[dict[str, str]]:
        return self.rows[:PREVIEW_ROWS]


def _normalize(name: str) -> str:
    return "".join(name.lower().replace("_", "").split())


def map_headers(headers: list[str]) -> dict[str, str]:
    """Required column → first matching header."""
    mapping = {}
    for column in REQUIRED_COLUMNS:
        needle = column.replace("_", "")
        for header in headers:
            if needle in _normalize(header):
                mapping[column] = header
                break
    return mapping


def parse_csv(content: str) -> CsvParseResult:
    reader = csv.DictReader(io.StringIO(content))
    headers = [h.strip().lower() for h in (reader.fieldnames or [])]
    reader.fieldnames = headers

    mapping = map_headers(headers)
    for header in headers:
        if "vendor" in _normalize(header):
            mapping.setdefault("vendor_name", header)

    rows = []
    for row in reader:
        if not any((value or "").strip() for key, value in row.items() if key is not None):
            continue
        rows.append({h: (row.get(h) or "").strip() for h in headers})

    return CsvParseResult(
        headers=headers,
        column_mapping=mapping,
        missing_columns=[c for c in REQUIRED_COLUMNS if c not in mapping],
        rows=rows,
    )


def _row_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}"


def run_csv_predictions(content: str, config: EstimatorConfig = DEFAULT_ESTIMATOR_CONFIG) -> dict[str, Any]:
    """
    Parse an uploaded CSV and estimate demand per row.

    Rows are numbered from 1 (the first data row). Rows that fail
    validation are reported in ``errors`` and skipped. When a required
    column is missing no estimates are produced.
    """
    parsed = parse_csv(content)
    report: dict[str, Any] = {
        "total_rows": parsed.total_rows,
        "headers": parsed.headers,
        "missing_columns": parsed.missing_columns,
        "column_mapping": parsed.column_mapping,
        "preview": parsed.preview,
        "predictions": [],
        "errors": [],
    }
    if parsed.missing_columns:
        return report

    for index, raw in enumerate(parsed.rows, start=1):
        values = {column: raw.get(header) for column, header in parsed.column_mapping.items()}
        if values.get("vendor_name") == "":
            values["vendor_name"] = None
        try:
            row = CsvItemRow(**values)
        except ValidationError as exc:
            report["errors"].append({"row": index, "error": _row_error(exc)})
            continue

        estimate = estimate_demand(row, config)
        report["predictions"].append({"row": index, "item_name": row.item_name, **estimate.to_dict()})

    return report
