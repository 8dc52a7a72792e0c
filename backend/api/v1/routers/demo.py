"""
Demo Router — CSV upload with per-row demand estimates (no persistence).
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core.config import get_settings
from inventory.csv_import import run_csv_predictions
from ml.registry import resolve_active_model

router = APIRouter(prefix="/api/v1/demo", tags=["demo"])
logger = structlog.get_logger()


@router.post("/csv-predictions")
async def csv_predictions(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Map CSV columns to inventory fields and estimate demand per row.

    Returns the column mapping, missing columns, a 10-row preview, and
    either per-row estimates or per-row validation errors.
    """
    settings = get_settings()
    raw = await file.read(settings.csv_upload_max_bytes + 1)
    if len(raw) > settings.csv_upload_max_bytes:
        raise HTTPException(status_code=413, detail="CSV file exceeds the 10 MB limit")
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded") from exc

    model = await resolve_active_model(db)
    report = run_csv_predictions(content, model.estimator)
    logger.info(
        "demo.csv_processed",
        filename=file.filename,
        rows=report["total_rows"],
        predictions=len(report["predictions"]),
        errors=len(report["errors"]),
        missing_columns=report["missing_columns"],
    )
    return {"model_version": model.model_version, **report}
