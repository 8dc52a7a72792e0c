#!/usr/bin/env python3
"""
Seed Sample Data — hospital catalog, sample model, estimates and alerts.

Run: python backend/scripts/seed_sample_data.py [--create-tables] [--pretty]
Safe to re-run: items and the model are upserted, alerts deduplicated.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

# Add backend/ to path when run as a script.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from core.logging import configure_logging
from db.session import Base
from inventory.seed import seed_sample_data


async def run(database_url: str, create_tables: bool, user_id: str | None) -> dict:
    settings = get_settings()
    engine = create_async_engine(database_url)
    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        async with SessionLocal() as db:
            stats = await seed_sample_data(
                db,
                user_id=user_id,
                confidence_score=settings.prediction_confidence_score,
            )
    finally:
        await engine.dispose()

    return {"status": "success", "stats": stats.to_dict()}


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed MedStock sample data")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument("--create-tables", action="store_true", help="Create tables before seeding")
    parser.add_argument("--user-id", default="seed-script", help="Recorded as predicted_by/created_by")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    args = parser.parse_args()

    configure_logging()
    database_url = args.database_url or get_settings().database_url
    summary = asyncio.run(run(database_url, args.create_tables, args.user_id))

    if args.pretty:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
