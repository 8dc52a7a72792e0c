"""
Tests for the initial Alembic migration, applied to a throwaway SQLite database.
"""

import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

import db.models  # noqa: F401
from db.session import Base

MIGRATION_PATH = Path(__file__).resolve().parents[1] / "db" / "migrations" / "versions" / "001_initial_schema.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def connection():
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        yield conn
    engine.dispose()


def _apply(connection, step: str) -> None:
    migration = _load_migration()
    context = MigrationContext.configure(connection)
    with Operations.context(context):
        getattr(migration, step)()


def test_upgrade_creates_all_model_tables(connection):
    _apply(connection, "upgrade")
    tables = set(sa.inspect(connection).get_table_names())
    assert set(Base.metadata.tables) <= tables


def test_upgrade_columns_match_models(connection):
    _apply(connection, "upgrade")
    inspector = sa.inspect(connection)
    for name, table in Base.metadata.tables.items():
        migrated = {col["name"] for col in inspector.get_columns(name)}
        assert migrated == set(table.columns.keys()), name


def test_check_constraints_enforced(connection):
    _apply(connection, "upgrade")
    with pytest.raises(sa.exc.IntegrityError):
        connection.execute(
            sa.text(
                "INSERT INTO inventory_items (id, item_name, item_type, current_stock) "
                "VALUES ('00000000-0000-0000-0000-000000000001', 'Gauze', 'Furniture', 1)"
            )
        )


def test_downgrade_drops_everything(connection):
    _apply(connection, "upgrade")
    _apply(connection, "downgrade")
    assert sa.inspect(connection).get_table_names() == []
