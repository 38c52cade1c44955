"""The alembic migration builds the same playoff schema the models declare."""
import importlib.util
from pathlib import Path

import pytest
from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

MIGRATION = Path(__file__).resolve().parent.parent / "alembic" / "versions" / "001_create_playoff_tables.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("playoff_migration_001", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(engine, fn_name):
    migration = _load_migration()
    with engine.begin() as conn:
        ctx = MigrationContext.configure(conn)
        with Operations.context(ctx):
            getattr(migration, fn_name)()


def test_upgrade_creates_playoff_tables_and_downgrade_removes_them():
    engine = create_engine("sqlite:///:memory:")
    _run(engine, "upgrade")

    tables = set(inspect(engine).get_table_names())
    assert {"league", "roster", "playoffbracket", "playoffseed", "matchup"} <= tables
    unique_names = {u["name"] for u in inspect(engine).get_unique_constraints("matchup")}
    assert "uq_playoff_matchup_slot" in unique_names

    _run(engine, "downgrade")
    assert "matchup" not in inspect(engine).get_table_names()


def test_migrated_schema_enforces_one_bracket_per_season():
    engine = create_engine("sqlite:///:memory:")
    _run(engine, "upgrade")
    insert_bracket = text(
        "INSERT INTO playoffbracket (league_id, season, playoff_teams, total_rounds, start_week, "
        "championship_week, created_at, updated_at) "
        "VALUES (1, 2025, 4, 2, 15, 16, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
    )
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO league (id, name, season, created_at) VALUES (1, 'L', 2025, CURRENT_TIMESTAMP)"))
        conn.execute(insert_bracket)

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(insert_bracket)
