"""
Tests per lo script di reset del database (reset_db.py nella root del progetto).
"""

import importlib.util
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

SCRIPT = Path(__file__).resolve().parents[2] / "reset_db.py"


@pytest.fixture
def reset_db():
    spec = importlib.util.spec_from_file_location("reset_db", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestResetDb:

    async def test_reset_recreates_tables(self, reset_db):
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        try:
            tables = await reset_db.reset(engine)
            async with engine.connect() as conn:
                existing = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        finally:
            await engine.dispose()

        assert {"budgets", "budget_items", "profiles"} <= set(tables)
        assert sorted(existing) == tables

    def test_production_requires_force(self, reset_db, monkeypatch):
        calls = []

        async def fake_run():
            calls.append("run")

        monkeypatch.setattr(reset_db, "settings", SimpleNamespace(is_production=True))
        monkeypatch.setattr(reset_db, "_run", fake_run)

        assert reset_db.main([]) == 1
        assert calls == []

        assert reset_db.main(["--force"]) == 0
        assert calls == ["run"]
