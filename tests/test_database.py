"""Tests for the process-wide engine and table creation."""

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from hrms_engine import database


@pytest.fixture(autouse=True)
async def fresh_globals():
    await database.dispose_db()
    yield
    await database.dispose_db()


class TestInitDb:
    async def test_creates_tables(self, monkeypatch):
        monkeypatch.setattr(
            database,
            "get_engine",
            lambda database_url=None: create_async_engine(
                "sqlite+aiosqlite:///:memory:", poolclass=StaticPool
            ),
        )
        await database.init_db()

        async with database.get_session_factory()() as session:
            connection = await session.connection()
            tables = await connection.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        assert {"attendance_log", "payroll_batch", "reimbursement", "salary_slip"} <= set(tables)

    async def test_missing_engine_raises(self, monkeypatch):
        monkeypatch.setattr(database, "get_engine", lambda database_url=None: None)
        with pytest.raises(RuntimeError) as exc_info:
            await database.init_db()
        assert "failed to initialize" in str(exc_info.value)
