"""API test fixtures: the app wired to the in-memory test database."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_engine.api.app import create_app
from hrms_engine.api.dependencies import get_db_session
from hrms_engine.models import Employee

ALICE_ID = UUID("e5a4c9d3-4567-89ab-cdef-012345678901")
BOB_ID = UUID("f6b5dae4-5678-9abc-def0-123456789012")
HR_ID = UUID("a1b2c3d4-1111-2222-3333-444455556666")


def headers(user_id: UUID, role: str = "employee") -> dict[str, str]:
    return {"X-User-ID": str(user_id), "X-User-Role": role}


ALICE = headers(ALICE_ID)
BOB = headers(BOB_ID)
HR = headers(HR_ID, "hr")


@pytest.fixture
async def seeded(session_factory) -> None:
    """Commit a small staff list visible to every request session."""
    async with session_factory() as session:
        session.add_all(
            [
                Employee(
                    employee_id=ALICE_ID,
                    employee_code="EMP2024-0001",
                    name="Alice",
                    role="employee",
                    salary=Decimal("30000"),
                ),
                Employee(
                    employee_id=BOB_ID,
                    employee_code="EMP2024-0002",
                    name="Bob",
                    role="employee",
                    salary=Decimal("20000"),
                ),
                Employee(
                    employee_id=HR_ID,
                    employee_code="EMP2024-0100",
                    name="Hema",
                    role="hr",
                    salary=Decimal("50000"),
                ),
            ]
        )
        await session.commit()


@pytest.fixture
async def client(session_factory, seeded) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app(use_lifespan=False)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
