"""Pytest fixtures for HRMS engine tests."""

from __future__ import annotations

from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrms_engine.models import Base, Employee
from hrms_engine.services.access import Actor, Role

# In-memory SQLite shared by every session of a test through one connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def employee(session: AsyncSession) -> Employee:
    """An active employee on a 30000 monthly basic."""
    emp = Employee(
        employee_id=uuid4(),
        employee_code="EMP2024-0001",
        name="Asha Rao",
        email="asha@example.com",
        role="employee",
        status="active",
        salary=Decimal("30000.00"),
    )
    session.add(emp)
    await session.flush()
    return emp


@pytest.fixture
async def second_employee(session: AsyncSession) -> Employee:
    emp = Employee(
        employee_id=uuid4(),
        employee_code="EMP2024-0002",
        name="Vikram Shah",
        email="vikram@example.com",
        role="employee",
        status="active",
        salary=Decimal("20000.00"),
    )
    session.add(emp)
    await session.flush()
    return emp


@pytest.fixture
async def hr_user(session: AsyncSession) -> Employee:
    emp = Employee(
        employee_id=uuid4(),
        employee_code="EMP2024-0100",
        name="Meera Iyer",
        email="meera@example.com",
        role="hr",
        status="active",
        salary=Decimal("50000.00"),
    )
    session.add(emp)
    await session.flush()
    return emp


@pytest.fixture
def employee_actor(employee: Employee) -> Actor:
    return Actor(user_id=employee.employee_id, role=Role.EMPLOYEE)


@pytest.fixture
def hr_actor(hr_user: Employee) -> Actor:
    return Actor(user_id=hr_user.employee_id, role=Role.HR)
