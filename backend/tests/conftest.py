"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Test database engine and sessions
- A seeded reference catalog (departments, wards, interventions, staff)
- Caller identities for each role
- HTTP client for API testing
"""

import os
import uuid
from dataclasses import dataclass
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from alliedhealth import models  # noqa: F401  (registers tables on Base.metadata)
from alliedhealth.config import settings
from alliedhealth.database import Base, get_db
from alliedhealth.identity import CallerContext
from alliedhealth.main import app
from alliedhealth.models import (
    Department,
    Intervention,
    Patient,
    Specialty,
    User,
    UserRole,
    Ward,
    WardDeptCoverage,
)

TODAY = date(2026, 3, 16)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after.
    Uses DATABASE_TEST_URL env var if set, otherwise an in-memory SQLite
    database shared across sessions.
    """
    db_url = os.environ.get("DATABASE_TEST_URL")
    if db_url:
        engine = create_async_engine(db_url, echo=False)
    else:
        engine = create_async_engine(
            "sqlite+aiosqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncSession:
    """Create test database session with automatic rollback.

    Each test gets a fresh session that rolls back on completion,
    ensuring test isolation.
    """
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Reference Catalog
# =============================================================================


@dataclass
class Catalog:
    """Seeded reference data.

    Physiotherapy covers ward A by default. Dietetics covers ward B by
    default and Speech covers ward B through a coverage row. Nobody covers
    ward C.
    """

    physio: Department
    dietetics: Department
    speech: Department
    ward_a: Ward
    ward_b: Ward
    ward_c: Ward
    specialty: Specialty
    mobilisation: Intervention
    diet_plan: Intervention
    swallow_screen: Intervention
    retired_intervention: Intervention
    patient: Patient
    other_patient: Patient
    retired_patient: Patient
    physio_professional: User
    physio_assistant: User
    dietitian: User
    admin: User


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> Catalog:
    """Seed and commit the reference catalog."""
    physio = Department(name="Physiotherapy", code="PT")
    dietetics = Department(name="Dietetics", code="DT")
    speech = Department(name="Speech Pathology", code="SP")
    db_session.add_all([physio, dietetics, speech])
    await db_session.flush()

    ward_a = Ward(name="Ward A", code="WA", bed_count=20, default_department_id=physio.id)
    ward_b = Ward(name="Ward B", code="WB", bed_count=12, default_department_id=dietetics.id)
    ward_c = Ward(name="Ward C", code="WC", bed_count=8)
    specialty = Specialty(name="Rehabilitation")
    db_session.add_all([ward_a, ward_b, ward_c, specialty])
    await db_session.flush()

    db_session.add(WardDeptCoverage(ward_id=ward_b.id, department_id=speech.id))

    mobilisation = Intervention(specialty_id=specialty.id, name="Mobilisation")
    diet_plan = Intervention(specialty_id=specialty.id, name="Diet plan")
    swallow_screen = Intervention(specialty_id=specialty.id, name="Swallow screen")
    retired_intervention = Intervention(specialty_id=specialty.id, name="Retired", hidden=True)

    patient = Patient(id=1001, full_name="Alex Morgan", date_of_birth=date(1950, 4, 2))
    other_patient = Patient(id=1002, full_name="Sam Lee")
    retired_patient = Patient(id=1003, full_name="Jo Park", hidden=True)

    physio_professional = User(
        first_name="Pat",
        last_name="Physio",
        email="pat@example.org",
        role=UserRole.PROFESSIONAL,
        department_id=physio.id,
    )
    physio_assistant = User(
        first_name="Ash",
        last_name="Assistant",
        email="ash@example.org",
        role=UserRole.ASSISTANT,
        department_id=physio.id,
    )
    dietitian = User(
        first_name="Dana",
        last_name="Diet",
        email="dana@example.org",
        role=UserRole.PROFESSIONAL,
        department_id=dietetics.id,
    )
    admin = User(first_name="Ada", last_name="Admin", email="ada@example.org", role=UserRole.ADMIN)

    db_session.add_all(
        [
            mobilisation,
            diet_plan,
            swallow_screen,
            retired_intervention,
            patient,
            other_patient,
            retired_patient,
            physio_professional,
            physio_assistant,
            dietitian,
            admin,
        ]
    )
    await db_session.commit()

    return Catalog(
        physio=physio,
        dietetics=dietetics,
        speech=speech,
        ward_a=ward_a,
        ward_b=ward_b,
        ward_c=ward_c,
        specialty=specialty,
        mobilisation=mobilisation,
        diet_plan=diet_plan,
        swallow_screen=swallow_screen,
        retired_intervention=retired_intervention,
        patient=patient,
        other_patient=other_patient,
        retired_patient=retired_patient,
        physio_professional=physio_professional,
        physio_assistant=physio_assistant,
        dietitian=dietitian,
        admin=admin,
    )


# =============================================================================
# Callers
# =============================================================================


@pytest.fixture
def physio_caller(catalog: Catalog) -> CallerContext:
    return CallerContext(
        user_id=catalog.physio_professional.id,
        role=UserRole.PROFESSIONAL,
        department_ids=frozenset({catalog.physio.id}),
    )


@pytest.fixture
def assistant_caller(catalog: Catalog) -> CallerContext:
    return CallerContext(
        user_id=catalog.physio_assistant.id,
        role=UserRole.ASSISTANT,
        department_ids=frozenset({catalog.physio.id}),
    )


@pytest.fixture
def dietitian_caller(catalog: Catalog) -> CallerContext:
    return CallerContext(
        user_id=catalog.dietitian.id,
        role=UserRole.PROFESSIONAL,
        department_ids=frozenset({catalog.dietetics.id}),
    )


@pytest.fixture
def speech_caller(catalog: Catalog) -> CallerContext:
    return CallerContext(
        user_id=uuid.uuid4(),
        role=UserRole.PROFESSIONAL,
        department_ids=frozenset({catalog.speech.id}),
    )


@pytest.fixture
def admin_caller(catalog: Catalog) -> CallerContext:
    return CallerContext(user_id=catalog.admin.id, role=UserRole.ADMIN)


def identity_headers(caller: CallerContext) -> dict[str, str]:
    """Gateway headers carrying ``caller``'s identity."""
    return {
        "X-API-Key": settings.api_key,
        "X-User-Id": str(caller.user_id),
        "X-User-Role": caller.role.value,
        "X-Department-Ids": ",".join(str(d) for d in sorted(caller.department_ids, key=str)),
    }


@pytest.fixture
def headers_for():
    """Build request headers for a caller."""
    return identity_headers


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(test_engine):
    """Async test client for FastAPI app with test database.

    Overrides the app's get_db dependency to use the test database,
    ensuring API tests use the same database as other test fixtures.
    """
    test_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)
