"""
Fixtures compartidas para Pytest.
Configura base de datos de test, clientes HTTP y los actores del registro.
"""

from collections.abc import AsyncGenerator

import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from emr_ledger.auth.dependencies import get_current_principal
from emr_ledger.database import Base, get_db
from emr_ledger.main import app
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.facility import FacilityCreate, PractitionerAdd
from emr_ledger.schemas.individual import IndividualCreate
from emr_ledger.services import (
    facility_service,
    individual_service,
    role_service,
)

# ── Principales de test ──────────────────────────────
ADMIN = "0xadmin"
FACILITY = "0xfacility"
DOCTOR = "0xdoctor"
PATIENT = "0xpatient"
INSURER = "0xinsurer"
STRANGER = "0xstranger"

# ── Engine de test (SQLite async en memoria) ─────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Header con el que los tests HTTP eligen el principal que llama
PRINCIPAL_HEADER = "X-Test-Principal"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crea las tablas, provee una sesión y destruye todo al terminar."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test y toma el principal de un header."""

    async def _get_test_db():
        yield db_session

    async def _get_test_principal(request: Request) -> str:
        return request.headers[PRINCIPAL_HEADER]

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_current_principal] = _get_test_principal

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def as_principal(principal: str) -> dict[str, str]:
    return {PRINCIPAL_HEADER: principal}


# ── Actores del registro ─────────────────────────────

@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> str:
    """Siembra el ADMIN de génesis."""
    await role_service.bootstrap_admin(db_session, ADMIN)
    return ADMIN


@pytest_asyncio.fixture
async def facility(db_session: AsyncSession, admin: str) -> str:
    """Establecimiento activo registrado."""
    await role_service.grant_role(db_session, admin, FACILITY, Role.FACILITY)
    await facility_service.register_facility(
        db_session,
        FACILITY,
        FacilityCreate(name="Clínica San Juan", registration_number="REG-001"),
    )
    return FACILITY


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession, admin: str, facility: str) -> str:
    """Profesional activo del establecimiento de test."""
    await role_service.grant_role(db_session, admin, DOCTOR, Role.PRACTITIONER)
    await facility_service.add_practitioner(
        db_session,
        facility,
        PractitionerAdd(practitioner_id=DOCTOR, license_number="CMP-12345"),
    )
    return DOCTOR


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession, admin: str) -> str:
    """Paciente activo registrado."""
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    await individual_service.register_individual(
        db_session,
        PATIENT,
        IndividualCreate(name="Ana Pérez", date_of_birth="1990-04-12", blood_group="O+"),
    )
    return PATIENT
