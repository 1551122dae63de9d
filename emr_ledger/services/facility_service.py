"""
Servicio del registro de establecimientos: auto-registro, gestión del plantel
de profesionales, desactivación (solo ADMIN) y lecturas derivadas.

Los contadores doctor_count / patient_count se actualizan con la fila del
establecimiento bloqueada (SELECT FOR UPDATE), en la misma transacción que
el cambio que los provoca.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.rbac import require_admin, require_role
from emr_ledger.core.exceptions import (
    AlreadyRegisteredException,
    ForbiddenException,
    InactiveFacilityException,
    NotFoundException,
)
from emr_ledger.database import utcnow
from emr_ledger.models.facility import Facility
from emr_ledger.models.medical_record import MedicalRecord
from emr_ledger.models.practitioner import Practitioner
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.facility import FacilityCreate, FacilityResponse, PractitionerAdd
from emr_ledger.schemas.practitioner import PractitionerResponse
from emr_ledger.services import practitioner_service
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────

async def get_facility(
    db: AsyncSession, facility_id: str, *, for_update: bool = False
) -> Facility | None:
    query = select(Facility).where(Facility.id == facility_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _require_active_facility(db: AsyncSession, caller: str) -> Facility:
    """El establecimiento del llamador, bloqueado y activo."""
    facility = await get_facility(db, caller, for_update=True)
    if facility is None:
        raise ForbiddenException("El llamador no es un establecimiento registrado")
    if not facility.is_active:
        raise InactiveFacilityException()
    return facility


# ── Registro ─────────────────────────────────────────

async def register_facility(
    db: AsyncSession,
    caller: str,
    data: FacilityCreate,
    ip_address: str | None = None,
) -> FacilityResponse:
    """
    Auto-registro del establecimiento. Requiere rol FACILITY.
    Solo se bloquea el principal duplicado (no el número de registro).
    """
    await ensure_not_paused(db)
    if await get_facility(db, caller) is not None:
        raise AlreadyRegisteredException("El establecimiento ya está registrado")
    await require_role(db, caller, Role.FACILITY)

    facility = Facility(
        id=caller,
        name=data.name,
        registration_number=data.registration_number,
        doctor_count=0,
        patient_count=0,
    )
    db.add(facility)
    try:
        await db.flush()
    except IntegrityError:
        raise AlreadyRegisteredException("El establecimiento ya está registrado")

    await log_action(
        db,
        actor=caller,
        entity="facility",
        entity_id=caller,
        action="register",
        new_data=data.model_dump(),
        ip_address=ip_address,
    )
    logger.info(f"Establecimiento registrado: {data.name} ({data.registration_number})")

    return FacilityResponse.model_validate(facility)


# ── Plantel de profesionales ─────────────────────────

async def add_practitioner(
    db: AsyncSession,
    caller: str,
    data: PractitionerAdd,
    ip_address: str | None = None,
) -> PractitionerResponse:
    """Alta de un profesional por su establecimiento (activo)."""
    await ensure_not_paused(db)
    facility = await _require_active_facility(db, caller)

    practitioner = await practitioner_service.register_practitioner(
        db,
        principal=data.practitioner_id,
        license_number=data.license_number,
        facility_id=facility.id,
    )
    facility.doctor_count += 1
    facility.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="practitioner",
        entity_id=practitioner.id,
        action="register",
        new_data={
            "facility_id": facility.id,
            "license_number": data.license_number,
            "doctor_count": facility.doctor_count,
        },
        ip_address=ip_address,
    )
    logger.info(f"Profesional {practitioner.id} agregado a '{facility.name}'")

    return PractitionerResponse.model_validate(practitioner)


async def remove_practitioner(
    db: AsyncSession,
    caller: str,
    practitioner_id: str,
    ip_address: str | None = None,
) -> PractitionerResponse:
    """
    Baja (tombstone) de un profesional por su establecimiento dueño.
    El contador solo baja si el profesional estaba activo.
    """
    await ensure_not_paused(db)
    facility = await _require_active_facility(db, caller)

    practitioner = await practitioner_service.get_practitioner(
        db, practitioner_id, for_update=True
    )
    if practitioner is None:
        raise NotFoundException("Profesional")
    if practitioner.facility_id != facility.id:
        raise ForbiddenException("El profesional pertenece a otro establecimiento")

    if await practitioner_service.deactivate_practitioner(db, practitioner):
        facility.doctor_count -= 1
        facility.updated_at = utcnow()
        await db.flush()

        await log_action(
            db,
            actor=caller,
            entity="practitioner",
            entity_id=practitioner.id,
            action="deactivate",
            old_data={"is_active": True},
            new_data={"is_active": False, "doctor_count": facility.doctor_count},
            ip_address=ip_address,
        )
        logger.info(f"Profesional {practitioner.id} dado de baja en '{facility.name}'")

    return PractitionerResponse.model_validate(practitioner)


# ── Desactivación (ADMIN) ────────────────────────────

async def deactivate_facility(
    db: AsyncSession,
    caller: str,
    facility_id: str,
    ip_address: str | None = None,
) -> FacilityResponse:
    """Solo ADMIN. Idempotente; los profesionales del establecimiento no se tocan."""
    await ensure_not_paused(db)
    await require_admin(db, caller)

    facility = await get_facility(db, facility_id, for_update=True)
    if facility is None:
        raise NotFoundException("Establecimiento")

    if facility.is_active:
        facility.is_active = False
        facility.updated_at = utcnow()
        await db.flush()

        await log_action(
            db,
            actor=caller,
            entity="facility",
            entity_id=facility.id,
            action="deactivate",
            old_data={"is_active": True},
            new_data={"is_active": False},
            ip_address=ip_address,
        )
        logger.info(f"Establecimiento desactivado: {facility.name}")

    return FacilityResponse.model_validate(facility)


# ── Pacientes observados ─────────────────────────────

async def note_observed_patient(
    db: AsyncSession, facility_id: str, patient_id: str
) -> None:
    """
    Incrementa patient_count si el paciente aún no tiene registros de ningún
    profesional del establecimiento. Llamar ANTES de insertar el registro nuevo.
    """
    facility = await get_facility(db, facility_id, for_update=True)
    if facility is None:
        return

    seen = await db.execute(
        select(MedicalRecord.id)
        .join(Practitioner, Practitioner.id == MedicalRecord.doctor_id)
        .where(
            Practitioner.facility_id == facility_id,
            MedicalRecord.patient_id == patient_id,
        )
        .limit(1)
    )
    if seen.scalar_one_or_none() is None:
        facility.patient_count += 1
        facility.updated_at = utcnow()
        await db.flush()


# ── Lecturas ─────────────────────────────────────────

async def get_facility_details(db: AsyncSession, facility_id: str) -> FacilityResponse:
    facility = await get_facility(db, facility_id)
    if facility is None:
        raise NotFoundException("Establecimiento")
    return FacilityResponse.model_validate(facility)


async def list_practitioners(
    db: AsyncSession,
    facility_id: str,
    *,
    include_inactive: bool = False,
) -> list[PractitionerResponse]:
    """Plantel del establecimiento. Por defecto solo los activos."""
    if await get_facility(db, facility_id) is None:
        raise NotFoundException("Establecimiento")

    query = select(Practitioner).where(Practitioner.facility_id == facility_id)
    if not include_inactive:
        query = query.where(Practitioner.is_active.is_(True))
    result = await db.execute(query.order_by(Practitioner.registered_at, Practitioner.id))
    return [PractitionerResponse.model_validate(p) for p in result.scalars().all()]


async def list_observed_patients(db: AsyncSession, facility_id: str) -> list[str]:
    """Pacientes con al menos un registro de algún profesional del establecimiento."""
    if await get_facility(db, facility_id) is None:
        raise NotFoundException("Establecimiento")

    result = await db.execute(
        select(MedicalRecord.patient_id, MedicalRecord.id)
        .join(Practitioner, Practitioner.id == MedicalRecord.doctor_id)
        .where(Practitioner.facility_id == facility_id)
        .order_by(MedicalRecord.id)
    )
    # Orden de primera aparición en el ledger
    return list(dict.fromkeys(patient_id for patient_id, _ in result.all()))
