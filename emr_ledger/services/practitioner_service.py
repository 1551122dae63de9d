"""
Servicio del registro de profesionales.

El alta y la baja solo ocurren a través del establecimiento dueño
(facility_service); aquí viven las reglas del propio registro y la edición
del perfil, que es exclusiva del profesional.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.rbac import require_role
from emr_ledger.core.exceptions import (
    AlreadyRegisteredException,
    ForbiddenException,
    InactivePractitionerException,
    NotEligibleException,
    NotFoundException,
)
from emr_ledger.database import utcnow
from emr_ledger.models.practitioner import Practitioner
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.practitioner import (
    PractitionerProfileUpdate,
    PractitionerResponse,
)
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)


async def get_practitioner(
    db: AsyncSession, practitioner_id: str, *, for_update: bool = False
) -> Practitioner | None:
    query = select(Practitioner).where(Practitioner.id == practitioner_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def require_active_practitioner(
    db: AsyncSession, principal: str, *, for_update: bool = False
) -> Practitioner:
    """Devuelve el profesional activo del principal o lanza Forbidden / Inactive."""
    practitioner = await get_practitioner(db, principal, for_update=for_update)
    if practitioner is None:
        raise ForbiddenException("El llamador no es un profesional registrado")
    if not practitioner.is_active:
        raise InactivePractitionerException()
    return practitioner


async def get_details(db: AsyncSession, practitioner_id: str) -> PractitionerResponse:
    practitioner = await get_practitioner(db, practitioner_id)
    if practitioner is None:
        raise NotFoundException("Profesional")
    return PractitionerResponse.model_validate(practitioner)


# ── Operaciones internas (invocadas por facility_service) ──

async def register_practitioner(
    db: AsyncSession,
    principal: str,
    license_number: str,
    facility_id: str,
) -> Practitioner:
    """
    Crea el profesional ligado a facility_id.
    NotEligible si el principal no tiene rol PRACTITIONER.
    AlreadyRegistered si ya existe, aunque esté inactivo: no se sobrescribe.
    """
    if await get_practitioner(db, principal) is not None:
        raise AlreadyRegisteredException("El profesional ya está registrado")
    await require_role(db, principal, Role.PRACTITIONER, NotEligibleException)

    practitioner = Practitioner(
        id=principal,
        facility_id=facility_id,
        license_number=license_number,
    )
    db.add(practitioner)
    try:
        await db.flush()
    except IntegrityError:
        raise AlreadyRegisteredException("El profesional ya está registrado")
    return practitioner


async def deactivate_practitioner(db: AsyncSession, practitioner: Practitioner) -> bool:
    """Tombstone idempotente. Devuelve True si estaba activo."""
    if not practitioner.is_active:
        return False
    practitioner.is_active = False
    practitioner.updated_at = utcnow()
    await db.flush()
    return True


# ── Operaciones del propio profesional ───────────────

async def update_profile(
    db: AsyncSession,
    caller: str,
    data: PractitionerProfileUpdate,
    ip_address: str | None = None,
) -> PractitionerResponse:
    """Solo el profesional, y solo mientras esté activo, edita nombre y especialidad."""
    await ensure_not_paused(db)
    practitioner = await require_active_practitioner(db, caller, for_update=True)

    old_data = {
        "name": practitioner.name,
        "specialization": practitioner.specialization,
    }
    practitioner.name = data.name
    practitioner.specialization = data.specialization
    practitioner.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="practitioner",
        entity_id=caller,
        action="update",
        old_data=old_data,
        new_data=data.model_dump(),
        ip_address=ip_address,
    )

    return PractitionerResponse.model_validate(practitioner)
