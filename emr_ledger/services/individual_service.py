"""
Servicio del registro de pacientes: auto-registro, auto-desactivación y lecturas.

Un paciente solo puede desactivarse a sí mismo; nadie más puede hacerlo.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.rbac import require_role
from emr_ledger.core.exceptions import (
    AlreadyRegisteredException,
    ForbiddenException,
    InactiveIndividualException,
)
from emr_ledger.database import utcnow
from emr_ledger.models.individual import Individual
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.individual import IndividualCreate, IndividualResponse
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)


async def get_individual(
    db: AsyncSession, individual_id: str, *, for_update: bool = False
) -> Individual | None:
    query = select(Individual).where(Individual.id == individual_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def require_active_individual(
    db: AsyncSession, principal: str, *, for_update: bool = False
) -> Individual:
    """Devuelve el paciente del principal o lanza Forbidden / InactiveIndividual."""
    individual = await get_individual(db, principal, for_update=for_update)
    if individual is None:
        raise ForbiddenException("El llamador no es un paciente registrado")
    if not individual.is_active:
        raise InactiveIndividualException()
    return individual


async def register_individual(
    db: AsyncSession,
    caller: str,
    data: IndividualCreate,
    ip_address: str | None = None,
) -> IndividualResponse:
    """Auto-registro. Requiere rol INDIVIDUAL; un registro por principal."""
    await ensure_not_paused(db)
    if await get_individual(db, caller) is not None:
        raise AlreadyRegisteredException("El paciente ya está registrado")
    await require_role(db, caller, Role.INDIVIDUAL)

    individual = Individual(
        id=caller,
        name=data.name,
        date_of_birth=data.date_of_birth,
        blood_group=data.blood_group,
    )
    db.add(individual)
    try:
        await db.flush()
    except IntegrityError:
        raise AlreadyRegisteredException("El paciente ya está registrado")

    await log_action(
        db,
        actor=caller,
        entity="individual",
        entity_id=caller,
        action="register",
        new_data={"name": data.name, "blood_group": data.blood_group},
        ip_address=ip_address,
    )
    logger.info(f"Paciente registrado: {caller}")

    return IndividualResponse.model_validate(individual)


async def deactivate_individual(
    db: AsyncSession,
    caller: str,
    ip_address: str | None = None,
) -> IndividualResponse:
    """El paciente se desactiva a sí mismo. Su historia no se borra."""
    await ensure_not_paused(db)
    individual = await require_active_individual(db, caller, for_update=True)

    individual.is_active = False
    individual.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="individual",
        entity_id=caller,
        action="deactivate",
        old_data={"is_active": True},
        new_data={"is_active": False},
        ip_address=ip_address,
    )
    logger.info(f"Paciente desactivado: {caller}")

    return IndividualResponse.model_validate(individual)
