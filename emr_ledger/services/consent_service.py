"""
Servicio del ledger de consentimientos: el paciente otorga y revoca
permiso de lectura de su historia agregada a otros principales.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.core.exceptions import NotFoundException
from emr_ledger.database import utcnow
from emr_ledger.models.consent_grant import ConsentGrant
from emr_ledger.schemas.consent import ConsentResponse
from emr_ledger.services import individual_service
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)


async def _get_grant(
    db: AsyncSession, patient_id: str, grantee_id: str, *, for_update: bool = False
) -> ConsentGrant | None:
    query = select(ConsentGrant).where(
        ConsentGrant.patient_id == patient_id,
        ConsentGrant.grantee_id == grantee_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _insert_grant(
    db: AsyncSession, patient_id: str, grantee_id: str
) -> ConsentGrant | None:
    """Inserta el par dentro de un SAVEPOINT. None si el par ya existe."""
    grant = ConsentGrant(patient_id=patient_id, grantee_id=grantee_id)
    try:
        async with db.begin_nested():
            db.add(grant)
    except IntegrityError:
        return None
    return grant


# ── Otorgar / revocar ────────────────────────────────

async def grant_access(
    db: AsyncSession,
    caller: str,
    grantee_id: str,
    ip_address: str | None = None,
) -> ConsentResponse:
    """
    El paciente activo otorga lectura a grantee_id.
    Idempotente: si ya hay un consentimiento activo no cambia nada;
    si estaba revocado se reactiva con nueva fecha.
    """
    await ensure_not_paused(db)
    await individual_service.require_active_individual(db, caller)

    grant = await _get_grant(db, caller, grantee_id, for_update=True)
    created = False
    if grant is None:
        grant = await _insert_grant(db, caller, grantee_id)
        created = grant is not None
        if not created:
            # Otra transacción creó el mismo par: se reusa su fila
            grant = await _get_grant(db, caller, grantee_id, for_update=True)

    if not created:
        if grant.is_active:
            return ConsentResponse.model_validate(grant)
        grant.is_active = True
        grant.granted_at = utcnow()
        grant.revoked_at = None
        await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="consent",
        entity_id=f"{caller}:{grantee_id}",
        action="grant",
        new_data={"grantee_id": grantee_id, "is_active": True},
        ip_address=ip_address,
    )
    logger.info(f"Consentimiento otorgado: {caller} → {grantee_id}")

    return ConsentResponse.model_validate(grant)


async def revoke_access(
    db: AsyncSession,
    caller: str,
    grantee_id: str,
    ip_address: str | None = None,
) -> ConsentResponse:
    """Revoca un consentimiento activo. NotFound si no existe o ya fue revocado."""
    await ensure_not_paused(db)
    await individual_service.require_active_individual(db, caller)

    grant = await _get_grant(db, caller, grantee_id, for_update=True)
    if grant is None or not grant.is_active:
        raise NotFoundException("Consentimiento")

    grant.is_active = False
    grant.revoked_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="consent",
        entity_id=f"{caller}:{grantee_id}",
        action="revoke",
        old_data={"is_active": True},
        new_data={"is_active": False},
        ip_address=ip_address,
    )
    logger.info(f"Consentimiento revocado: {caller} → {grantee_id}")

    return ConsentResponse.model_validate(grant)


# ── Lecturas ─────────────────────────────────────────

async def has_access(db: AsyncSession, grantee_id: str, patient_id: str) -> bool:
    """True si hay consentimiento activo o si el principal es el propio paciente."""
    if grantee_id == patient_id:
        return True
    grant = await _get_grant(db, patient_id, grantee_id)
    return grant is not None and grant.is_active


async def list_grants_for_patient(
    db: AsyncSession, patient_id: str, *, include_revoked: bool = False
) -> list[ConsentResponse]:
    query = select(ConsentGrant).where(ConsentGrant.patient_id == patient_id)
    if not include_revoked:
        query = query.where(ConsentGrant.is_active.is_(True))
    result = await db.execute(query.order_by(ConsentGrant.id))
    return [ConsentResponse.model_validate(g) for g in result.scalars().all()]
