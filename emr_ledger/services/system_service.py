"""
Servicio de estado global: pausa y reanudación del sistema (solo ADMIN).
Mientras está pausado, toda escritura falla con SystemPausedException;
las lecturas siguen disponibles.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.rbac import require_admin
from emr_ledger.core.exceptions import InvalidStateException, SystemPausedException
from emr_ledger.database import utcnow
from emr_ledger.models.system_state import SystemState
from emr_ledger.schemas.system import SystemStatusResponse
from emr_ledger.services.audit_service import log_action

logger = logging.getLogger(__name__)

SYSTEM_ROW_ID = 1


async def _get_state(db: AsyncSession, *, for_update: bool = False) -> SystemState:
    """Obtiene (o crea) la fila única de estado."""
    query = select(SystemState).where(SystemState.id == SYSTEM_ROW_ID)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    state = result.scalar_one_or_none()
    if state is None:
        state = SystemState(id=SYSTEM_ROW_ID, paused=False)
        db.add(state)
        await db.flush()
    return state


async def ensure_not_paused(db: AsyncSession) -> None:
    """Guardia que toda operación de escritura ejecuta primero."""
    result = await db.execute(
        select(SystemState.paused).where(SystemState.id == SYSTEM_ROW_ID)
    )
    if result.scalar_one_or_none():
        raise SystemPausedException()


async def get_status(db: AsyncSession) -> SystemStatusResponse:
    result = await db.execute(
        select(SystemState).where(SystemState.id == SYSTEM_ROW_ID)
    )
    state = result.scalar_one_or_none()
    if state is None:
        return SystemStatusResponse(paused=False)
    return SystemStatusResponse(
        paused=state.paused,
        changed_by=state.changed_by,
        changed_at=state.changed_at,
    )


async def _set_paused(
    db: AsyncSession,
    caller: str,
    paused: bool,
    ip_address: str | None,
) -> SystemStatusResponse:
    await require_admin(db, caller)

    state = await _get_state(db, for_update=True)
    if state.paused == paused:
        raise InvalidStateException(
            "El sistema ya está pausado" if paused else "El sistema no está pausado"
        )

    state.paused = paused
    state.changed_by = caller
    state.changed_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="system",
        entity_id=str(SYSTEM_ROW_ID),
        action="pause" if paused else "resume",
        old_data={"paused": not paused},
        new_data={"paused": paused},
        ip_address=ip_address,
    )
    logger.info(f"Sistema {'pausado' if paused else 'reanudado'} por {caller}")

    return await get_status(db)


async def pause_system(
    db: AsyncSession, caller: str, ip_address: str | None = None
) -> SystemStatusResponse:
    """Pausa todas las escrituras del registro."""
    return await _set_paused(db, caller, True, ip_address)


async def resume_system(
    db: AsyncSession, caller: str, ip_address: str | None = None
) -> SystemStatusResponse:
    """Reanuda las escrituras."""
    return await _set_paused(db, caller, False, ip_address)
