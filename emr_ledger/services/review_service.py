"""
Servicio de solicitudes de revisión paciente → aseguradora.

State machine (ver models/review_application.py):
    none → pending → granted | rejected | cancelled → pending ...

Cada transición actualiza la fila de la solicitud y los contadores de
ReviewTotals en la misma transacción, con ambas filas bloqueadas.
`pending` refleja las solicitudes abiertas en este momento; `granted`,
`rejected` y `cancelled` son acumulados y nunca se recalculan.

Otorgar una revisión NO otorga consentimiento de lectura: para eso el
paciente llama a consent_service.grant_access (o history_service
.submit_review_with_consent, que compone ambas).
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.core.exceptions import (
    AlreadyPendingException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
)
from emr_ledger.database import utcnow
from emr_ledger.models.review_application import (
    ReviewApplication,
    ReviewStatus,
    ReviewTotals,
    is_valid_transition,
)
from emr_ledger.schemas.review import (
    ReviewListResponse,
    ReviewResponse,
    ReviewTotalsResponse,
)
from emr_ledger.services import individual_service
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)

TOTALS_ROW_ID = 1

# Contador acumulado que incrementa cada estado terminal
_TERMINAL_COUNTERS = {
    ReviewStatus.GRANTED: "granted",
    ReviewStatus.REJECTED: "rejected",
    ReviewStatus.CANCELLED: "cancelled",
}


# ── Helpers ──────────────────────────────────────────

async def _get_application(
    db: AsyncSession, patient_id: str, insurer_id: str, *, for_update: bool = False
) -> ReviewApplication | None:
    query = select(ReviewApplication).where(
        ReviewApplication.patient_id == patient_id,
        ReviewApplication.insurer_id == insurer_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _get_totals(db: AsyncSession, *, for_update: bool = False) -> ReviewTotals:
    """Obtiene (o crea) la fila única de contadores."""
    query = select(ReviewTotals).where(ReviewTotals.id == TOTALS_ROW_ID)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    totals = result.scalar_one_or_none()
    if totals is None:
        totals = ReviewTotals(
            id=TOTALS_ROW_ID, pending=0, granted=0, rejected=0, cancelled=0
        )
        db.add(totals)
        await db.flush()
    return totals


async def _transition(
    db: AsyncSession,
    application: ReviewApplication,
    new_status: ReviewStatus,
    *,
    actor: str,
    reason: str | None,
    ip_address: str | None,
) -> ReviewResponse:
    """Cierra un ciclo pendiente: aplica el estado terminal y ajusta contadores."""
    if not is_valid_transition(application.status, new_status):
        raise InvalidStateException(
            f"No se puede pasar de '{application.status.value}' a '{new_status.value}'"
        )

    totals = await _get_totals(db, for_update=True)
    totals.pending -= 1
    counter = _TERMINAL_COUNTERS[new_status]
    setattr(totals, counter, getattr(totals, counter) + 1)

    old_status = application.status
    application.status = new_status
    if reason is not None:
        application.reason = reason
    application.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=actor,
        entity="review_application",
        entity_id=f"{application.patient_id}:{application.insurer_id}",
        action=new_status.value,
        old_data={"status": old_status.value},
        new_data={"status": new_status.value, "reason": application.reason},
        ip_address=ip_address,
    )
    logger.info(
        f"Solicitud {application.patient_id} → {application.insurer_id}: "
        f"{old_status.value} → {new_status.value}"
    )

    return ReviewResponse.model_validate(application)


# ── Operaciones del paciente ─────────────────────────

async def request_review(
    db: AsyncSession,
    caller: str,
    insurer_id: str,
    ip_address: str | None = None,
) -> ReviewResponse:
    """
    Abre un ciclo nuevo (pending). Si hubo un ciclo anterior terminado,
    la misma fila se sobrescribe y el ciclo previo deja de ser consultable.
    """
    await ensure_not_paused(db)
    await individual_service.require_active_individual(db, caller)

    application = await _get_application(db, caller, insurer_id, for_update=True)
    if application is not None and application.status == ReviewStatus.PENDING:
        raise AlreadyPendingException()

    old_status = application.status if application is not None else ReviewStatus.NONE
    if not is_valid_transition(old_status, ReviewStatus.PENDING):
        raise InvalidStateException()

    now = utcnow()
    if application is None:
        application = ReviewApplication(
            patient_id=caller,
            insurer_id=insurer_id,
            status=ReviewStatus.PENDING,
            reason="",
            requested_at=now,
            updated_at=now,
        )
        try:
            async with db.begin_nested():
                db.add(application)
        except IntegrityError:
            # Otra transacción abrió la misma solicitud primero
            raise AlreadyPendingException()
    else:
        application.status = ReviewStatus.PENDING
        application.reason = ""
        application.requested_at = now
        application.updated_at = now

    totals = await _get_totals(db, for_update=True)
    totals.pending += 1
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="review_application",
        entity_id=f"{caller}:{insurer_id}",
        action="request",
        old_data={"status": old_status.value},
        new_data={"status": ReviewStatus.PENDING.value},
        ip_address=ip_address,
    )
    logger.info(f"Solicitud de revisión: {caller} → {insurer_id}")

    return ReviewResponse.model_validate(application)


async def cancel_application(
    db: AsyncSession,
    caller: str,
    insurer_id: str,
    reason: str = "",
    ip_address: str | None = None,
) -> ReviewResponse:
    """El paciente retira una solicitud pendiente."""
    await ensure_not_paused(db)
    await individual_service.require_active_individual(db, caller)

    application = await _get_application(db, caller, insurer_id, for_update=True)
    if application is None:
        raise NotFoundException("Solicitud de revisión")

    return await _transition(
        db,
        application,
        ReviewStatus.CANCELLED,
        actor=caller,
        reason=reason,
        ip_address=ip_address,
    )


# ── Operaciones de la aseguradora ────────────────────

async def grant_insurance(
    db: AsyncSession,
    caller: str,
    patient_id: str,
    ip_address: str | None = None,
) -> ReviewResponse:
    """La aseguradora nombrada aprueba la solicitud. No toca los consentimientos."""
    await ensure_not_paused(db)

    application = await _get_application(db, patient_id, caller, for_update=True)
    if application is None:
        raise NotFoundException("Solicitud de revisión")

    return await _transition(
        db,
        application,
        ReviewStatus.GRANTED,
        actor=caller,
        reason=None,
        ip_address=ip_address,
    )


async def reject_insurance(
    db: AsyncSession,
    caller: str,
    patient_id: str,
    reason: str = "",
    ip_address: str | None = None,
) -> ReviewResponse:
    """La aseguradora nombrada rechaza la solicitud."""
    await ensure_not_paused(db)

    application = await _get_application(db, patient_id, caller, for_update=True)
    if application is None:
        raise NotFoundException("Solicitud de revisión")

    return await _transition(
        db,
        application,
        ReviewStatus.REJECTED,
        actor=caller,
        reason=reason,
        ip_address=ip_address,
    )


# ── Operaciones de ambas partes ──────────────────────

async def update_reason(
    db: AsyncSession,
    caller: str,
    patient_id: str,
    insurer_id: str,
    reason: str,
    ip_address: str | None = None,
) -> ReviewResponse:
    """
    Cualquiera de las dos partes corrige el motivo, en cualquier estado.
    El estado y los contadores no cambian.
    """
    await ensure_not_paused(db)
    if caller not in (patient_id, insurer_id):
        raise ForbiddenException("Solo el paciente o la aseguradora pueden editar el motivo")

    application = await _get_application(db, patient_id, insurer_id, for_update=True)
    if application is None:
        raise NotFoundException("Solicitud de revisión")

    old_reason = application.reason
    application.reason = reason
    application.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="review_application",
        entity_id=f"{patient_id}:{insurer_id}",
        action="update_reason",
        old_data={"reason": old_reason},
        new_data={"reason": reason},
        ip_address=ip_address,
    )

    return ReviewResponse.model_validate(application)


# ── Lecturas ─────────────────────────────────────────

async def get_application(
    db: AsyncSession, patient_id: str, insurer_id: str
) -> ReviewResponse:
    application = await _get_application(db, patient_id, insurer_id)
    if application is None:
        raise NotFoundException("Solicitud de revisión")
    return ReviewResponse.model_validate(application)


async def list_applications_for_patient(
    db: AsyncSession, patient_id: str
) -> ReviewListResponse:
    result = await db.execute(
        select(ReviewApplication)
        .where(ReviewApplication.patient_id == patient_id)
        .order_by(ReviewApplication.id)
    )
    items = [ReviewResponse.model_validate(a) for a in result.scalars().all()]
    return ReviewListResponse(items=items, total=len(items))


async def list_applications_for_insurer(
    db: AsyncSession,
    insurer_id: str,
    status_filter: ReviewStatus | None = None,
    *,
    offset: int = 0,
    limit: int = 50,
) -> ReviewListResponse:
    """Solicitudes recibidas por la aseguradora, opcionalmente filtradas por estado."""
    query = select(ReviewApplication).where(ReviewApplication.insurer_id == insurer_id)
    if status_filter is not None:
        query = query.where(ReviewApplication.status == status_filter)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(ReviewApplication.requested_at, ReviewApplication.id)
    result = await db.execute(query.offset(offset).limit(limit))
    items = [ReviewResponse.model_validate(a) for a in result.scalars().all()]
    return ReviewListResponse(items=items, total=total)


async def get_totals(db: AsyncSession) -> ReviewTotalsResponse:
    result = await db.execute(
        select(ReviewTotals).where(ReviewTotals.id == TOTALS_ROW_ID)
    )
    totals = result.scalar_one_or_none()
    if totals is None:
        return ReviewTotalsResponse()
    return ReviewTotalsResponse(
        pending=totals.pending,
        granted=totals.granted,
        rejected=totals.rejected,
        cancelled=totals.cancelled,
    )
