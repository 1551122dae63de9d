"""
Política de lectura de la historia agregada de un paciente.

Un principal puede leer perfil e historia de un paciente si es el propio
paciente, si es un profesional activo que escribió al menos uno de sus registros,
o si el paciente le otorgó consentimiento. El chequeo de consentimiento se
inyecta (ConsentChecker) para poder sustituirlo sin tocar los registros.
"""

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.core.exceptions import AccessDeniedException
from emr_ledger.services import (
    consent_service,
    medical_record_service,
    practitioner_service,
)

logger = logging.getLogger(__name__)


class ConsentChecker(Protocol):
    async def has_access(
        self, db: AsyncSession, grantee_id: str, patient_id: str
    ) -> bool: ...


class LedgerConsentChecker:
    """Consulta el ledger de consentimientos en la misma base de datos."""

    async def has_access(
        self, db: AsyncSession, grantee_id: str, patient_id: str
    ) -> bool:
        return await consent_service.has_access(db, grantee_id, patient_id)


async def _is_active_author(db: AsyncSession, caller: str, patient_id: str) -> bool:
    practitioner = await practitioner_service.get_practitioner(db, caller)
    if practitioner is None or not practitioner.is_active:
        return False
    return await medical_record_service.has_authored_for(db, caller, patient_id)


async def can_read_history(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    patient_id: str,
) -> bool:
    if caller == patient_id:
        return True
    # La autoría solo cuenta mientras el profesional siga activo
    if await _is_active_author(db, caller, patient_id):
        return True
    return await checker.has_access(db, caller, patient_id)


async def require_history_access(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    patient_id: str,
) -> None:
    """Lanza AccessDenied si el llamador no puede leer la historia del paciente."""
    if not await can_read_history(db, checker, caller, patient_id):
        logger.warning(f"Acceso denegado: {caller} → historia de {patient_id}")
        raise AccessDeniedException()
