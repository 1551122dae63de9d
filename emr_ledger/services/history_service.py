"""
Vistas agregadas del paciente y casos de uso que componen primitivas.

Las lecturas de historia, perfil y recetas pasan por access_policy; los
servicios de almacenamiento (medical_record_service, individual_service)
no aplican consentimiento por sí mismos.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.core.exceptions import NotFoundException
from emr_ledger.schemas.history import (
    PatientHistoryResponse,
    PrescriptionItem,
    PrescriptionListResponse,
)
from emr_ledger.schemas.individual import IndividualResponse
from emr_ledger.schemas.medical_record import MedicalRecordResponse, RecordIdsResponse
from emr_ledger.schemas.review import ReviewResponse
from emr_ledger.services import (
    consent_service,
    individual_service,
    medical_record_service,
    practitioner_service,
    review_service,
)
from emr_ledger.services.access_policy import ConsentChecker, require_history_access

logger = logging.getLogger(__name__)


# ── Lecturas controladas ─────────────────────────────

async def get_patient_history(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    patient_id: str,
) -> PatientHistoryResponse:
    """Perfil + todos los registros del paciente, si el llamador tiene acceso."""
    await require_history_access(db, checker, caller, patient_id)

    individual = await individual_service.get_individual(db, patient_id)
    records = await medical_record_service.list_records_for_patient(db, patient_id)
    return PatientHistoryResponse(
        patient_id=patient_id,
        profile=IndividualResponse.model_validate(individual) if individual else None,
        records=records,
        total=len(records),
    )


async def get_individual_details(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    patient_id: str,
) -> IndividualResponse:
    await require_history_access(db, checker, caller, patient_id)

    individual = await individual_service.get_individual(db, patient_id)
    if individual is None:
        raise NotFoundException("Paciente")
    return IndividualResponse.model_validate(individual)


async def list_prescriptions(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    patient_id: str,
) -> PrescriptionListResponse:
    """Recetas del paciente: registros con prescripción no vacía."""
    await require_history_access(db, checker, caller, patient_id)

    records = await medical_record_service.list_records_for_patient(db, patient_id)
    items = [
        PrescriptionItem(
            record_id=r.id,
            doctor_id=r.doctor_id,
            diagnosis=r.diagnosis,
            prescription=r.prescription,
            created_at=r.created_at,
        )
        for r in records
        if r.prescription.strip()
    ]
    return PrescriptionListResponse(patient_id=patient_id, items=items, total=len(items))


async def get_record(
    db: AsyncSession,
    checker: ConsentChecker,
    caller: str,
    record_id: int,
) -> MedicalRecordResponse:
    """Un registro por id, con la misma política que la historia de su paciente."""
    record = await medical_record_service.get_record_by_id(db, record_id)
    await require_history_access(db, checker, caller, record.patient_id)
    return record


# ── Vistas propias ───────────────────────────────────

async def get_my_records(db: AsyncSession, caller: str) -> RecordIdsResponse:
    """Ids de los registros del paciente que llama (registrado, activo o no)."""
    if await individual_service.get_individual(db, caller) is None:
        raise NotFoundException("Paciente")
    record_ids = await medical_record_service.list_record_ids_for_patient(db, caller)
    return RecordIdsResponse(owner=caller, record_ids=record_ids)


async def list_my_patients(db: AsyncSession, caller: str) -> list[str]:
    """Pacientes atendidos por el profesional que llama. Solo profesionales activos."""
    await practitioner_service.require_active_practitioner(db, caller)
    return await medical_record_service.list_patients_for_doctor(db, caller)


# ── Casos de uso compuestos ──────────────────────────

async def submit_review_with_consent(
    db: AsyncSession,
    caller: str,
    insurer_id: str,
    ip_address: str | None = None,
) -> ReviewResponse:
    """
    Solicita la revisión y otorga lectura a la aseguradora en una sola
    transacción. Si cualquiera de los dos pasos falla, no queda ninguno.
    """
    review = await review_service.request_review(db, caller, insurer_id, ip_address)
    await consent_service.grant_access(db, caller, insurer_id, ip_address)
    logger.info(f"Solicitud con consentimiento: {caller} → {insurer_id}")
    return review
