"""
Servicio del ledger de registros clínicos: creación, edición por el autor,
lectura por id e índices por paciente y por doctor.

Este servicio NO aplica consentimiento en las lecturas: es almacenamiento.
La política de acceso la aplica history_service antes de llamar aquí.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.config import get_settings
from emr_ledger.core.exceptions import (
    ForbiddenException,
    InactiveIndividualException,
    InactivePractitionerException,
    NotFoundException,
)
from emr_ledger.database import utcnow
from emr_ledger.models.medical_record import MedicalRecord
from emr_ledger.schemas.medical_record import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordUpdate,
)
from emr_ledger.services import facility_service, individual_service, practitioner_service
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = (
    "diagnosis",
    "symptoms",
    "prescription",
    "treatment_plan",
    "external_doc_pointer",
)


def _snapshot(record: MedicalRecord) -> dict:
    return {field: getattr(record, field) for field in _MUTABLE_FIELDS}


# ── Crear registro ───────────────────────────────────

async def create_record(
    db: AsyncSession,
    caller: str,
    data: MedicalRecordCreate,
    ip_address: str | None = None,
) -> MedicalRecordResponse:
    """
    Agrega un registro al ledger. Solo profesionales activos.
    No exige consentimiento ni relación previa con el paciente; si
    REQUIRE_REGISTERED_PATIENT está activo, el paciente debe estar registrado y activo.
    """
    await ensure_not_paused(db)
    practitioner = await practitioner_service.require_active_practitioner(db, caller)

    if get_settings().REQUIRE_REGISTERED_PATIENT:
        individual = await individual_service.get_individual(db, data.patient_id)
        if individual is None:
            raise NotFoundException("Paciente")
        if not individual.is_active:
            raise InactiveIndividualException()

    await facility_service.note_observed_patient(
        db, practitioner.facility_id, data.patient_id
    )

    record = MedicalRecord(
        patient_id=data.patient_id,
        doctor_id=practitioner.id,
        diagnosis=data.diagnosis,
        symptoms=list(data.symptoms),
        prescription=data.prescription,
        treatment_plan=data.treatment_plan,
        external_doc_pointer=data.external_doc_pointer,
    )
    db.add(record)
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="medical_record",
        entity_id=str(record.id),
        action="create",
        new_data={"patient_id": data.patient_id, "diagnosis": data.diagnosis},
        ip_address=ip_address,
    )
    logger.info(f"Registro #{record.id} creado por {caller} para {data.patient_id}")

    return MedicalRecordResponse.model_validate(record)


# ── Editar registro ──────────────────────────────────

async def update_record(
    db: AsyncSession,
    caller: str,
    record_id: int,
    data: MedicalRecordUpdate,
    ip_address: str | None = None,
) -> MedicalRecordResponse:
    """
    Edita un registro. Solo el doctor autor, y solo mientras siga activo.
    Los campos omitidos (None) conservan su valor anterior.
    """
    await ensure_not_paused(db)

    result = await db.execute(
        select(MedicalRecord).where(MedicalRecord.id == record_id).with_for_update()
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundException("Registro clínico")

    if record.doctor_id != caller:
        raise ForbiddenException("Solo el doctor que creó el registro puede editarlo")

    author = await practitioner_service.get_practitioner(db, caller)
    if author is None or not author.is_active:
        raise InactivePractitionerException()

    old_data = _snapshot(record)
    changes = data.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(record, field, list(value) if field == "symptoms" else value)
    record.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="medical_record",
        entity_id=str(record.id),
        action="update",
        old_data={k: old_data[k] for k in changes},
        new_data=changes,
        ip_address=ip_address,
    )

    return MedicalRecordResponse.model_validate(record)


# ── Lecturas (sin control de consentimiento) ─────────

async def get_record_by_id(db: AsyncSession, record_id: int) -> MedicalRecordResponse:
    result = await db.execute(select(MedicalRecord).where(MedicalRecord.id == record_id))
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundException("Registro clínico")
    return MedicalRecordResponse.model_validate(record)


async def list_record_ids_for_patient(db: AsyncSession, patient_id: str) -> list[int]:
    result = await db.execute(
        select(MedicalRecord.id)
        .where(MedicalRecord.patient_id == patient_id)
        .order_by(MedicalRecord.id)
    )
    return list(result.scalars().all())


async def list_record_ids_for_doctor(db: AsyncSession, doctor_id: str) -> list[int]:
    result = await db.execute(
        select(MedicalRecord.id)
        .where(MedicalRecord.doctor_id == doctor_id)
        .order_by(MedicalRecord.id)
    )
    return list(result.scalars().all())


async def list_records_for_patient(
    db: AsyncSession, patient_id: str
) -> list[MedicalRecordResponse]:
    """Historia agregada completa, en orden del ledger."""
    result = await db.execute(
        select(MedicalRecord)
        .where(MedicalRecord.patient_id == patient_id)
        .order_by(MedicalRecord.id)
    )
    return [MedicalRecordResponse.model_validate(r) for r in result.scalars().all()]


async def has_authored_for(db: AsyncSession, doctor_id: str, patient_id: str) -> bool:
    """True si doctor_id escribió al menos un registro de patient_id."""
    result = await db.execute(
        select(MedicalRecord.id)
        .where(
            MedicalRecord.doctor_id == doctor_id,
            MedicalRecord.patient_id == patient_id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def list_patients_for_doctor(db: AsyncSession, doctor_id: str) -> list[str]:
    """Pacientes distintos atendidos por el doctor, por orden de primera atención."""
    result = await db.execute(
        select(MedicalRecord.patient_id)
        .where(MedicalRecord.doctor_id == doctor_id)
        .order_by(MedicalRecord.id)
    )
    return list(dict.fromkeys(result.scalars().all()))
