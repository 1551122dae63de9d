"""
Endpoints del ledger de registros clínicos.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import (
    get_client_ip,
    get_consent_checker,
    get_current_principal,
)
from emr_ledger.database import get_db
from emr_ledger.schemas.medical_record import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordUpdate,
    RecordIdsResponse,
)
from emr_ledger.services import history_service, medical_record_service
from emr_ledger.services.access_policy import ConsentChecker

router = APIRouter()


@router.post("", response_model=MedicalRecordResponse, status_code=201)
async def create_record(
    data: MedicalRecordCreate,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Agrega un registro. Solo profesionales activos."""
    return await medical_record_service.create_record(
        db, caller, data, ip_address=get_client_ip(request)
    )


@router.patch("/{record_id}", response_model=MedicalRecordResponse)
async def update_record(
    record_id: int,
    data: MedicalRecordUpdate,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Edita un registro. Solo el doctor autor, mientras siga activo."""
    return await medical_record_service.update_record(
        db, caller, record_id, data, ip_address=get_client_ip(request)
    )


@router.get("/patient/{patient_id}", response_model=RecordIdsResponse)
async def list_records_by_patient(
    patient_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    record_ids = await medical_record_service.list_record_ids_for_patient(db, patient_id)
    return RecordIdsResponse(owner=patient_id, record_ids=record_ids)


@router.get("/{record_id}", response_model=MedicalRecordResponse)
async def get_record(
    record_id: int,
    caller: str = Depends(get_current_principal),
    checker: ConsentChecker = Depends(get_consent_checker),
    db: AsyncSession = Depends(get_db),
):
    """Un registro por id. Misma política de acceso que la historia del paciente."""
    return await history_service.get_record(db, checker, caller, record_id)
