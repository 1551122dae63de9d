"""
Endpoints del registro de pacientes.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import (
    get_client_ip,
    get_consent_checker,
    get_current_principal,
)
from emr_ledger.database import get_db
from emr_ledger.schemas.individual import IndividualCreate, IndividualResponse
from emr_ledger.schemas.medical_record import RecordIdsResponse
from emr_ledger.services import history_service, individual_service
from emr_ledger.services.access_policy import ConsentChecker

router = APIRouter()


@router.post("", response_model=IndividualResponse, status_code=201)
async def register_individual(
    data: IndividualCreate,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Auto-registro del paciente que llama. Requiere rol INDIVIDUAL."""
    return await individual_service.register_individual(
        db, caller, data, ip_address=get_client_ip(request)
    )


@router.post("/me/deactivate", response_model=IndividualResponse)
async def deactivate_individual(
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """El paciente se desactiva a sí mismo."""
    return await individual_service.deactivate_individual(
        db, caller, ip_address=get_client_ip(request)
    )


@router.get("/me/records", response_model=RecordIdsResponse)
async def get_my_records(
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await history_service.get_my_records(db, caller)


@router.get("/{patient_id}", response_model=IndividualResponse)
async def get_individual(
    patient_id: str,
    caller: str = Depends(get_current_principal),
    checker: ConsentChecker = Depends(get_consent_checker),
    db: AsyncSession = Depends(get_db),
):
    """Perfil del paciente. Requiere ser el paciente, su médico o tener consentimiento."""
    return await history_service.get_individual_details(db, checker, caller, patient_id)
