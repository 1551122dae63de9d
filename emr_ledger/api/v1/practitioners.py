"""
Endpoints del registro de profesionales.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_client_ip, get_current_principal
from emr_ledger.database import get_db
from emr_ledger.schemas.medical_record import RecordIdsResponse
from emr_ledger.schemas.practitioner import PractitionerProfileUpdate, PractitionerResponse
from emr_ledger.services import history_service, medical_record_service, practitioner_service

router = APIRouter()


@router.put("/me", response_model=PractitionerResponse)
async def update_profile(
    data: PractitionerProfileUpdate,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """El profesional activo edita su nombre y especialidad."""
    return await practitioner_service.update_profile(
        db, caller, data, ip_address=get_client_ip(request)
    )


@router.get("/me/patients", response_model=list[str])
async def list_my_patients(
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await history_service.list_my_patients(db, caller)


@router.get("/{practitioner_id}", response_model=PractitionerResponse)
async def get_practitioner(
    practitioner_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await practitioner_service.get_details(db, practitioner_id)


@router.get("/{practitioner_id}/records", response_model=RecordIdsResponse)
async def list_records_by_doctor(
    practitioner_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Índice de registros escritos por el profesional."""
    record_ids = await medical_record_service.list_record_ids_for_doctor(
        db, practitioner_id
    )
    return RecordIdsResponse(owner=practitioner_id, record_ids=record_ids)
