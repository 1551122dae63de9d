"""
Endpoints del registro de establecimientos y su plantel.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_client_ip, get_current_principal
from emr_ledger.database import get_db
from emr_ledger.schemas.facility import FacilityCreate, FacilityResponse, PractitionerAdd
from emr_ledger.schemas.practitioner import PractitionerResponse
from emr_ledger.services import facility_service

router = APIRouter()


@router.post("", response_model=FacilityResponse, status_code=201)
async def register_facility(
    data: FacilityCreate,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Auto-registro del establecimiento que llama. Requiere rol FACILITY."""
    return await facility_service.register_facility(
        db, caller, data, ip_address=get_client_ip(request)
    )


@router.post("/practitioners", response_model=PractitionerResponse, status_code=201)
async def add_practitioner(
    data: PractitionerAdd,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Alta de un profesional en el establecimiento que llama."""
    return await facility_service.add_practitioner(
        db, caller, data, ip_address=get_client_ip(request)
    )


@router.delete("/practitioners/{practitioner_id}", response_model=PractitionerResponse)
async def remove_practitioner(
    practitioner_id: str,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Baja de un profesional. Solo su establecimiento dueño."""
    return await facility_service.remove_practitioner(
        db, caller, practitioner_id, ip_address=get_client_ip(request)
    )


@router.post("/{facility_id}/deactivate", response_model=FacilityResponse)
async def deactivate_facility(
    facility_id: str,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Desactiva un establecimiento. Solo ADMIN."""
    return await facility_service.deactivate_facility(
        db, caller, facility_id, ip_address=get_client_ip(request)
    )


@router.get("/{facility_id}", response_model=FacilityResponse)
async def get_facility(
    facility_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await facility_service.get_facility_details(db, facility_id)


@router.get("/{facility_id}/practitioners", response_model=list[PractitionerResponse])
async def list_practitioners(
    facility_id: str,
    include_inactive: bool = Query(False, description="Incluir profesionales dados de baja"),
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await facility_service.list_practitioners(
        db, facility_id, include_inactive=include_inactive
    )


@router.get("/{facility_id}/patients", response_model=list[str])
async def list_observed_patients(
    facility_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Pacientes atendidos por algún profesional del establecimiento."""
    return await facility_service.list_observed_patients(db, facility_id)
