"""
Endpoints del ledger de consentimientos.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import (
    get_client_ip,
    get_consent_checker,
    get_current_principal,
)
from emr_ledger.database import get_db
from emr_ledger.schemas.consent import AccessCheckResponse, ConsentChange, ConsentResponse
from emr_ledger.services import consent_service
from emr_ledger.services.access_policy import ConsentChecker

router = APIRouter()


@router.post("/grant", response_model=ConsentResponse)
async def grant_access(
    data: ConsentChange,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """El paciente otorga lectura de su historia a otro principal."""
    return await consent_service.grant_access(
        db, caller, data.grantee_id, ip_address=get_client_ip(request)
    )


@router.post("/revoke", response_model=ConsentResponse)
async def revoke_access(
    data: ConsentChange,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await consent_service.revoke_access(
        db, caller, data.grantee_id, ip_address=get_client_ip(request)
    )


@router.get("/me", response_model=list[ConsentResponse])
async def list_my_grants(
    include_revoked: bool = Query(False),
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await consent_service.list_grants_for_patient(
        db, caller, include_revoked=include_revoked
    )


@router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    grantee_id: str = Query(..., min_length=1),
    patient_id: str = Query(..., min_length=1),
    caller: str = Depends(get_current_principal),
    checker: ConsentChecker = Depends(get_consent_checker),
    db: AsyncSession = Depends(get_db),
):
    """Lectura pura del consentimiento (no considera autoría de registros)."""
    return AccessCheckResponse(
        grantee_id=grantee_id,
        patient_id=patient_id,
        has_access=await checker.has_access(db, grantee_id, patient_id),
    )
