"""
Endpoints de solicitudes de revisión paciente → aseguradora.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_client_ip, get_current_principal
from emr_ledger.database import get_db
from emr_ledger.models.review_application import ReviewStatus
from emr_ledger.schemas.review import (
    ReviewListResponse,
    ReviewReason,
    ReviewRequest,
    ReviewResponse,
    ReviewTotalsResponse,
)
from emr_ledger.services import history_service, review_service

router = APIRouter()


# ── Paciente ─────────────────────────────────────────

@router.post("", response_model=ReviewResponse, status_code=201)
async def request_review(
    data: ReviewRequest,
    request: Request,
    with_consent: bool = Query(
        False, description="Otorgar también lectura a la aseguradora"
    ),
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Abre una solicitud de revisión con la aseguradora.
    Con with_consent=true también otorga consentimiento de lectura.
    """
    if with_consent:
        return await history_service.submit_review_with_consent(
            db, caller, data.insurer_id, ip_address=get_client_ip(request)
        )
    return await review_service.request_review(
        db, caller, data.insurer_id, ip_address=get_client_ip(request)
    )


@router.post("/{insurer_id}/cancel", response_model=ReviewResponse)
async def cancel_application(
    insurer_id: str,
    data: ReviewReason,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.cancel_application(
        db, caller, insurer_id, data.reason, ip_address=get_client_ip(request)
    )


@router.get("/me", response_model=ReviewListResponse)
async def list_my_applications(
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.list_applications_for_patient(db, caller)


# ── Aseguradora ──────────────────────────────────────

@router.post("/applicants/{patient_id}/grant", response_model=ReviewResponse)
async def grant_insurance(
    patient_id: str,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Aprueba la solicitud. No otorga consentimiento de lectura."""
    return await review_service.grant_insurance(
        db, caller, patient_id, ip_address=get_client_ip(request)
    )


@router.post("/applicants/{patient_id}/reject", response_model=ReviewResponse)
async def reject_insurance(
    patient_id: str,
    data: ReviewReason,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.reject_insurance(
        db, caller, patient_id, data.reason, ip_address=get_client_ip(request)
    )


@router.get("/applicants", response_model=ReviewListResponse)
async def list_applicants(
    status_filter: ReviewStatus | None = Query(None, alias="status"),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Solicitudes recibidas por la aseguradora que llama."""
    return await review_service.list_applications_for_insurer(
        db, caller, status_filter, offset=offset, limit=limit
    )


# ── Ambas partes ─────────────────────────────────────

@router.put("/{patient_id}/{insurer_id}/reason", response_model=ReviewResponse)
async def update_reason(
    patient_id: str,
    insurer_id: str,
    data: ReviewReason,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.update_reason(
        db, caller, patient_id, insurer_id, data.reason,
        ip_address=get_client_ip(request),
    )


@router.get("/totals", response_model=ReviewTotalsResponse)
async def get_totals(
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.get_totals(db)


@router.get("/{patient_id}/{insurer_id}", response_model=ReviewResponse)
async def get_application(
    patient_id: str,
    insurer_id: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.get_application(db, patient_id, insurer_id)
