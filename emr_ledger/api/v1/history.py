"""
Endpoints de lectura de la historia agregada del paciente.
Todas pasan por la política de acceso.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_consent_checker, get_current_principal
from emr_ledger.database import get_db
from emr_ledger.schemas.history import PatientHistoryResponse, PrescriptionListResponse
from emr_ledger.services import history_service
from emr_ledger.services.access_policy import ConsentChecker

router = APIRouter()


@router.get("/{patient_id}", response_model=PatientHistoryResponse)
async def get_patient_history(
    patient_id: str,
    caller: str = Depends(get_current_principal),
    checker: ConsentChecker = Depends(get_consent_checker),
    db: AsyncSession = Depends(get_db),
):
    """
    Perfil y registros del paciente.
    403 access_denied si el llamador no es el paciente, no escribió ningún
    registro suyo y no tiene consentimiento.
    """
    return await history_service.get_patient_history(db, checker, caller, patient_id)


@router.get("/{patient_id}/prescriptions", response_model=PrescriptionListResponse)
async def list_prescriptions(
    patient_id: str,
    caller: str = Depends(get_current_principal),
    checker: ConsentChecker = Depends(get_consent_checker),
    db: AsyncSession = Depends(get_db),
):
    return await history_service.list_prescriptions(db, checker, caller, patient_id)
