"""
Schemas de las vistas agregadas del paciente (historia y recetas).
"""

from datetime import datetime

from pydantic import BaseModel

from emr_ledger.schemas.individual import IndividualResponse
from emr_ledger.schemas.medical_record import MedicalRecordResponse


class PatientHistoryResponse(BaseModel):
    """Perfil + historia agregada. profile es None si el principal no se registró."""
    patient_id: str
    profile: IndividualResponse | None = None
    records: list[MedicalRecordResponse]
    total: int


class PrescriptionItem(BaseModel):
    record_id: int
    doctor_id: str
    diagnosis: str
    prescription: str
    created_at: datetime


class PrescriptionListResponse(BaseModel):
    patient_id: str
    items: list[PrescriptionItem]
    total: int
