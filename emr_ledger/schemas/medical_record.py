"""
Schemas para MedicalRecord: entradas del ledger clínico.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class MedicalRecordCreate(BaseModel):
    patient_id: str = Field(..., min_length=1, max_length=66)
    diagnosis: str = Field(..., min_length=1)
    symptoms: list[str] = Field(default_factory=list, description="En orden de registro")
    prescription: str = ""
    treatment_plan: str = ""
    external_doc_pointer: str = Field(
        "", max_length=255,
        description="Puntero opaco devuelto por el almacén de documentos",
    )


class MedicalRecordUpdate(BaseModel):
    """Actualización parcial: los campos omitidos conservan su valor."""
    diagnosis: str | None = Field(None, min_length=1)
    symptoms: list[str] | None = None
    prescription: str | None = None
    treatment_plan: str | None = None
    external_doc_pointer: str | None = Field(None, max_length=255)


class MedicalRecordResponse(BaseModel):
    id: int
    patient_id: str
    doctor_id: str
    diagnosis: str
    symptoms: list[str]
    prescription: str
    treatment_plan: str
    external_doc_pointer: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RecordIdsResponse(BaseModel):
    """Índice secundario: ids de registros en orden de creación."""
    owner: str
    record_ids: list[int]
