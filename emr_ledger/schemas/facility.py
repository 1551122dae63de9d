"""
Schemas para Facility (establecimiento de salud).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class FacilityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    registration_number: str = Field(..., min_length=1, max_length=100)


class FacilityResponse(BaseModel):
    id: str
    name: str
    registration_number: str
    is_active: bool
    doctor_count: int
    patient_count: int
    registered_at: datetime

    model_config = {"from_attributes": True}


class PractitionerAdd(BaseModel):
    """Alta de un profesional por su establecimiento."""
    practitioner_id: str = Field(..., min_length=1, max_length=66)
    license_number: str = Field(..., min_length=1, max_length=100)
