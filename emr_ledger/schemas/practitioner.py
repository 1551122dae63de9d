"""
Schemas para Practitioner (profesional de salud).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PractitionerProfileUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    specialization: str = Field(..., min_length=2, max_length=100)


class PractitionerResponse(BaseModel):
    id: str
    facility_id: str
    license_number: str
    name: str | None = None
    specialization: str | None = None
    is_active: bool
    registered_at: datetime

    model_config = {"from_attributes": True}
