"""
Schemas para consentimientos de acceso.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ConsentChange(BaseModel):
    grantee_id: str = Field(..., min_length=1, max_length=66)


class ConsentResponse(BaseModel):
    patient_id: str
    grantee_id: str
    is_active: bool
    granted_at: datetime
    revoked_at: datetime | None = None

    model_config = {"from_attributes": True}


class AccessCheckResponse(BaseModel):
    grantee_id: str
    patient_id: str
    has_access: bool
