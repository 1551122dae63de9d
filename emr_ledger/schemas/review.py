"""
Schemas para solicitudes de revisión de aseguradoras.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from emr_ledger.models.review_application import ReviewStatus


class ReviewRequest(BaseModel):
    insurer_id: str = Field(..., min_length=1, max_length=66)


class ReviewReason(BaseModel):
    reason: str = Field("", max_length=500)


class ReviewResponse(BaseModel):
    patient_id: str
    insurer_id: str
    status: ReviewStatus
    reason: str
    requested_at: datetime | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int


class ReviewTotalsResponse(BaseModel):
    pending: int = 0
    granted: int = 0
    rejected: int = 0
    cancelled: int = 0
