"""
Schemas de estado del sistema y auditoría.
"""

from datetime import datetime

from pydantic import BaseModel


class SystemStatusResponse(BaseModel):
    paused: bool
    changed_by: str | None = None
    changed_at: datetime | None = None


class AuditLogResponse(BaseModel):
    id: int
    actor: str
    entity: str
    entity_id: str
    action: str
    old_data: dict | None = None
    new_data: dict | None = None
    ip_address: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int
    page: int
    size: int
    pages: int
