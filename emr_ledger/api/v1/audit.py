"""
Endpoint de consulta del log de auditoría (solo ADMIN).
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_current_principal
from emr_ledger.auth.rbac import require_admin
from emr_ledger.database import get_db
from emr_ledger.schemas.system import AuditLogListResponse
from emr_ledger.services import audit_service

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1, description="Número de página"),
    size: int = Query(50, ge=1, le=200, description="Tamaño de página"),
    action: str | None = Query(None),
    entity: str | None = Query(None),
    actor: str | None = Query(None),
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await require_admin(db, caller)
    return await audit_service.get_audit_logs(
        db, page=page, size=size, action=action, entity=entity, actor=actor
    )
