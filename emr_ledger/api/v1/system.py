"""
Endpoints de estado global del sistema.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_client_ip, get_current_principal
from emr_ledger.database import get_db
from emr_ledger.schemas.system import SystemStatusResponse
from emr_ledger.services import system_service

router = APIRouter()


@router.get("/status", response_model=SystemStatusResponse)
async def get_status(db: AsyncSession = Depends(get_db)):
    return await system_service.get_status(db)


@router.post("/pause", response_model=SystemStatusResponse)
async def pause_system(
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Pausa todas las escrituras. Solo ADMIN."""
    return await system_service.pause_system(db, caller, get_client_ip(request))


@router.post("/resume", response_model=SystemStatusResponse)
async def resume_system(
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await system_service.resume_system(db, caller, get_client_ip(request))
