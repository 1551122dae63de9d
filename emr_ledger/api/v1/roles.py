"""
Endpoints del registro de roles.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.dependencies import get_client_ip, get_current_principal
from emr_ledger.auth.rbac import has_role
from emr_ledger.database import get_db
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.role import PrincipalRolesResponse, RoleChange, RoleCheckResponse
from emr_ledger.services import role_service

router = APIRouter()


@router.post("/grant", response_model=PrincipalRolesResponse)
async def grant_role(
    data: RoleChange,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Concede un rol a un principal. Solo ADMIN."""
    return await role_service.grant_role(
        db, caller, data.principal, data.role, ip_address=get_client_ip(request)
    )


@router.post("/revoke", response_model=PrincipalRolesResponse)
async def revoke_role(
    data: RoleChange,
    request: Request,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Revoca un rol. Solo ADMIN."""
    return await role_service.revoke_role(
        db, caller, data.principal, data.role, ip_address=get_client_ip(request)
    )


@router.get("/me", response_model=PrincipalRolesResponse)
async def my_roles(
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await role_service.list_roles(db, caller)


@router.get("/{principal}", response_model=PrincipalRolesResponse)
async def list_roles(
    principal: str,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await role_service.list_roles(db, principal)


@router.get("/{principal}/{role}", response_model=RoleCheckResponse)
async def check_role(
    principal: str,
    role: Role,
    caller: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Lectura pura: nunca falla por falta de rol."""
    return RoleCheckResponse(
        principal=principal, role=role, has_role=await has_role(db, principal, role)
    )
