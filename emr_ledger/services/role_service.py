"""
Servicio del registro de roles: conceder y revocar roles (solo ADMIN).

Revocar no borra la asignación: la marca inactiva. Volver a conceder la
reactiva. Existe un único ADMIN de génesis, sembrado al arrancar.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.auth.rbac import get_roles, require_admin
from emr_ledger.core.exceptions import NotFoundException
from emr_ledger.database import utcnow
from emr_ledger.models.role_assignment import Role, RoleAssignment
from emr_ledger.schemas.role import PrincipalRolesResponse
from emr_ledger.services.audit_service import log_action
from emr_ledger.services.system_service import ensure_not_paused

logger = logging.getLogger(__name__)


async def _get_assignment(
    db: AsyncSession, principal: str, role: Role
) -> RoleAssignment | None:
    result = await db.execute(
        select(RoleAssignment)
        .where(
            RoleAssignment.principal == principal,
            RoleAssignment.role == role,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _activate(
    db: AsyncSession, principal: str, role: Role, granted_by: str | None
) -> bool:
    """Crea o reactiva la asignación. Devuelve True si hubo cambio."""
    assignment = await _get_assignment(db, principal, role)
    if assignment is None:
        try:
            async with db.begin_nested():
                db.add(
                    RoleAssignment(
                        principal=principal, role=role, granted_by=granted_by
                    )
                )
            return True
        except IntegrityError:
            # Otra transacción creó la asignación: se continúa sobre su fila
            assignment = await _get_assignment(db, principal, role)
    if assignment.is_active:
        return False
    assignment.is_active = True
    assignment.granted_by = granted_by
    assignment.updated_at = utcnow()
    await db.flush()
    return True


async def list_roles(db: AsyncSession, principal: str) -> PrincipalRolesResponse:
    return PrincipalRolesResponse(
        principal=principal, roles=await get_roles(db, principal)
    )


async def grant_role(
    db: AsyncSession,
    caller: str,
    principal: str,
    role: Role,
    ip_address: str | None = None,
) -> PrincipalRolesResponse:
    """Concede un rol. Idempotente si el rol ya está activo."""
    await ensure_not_paused(db)
    await require_admin(db, caller)

    if await _activate(db, principal, role, caller):
        await log_action(
            db,
            actor=caller,
            entity="role",
            entity_id=f"{principal}:{role.value}",
            action="grant",
            new_data={"principal": principal, "role": role},
            ip_address=ip_address,
        )
        logger.info(f"Rol concedido: principal={principal} role={role.value}")

    return await list_roles(db, principal)


async def revoke_role(
    db: AsyncSession,
    caller: str,
    principal: str,
    role: Role,
    ip_address: str | None = None,
) -> PrincipalRolesResponse:
    """Revoca un rol activo. NotFound si el principal no lo tiene."""
    await ensure_not_paused(db)
    await require_admin(db, caller)

    assignment = await _get_assignment(db, principal, role)
    if assignment is None or not assignment.is_active:
        raise NotFoundException(
            detail=f"El principal no tiene el rol '{role.value}'"
        )

    assignment.is_active = False
    assignment.updated_at = utcnow()
    await db.flush()

    await log_action(
        db,
        actor=caller,
        entity="role",
        entity_id=f"{principal}:{role.value}",
        action="revoke",
        old_data={"principal": principal, "role": role},
        ip_address=ip_address,
    )
    logger.info(f"Rol revocado: principal={principal} role={role.value}")

    return await list_roles(db, principal)


async def bootstrap_admin(db: AsyncSession, principal: str) -> bool:
    """
    Siembra el ADMIN de génesis si todavía no existe ningún admin.
    Devuelve True si se creó la asignación.
    """
    result = await db.execute(
        select(RoleAssignment.id).where(RoleAssignment.role == Role.ADMIN).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        return False

    db.add(RoleAssignment(principal=principal, role=Role.ADMIN, granted_by=None))
    await db.flush()
    await log_action(
        db,
        actor=principal,
        entity="role",
        entity_id=f"{principal}:{Role.ADMIN.value}",
        action="genesis",
        new_data={"principal": principal, "role": Role.ADMIN},
    )
    logger.info(f"ADMIN de génesis sembrado: {principal}")
    return True
