"""
Consultas RBAC sobre la tabla de roles.

Un principal puede tener varios roles; cada operación del registro consulta
aquí el rol que necesita en lugar de deducirlo del tipo de llamador.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from emr_ledger.core.exceptions import UnauthorizedException
from emr_ledger.models.role_assignment import Role, RoleAssignment

# ── Rol requerido para inscribirse en cada registro ──
REGISTRY_ROLES: dict[str, Role] = {
    "facility": Role.FACILITY,
    "practitioner": Role.PRACTITIONER,
    "individual": Role.INDIVIDUAL,
}


async def has_role(db: AsyncSession, principal: str, role: Role) -> bool:
    """Lectura pura: True si el principal tiene el rol activo."""
    result = await db.execute(
        select(RoleAssignment.id).where(
            RoleAssignment.principal == principal,
            RoleAssignment.role == role,
            RoleAssignment.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none() is not None


async def get_roles(db: AsyncSession, principal: str) -> list[Role]:
    """Roles activos de un principal, en orden de concesión."""
    result = await db.execute(
        select(RoleAssignment.role)
        .where(
            RoleAssignment.principal == principal,
            RoleAssignment.is_active.is_(True),
        )
        .order_by(RoleAssignment.id)
    )
    return list(result.scalars().all())


async def require_role(
    db: AsyncSession,
    principal: str,
    role: Role,
    exc_class: type[UnauthorizedException] = UnauthorizedException,
) -> None:
    """Lanza exc_class si el principal no tiene el rol."""
    if not await has_role(db, principal, role):
        raise exc_class(f"Se requiere el rol '{role.value}'")


async def require_admin(db: AsyncSession, principal: str) -> None:
    await require_role(db, principal, Role.ADMIN)
