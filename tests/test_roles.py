"""
Tests del registro de roles.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ADMIN, PATIENT, STRANGER
from emr_ledger.auth.rbac import get_roles, has_role
from emr_ledger.core.exceptions import NotFoundException, UnauthorizedException
from emr_ledger.models.role_assignment import Role
from emr_ledger.services import audit_service, role_service


async def test_bootstrap_admin_only_once(db_session: AsyncSession):
    assert await role_service.bootstrap_admin(db_session, ADMIN) is True
    assert await role_service.bootstrap_admin(db_session, STRANGER) is False

    assert await has_role(db_session, ADMIN, Role.ADMIN)
    assert not await has_role(db_session, STRANGER, Role.ADMIN)


async def test_admin_grants_multiple_roles(db_session: AsyncSession, admin: str):
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    result = await role_service.grant_role(db_session, admin, PATIENT, Role.PRACTITIONER)

    assert result.roles == [Role.INDIVIDUAL, Role.PRACTITIONER]
    assert await get_roles(db_session, PATIENT) == [Role.INDIVIDUAL, Role.PRACTITIONER]


async def test_grant_is_idempotent(db_session: AsyncSession, admin: str):
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    result = await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    assert result.roles == [Role.INDIVIDUAL]


def _stale_first_lookup(monkeypatch):
    """Hace que la primera lectura de la asignación no vea la fila ya insertada."""
    original = role_service._get_assignment
    calls = []

    async def _lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return await original(*args, **kwargs)

    monkeypatch.setattr(role_service, "_get_assignment", _lookup)
    return calls


async def _role_grant_count(db: AsyncSession) -> int:
    logs = await audit_service.get_audit_logs(db, entity="role", action="grant")
    return logs["total"]


async def test_grant_when_assignment_created_concurrently(
    db_session: AsyncSession, admin: str, monkeypatch
):
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    calls = _stale_first_lookup(monkeypatch)

    result = await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)

    assert len(calls) == 2
    assert result.roles == [Role.INDIVIDUAL]
    assert await _role_grant_count(db_session) == 1


async def test_grant_reactivates_revoked_row_found_after_conflict(
    db_session: AsyncSession, admin: str, monkeypatch
):
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    await role_service.revoke_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    _stale_first_lookup(monkeypatch)

    result = await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)

    assert result.roles == [Role.INDIVIDUAL]
    assert await has_role(db_session, PATIENT, Role.INDIVIDUAL)
    assert await _role_grant_count(db_session) == 2


async def test_non_admin_cannot_grant_or_revoke(db_session: AsyncSession, admin: str):
    with pytest.raises(UnauthorizedException):
        await role_service.grant_role(db_session, STRANGER, PATIENT, Role.INDIVIDUAL)

    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    with pytest.raises(UnauthorizedException):
        await role_service.revoke_role(db_session, PATIENT, PATIENT, Role.INDIVIDUAL)


async def test_revoke_then_regrant(db_session: AsyncSession, admin: str):
    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    result = await role_service.revoke_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    assert result.roles == []
    assert not await has_role(db_session, PATIENT, Role.INDIVIDUAL)

    await role_service.grant_role(db_session, admin, PATIENT, Role.INDIVIDUAL)
    assert await has_role(db_session, PATIENT, Role.INDIVIDUAL)


async def test_revoke_missing_role(db_session: AsyncSession, admin: str):
    with pytest.raises(NotFoundException):
        await role_service.revoke_role(db_session, admin, PATIENT, Role.FACILITY)


async def test_has_role_never_fails_for_unknown_principal(db_session: AsyncSession):
    assert await has_role(db_session, "0xnobody", Role.ADMIN) is False
