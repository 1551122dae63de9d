"""
Tests del ledger de consentimientos.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import INSURER, STRANGER
from emr_ledger.core.exceptions import (
    ForbiddenException,
    InactiveIndividualException,
    NotFoundException,
)
from emr_ledger.services import audit_service, consent_service, individual_service


async def test_grant_revoke_regrant(db_session: AsyncSession, patient: str):
    await consent_service.grant_access(db_session, patient, INSURER)
    assert await consent_service.has_access(db_session, INSURER, patient) is True

    await consent_service.revoke_access(db_session, patient, INSURER)
    assert await consent_service.has_access(db_session, INSURER, patient) is False

    regranted = await consent_service.grant_access(db_session, patient, INSURER)
    assert regranted.is_active is True
    assert regranted.revoked_at is None
    assert await consent_service.has_access(db_session, INSURER, patient) is True


async def _grant_audit_count(db: AsyncSession) -> int:
    logs = await audit_service.get_audit_logs(db, entity="consent", action="grant")
    return logs["total"]


async def test_grant_is_idempotent(db_session: AsyncSession, patient: str):
    first = await consent_service.grant_access(db_session, patient, INSURER)
    second = await consent_service.grant_access(db_session, patient, INSURER)

    assert (second.patient_id, second.grantee_id) == (first.patient_id, first.grantee_id)
    assert second.is_active is True
    # La segunda llamada no reescribe la fila ni deja otro registro de auditoría
    assert await _grant_audit_count(db_session) == 1
    grants = await consent_service.list_grants_for_patient(db_session, patient)
    assert [g.grantee_id for g in grants] == [INSURER]


async def test_grant_when_pair_created_concurrently(
    db_session: AsyncSession, patient: str, monkeypatch
):
    """Si otra transacción inserta el par entre la lectura y el INSERT, se reusa su fila."""
    first = await consent_service.grant_access(db_session, patient, INSURER)

    original = consent_service._get_grant
    calls = []

    async def _stale_first_read(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return await original(*args, **kwargs)

    monkeypatch.setattr(consent_service, "_get_grant", _stale_first_read)

    second = await consent_service.grant_access(db_session, patient, INSURER)

    assert (second.patient_id, second.grantee_id) == (first.patient_id, first.grantee_id)
    assert second.is_active is True
    assert len(calls) == 2
    assert await _grant_audit_count(db_session) == 1
    grants = await consent_service.list_grants_for_patient(db_session, patient)
    assert [g.grantee_id for g in grants] == [INSURER]


async def test_revoke_without_grant(db_session: AsyncSession, patient: str):
    with pytest.raises(NotFoundException):
        await consent_service.revoke_access(db_session, patient, INSURER)

    await consent_service.grant_access(db_session, patient, INSURER)
    await consent_service.revoke_access(db_session, patient, INSURER)
    with pytest.raises(NotFoundException):
        await consent_service.revoke_access(db_session, patient, INSURER)


async def test_revoked_grants_listed_on_request(db_session: AsyncSession, patient: str):
    await consent_service.grant_access(db_session, patient, INSURER)
    await consent_service.grant_access(db_session, patient, STRANGER)
    await consent_service.revoke_access(db_session, patient, STRANGER)

    active = await consent_service.list_grants_for_patient(db_session, patient)
    assert [g.grantee_id for g in active] == [INSURER]

    everything = await consent_service.list_grants_for_patient(
        db_session, patient, include_revoked=True
    )
    assert [(g.grantee_id, g.is_active) for g in everything] == [
        (INSURER, True),
        (STRANGER, False),
    ]


async def test_patient_always_has_access_to_self(db_session: AsyncSession):
    assert await consent_service.has_access(db_session, STRANGER, STRANGER) is True


async def test_only_registered_active_patient_grants(
    db_session: AsyncSession, patient: str
):
    with pytest.raises(ForbiddenException):
        await consent_service.grant_access(db_session, STRANGER, INSURER)

    await individual_service.deactivate_individual(db_session, patient)
    with pytest.raises(InactiveIndividualException):
        await consent_service.grant_access(db_session, patient, INSURER)
