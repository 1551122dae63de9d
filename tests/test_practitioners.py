"""
Tests del registro de profesionales.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import STRANGER
from emr_ledger.core.exceptions import (
    AlreadyRegisteredException,
    ForbiddenException,
    InactivePractitionerException,
    NotFoundException,
)
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.facility import PractitionerAdd
from emr_ledger.schemas.practitioner import PractitionerProfileUpdate
from emr_ledger.services import facility_service, practitioner_service, role_service


async def test_practitioner_updates_own_profile(db_session: AsyncSession, doctor: str):
    updated = await practitioner_service.update_profile(
        db_session,
        doctor,
        PractitionerProfileUpdate(name="Dr. Luis Rojas", specialization="Cardiología"),
    )
    assert updated.name == "Dr. Luis Rojas"
    assert updated.specialization == "Cardiología"

    details = await practitioner_service.get_details(db_session, doctor)
    assert details.specialization == "Cardiología"


async def test_facility_cannot_update_practitioner_profile(
    db_session: AsyncSession, doctor: str, facility: str
):
    with pytest.raises(ForbiddenException):
        await practitioner_service.update_profile(
            db_session,
            facility,
            PractitionerProfileUpdate(name="Dr. Otro", specialization="Pediatría"),
        )


async def test_inactive_practitioner_cannot_update_profile(
    db_session: AsyncSession, doctor: str, facility: str
):
    await facility_service.remove_practitioner(db_session, facility, doctor)
    with pytest.raises(InactivePractitionerException):
        await practitioner_service.update_profile(
            db_session,
            doctor,
            PractitionerProfileUpdate(name="Dr. Luis Rojas", specialization="Cardiología"),
        )


async def test_get_details_unknown(db_session: AsyncSession):
    with pytest.raises(NotFoundException):
        await practitioner_service.get_details(db_session, STRANGER)


async def test_deactivate_is_idempotent(db_session: AsyncSession, doctor: str):
    practitioner = await practitioner_service.get_practitioner(db_session, doctor)
    assert await practitioner_service.deactivate_practitioner(db_session, practitioner) is True
    assert await practitioner_service.deactivate_practitioner(db_session, practitioner) is False


async def test_readd_rejected_even_after_role_revoked(
    db_session: AsyncSession, admin: str, facility: str, doctor: str
):
    await role_service.revoke_role(db_session, admin, doctor, Role.PRACTITIONER)
    with pytest.raises(AlreadyRegisteredException):
        await facility_service.add_practitioner(
            db_session,
            facility,
            PractitionerAdd(practitioner_id=doctor, license_number="CMP-99999"),
        )

    details = await practitioner_service.get_details(db_session, doctor)
    assert details.license_number == "CMP-12345"
    owner = await facility_service.get_facility_details(db_session, facility)
    assert owner.doctor_count == 1
