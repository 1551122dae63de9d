"""
Tests del registro de establecimientos y su plantel.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import DOCTOR, FACILITY, PATIENT, STRANGER
from emr_ledger.core.exceptions import (
    AlreadyRegisteredException,
    ForbiddenException,
    InactiveFacilityException,
    NotEligibleException,
    NotFoundException,
    UnauthorizedException,
)
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.facility import FacilityCreate, PractitionerAdd
from emr_ledger.schemas.medical_record import MedicalRecordCreate
from emr_ledger.services import facility_service, medical_record_service, role_service

OTHER_FACILITY = "0xotherfacility"
OTHER_DOCTOR = "0xotherdoctor"


async def _second_facility(db: AsyncSession, admin: str) -> None:
    await role_service.grant_role(db, admin, OTHER_FACILITY, Role.FACILITY)
    await facility_service.register_facility(
        db,
        OTHER_FACILITY,
        FacilityCreate(name="Policlínico Norte", registration_number="REG-001"),
    )


async def test_register_facility_starts_with_zero_counts(
    db_session: AsyncSession, facility: str
):
    details = await facility_service.get_facility_details(db_session, facility)
    assert details.is_active is True
    assert details.doctor_count == 0
    assert details.patient_count == 0
    assert details.registration_number == "REG-001"


async def test_register_requires_facility_role(db_session: AsyncSession, admin: str):
    with pytest.raises(UnauthorizedException):
        await facility_service.register_facility(
            db_session,
            STRANGER,
            FacilityCreate(name="Sin rol", registration_number="REG-999"),
        )


async def test_duplicate_principal_rejected(db_session: AsyncSession, facility: str):
    with pytest.raises(AlreadyRegisteredException):
        await facility_service.register_facility(
            db_session,
            facility,
            FacilityCreate(name="Otra", registration_number="REG-002"),
        )


async def test_duplicate_rejected_even_after_role_revoked(
    db_session: AsyncSession, admin: str, facility: str
):
    await role_service.revoke_role(db_session, admin, facility, Role.FACILITY)
    with pytest.raises(AlreadyRegisteredException):
        await facility_service.register_facility(
            db_session,
            facility,
            FacilityCreate(name="Otra", registration_number="REG-002"),
        )


async def test_registration_number_may_repeat(
    db_session: AsyncSession, admin: str, facility: str
):
    await _second_facility(db_session, admin)
    other = await facility_service.get_facility_details(db_session, OTHER_FACILITY)
    assert other.registration_number == "REG-001"


async def test_add_practitioner_increments_doctor_count(
    db_session: AsyncSession, doctor: str, facility: str
):
    details = await facility_service.get_facility_details(db_session, facility)
    assert details.doctor_count == 1

    staff = await facility_service.list_practitioners(db_session, facility)
    assert [p.id for p in staff] == [doctor]
    assert staff[0].license_number == "CMP-12345"


async def test_add_practitioner_requires_practitioner_role(
    db_session: AsyncSession, facility: str
):
    with pytest.raises(NotEligibleException):
        await facility_service.add_practitioner(
            db_session,
            facility,
            PractitionerAdd(practitioner_id=STRANGER, license_number="CMP-1"),
        )
    details = await facility_service.get_facility_details(db_session, facility)
    assert details.doctor_count == 0


async def test_add_practitioner_twice_rejected(
    db_session: AsyncSession, doctor: str, facility: str
):
    with pytest.raises(AlreadyRegisteredException):
        await facility_service.add_practitioner(
            db_session,
            facility,
            PractitionerAdd(practitioner_id=doctor, license_number="CMP-99"),
        )


async def test_removed_practitioner_cannot_be_readded(
    db_session: AsyncSession, doctor: str, facility: str
):
    await facility_service.remove_practitioner(db_session, facility, doctor)
    with pytest.raises(AlreadyRegisteredException):
        await facility_service.add_practitioner(
            db_session,
            facility,
            PractitionerAdd(practitioner_id=doctor, license_number="CMP-12345"),
        )


async def test_only_registered_facility_can_add(db_session: AsyncSession, admin: str):
    await role_service.grant_role(db_session, admin, DOCTOR, Role.PRACTITIONER)
    with pytest.raises(ForbiddenException):
        await facility_service.add_practitioner(
            db_session,
            STRANGER,
            PractitionerAdd(practitioner_id=DOCTOR, license_number="CMP-1"),
        )


async def test_remove_practitioner(db_session: AsyncSession, doctor: str, facility: str):
    removed = await facility_service.remove_practitioner(db_session, facility, doctor)
    assert removed.is_active is False

    details = await facility_service.get_facility_details(db_session, facility)
    assert details.doctor_count == 0
    assert await facility_service.list_practitioners(db_session, facility) == []

    everyone = await facility_service.list_practitioners(
        db_session, facility, include_inactive=True
    )
    assert [p.id for p in everyone] == [doctor]


async def test_remove_practitioner_twice_keeps_count(
    db_session: AsyncSession, doctor: str, facility: str
):
    await facility_service.remove_practitioner(db_session, facility, doctor)
    await facility_service.remove_practitioner(db_session, facility, doctor)

    details = await facility_service.get_facility_details(db_session, facility)
    assert details.doctor_count == 0


async def test_remove_practitioner_of_other_facility_forbidden(
    db_session: AsyncSession, admin: str, doctor: str
):
    await _second_facility(db_session, admin)
    with pytest.raises(ForbiddenException):
        await facility_service.remove_practitioner(db_session, OTHER_FACILITY, doctor)


async def test_remove_unknown_practitioner(db_session: AsyncSession, facility: str):
    with pytest.raises(NotFoundException):
        await facility_service.remove_practitioner(db_session, facility, STRANGER)


async def test_deactivate_facility_admin_only(
    db_session: AsyncSession, admin: str, facility: str
):
    with pytest.raises(UnauthorizedException):
        await facility_service.deactivate_facility(db_session, facility, facility)

    result = await facility_service.deactivate_facility(db_session, admin, facility)
    assert result.is_active is False

    # Idempotente
    again = await facility_service.deactivate_facility(db_session, admin, facility)
    assert again.is_active is False


async def test_inactive_facility_cannot_manage_staff(
    db_session: AsyncSession, admin: str, doctor: str, facility: str
):
    await facility_service.deactivate_facility(db_session, admin, facility)

    with pytest.raises(InactiveFacilityException):
        await facility_service.remove_practitioner(db_session, facility, doctor)

    await role_service.grant_role(db_session, admin, OTHER_DOCTOR, Role.PRACTITIONER)
    with pytest.raises(InactiveFacilityException):
        await facility_service.add_practitioner(
            db_session,
            facility,
            PractitionerAdd(practitioner_id=OTHER_DOCTOR, license_number="CMP-2"),
        )


async def test_observed_patients_and_patient_count(
    db_session: AsyncSession, admin: str, doctor: str, facility: str
):
    await role_service.grant_role(db_session, admin, OTHER_DOCTOR, Role.PRACTITIONER)
    await facility_service.add_practitioner(
        db_session,
        facility,
        PractitionerAdd(practitioner_id=OTHER_DOCTOR, license_number="CMP-2"),
    )

    for author, patient_id in [
        (doctor, PATIENT),
        (OTHER_DOCTOR, PATIENT),
        (OTHER_DOCTOR, STRANGER),
        (doctor, PATIENT),
    ]:
        await medical_record_service.create_record(
            db_session,
            author,
            MedicalRecordCreate(patient_id=patient_id, diagnosis="Control"),
        )

    details = await facility_service.get_facility_details(db_session, facility)
    assert details.patient_count == 2
    assert await facility_service.list_observed_patients(db_session, facility) == [
        PATIENT,
        STRANGER,
    ]


async def test_unknown_facility_reads(db_session: AsyncSession):
    with pytest.raises(NotFoundException):
        await facility_service.get_facility_details(db_session, FACILITY)
    with pytest.raises(NotFoundException):
        await facility_service.list_practitioners(db_session, FACILITY)
