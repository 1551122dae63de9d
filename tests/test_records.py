"""
Tests del ledger de registros clínicos.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import PATIENT, STRANGER
from emr_ledger.config import get_settings
from emr_ledger.core.exceptions import (
    ForbiddenException,
    InactiveIndividualException,
    InactivePractitionerException,
    NotFoundException,
)
from emr_ledger.models.role_assignment import Role
from emr_ledger.schemas.facility import PractitionerAdd
from emr_ledger.schemas.medical_record import MedicalRecordCreate, MedicalRecordUpdate
from emr_ledger.services import (
    facility_service,
    individual_service,
    medical_record_service,
    role_service,
)

COLLEAGUE = "0xcolleague"


def _record(patient_id: str = PATIENT, **overrides) -> MedicalRecordCreate:
    data = {
        "patient_id": patient_id,
        "diagnosis": "Hipertensión arterial",
        "symptoms": ["cefalea", "mareo", "visión borrosa"],
        "prescription": "Losartán 50mg c/24h",
        "treatment_plan": "Control en 30 días",
        "external_doc_pointer": "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
    }
    data.update(overrides)
    return MedicalRecordCreate(**data)


async def test_create_record_round_trip(db_session: AsyncSession, doctor: str):
    submitted = _record()
    created = await medical_record_service.create_record(db_session, doctor, submitted)

    fetched = await medical_record_service.get_record_by_id(db_session, created.id)
    assert fetched.patient_id == PATIENT
    assert fetched.doctor_id == doctor
    assert fetched.diagnosis == submitted.diagnosis
    assert fetched.symptoms == ["cefalea", "mareo", "visión borrosa"]
    assert fetched.prescription == submitted.prescription
    assert fetched.treatment_plan == submitted.treatment_plan
    assert fetched.external_doc_pointer == submitted.external_doc_pointer


async def test_record_appears_in_both_indices(db_session: AsyncSession, doctor: str):
    first = await medical_record_service.create_record(db_session, doctor, _record())
    other = await medical_record_service.create_record(
        db_session, doctor, _record(patient_id=STRANGER)
    )
    second = await medical_record_service.create_record(db_session, doctor, _record())

    assert second.id > other.id > first.id
    assert await medical_record_service.list_record_ids_for_patient(
        db_session, PATIENT
    ) == [first.id, second.id]
    assert await medical_record_service.list_record_ids_for_doctor(
        db_session, doctor
    ) == [first.id, other.id, second.id]
    assert await medical_record_service.list_patients_for_doctor(
        db_session, doctor
    ) == [PATIENT, STRANGER]


async def test_walk_in_patient_allowed_by_default(db_session: AsyncSession, doctor: str):
    created = await medical_record_service.create_record(
        db_session, doctor, _record(patient_id=STRANGER)
    )
    assert created.patient_id == STRANGER


async def test_registered_patient_policy(
    db_session: AsyncSession, doctor: str, patient: str, monkeypatch
):
    monkeypatch.setattr(get_settings(), "REQUIRE_REGISTERED_PATIENT", True)

    with pytest.raises(NotFoundException):
        await medical_record_service.create_record(
            db_session, doctor, _record(patient_id=STRANGER)
        )

    await medical_record_service.create_record(db_session, doctor, _record())

    await individual_service.deactivate_individual(db_session, patient)
    with pytest.raises(InactiveIndividualException):
        await medical_record_service.create_record(db_session, doctor, _record())


async def test_non_practitioner_cannot_create(db_session: AsyncSession, patient: str):
    with pytest.raises(ForbiddenException):
        await medical_record_service.create_record(db_session, patient, _record())


async def test_removed_practitioner_cannot_create(
    db_session: AsyncSession, doctor: str, facility: str
):
    await facility_service.remove_practitioner(db_session, facility, doctor)
    with pytest.raises(InactivePractitionerException):
        await medical_record_service.create_record(db_session, doctor, _record())


async def test_partial_update_keeps_omitted_fields(db_session: AsyncSession, doctor: str):
    created = await medical_record_service.create_record(db_session, doctor, _record())

    updated = await medical_record_service.update_record(
        db_session,
        doctor,
        created.id,
        MedicalRecordUpdate(prescription="Losartán 100mg c/24h", symptoms=["cefalea"]),
    )
    assert updated.prescription == "Losartán 100mg c/24h"
    assert updated.symptoms == ["cefalea"]
    assert updated.diagnosis == created.diagnosis
    assert updated.treatment_plan == created.treatment_plan
    assert updated.external_doc_pointer == created.external_doc_pointer


async def test_update_by_colleague_same_facility_forbidden(
    db_session: AsyncSession, admin: str, doctor: str, facility: str
):
    await role_service.grant_role(db_session, admin, COLLEAGUE, Role.PRACTITIONER)
    await facility_service.add_practitioner(
        db_session,
        facility,
        PractitionerAdd(practitioner_id=COLLEAGUE, license_number="CMP-777"),
    )
    created = await medical_record_service.create_record(db_session, doctor, _record())

    for caller in (COLLEAGUE, facility, PATIENT, admin):
        with pytest.raises(ForbiddenException):
            await medical_record_service.update_record(
                db_session, caller, created.id, MedicalRecordUpdate(diagnosis="Otro")
            )


async def test_update_by_deactivated_author(
    db_session: AsyncSession, doctor: str, facility: str
):
    created = await medical_record_service.create_record(db_session, doctor, _record())
    await facility_service.remove_practitioner(db_session, facility, doctor)

    with pytest.raises(InactivePractitionerException):
        await medical_record_service.update_record(
            db_session, doctor, created.id, MedicalRecordUpdate(diagnosis="Otro")
        )


async def test_update_unknown_record(db_session: AsyncSession, doctor: str):
    with pytest.raises(NotFoundException):
        await medical_record_service.update_record(
            db_session, doctor, 999, MedicalRecordUpdate(diagnosis="Otro")
        )
    with pytest.raises(NotFoundException):
        await medical_record_service.get_record_by_id(db_session, 999)


async def test_has_authored_for(db_session: AsyncSession, doctor: str):
    assert not await medical_record_service.has_authored_for(db_session, doctor, PATIENT)
    await medical_record_service.create_record(db_session, doctor, _record())
    assert await medical_record_service.has_authored_for(db_session, doctor, PATIENT)
    assert not await medical_record_service.has_authored_for(db_session, doctor, STRANGER)
