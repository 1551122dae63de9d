"""
Tests HTTP de la API v1: rutas, códigos de estado y formato de errores.
"""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import INSURER, STRANGER, as_principal
from emr_ledger.services import audit_service

API = "/api/v1"


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_role_grant_and_check(client: AsyncClient, admin: str):
    response = await client.post(
        f"{API}/roles/grant",
        json={"principal": STRANGER, "role": "individual"},
        headers=as_principal(admin),
    )
    assert response.status_code == 200
    assert response.json()["roles"] == ["individual"]

    response = await client.get(
        f"{API}/roles/{STRANGER}/individual", headers=as_principal(STRANGER)
    )
    assert response.json()["has_role"] is True


async def test_error_body_carries_code(client: AsyncClient, admin: str):
    response = await client.post(
        f"{API}/roles/grant",
        json={"principal": STRANGER, "role": "admin"},
        headers=as_principal(STRANGER),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "unauthorized"


async def test_record_flow_over_http(
    client: AsyncClient, doctor: str, patient: str
):
    response = await client.post(
        f"{API}/records",
        json={
            "patient_id": patient,
            "diagnosis": "Diabetes tipo 2",
            "symptoms": ["poliuria", "polidipsia"],
            "prescription": "Metformina 850mg c/12h",
        },
        headers=as_principal(doctor),
    )
    assert response.status_code == 201
    record_id = response.json()["id"]

    response = await client.patch(
        f"{API}/records/{record_id}",
        json={"treatment_plan": "Dieta y control de glucosa"},
        headers=as_principal(doctor),
    )
    assert response.status_code == 200
    assert response.json()["prescription"] == "Metformina 850mg c/12h"

    response = await client.get(
        f"{API}/records/patient/{patient}", headers=as_principal(doctor)
    )
    assert response.json()["record_ids"] == [record_id]

    response = await client.get(f"{API}/history/{patient}", headers=as_principal(patient))
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = await client.get(f"{API}/history/{patient}", headers=as_principal(INSURER))
    assert response.status_code == 403
    assert response.json()["code"] == "access_denied"

    response = await client.get(
        f"{API}/records/{record_id}", headers=as_principal(INSURER)
    )
    assert response.status_code == 403


async def test_review_with_consent_over_http(client: AsyncClient, patient: str):
    response = await client.post(
        f"{API}/reviews?with_consent=true",
        json={"insurer_id": INSURER},
        headers=as_principal(patient),
    )
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    response = await client.get(
        f"{API}/reviews/applicants?status=pending", headers=as_principal(INSURER)
    )
    assert response.json()["total"] == 1

    response = await client.get(f"{API}/history/{patient}", headers=as_principal(INSURER))
    assert response.status_code == 200

    response = await client.post(
        f"{API}/reviews",
        json={"insurer_id": INSURER},
        headers=as_principal(patient),
    )
    assert response.status_code == 409
    assert response.json()["code"] == "already_pending"

    response = await client.get(f"{API}/reviews/totals", headers=as_principal(INSURER))
    assert response.json() == {"pending": 1, "granted": 0, "rejected": 0, "cancelled": 0}


async def test_pause_over_http(client: AsyncClient, admin: str, patient: str):
    response = await client.post(f"{API}/system/pause", headers=as_principal(admin))
    assert response.status_code == 200

    response = await client.post(
        f"{API}/consents/grant",
        json={"grantee_id": INSURER},
        headers=as_principal(patient),
    )
    assert response.status_code == 503
    assert response.json()["code"] == "system_paused"

    response = await client.get(f"{API}/system/status")
    assert response.json()["paused"] is True


async def test_audit_log_admin_only(
    client: AsyncClient, db_session: AsyncSession, admin: str, patient: str
):
    response = await client.get(f"{API}/audit", headers=as_principal(patient))
    assert response.status_code == 403

    response = await client.get(
        f"{API}/audit?entity=individual", headers=as_principal(admin)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["action"] == "register"

    logs = await audit_service.get_audit_logs(db_session, entity="role")
    assert [item.action for item in logs["items"]] == ["grant", "genesis"]
