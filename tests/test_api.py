"""
Tests for the Flask REST API, driven through the test client.
"""

import pytest

from carehub.api.app import create_app, describe_endpoints
from carehub.api.auth import generate_token, verify_token
from conftest import ADMIN, ALICE, BOB

T = 1_767_225_600_000_000_000


# ── Helpers ──────────────────────────────────────────────────────────

def auth(identity):
    return {"Authorization": f"Bearer {generate_token(identity)}"}


@pytest.fixture
def client(service):
    app = create_app(service)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def with_provider(client):
    resp = client.post("/api/providers", headers=auth(ADMIN), json={
        "id": "p1", "name": "Dr. A", "specialization": "nutrition",
        "location": "NYC", "online": True,
    })
    assert resp.status_code == 201
    return "p1"


# ── Tests: tokens ────────────────────────────────────────────────────

def test_generate_and_verify_token():
    payload = verify_token(generate_token(ALICE))
    assert payload["sub"] == ALICE


def test_expired_token_is_rejected():
    assert verify_token(generate_token(ALICE, expiry_hours=-1)) is None


def test_token_for_anonymous_refused():
    with pytest.raises(ValueError):
        generate_token("anonymous")


def test_bad_token_returns_401(client):
    resp = client.get("/api/roles/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_bad_header_format_returns_401(client):
    resp = client.get("/api/roles/me", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401
    assert "format" in resp.get_json()["error"]


def test_token_signed_with_other_secret_returns_401(client):
    token = generate_token(ALICE, secret_key="someone-elses-signing-secret-0123456789")
    resp = client.get("/api/roles/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ── Tests: info / roles ──────────────────────────────────────────────

def test_describe_endpoints_lists_routes(service):
    lines = describe_endpoints(create_app(service))
    assert any(line.startswith("POST") and line.endswith("/api/consultations") for line in lines)
    assert any(line.endswith("/api/consultations/<consultation_id>/status") for line in lines)
    assert not any(line.endswith("/static/<path:filename>") for line in lines)


def test_index_and_health(client):
    assert client.get("/").get_json()["status"] == "running"
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"] is True


def test_anonymous_session_is_guest(client):
    data = client.get("/api/auth/session").get_json()
    assert data["identity"] == "anonymous"
    assert data["role"] == "guest"
    assert data["is_admin"] is False


def test_roles_endpoints(client):
    assert client.get("/api/roles/me", headers=auth(ALICE)).get_json() == {"role": "user"}
    assert client.get("/api/roles/me/admin", headers=auth(ADMIN)).get_json() == {"is_admin": True}

    resp = client.put(f"/api/roles/{ALICE}", headers=auth(ADMIN), json={"role": "admin"})
    assert resp.status_code == 200
    assert client.get("/api/roles/me/admin", headers=auth(ALICE)).get_json()["is_admin"] is True


def test_assign_role_denied_for_user(client):
    resp = client.put(f"/api/roles/{BOB}", headers=auth(ALICE), json={"role": "admin"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "permission_denied"


def test_assign_unknown_role_is_400(client):
    resp = client.put(f"/api/roles/{BOB}", headers=auth(ADMIN), json={"role": "root"})
    assert resp.status_code == 400


# ── Tests: profiles / VIP ────────────────────────────────────────────

def test_profile_round_trip_and_vip(client):
    assert client.get("/api/profile", headers=auth(ALICE)).get_json() == {"profile": None}
    assert client.get("/api/patient-profile", headers=auth(ALICE)).status_code == 404

    resp = client.put("/api/profile", headers=auth(ALICE), json={
        "name": "Alice", "age": 34, "preferences": "Vegan", "is_vip": True,
    })
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["is_vip"] is False

    resp = client.put(f"/api/vip/{ALICE}", headers=auth(ADMIN), json={"is_vip": True})
    assert resp.status_code == 200
    assert client.get("/api/vip", headers=auth(ALICE)).get_json() == {"is_vip": True}

    profile = client.get("/api/patient-profile", headers=auth(ALICE)).get_json()["profile"]
    assert profile["owner_id"] == ALICE
    assert profile["preferences"] == "Vegan"


def test_save_patient_profile_for_other_owner_is_403(client):
    resp = client.put("/api/patient-profile", headers=auth(ALICE), json={
        "owner_id": BOB, "name": "Bob", "age": 40,
    })
    assert resp.status_code == 403


def test_invalid_profile_is_400(client):
    resp = client.put("/api/profile", headers=auth(ALICE), json={"name": "Alice", "age": 0})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_user_profile_visibility(client):
    client.put("/api/profile", headers=auth(ALICE), json={"name": "Alice", "age": 34})
    assert client.get(f"/api/users/{ALICE}/profile", headers=auth(ADMIN)).status_code == 200
    assert client.get(f"/api/users/{ALICE}/profile", headers=auth(BOB)).status_code == 403


def test_set_vip_without_profile_is_404(client):
    resp = client.put(f"/api/vip/{BOB}", headers=auth(ADMIN), json={"is_vip": True})
    assert resp.status_code == 404


def test_non_json_body_is_400(client):
    resp = client.put("/api/profile", headers=auth(ALICE), data="name=Alice")
    assert resp.status_code == 400


# ── Tests: providers / catalogs ──────────────────────────────────────

def test_providers_public_read(client, with_provider):
    providers = client.get("/api/providers").get_json()["providers"]
    assert [p["id"] for p in providers] == ["p1"]
    assert client.get("/api/providers/p1").get_json()["provider"]["name"] == "Dr. A"
    assert client.get("/api/providers/nope").status_code == 404


def test_non_admin_cannot_add_provider(client):
    resp = client.post("/api/providers", headers=auth(ALICE), json={
        "id": "p2", "name": "Dr. B", "specialization": "x", "location": "y",
    })
    assert resp.status_code == 403
    assert client.get("/api/providers").get_json()["providers"] == []


def test_fitness_crud(client):
    body = {"id": "f1", "name": "Spin", "type_of_class": "spin",
            "location": "Online", "online": True, "cost": 12.5, "duration": 45}
    assert client.post("/api/fitness", headers=auth(ADMIN), json=body).status_code == 201
    assert client.post("/api/fitness", headers=auth(ADMIN), json=body).status_code == 400

    resp = client.put("/api/fitness/f1", headers=auth(ADMIN), json=dict(body, cost=20))
    assert resp.status_code == 200
    assert client.get("/api/fitness/f1").get_json()["listing"]["cost"] == 20.0

    assert client.delete("/api/fitness/f1", headers=auth(ALICE)).status_code == 403
    assert client.delete("/api/fitness/f1", headers=auth(ADMIN)).status_code == 200
    assert client.delete("/api/fitness/f1", headers=auth(ADMIN)).status_code == 404
    assert client.get("/api/fitness").get_json() == {"listings": []}


def test_membership_crud(client):
    body = {"id": "m1", "name": "Plus", "description": "Priority", "price": 99, "duration": 6}
    assert client.post("/api/memberships", headers=auth(ADMIN), json=body).status_code == 201
    resp = client.put("/api/memberships/m1", headers=auth(ADMIN), json=dict(body, name="Plus+"))
    assert resp.status_code == 200
    plans = client.get("/api/memberships").get_json()["plans"]
    assert [(p["id"], p["name"]) for p in plans] == [("m1", "Plus+")]
    assert client.put("/api/memberships/m9", headers=auth(ADMIN), json=body).status_code == 404


# ── Tests: consultations ─────────────────────────────────────────────

def test_consultation_scenario(client, with_provider):
    resp = client.post("/api/consultations", headers=auth(ALICE), json={
        "patient_id": ALICE, "provider_id": "p1", "time": T, "modality": "online",
    })
    assert resp.status_code == 201
    cid = resp.get_json()["id"]
    assert cid == "c1"

    resp = client.put(f"/api/consultations/{cid}/status", headers=auth(ADMIN),
                      json={"status": "confirmed"})
    assert resp.status_code == 200

    records = client.get("/api/consultations", headers=auth(ALICE)).get_json()["consultations"]
    assert len(records) == 1
    assert records[0]["status"] == "confirmed"
    assert records[0]["time"] == T


def test_consultation_failures(client, with_provider):
    req = {"patient_id": ALICE, "provider_id": "p1", "time": T, "modality": "online"}

    resp = client.post("/api/consultations", headers=auth(ALICE), json=dict(req, provider_id="zz"))
    assert resp.status_code == 404
    assert client.post("/api/consultations", headers=auth(BOB), json=req).status_code == 403
    assert client.post("/api/consultations", json=req).status_code == 403

    cid = client.post("/api/consultations", headers=auth(ALICE), json=req).get_json()["id"]
    url = f"/api/consultations/{cid}/status"
    assert client.put(url, headers=auth(ALICE), json={"status": "cancelled"}).status_code == 403
    assert client.put(url, headers=auth(ADMIN), json={"status": "completed"}).status_code == 409
    assert client.put(url, headers=auth(ADMIN), json={"status": "archived"}).status_code == 400
    assert client.put("/api/consultations/c99/status", headers=auth(ADMIN),
                      json={"status": "confirmed"}).status_code == 404


def test_anonymous_consultation_list_is_empty(client):
    assert client.get("/api/consultations").get_json() == {"consultations": []}


# ── Tests: error handlers ────────────────────────────────────────────

def test_unknown_endpoint_is_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Endpoint not found"


def test_wrong_method_is_json_405(client):
    resp = client.patch("/api/providers")
    assert resp.status_code == 405
    assert resp.get_json()["error"] == "Method not allowed"


def test_other_patients_consultation_is_404(client, with_provider):
    resp = client.post("/api/consultations", headers=auth(ALICE), json={
        "patient_id": ALICE, "provider_id": "p1", "time": T, "modality": "online",
    })
    cid = resp.get_json()["id"]
    assert client.get(f"/api/consultations/{cid}", headers=auth(ALICE)).status_code == 200
    assert client.get(f"/api/consultations/{cid}", headers=auth(BOB)).status_code == 404
    assert client.get("/api/consultations/c99", headers=auth(BOB)).status_code == 404


def test_out_of_range_time_is_400(client, with_provider):
    resp = client.post("/api/consultations", headers=auth(ALICE), json={
        "patient_id": ALICE, "provider_id": "p1", "time": 2 ** 63, "modality": "online",
    })
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
