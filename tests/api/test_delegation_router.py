"""Tests for the delegation REST API."""

import pytest
from fastapi.testclient import TestClient

from family_vault.api import build_memory_services, create_app
from family_vault.config.settings import VaultSettings

from tests.helpers import ADMIN, BENEFICIARY, OUTSIDER, OWNER


def _headers(member_id):
    return {"X-Member-Id": str(member_id)}


REQUEST_BODY = {
    "owner_id": OWNER,
    "beneficiary_id": BENEFICIARY,
    "scope": "FOLDER",
    "target_id": 10,
    "permission_type": "READ",
    "reason": "Tax papers",
}


@pytest.fixture
def services(family_members):
    return build_memory_services(family_members, settings=VaultSettings())


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client


def _create(client, body=None, member_id=BENEFICIARY):
    return client.post("/delegations/requests", json=body or REQUEST_BODY, headers=_headers(member_id))


class TestRequestEndpoints:
    """Create, approve, reject."""

    def test_create_and_approve(self, client):
        created = _create(client)

        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status"] == "PENDING"

        approved = client.post(
            f"/delegations/requests/{request_id}/approve",
            json={"comment": "Fine"},
            headers=_headers(OWNER),
        )

        assert approved.status_code == 200
        body = approved.json()
        assert body["request"]["status"] == "APPROVED"
        assert body["request"]["resolution_comment"] == "Fine"
        assert body["grant"]["active"] is True

    def test_approve_without_body(self, client):
        request_id = _create(client).json()["id"]

        response = client.post(f"/delegations/requests/{request_id}/approve", headers=_headers(OWNER))

        assert response.status_code == 200

    def test_duplicate_is_conflict(self, client):
        _create(client)

        response = _create(client)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "ALREADY_EXISTS"

    def test_outsider_cannot_approve(self, client):
        request_id = _create(client).json()["id"]

        response = client.post(f"/delegations/requests/{request_id}/approve", headers=_headers(OUTSIDER))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "PERMISSION_DENIED"

    def test_reject(self, client):
        request_id = _create(client).json()["id"]

        response = client.post(
            f"/delegations/requests/{request_id}/reject",
            json={"reason": "Not now"},
            headers=_headers(OWNER),
        )
        again = client.post(
            f"/delegations/requests/{request_id}/reject",
            json={"reason": "Still no"},
            headers=_headers(OWNER),
        )

        assert response.json()["status"] == "REJECTED"
        assert again.status_code == 409
        assert again.json()["detail"]["code"] == "ALREADY_PROCESSED"

    def test_body_validation(self, client):
        missing_target = dict(REQUEST_BODY, target_id=None)
        blank_reason = dict(REQUEST_BODY, reason="  ")

        assert _create(client, missing_target).status_code == 422
        assert _create(client, blank_reason).status_code == 422

    def test_missing_member_header(self, client):
        response = client.post("/delegations/requests", json=REQUEST_BODY)

        assert response.status_code == 422

    def test_get_request_and_pending_list(self, client):
        request_id = _create(client).json()["id"]

        found = client.get(f"/delegations/requests/{request_id}", headers=_headers(ADMIN))
        pending = client.get("/delegations/requests/pending", headers=_headers(OWNER))
        missing = client.get("/delegations/requests/999", headers=_headers(OWNER))

        assert found.json()["id"] == request_id
        assert pending.json()["total"] == 1
        assert missing.status_code == 404


class TestGrantEndpoints:
    """Access checks and revocation."""

    def _grant(self, client):
        request_id = _create(client).json()["id"]
        approval = client.post(f"/delegations/requests/{request_id}/approve", headers=_headers(OWNER))
        return approval.json()["grant"]["id"]

    def test_access_check_then_revoke(self, client):
        grant_id = self._grant(client)
        params = {"scope": "FOLDER", "target_id": 10, "permission_type": "READ"}

        allowed = client.get("/delegations/access", params=params, headers=_headers(BENEFICIARY))
        revoked = client.post(
            f"/delegations/grants/{grant_id}/revoke",
            json={"reason": "No longer needed"},
            headers=_headers(BENEFICIARY),
        )
        denied = client.get("/delegations/access", params=params, headers=_headers(BENEFICIARY))

        assert allowed.json()["allowed"] is True
        assert allowed.json()["grant"]["id"] == grant_id
        assert revoked.json()["active"] is False
        assert denied.status_code == 403

    def test_permissions_summary(self, client):
        grant_id = self._grant(client)

        mine = client.get("/delegations/grants/summary", headers=_headers(BENEFICIARY))
        hidden = client.get(
            "/delegations/grants/summary", params={"beneficiary_id": BENEFICIARY}, headers=_headers(OUTSIDER),
        )

        assert mine.status_code == 200
        assert [g["id"] for g in mine.json()["folder_grants"]] == [grant_id]
        assert mine.json()["file_grants"] == []
        assert mine.json()["has_full_space_access"] is False
        assert mine.json()["total_active"] == 1
        assert hidden.status_code == 403


class TestReadModels:
    """Dashboard, statistics and audit history."""

    def test_dashboard_and_statistics(self, client):
        _create(client)

        dashboard = client.get("/delegations/dashboard", headers=_headers(OWNER))
        family = client.get("/delegations/dashboard", params={"scope": "family"}, headers=_headers(ADMIN))
        stats = client.get("/delegations/statistics", headers=_headers(BENEFICIARY))

        assert dashboard.json()["pending"] == 1
        assert family.json()["scope"] == "family"
        assert family.json()["pending"] == 1
        assert stats.json()["pending_beneficiary_requests"] == 1

    def test_audit_history(self, client, services):
        _create(client)
        client.portal.call(services.events.join)

        response = client.get("/delegations/audit", headers=_headers(OWNER))
        mine = client.get("/delegations/audit", headers=_headers(BENEFICIARY))

        assert response.json() == []
        assert [entry["action"] for entry in mine.json()] == ["DELEGATION_REQUESTED"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.json()["status"] == "healthy"
        assert response.json()["event_bus_running"] is True
