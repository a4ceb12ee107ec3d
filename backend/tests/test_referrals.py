"""Tests for referral API routes."""

import uuid

import pytest

from alliedhealth.routes.referrals import router


def referral_payload(catalog, **overrides) -> dict:
    payload = {
        "patient_id": catalog.patient.id,
        "origin_department_id": str(catalog.physio.id),
        "destination_department_id": str(catalog.dietetics.id),
        "referring_staff_id": str(catalog.physio_professional.id),
        "priority": "high",
        "notes": "Poor oral intake",
        "interventions": [str(catalog.diet_plan.id)],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def created_referral(client, catalog, physio_caller, headers_for) -> dict:
    response = await client.post(
        "/api/referrals",
        json=referral_payload(catalog),
        headers=headers_for(physio_caller),
    )
    assert response.status_code == 201
    return response.json()


class TestCreateReferral:
    """Tests for POST /referrals."""

    @pytest.mark.asyncio
    async def test_create(self, created_referral, catalog):
        assert created_referral["status"] == "pending"
        assert created_referral["direction"] == "outgoing"
        assert created_referral["intervention_ids"] == [str(catalog.diet_plan.id)]

    @pytest.mark.asyncio
    async def test_same_department_is_bad_request(self, client, catalog, physio_caller, headers_for):
        response = await client.post(
            "/api/referrals",
            json=referral_payload(catalog, destination_department_id=str(catalog.physio.id)),
            headers=headers_for(physio_caller),
        )
        assert response.status_code == 400


class TestResolveReferral:
    """Tests for PUT /referrals/{referral_id}."""

    @pytest.mark.asyncio
    async def test_accept_once(self, client, created_referral, dietitian_caller, headers_for):
        headers = headers_for(dietitian_caller)
        url = f"/api/referrals/{created_referral['id']}"

        accepted = await client.put(url, json={"decision": "accepted"}, headers=headers)
        rejected = await client.put(url, json={"decision": "rejected"}, headers=headers)

        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert accepted.json()["direction"] == "incoming"
        assert accepted.json()["resolved_by"] == str(dietitian_caller.user_id)
        assert rejected.status_code == 409

        current = await client.get(url, headers=headers)
        assert current.json()["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_origin_department_is_forbidden(self, client, created_referral, physio_caller, headers_for):
        response = await client.put(
            f"/api/referrals/{created_referral['id']}",
            json={"decision": "accepted"},
            headers=headers_for(physio_caller),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_bad_decision(self, client, created_referral, dietitian_caller, headers_for):
        response = await client.put(
            f"/api/referrals/{created_referral['id']}",
            json={"decision": "pending"},
            headers=headers_for(dietitian_caller),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_referral(self, client, catalog, dietitian_caller, headers_for):
        response = await client.put(
            f"/api/referrals/{uuid.uuid4()}",
            json={"decision": "accepted"},
            headers=headers_for(dietitian_caller),
        )
        assert response.status_code == 404


class TestListReferrals:
    """Tests for GET /referrals and GET /referrals/summary."""

    @pytest.mark.asyncio
    async def test_directions(self, client, created_referral, physio_caller, dietitian_caller, headers_for):
        outgoing = await client.get(
            "/api/referrals", params={"direction": "outgoing"}, headers=headers_for(physio_caller)
        )
        incoming = await client.get(
            "/api/referrals", params={"direction": "incoming"}, headers=headers_for(physio_caller)
        )
        dietetics_incoming = await client.get(
            "/api/referrals", params={"direction": "incoming"}, headers=headers_for(dietitian_caller)
        )

        assert [r["id"] for r in outgoing.json()["items"]] == [created_referral["id"]]
        assert incoming.json()["total"] == 0
        assert dietetics_incoming.json()["items"][0]["direction"] == "incoming"

    @pytest.mark.asyncio
    async def test_unknown_direction_is_unprocessable(self, client, catalog, physio_caller, headers_for):
        response = await client.get(
            "/api/referrals", params={"direction": "sideways"}, headers=headers_for(physio_caller)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_summary(self, client, created_referral, dietitian_caller, headers_for):
        response = await client.get("/api/referrals/summary", headers=headers_for(dietitian_caller))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["pending"] == 1
        assert data["incoming"] == 1
        assert data["outgoing"] == 0
        assert data["by_destination"] == [{"department_id": created_referral["destination_department_id"], "count": 1}]

    @pytest.mark.asyncio
    async def test_retire(self, client, created_referral, physio_caller, dietitian_caller, headers_for):
        url = f"/api/referrals/{created_referral['id']}"
        assert (await client.delete(url, headers=headers_for(dietitian_caller))).status_code == 403
        assert (await client.delete(url, headers=headers_for(physio_caller))).status_code == 204
        assert (await client.get(url, headers=headers_for(physio_caller))).status_code == 404


class TestReferralsRouterStructure:
    """Tests for referrals router structure."""

    def test_router_has_correct_prefix(self):
        assert router.prefix == "/referrals"

    def test_resolve_is_put(self):
        routes = {(r.path, method) for r in router.routes for method in r.methods}
        assert ("/referrals/{referral_id}", "PUT") in routes
