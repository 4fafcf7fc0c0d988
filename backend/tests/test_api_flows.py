"""
Integration tests for the HTTP surface.

Walks the rider approval, parcel assignment and payment scenarios end to
end and checks the authorization policy and error format.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from backend.app.core.dependencies import get_parcel_lifecycle
from backend.app.main import app
from backend.app.models.base import new_id
from backend.app.models.enums import UserRole

API = "/v1"

PARCEL = {
    "owner_email": "u@x.com",
    "title": "Documents",
    "parcel_type": "document",
    "sender_name": "U",
    "sender_district": "D2",
    "receiver_name": "R",
    "destination_district": "D1",
    "delivery_cost": 80,
}


@pytest.fixture
async def admin(make_user, auth_headers):
    await make_user("admin@x.com", UserRole.ADMIN)
    return auth_headers("admin@x.com")


@pytest.fixture
def approved_rider(client, admin):
    async def _approve(email="a@x.com", name="A", district="D1"):
        await client.post(f"{API}/users", json={"email": email})
        applied = await client.post(f"{API}/riders", json={"name": name, "email": email, "district": district})
        rider_id = applied.json()["id"]
        approved = await client.patch(f"{API}/riders/approve/{rider_id}", headers=admin)
        assert approved.status_code == 200
        return rider_id
    return _approve


# TEST 1: Service endpoints
@pytest.mark.asyncio
async def test_health_and_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["role_cache"] == "up"
    assert response.headers["X-Correlation-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_unhandled_error_keeps_correlation_id():
    async def broken_lifecycle():
        raise RuntimeError("boom")
    
    app.dependency_overrides[get_parcel_lifecycle] = broken_lifecycle
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get(f"{API}/parcels/{new_id()}", headers={"X-Correlation-ID": "err-42"})
    
    assert response.status_code == 500
    assert response.headers["X-Correlation-ID"] == "err-42"
    assert response.json()["details"] == {"correlation_id": "err-42"}
    assert "boom" not in response.text


# TEST 2: Directory Store
@pytest.mark.asyncio
async def test_signup_never_grants_admin(client):
    response = await client.post(f"{API}/users", json={"email": "eve@x.com", "role": "admin"})
    
    assert response.status_code == 201
    assert response.json()["inserted"] is True
    assert response.json()["user"]["role"] == "user"
    
    again = await client.post(f"{API}/users", json={"email": "eve@x.com"})
    assert again.status_code == 200
    assert again.json()["inserted"] is False
    
    role = await client.get(f"{API}/users/eve@x.com/role")
    assert role.json() == {"email": "eve@x.com", "role": "user"}


@pytest.mark.asyncio
async def test_role_of_unknown_user_is_404(client):
    response = await client.get(f"{API}/users/ghost@x.com/role")
    
    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"


@pytest.mark.asyncio
@pytest.mark.parametrize("new_role", ["admin", "user"])
async def test_set_role_admin_only(client, admin, auth_headers, new_role):
    created = await client.post(f"{API}/users", json={"email": "t@x.com"})
    user_id = created.json()["user"]["id"]
    await client.post(f"{API}/users", json={"email": "plain@x.com"})
    
    denied = await client.patch(
        f"{API}/users/{user_id}/role", json={"role": new_role}, headers=auth_headers("plain@x.com")
    )
    assert denied.status_code == 403
    assert denied.json()["kind"] == "Forbidden"
    
    granted = await client.patch(f"{API}/users/{user_id}/role", json={"role": new_role}, headers=admin)
    assert granted.status_code == 200
    assert granted.json()["role"] == new_role


@pytest.mark.asyncio
async def test_set_role_rider_is_invalid_argument(client, admin):
    created = await client.post(f"{API}/users", json={"email": "t@x.com"})
    user_id = created.json()["user"]["id"]
    
    response = await client.patch(f"{API}/users/{user_id}/role", json={"role": "rider"}, headers=admin)
    
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidArgument"


@pytest.mark.asyncio
async def test_set_role_without_token_is_401(client):
    response = await client.patch(f"{API}/users/{new_id()}/role", json={"role": "admin"})
    
    assert response.status_code == 401
    assert response.json()["kind"] == "Unauthenticated"


@pytest.mark.asyncio
async def test_search_users(client):
    await client.post(f"{API}/users", json={"email": "Alice@Example.com"})
    await client.post(f"{API}/users", json={"email": "bob@example.com"})
    
    found = await client.get(f"{API}/users/search", params={"email": "alice"})
    assert found.status_code == 200
    assert found.json() == [{"email": "Alice@Example.com", "role": "user"}]
    
    missing = await client.get(f"{API}/users/search", params={"email": "zed"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"


# TEST 3: Rider approval scenario
@pytest.mark.asyncio
async def test_rider_approval_flow(client, admin):
    await client.post(f"{API}/users", json={"email": "a@x.com"})
    applied = await client.post(f"{API}/riders", json={"name": "A", "email": "a@x.com", "district": "D1"})
    assert applied.status_code == 201
    rider_id = applied.json()["id"]
    assert applied.json()["status"] == "pending"
    
    pending = await client.get(f"{API}/riders/pending", headers=admin)
    assert [r["id"] for r in pending.json()] == [rider_id]
    
    decided = await client.patch(f"{API}/riders/{rider_id}/status", json={"status": "active"}, headers=admin)
    assert decided.status_code == 200
    assert decided.json()["status"] == "active"
    
    role = await client.get(f"{API}/users/a@x.com/role")
    assert role.json()["role"] == "rider"
    assert (await client.get(f"{API}/riders/pending", headers=admin)).json() == []
    active = await client.get(f"{API}/riders/active", headers=admin)
    assert [r["id"] for r in active.json()] == [rider_id]
    
    again = await client.patch(f"{API}/riders/approve/{rider_id}", headers=admin)
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_rider_admin_endpoints_require_admin(client, auth_headers):
    applied = await client.post(f"{API}/riders", json={"name": "A", "email": "a@x.com", "district": "D1"})
    rider_id = applied.json()["id"]
    await client.post(f"{API}/users", json={"email": "plain@x.com"})
    plain = auth_headers("plain@x.com")
    
    assert (await client.get(f"{API}/riders/pending")).status_code == 401
    assert (await client.get(f"{API}/riders/pending", headers=plain)).status_code == 403
    assert (await client.get(f"{API}/riders/active", headers=plain)).status_code == 403
    assert (await client.patch(f"{API}/riders/approve/{rider_id}", headers=plain)).status_code == 403
    assert (await client.patch(f"{API}/riders/reject/{rider_id}", headers=plain)).status_code == 403
    assert (await client.patch(f"{API}/riders/deactivate/{rider_id}", headers=plain)).status_code == 403


@pytest.mark.asyncio
async def test_reject_and_deactivate_endpoints(client, admin, approved_rider):
    rider_id = await approved_rider()
    
    deactivated = await client.patch(f"{API}/riders/deactivate/{rider_id}", headers=admin)
    assert deactivated.json()["status"] == "deactivated"
    
    rejected = await client.patch(f"{API}/riders/reject/{rider_id}", headers=admin)
    assert rejected.status_code == 409
    
    applied = await client.post(f"{API}/riders", json={"name": "B", "email": "b@x.com", "district": "D2"})
    other_id = applied.json()["id"]
    for _ in range(2):
        response = await client.patch(f"{API}/riders/reject/{other_id}", headers=admin)
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"


@pytest.mark.asyncio
async def test_invalid_decision_is_400(client, admin):
    applied = await client.post(f"{API}/riders", json={"name": "A", "email": "a@x.com", "district": "D1"})
    
    response = await client.patch(
        f"{API}/riders/{applied.json()['id']}/status", json={"status": "deactivated"}, headers=admin
    )
    
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_riders_in_district(client, approved_rider):
    rider_id = await approved_rider(district="D1")
    await client.post(f"{API}/riders", json={"name": "C", "email": "c@x.com", "district": "D2"})
    
    response = await client.get(f"{API}/riders/available", params={"district": "D1"})
    
    assert [r["id"] for r in response.json()] == [rider_id]


# TEST 4: Parcel scenario
@pytest.mark.asyncio
async def test_parcel_create_get_and_assign(client, admin, approved_rider):
    rider_id = await approved_rider()
    
    created = await client.post(f"{API}/parcels", json=PARCEL)
    assert created.status_code == 201
    parcel_id = created.json()["inserted_id"]
    
    fetched = await client.get(f"{API}/parcels/{parcel_id}")
    body = fetched.json()
    for field, value in PARCEL.items():
        assert body[field] == value
    assert body["delivery_status"] == "created"
    assert body["paymentStatus"] == "unpaid"
    assert body["assigned_rider_id"] is None
    
    assignment = {"rider_id": rider_id, "rider_name": "A", "rider_email": "a@x.com"}
    assigned = await client.patch(f"{API}/parcels/{parcel_id}/assign", json=assignment, headers=admin)
    assert assigned.status_code == 200
    assert (await client.get(f"{API}/parcels/{parcel_id}")).json()["delivery_status"] == "rider_assigned"
    
    repeated = await client.patch(f"{API}/parcels/{parcel_id}/assign", json=assignment, headers=admin)
    assert repeated.status_code == 409
    assert repeated.json()["kind"] == "Conflict"


@pytest.mark.asyncio
async def test_assign_requires_admin(client, auth_headers):
    created = await client.post(f"{API}/parcels", json=PARCEL)
    
    response = await client.patch(
        f"{API}/parcels/{created.json()['inserted_id']}/assign",
        json={"rider_id": new_id()},
        headers=auth_headers("u@x.com"),
    )
    
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_parcel_errors(client):
    malformed = await client.get(f"{API}/parcels/not-an-id")
    assert malformed.status_code == 400
    assert malformed.json()["kind"] == "InvalidArgument"
    
    missing = await client.get(f"{API}/parcels/{new_id()}")
    assert missing.status_code == 404
    assert set(missing.json()) == {"error_code", "kind", "message", "details"}


@pytest.mark.asyncio
async def test_list_parcels_is_scoped_to_identity(client, auth_headers, admin):
    await client.post(f"{API}/users", json={"email": "u@x.com"})
    await client.post(f"{API}/parcels", json=PARCEL)
    await client.post(f"{API}/parcels", json={**PARCEL, "owner_email": "v@x.com"})
    
    own = await client.get(f"{API}/parcels", params={"email": "u@x.com"}, headers=auth_headers("u@x.com"))
    assert own.status_code == 200
    assert [p["owner_email"] for p in own.json()] == ["u@x.com"]
    
    other = await client.get(f"{API}/parcels", params={"email": "v@x.com"}, headers=auth_headers("u@x.com"))
    assert other.status_code == 403
    
    anonymous = await client.get(f"{API}/parcels", params={"email": "u@x.com"})
    assert anonymous.status_code == 401
    
    bad_token = await client.get(
        f"{API}/parcels", params={"email": "u@x.com"}, headers={"Authorization": "Bearer garbage"}
    )
    assert bad_token.status_code == 401
    
    unscoped = await client.get(f"{API}/parcels", headers=auth_headers("u@x.com"))
    assert unscoped.status_code == 403
    assert len((await client.get(f"{API}/parcels", headers=admin)).json()) == 2


@pytest.mark.asyncio
async def test_delete_parcel(client, auth_headers):
    created = await client.post(f"{API}/parcels", json=PARCEL)
    parcel_id = created.json()["inserted_id"]
    
    assert (await client.delete(f"{API}/parcels/{parcel_id}")).status_code == 401
    
    deleted = await client.delete(f"{API}/parcels/{parcel_id}", headers=auth_headers("u@x.com"))
    assert deleted.status_code == 200
    assert deleted.json() == {"deleted": True, "parcel_id": parcel_id}
    assert (await client.get(f"{API}/parcels/{parcel_id}")).status_code == 404


# TEST 5: Payment scenario
@pytest.mark.asyncio
async def test_payment_flow(client, auth_headers):
    created = await client.post(f"{API}/parcels", json=PARCEL)
    parcel_id = created.json()["inserted_id"]
    payer = auth_headers("u@x.com")
    payment = {
        "parcel_id": parcel_id,
        "payer_email": "u@x.com",
        "amount": 500,
        "transaction_id": "tx1",
        "method": "card",
    }
    
    recorded = await client.post(f"{API}/payments", json=payment, headers=payer)
    assert recorded.status_code == 201
    assert recorded.json()["success"] is True
    
    assert (await client.get(f"{API}/parcels/{parcel_id}")).json()["paymentStatus"] == "paid"
    
    listed = await client.get(f"{API}/payments", params={"email": "u@x.com"}, headers=payer)
    assert [p["transaction_id"] for p in listed.json()] == ["tx1"]
    
    duplicate = await client.post(f"{API}/payments", json=payment, headers=payer)
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_payment_by_another_identity_is_forbidden(client, auth_headers):
    created = await client.post(f"{API}/parcels", json=PARCEL)
    payment = {
        "parcel_id": created.json()["inserted_id"],
        "payer_email": "u@x.com",
        "amount": 500,
        "transaction_id": "tx1",
        "method": "card",
    }
    
    response = await client.post(f"{API}/payments", json=payment, headers=auth_headers("mallory@x.com"))
    
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_payment_validation_error_format(client, auth_headers):
    response = await client.post(
        f"{API}/payments",
        json={"parcel_id": new_id(), "payer_email": "u@x.com", "amount": -1, "transaction_id": "t", "method": "card"},
        headers=auth_headers("u@x.com"),
    )
    
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
