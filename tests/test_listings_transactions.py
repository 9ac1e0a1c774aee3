# Listing, transaction and tenant administration API tests.
from __future__ import annotations

import uuid
from typing import Tuple

from fastapi.testclient import TestClient


# Helper: register a tenant account and return (access_token, tenant JSON)
def signup(client: TestClient, name: str, email: str, role: str = "admin") -> Tuple[str, dict]:
    r = client.post("/auth/signup", json={"name": name, "email": email, "password": "changeme123", "role": role})
    assert r.status_code == 201, r.text
    data = r.json()
    return data["access_token"], data["tenant"]


# Convenience header for authenticated requests
def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_property(client: TestClient, token: str, address: str = "1 Main St") -> dict:
    payload = {
        "address": address,
        "city": "New York",
        "state": "NY",
        "zip_code": "10001",
        "sector": "Downtown",
        "property_type": "House",
        "longitude": -74.006,
        "latitude": 40.7128,
        "valuation": 500000,
        "bedrooms": 3,
        "bathrooms": 2,
        "square_feet": 1500,
        "year_built": 2001,
    }
    r = client.post("/api/v1/properties", headers=auth_headers(token), json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def create_listing(client: TestClient, token: str, property_id: int, **overrides) -> dict:
    payload = {
        "property_id": property_id,
        "title": "Spacious House in New York",
        "description": "Three bedrooms close to the park.",
        "price": 525000,
        "status": "active",
        "listed_at": "2026-01-01T00:00:00Z",
        "expires_at": "2026-04-01T00:00:00Z",
    }
    payload.update(overrides)
    r = client.post("/api/v1/listings", headers=auth_headers(token), json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def create_transaction(client: TestClient, token: str, property_id: int, **overrides) -> dict:
    payload = {
        "property_id": property_id,
        "type": "Rent",
        "amount": 2500,
        "transaction_date": "2026-02-01T00:00:00Z",
        "description": "February rent",
    }
    payload.update(overrides)
    r = client.post("/api/v1/transactions", headers=auth_headers(token), json=payload)
    assert r.status_code == 201, r.text
    return r.json()


# ----------------
# Listings
# ----------------
def test_listing_lifecycle(client: TestClient):
    token, tenant = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)
    listing = create_listing(client, token, prop["id"])
    assert listing["tenant_id"] == tenant["id"]
    assert listing["property_id"] == prop["id"]
    assert listing["status"] == "active"

    r = client.get(f"/api/v1/listings/{listing['id']}", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json()["price"] == 525000.0

    r = client.patch(f"/api/v1/listings/{listing['id']}", headers=auth_headers(token), json={"status": "sold", "price": 510000})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "sold"
    assert r.json()["price"] == 510000.0

    r = client.delete(f"/api/v1/listings/{listing['id']}", headers=auth_headers(token))
    assert r.status_code == 204
    assert client.get(f"/api/v1/listings/{listing['id']}", headers=auth_headers(token)).status_code == 404


def test_listing_window_must_be_non_empty(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)

    r = client.post(
        "/api/v1/listings",
        headers=auth_headers(token),
        json={
            "property_id": prop["id"],
            "title": "Backwards",
            "description": "Expires before it is listed.",
            "price": 1,
            "listed_at": "2026-04-01T00:00:00Z",
            "expires_at": "2026-01-01T00:00:00Z",
        },
    )
    assert r.status_code == 400

    listing = create_listing(client, token, prop["id"])
    # the stored listed_at is checked against the new expires_at
    r = client.patch(
        f"/api/v1/listings/{listing['id']}",
        headers=auth_headers(token),
        json={"expires_at": "2025-12-01T00:00:00Z"},
    )
    assert r.status_code == 400


def test_listing_requires_own_live_property(client: TestClient):
    token_a, _ = signup(client, "Tenant A", "a@example.com")
    token_b, _ = signup(client, "Tenant B", "b@example.com")
    prop_a = create_property(client, token_a)

    r = client.post(
        "/api/v1/listings",
        headers=auth_headers(token_b),
        json={
            "property_id": prop_a["id"],
            "title": "Not mine",
            "description": "Someone else's house.",
            "price": 1,
            "listed_at": "2026-01-01T00:00:00Z",
            "expires_at": "2026-02-01T00:00:00Z",
        },
    )
    assert r.status_code == 404

    listing = create_listing(client, token_a, prop_a["id"])
    assert client.get(f"/api/v1/listings/{listing['id']}", headers=auth_headers(token_b)).status_code == 404
    assert client.get("/api/v1/listings", headers=auth_headers(token_b)).json()["total"] == 0


def test_list_listings_filters_and_pagination(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)
    create_listing(client, token, prop["id"], title="Luxury Condo", price=900000)
    create_listing(client, token, prop["id"], title="Spacious House", price=400000, status="pending")
    create_listing(client, token, prop["id"], title="Beautiful Villa", price=700000)

    r = client.get("/api/v1/listings", headers=auth_headers(token), params={"status": "active"})
    assert r.json()["total"] == 2

    r = client.get("/api/v1/listings", headers=auth_headers(token), params={"min_price": 500000, "search": "villa"})
    assert [item["title"] for item in r.json()["data"]] == ["Beautiful Villa"]

    r = client.get("/api/v1/listings", headers=auth_headers(token), params={"sort": "price", "order": "asc", "limit": 2})
    page = r.json()
    assert [item["price"] for item in page["data"]] == [400000.0, 700000.0]
    assert page["has_more"] is True


def test_listing_ids_must_be_uuids(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")

    assert client.get("/api/v1/listings/not-a-uuid", headers=auth_headers(token)).status_code == 422
    assert client.get(f"/api/v1/listings/{uuid.uuid4()}", headers=auth_headers(token)).status_code == 404


def test_user_role_cannot_create_listing(client: TestClient):
    admin_token, _ = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, admin_token)
    user_token, _ = signup(client, "Viewer", "viewer@example.com", role="user")

    r = client.post(
        "/api/v1/listings",
        headers=auth_headers(user_token),
        json={
            "property_id": prop["id"],
            "title": "Nope",
            "description": "Read-only account.",
            "price": 1,
            "listed_at": "2026-01-01T00:00:00Z",
            "expires_at": "2026-02-01T00:00:00Z",
        },
    )
    assert r.status_code == 403


# ----------------
# Transactions
# ----------------
def test_transaction_lifecycle(client: TestClient):
    token, tenant = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)
    tx = create_transaction(client, token, prop["id"])
    assert tx["tenant_id"] == tenant["id"]
    assert tx["amount"] == 2500.0

    r = client.patch(f"/api/v1/transactions/{tx['id']}", headers=auth_headers(token), json={"amount": 2600, "description": None})
    assert r.status_code == 200, r.text
    assert r.json()["amount"] == 2600.0
    assert r.json()["description"] is None
    assert r.json()["type"] == "Rent"

    assert client.delete(f"/api/v1/transactions/{tx['id']}", headers=auth_headers(token)).status_code == 204
    assert client.get(f"/api/v1/transactions/{tx['id']}", headers=auth_headers(token)).status_code == 404


def test_transaction_amount_must_be_positive(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)

    r = client.post(
        "/api/v1/transactions",
        headers=auth_headers(token),
        json={"property_id": prop["id"], "type": "Fee", "amount": 0, "transaction_date": "2026-02-01T00:00:00Z"},
    )
    assert r.status_code == 422


def test_list_transactions_filters(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)
    create_transaction(client, token, prop["id"], type="Rent", amount=2500, transaction_date="2026-01-01T00:00:00Z")
    create_transaction(client, token, prop["id"], type="Rent", amount=2500, transaction_date="2026-02-01T00:00:00Z")
    create_transaction(client, token, prop["id"], type="Tax", amount=8000, transaction_date="2026-03-01T00:00:00Z", description="Property tax Q1")

    r = client.get("/api/v1/transactions", headers=auth_headers(token), params={"type": "Rent"})
    assert r.json()["total"] == 2

    r = client.get(
        "/api/v1/transactions",
        headers=auth_headers(token),
        params={"date_from": "2026-01-15T00:00:00", "date_to": "2026-03-15T00:00:00"},
    )
    assert r.json()["total"] == 2

    r = client.get("/api/v1/transactions", headers=auth_headers(token), params={"search": "tax"})
    assert [tx["type"] for tx in r.json()["data"]] == ["Tax"]

    r = client.get("/api/v1/transactions", headers=auth_headers(token), params={"sort": "amount", "order": "desc", "limit": 1})
    page = r.json()
    assert page["data"][0]["amount"] == 8000.0
    assert page["total"] == 3
    assert page["has_more"] is True


def test_transactions_are_tenant_scoped(client: TestClient):
    token_a, _ = signup(client, "Tenant A", "a@example.com")
    token_b, _ = signup(client, "Tenant B", "b@example.com")
    prop_a = create_property(client, token_a)
    tx = create_transaction(client, token_a, prop_a["id"])

    assert client.get(f"/api/v1/transactions/{tx['id']}", headers=auth_headers(token_b)).status_code == 404
    r = client.post(
        "/api/v1/transactions",
        headers=auth_headers(token_b),
        json={"property_id": prop_a["id"], "type": "Fee", "amount": 10, "transaction_date": "2026-02-01T00:00:00Z"},
    )
    assert r.status_code == 404


# ----------------
# Tenant administration
# ----------------
def test_admin_can_create_list_and_inspect_tenants(client: TestClient):
    token, tenant = signup(client, "Acme", "admin@acme.com")
    prop = create_property(client, token)
    create_listing(client, token, prop["id"])
    create_transaction(client, token, prop["id"])
    create_transaction(client, token, prop["id"], type="Fee", amount=50)

    r = client.post(
        "/api/v1/tenants",
        headers=auth_headers(token),
        json={"name": "Beta Homes", "email": "ops@beta.com", "password": "changeme123"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "user"
    assert "password_hash" not in r.json()

    page = client.get("/api/v1/tenants", headers=auth_headers(token)).json()
    assert [t["name"] for t in page["data"]] == ["Acme", "Beta Homes"]
    assert page["total"] == 2

    detail = client.get(f"/api/v1/tenants/{tenant['id']}", headers=auth_headers(token)).json()
    assert detail["property_count"] == 1
    assert detail["listing_count"] == 1
    assert detail["transaction_count"] == 2


def test_tenant_admin_errors(client: TestClient):
    token, _ = signup(client, "Acme", "admin@acme.com")

    r = client.post(
        "/api/v1/tenants",
        headers=auth_headers(token),
        json={"name": "Other", "email": "admin@acme.com", "password": "changeme123"},
    )
    assert r.status_code == 409

    missing = uuid.uuid4()
    r = client.get(f"/api/v1/tenants/{missing}", headers=auth_headers(token))
    assert r.status_code == 404
    assert r.json()["detail"] == f"Tenant with ID {missing} not found"

    user_token, _ = signup(client, "Viewer", "viewer@example.com", role="user")
    assert client.get("/api/v1/tenants", headers=auth_headers(user_token)).status_code == 403
