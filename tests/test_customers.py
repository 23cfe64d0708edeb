"""
Tests for customer endpoints.
"""

import pytest
from httpx import AsyncClient


NEW_CUSTOMER = {
    "first_name": "Sara",
    "last_name": "Persson",
    "email": "sara.persson@example.com",
    "phone": "0703333333",
}


@pytest.mark.asyncio
async def test_create_customer(client: AsyncClient, auth_headers):
    response = await client.post("/api/customers", json=NEW_CUSTOMER, headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["first_name"] == "Sara"
    assert data["email"] == "sara.persson@example.com"
    assert data["bookings"] == []


@pytest.mark.asyncio
async def test_create_customer_without_phone(client: AsyncClient, auth_headers):
    payload = {k: v for k, v in NEW_CUSTOMER.items() if k != "phone"}
    response = await client.post("/api/customers", json=payload, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["phone"] is None


@pytest.mark.asyncio
async def test_create_customer_duplicate_email(client: AsyncClient, auth_headers, test_customer):
    """Duplicate email returns 409 and nothing is added."""
    response = await client.post(
        "/api/customers",
        json={"first_name": "Other", "last_name": "Person", "email": "a@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"

    customers = await client.get("/api/customers")
    assert len(customers.json()) == 1


@pytest.mark.asyncio
async def test_email_uniqueness_is_case_sensitive(client: AsyncClient, auth_headers, test_customer):
    response = await client.post(
        "/api/customers",
        json={"first_name": "Other", "last_name": "Person", "email": "A@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["", "not-an-email", "missing@"])
async def test_create_customer_invalid_email(client: AsyncClient, auth_headers, email):
    response = await client.post(
        "/api/customers",
        json={**NEW_CUSTOMER, "email": email},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "email" in response.json()["details"]


@pytest.mark.asyncio
async def test_create_customer_blank_last_name(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/customers",
        json={**NEW_CUSTOMER, "last_name": "  "},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "last_name" in response.json()["details"]


@pytest.mark.asyncio
async def test_update_customer(client: AsyncClient, auth_headers, test_customer):
    response = await client.put(
        f"/api/customers/{test_customer.id}",
        json={"first_name": "Anna", "last_name": "Berg", "email": "anna.berg@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["last_name"] == "Berg"
    assert data["email"] == "anna.berg@example.com"
    assert data["phone"] is None


@pytest.mark.asyncio
async def test_update_customer_to_taken_email(client: AsyncClient, auth_headers, test_customer, other_customer):
    """The unique index still rejects a collision on update."""
    response = await client.put(
        f"/api/customers/{other_customer.id}",
        json={"first_name": "Johan", "last_name": "Nilsson", "email": "a@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 409

    unchanged = await client.get(f"/api/customers/{other_customer.id}")
    assert unchanged.json()["email"] == "johan@example.com"


@pytest.mark.asyncio
async def test_update_missing_customer(client: AsyncClient, auth_headers):
    response = await client.put(
        "/api/customers/999",
        json={"first_name": "A", "last_name": "B", "email": "x@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_customer_with_active_booking(client: AsyncClient, auth_headers, test_customer, rented_asset):
    response = await client.delete(f"/api/customers/{test_customer.id}", headers=auth_headers)
    assert response.status_code == 409

    still_there = await client.get(f"/api/customers/{test_customer.id}")
    assert still_there.status_code == 200
    assert len(still_there.json()["bookings"]) == 1


@pytest.mark.asyncio
async def test_delete_customer(client: AsyncClient, auth_headers, other_customer):
    response = await client.delete(f"/api/customers/{other_customer.id}", headers=auth_headers)
    assert response.status_code == 204

    gone = await client.get(f"/api/customers/{other_customer.id}")
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_delete_customer_without_api_key(client: AsyncClient, other_customer):
    response = await client.delete(f"/api/customers/{other_customer.id}")
    assert response.status_code == 401

    still_there = await client.get(f"/api/customers/{other_customer.id}")
    assert still_there.status_code == 200
