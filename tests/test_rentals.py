"""
Tests for booking endpoints: the open/close lifecycle and its guards.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentalhub.api.routes import rentals as rentals_routes


def _book_url(asset_id: int, customer_id: int) -> str:
    return f"/api/rentals/book/{asset_id}/customer/{customer_id}"


async def _asset_available(client: AsyncClient, asset_id: int) -> bool:
    response = await client.get(f"/api/assets/{asset_id}")
    return response.json()["available"]


@pytest.mark.asyncio
async def test_drill_rental_lifecycle(client: AsyncClient, auth_headers):
    """Create, book, reject double booking, return, delete booking, delete asset."""
    asset = await client.post(
        "/api/assets",
        json={"name": "Drill", "category": "Tools", "daily_rate": 150.0},
        headers=auth_headers,
    )
    assert asset.status_code == 201
    assert asset.json()["id"] == 1
    assert asset.json()["available"] is True

    customer = await client.post(
        "/api/customers",
        json={"first_name": "Anna", "last_name": "Karlsson", "email": "a@example.com"},
        headers=auth_headers,
    )
    assert customer.status_code == 201
    assert customer.json()["id"] == 1

    booking = await client.post(_book_url(1, 1), headers=auth_headers)
    assert booking.status_code == 201
    data = booking.json()
    assert data["id"] == 1
    assert data["active"] is True
    assert data["start_date"] == date.today().isoformat()
    assert data["end_date"] is None
    assert await _asset_available(client, 1) is False

    second = await client.post(_book_url(1, 1), headers=auth_headers)
    assert second.status_code == 409

    returned = await client.put("/api/rentals/return/1", headers=auth_headers)
    assert returned.status_code == 200
    assert returned.json()["active"] is False
    assert returned.json()["end_date"] == date.today().isoformat()
    assert await _asset_available(client, 1) is True

    deleted = await client.delete("/api/rentals/1", headers=auth_headers)
    assert deleted.status_code == 204

    asset_deleted = await client.delete("/api/assets/1", headers=auth_headers)
    assert asset_deleted.status_code == 204


@pytest.mark.asyncio
async def test_book_with_start_date_and_note(client: AsyncClient, auth_headers, test_asset, test_customer):
    response = await client.post(
        _book_url(test_asset.id, test_customer.id),
        json={"start_date": "2026-11-02", "note": "Weekend job"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["start_date"] == "2026-11-02"
    assert data["note"] == "Weekend job"
    assert data["asset_id"] == test_asset.id
    assert data["asset_name"] == "Drill"
    assert data["customer_id"] == test_customer.id
    assert data["customer_name"] == "Anna Karlsson"
    assert "asset" not in data and "customer" not in data


@pytest.mark.asyncio
async def test_book_with_empty_body(client: AsyncClient, auth_headers, test_asset, test_customer):
    response = await client.post(
        _book_url(test_asset.id, test_customer.id),
        json={},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["start_date"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_book_unknown_asset(client: AsyncClient, auth_headers, test_customer):
    response = await client.post(_book_url(999, test_customer.id), headers=auth_headers)
    assert response.status_code == 404
    assert (await client.get("/api/rentals")).json() == []


@pytest.mark.asyncio
async def test_book_unknown_customer_leaves_asset_available(client: AsyncClient, auth_headers, test_asset):
    response = await client.post(_book_url(test_asset.id, 999), headers=auth_headers)
    assert response.status_code == 404
    assert await _asset_available(client, test_asset.id) is True
    assert (await client.get("/api/rentals")).json() == []


@pytest.mark.asyncio
async def test_book_rented_asset_for_another_customer(
    client: AsyncClient, auth_headers, rented_asset, other_customer
):
    response = await client.post(_book_url(rented_asset.id, other_customer.id), headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"


@pytest.mark.asyncio
async def test_book_without_api_key(client: AsyncClient, test_asset, test_customer):
    response = await client.post(_book_url(test_asset.id, test_customer.id))
    assert response.status_code == 401
    assert await _asset_available(client, test_asset.id) is True


@pytest.mark.asyncio
async def test_close_booking_twice(client: AsyncClient, auth_headers, test_asset, test_customer):
    booking = await client.post(_book_url(test_asset.id, test_customer.id), headers=auth_headers)
    booking_id = booking.json()["id"]

    first = await client.put(f"/api/rentals/return/{booking_id}", headers=auth_headers)
    assert first.status_code == 200

    second = await client.put(f"/api/rentals/return/{booking_id}", headers=auth_headers)
    assert second.status_code == 409
    assert await _asset_available(client, test_asset.id) is True


@pytest.mark.asyncio
async def test_close_unknown_booking(client: AsyncClient, auth_headers):
    response = await client.put("/api/rentals/return/999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_active_booking(client: AsyncClient, auth_headers, rented_asset):
    history = (await client.get(f"/api/rentals/history/asset/{rented_asset.id}")).json()
    booking_id = history[0]["id"]

    response = await client.delete(f"/api/rentals/{booking_id}", headers=auth_headers)
    assert response.status_code == 409
    assert "close it first" in response.json()["message"]

    still_there = await client.get(f"/api/rentals/{booking_id}")
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_delete_closed_booking_keeps_asset_available(
    client: AsyncClient, auth_headers, test_asset, test_customer
):
    booking_id = (await client.post(_book_url(test_asset.id, test_customer.id), headers=auth_headers)).json()["id"]
    await client.put(f"/api/rentals/return/{booking_id}", headers=auth_headers)

    response = await client.delete(f"/api/rentals/{booking_id}", headers=auth_headers)
    assert response.status_code == 204
    assert (await client.get(f"/api/rentals/{booking_id}")).status_code == 404
    assert await _asset_available(client, test_asset.id) is True


@pytest.mark.asyncio
async def test_get_unknown_booking(client: AsyncClient):
    response = await client.get("/api/rentals/999")
    assert response.status_code == 404
    assert response.json()["path"] == "/api/rentals/999"


@pytest.mark.asyncio
async def test_history_newest_first(client: AsyncClient, auth_headers, test_asset, test_customer):
    for start in ("2026-01-10", "2026-03-05"):
        booking = await client.post(
            _book_url(test_asset.id, test_customer.id),
            json={"start_date": start},
            headers=auth_headers,
        )
        assert booking.status_code == 201
        await client.put(f"/api/rentals/return/{booking.json()['id']}", headers=auth_headers)

    by_asset = await client.get(f"/api/rentals/history/asset/{test_asset.id}")
    assert [b["start_date"] for b in by_asset.json()] == ["2026-03-05", "2026-01-10"]

    by_customer = await client.get(f"/api/rentals/history/customer/{test_customer.id}")
    assert [b["start_date"] for b in by_customer.json()] == ["2026-03-05", "2026-01-10"]

    all_bookings = await client.get("/api/rentals")
    assert len(all_bookings.json()) == 2


@pytest.mark.asyncio
async def test_history_for_unknown_asset_is_empty(client: AsyncClient):
    response = await client.get("/api/rentals/history/asset/999")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_commit_failure_returns_500(client: AsyncClient, auth_headers, test_asset, test_customer, monkeypatch):
    """A booking whose commit fails is reported as an error, not as created."""

    async def failing_commit(self):
        raise SQLAlchemyError("commit failed")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    response = await client.post(_book_url(test_asset.id, test_customer.id), headers=auth_headers)
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == 500
    assert body["message"].startswith("An unexpected error occurred")
    assert body["path"] == _book_url(test_asset.id, test_customer.id)

    assert await _asset_available(client, test_asset.id) is True
    assert (await client.get("/api/rentals")).json() == []


@pytest.mark.asyncio
async def test_cache_invalidated_after_commit(
    client: AsyncClient, auth_headers, db_session, test_asset, test_customer, monkeypatch
):
    in_transaction = []

    async def record_invalidation():
        in_transaction.append(db_session.in_transaction())

    monkeypatch.setattr(rentals_routes, "invalidate_asset_cache", record_invalidation)

    booking = await client.post(_book_url(test_asset.id, test_customer.id), headers=auth_headers)
    assert booking.status_code == 201
    returned = await client.put(f"/api/rentals/return/{booking.json()['id']}", headers=auth_headers)
    assert returned.status_code == 200

    assert in_transaction == [False, False]
