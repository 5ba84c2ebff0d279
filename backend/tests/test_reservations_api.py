"""API tests for reservation create-or-update and status changes."""

from __future__ import annotations

from typing import Any

import pytest

from app.core.security import create_access_token

pytestmark = pytest.mark.asyncio

AIRPORT_FORM = {
    "reservation_type": "airport",
    "pickup": {
        "airport_location": "다낭공항",
        "flight_number": "VJ123",
        "service_datetime": "2026-06-01T09:30:00+07:00",
        "passenger_count": 3,
    },
    "sending": {"airport_location": "다낭공항", "luggage_count": 2},
}


async def _quote_with_transfers(client, headers: dict[str, str]) -> str:
    quote = (await client.get("/api/v1/quotes/active", headers=headers)).json()
    response = await client.post(
        f"/api/v1/quotes/{quote['id']}/airport",
        json={
            "apply_type": "both",
            "legs": [
                {"airport_route": "다낭공항", "airport_car_type": "4인승"},
                {"airport_route": "다낭공항", "airport_car_type": "4인승"},
            ],
        },
        headers=headers,
    )
    assert response.status_code == 201
    return quote["id"]


async def test_create_then_update_keeps_one_reservation(
    app_context: dict[str, Any],
) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)

    created = await client.post(
        "/api/v1/reservations",
        json={"quote_id": quote_id, "form": AIRPORT_FORM},
        headers=headers,
    )
    assert created.status_code == 200
    first = created.json()
    assert first["created"] is True
    assert first["reservation"]["status"] == "pending"
    assert first["reservation"]["reservation_type"] == "airport"
    assert [row["way_type"] for row in first["details"]] == ["pickup", "sending"]
    assert all(row["table"] == "reservation_airport" for row in first["details"])
    assert first["details"][0]["passenger_count"] == 3
    assert first["total_price"] == 380000

    updated_form = {**AIRPORT_FORM, "pickup": {"airport_location": "하노이 노이바이"}}
    updated = await client.post(
        "/api/v1/reservations",
        json={"quote_id": quote_id, "form": updated_form},
        headers=headers,
    )
    assert updated.status_code == 200
    second = updated.json()
    assert second["created"] is False
    assert second["reservation"]["id"] == first["reservation"]["id"]
    assert second["details"][0]["airport_location"] == "하노이 노이바이"
    assert {row["id"] for row in second["details"]}.isdisjoint(
        {row["id"] for row in first["details"]}
    )

    fetched = await client.get(
        f"/api/v1/reservations/{first['reservation']['id']}", headers=headers
    )
    assert fetched.status_code == 200
    assert len(fetched.json()["details"]) == 2
    assert fetched.json()["total_price"] == 380000


async def test_reservation_requires_sign_in(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)

    response = await client.post(
        "/api/v1/reservations", json={"quote_id": quote_id, "form": AIRPORT_FORM}
    )
    assert response.status_code == 401


async def test_missing_leg_details_are_rejected(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)

    response = await client.post(
        "/api/v1/reservations",
        json={
            "quote_id": quote_id,
            "form": {"reservation_type": "airport", "sending": AIRPORT_FORM["sending"]},
        },
        headers=headers,
    )
    assert response.status_code == 400


async def test_unknown_form_type_is_unprocessable(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)

    response = await client.post(
        "/api/v1/reservations",
        json={"quote_id": quote_id, "form": {"reservation_type": "ferry"}},
        headers=headers,
    )
    assert response.status_code == 422


async def test_status_transitions_are_enforced(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)
    created = await client.post(
        "/api/v1/reservations",
        json={"quote_id": quote_id, "form": AIRPORT_FORM},
        headers=headers,
    )
    reservation_id = created.json()["reservation"]["id"]

    cancelled = await client.post(
        f"/api/v1/reservations/{reservation_id}/status",
        json={"status": "cancelled"},
        headers=headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    reopened = await client.post(
        f"/api/v1/reservations/{reservation_id}/status",
        json={"status": "confirmed"},
        headers=headers,
    )
    assert reopened.status_code == 400


async def test_missing_reservation_is_not_found(app_context: dict[str, Any]) -> None:
    client = app_context["client"]
    headers = app_context["headers"]

    response = await client.get(
        "/api/v1/reservations/00000000-0000-4000-8000-000000000009", headers=headers
    )
    assert response.status_code == 404


def _seat_form(seat_number: str) -> dict[str, Any]:
    return {
        "reservation_type": "vehicle",
        "seats": [
            {
                "vehicle_number": "2",
                "seat_number": seat_number,
                "sht_category": "pickup",
                "usage_date": "2026-06-01",
            }
        ],
    }


async def test_reservations_are_listed_with_price_context(
    app_context: dict[str, Any],
) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote_id = await _quote_with_transfers(client, headers)
    form = {**AIRPORT_FORM, "pickup": {"airport_location": "다낭공항", "car_count": 2}}

    created = await client.post(
        "/api/v1/reservations", json={"quote_id": quote_id, "form": form}, headers=headers
    )
    assert created.json()["total_price"] == 580000

    listed = await client.get("/api/v1/reservations", headers=headers)
    assert listed.status_code == 200
    (row,) = listed.json()
    assert row["reservation"]["id"] == created.json()["reservation"]["id"]
    assert [detail["car_count"] for detail in row["details"]] == [2, 1]
    assert row["total_price"] == 580000
    assert [entry["airport_code"] for entry in row["price_context"]["airport"]] == [
        "AP-001",
        "AP-002",
    ]

    anonymous = await client.get("/api/v1/reservations")
    assert anonymous.status_code == 401


async def test_booked_seats_are_reported_and_protected(
    app_context: dict[str, Any],
) -> None:
    client = app_context["client"]
    headers = app_context["headers"]
    quote = (await client.get("/api/v1/quotes/active", headers=headers)).json()

    booked = await client.post(
        "/api/v1/reservations",
        json={"quote_id": quote["id"], "form": _seat_form("B1,B2")},
        headers=headers,
    )
    assert booked.status_code == 200

    occupancy = await client.get(
        "/api/v1/reservations/seats",
        params={"usage_date": "2026-06-01", "vehicle_number": "2", "sht_category": "pickup"},
        headers=headers,
    )
    assert occupancy.status_code == 200
    assert occupancy.json()["seats"] == ["B1", "B2"]
    assert occupancy.json()["whole_vehicle"] is False

    anonymous = await client.get(
        "/api/v1/reservations/seats",
        params={"usage_date": "2026-06-01", "vehicle_number": "2"},
    )
    assert anonymous.status_code == 401

    other = create_access_token(
        "00000000-0000-4000-8000-000000000001", email="other@example.com"
    )
    other_headers = {"Authorization": f"Bearer {other}"}
    other_quote = (
        await client.get("/api/v1/quotes/active", headers=other_headers)
    ).json()
    taken = await client.post(
        "/api/v1/reservations",
        json={"quote_id": other_quote["id"], "form": _seat_form("B2")},
        headers=other_headers,
    )
    assert taken.status_code == 400
    assert "B2" in taken.json()["detail"]
