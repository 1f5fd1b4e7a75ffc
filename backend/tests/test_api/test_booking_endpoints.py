"""Tests for the bookings API."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.models.availability import AvailabilityOverride
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

pytestmark = pytest.mark.asyncio

CHECK_IN = "2026-04-10"
CHECK_OUT = "2026-04-13"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _request_booking(client: AsyncClient, headers: dict, prop: Property, **overrides) -> dict:
    payload = {
        "property_id": str(prop.id),
        "check_in": CHECK_IN,
        "check_out": CHECK_OUT,
        "guest_count": 2,
        **overrides,
    }
    response = await client.post("/api/v1/bookings", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _post(client: AsyncClient, booking: dict, action: str, headers: dict, json: dict | None = None):
    return await client.post(f"/api/v1/bookings/{booking['id']}/{action}", json=json, headers=headers)


# ---------------------------------------------------------------------------
# POST /api/v1/bookings/quote, GET /api/v1/bookings/availability
# ---------------------------------------------------------------------------


class TestQuoteAndAvailability:
    async def test_quote(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"property_id": str(test_property.id), "check_in": CHECK_IN, "check_out": CHECK_OUT},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["nights"] == 3
        assert Decimal(data["base_price"]) == Decimal("300")
        assert Decimal(data["service_fee"]) == Decimal("36")
        assert Decimal(data["taxes"]) == Decimal("28")
        assert Decimal(data["total_amount"]) == Decimal("384")
        assert Decimal(data["security_deposit"]) == Decimal("50")
        assert data["currency"] == "XOF"
        assert data["available"] is True

    async def test_quote_unknown_property(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"property_id": str(uuid.uuid4()), "check_in": CHECK_IN, "check_out": CHECK_OUT},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    async def test_quote_rejects_inverted_dates(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"property_id": str(test_property.id), "check_in": CHECK_OUT, "check_out": CHECK_IN},
        )
        assert response.status_code == 422

    async def test_availability_lists_booked_nights(
        self, client: AsyncClient, guest_headers: dict, test_property: Property
    ) -> None:
        await _request_booking(client, guest_headers, test_property)

        response = await client.get(
            "/api/v1/bookings/availability",
            params={"property_id": str(test_property.id), "check_in": "2026-04-01", "check_out": "2026-04-30"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["available"] is False
        assert data["unavailable_dates"] == ["2026-04-10", "2026-04-11", "2026-04-12"]

    async def test_availability_inverted_window(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.get(
            "/api/v1/bookings/availability",
            params={"property_id": str(test_property.id), "check_in": CHECK_OUT, "check_out": CHECK_IN},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_input"


# ---------------------------------------------------------------------------
# POST /api/v1/bookings, GET /api/v1/bookings/{id}
# ---------------------------------------------------------------------------


class TestCreateBooking:
    async def test_create(
        self, client: AsyncClient, guest_headers: dict, guest_user: User, test_property: Property
    ) -> None:
        data = await _request_booking(client, guest_headers, test_property, special_requests="Crib please")

        assert data["status"] == "pending"
        assert data["guest_id"] == str(guest_user.id)
        assert data["property_id"] == str(test_property.id)
        assert data["guest_count"] == 2
        assert Decimal(data["total_amount"]) == Decimal("384")
        assert data["special_requests"] == "Crib please"
        assert data["payment_expires_at"] is None

    async def test_requires_authentication(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json={"property_id": str(test_property.id), "check_in": CHECK_IN, "check_out": CHECK_OUT},
        )
        assert response.status_code in (401, 403)

    async def test_invalid_token(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json={"property_id": str(test_property.id), "check_in": CHECK_IN, "check_out": CHECK_OUT},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    async def test_overlap_conflict(
        self, client: AsyncClient, guest_headers: dict, other_guest_headers: dict, test_property: Property
    ) -> None:
        await _request_booking(client, guest_headers, test_property)

        response = await client.post(
            "/api/v1/bookings",
            json={"property_id": str(test_property.id), "check_in": "2026-04-12", "check_out": "2026-04-14"},
            headers=other_guest_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "unavailable"

    async def test_capacity_exceeded(self, client: AsyncClient, guest_headers: dict, test_property: Property) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json={
                "property_id": str(test_property.id),
                "check_in": CHECK_IN,
                "check_out": CHECK_OUT,
                "guest_count": 9,
            },
            headers=guest_headers,
        )
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "capacity_exceeded"
        assert body["max_guests"] == 4

    async def test_get_visible_to_guest_host_admin(
        self,
        client: AsyncClient,
        guest_headers: dict,
        host_headers: dict,
        admin_headers: dict,
        other_guest_headers: dict,
        test_property: Property,
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        url = f"/api/v1/bookings/{booking['id']}"

        for headers in (guest_headers, host_headers, admin_headers):
            response = await client.get(url, headers=headers)
            assert response.status_code == 200
            assert response.json()["id"] == booking["id"]

        response = await client.get(url, headers=other_guest_headers)
        assert response.status_code == 403

    async def test_get_unknown(self, client: AsyncClient, guest_headers: dict) -> None:
        response = await client.get(f"/api/v1/bookings/{uuid.uuid4()}", headers=guest_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------


class TestLifecycleEndpoints:
    async def test_full_payment_flow(
        self,
        client: AsyncClient,
        guest_headers: dict,
        host_headers: dict,
        admin_headers: dict,
        admin_user: User,
        test_property: Property,
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)

        response = await _post(client, booking, "approve", host_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "awaiting_payment"
        assert Decimal(data["platform_commission"]) == Decimal("38")
        assert Decimal(data["host_payout_amount"]) == Decimal("346")
        assert data["payment_expires_at"] is not None

        response = await _post(
            client,
            booking,
            "mark-paid",
            guest_headers,
            json={"method": "mtn_momo", "reference": "MP260301.1200.X1", "proof_url": "https://files.test/p.png"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "awaiting_confirmation"

        response = await _post(client, booking, "confirm-payment", admin_headers, json={"notes": "OK"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["payment_confirmed_by"] == admin_user.email

        response = await _post(client, booking, "complete", host_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    async def test_rejection_and_retry(
        self, client: AsyncClient, guest_headers: dict, host_headers: dict, admin_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)
        await _post(client, booking, "mark-paid", guest_headers, json={"method": "bank_transfer", "reference": "VIR-1"})

        response = await _post(client, booking, "reject-payment", admin_headers, json={"reason": "No such transfer"})
        assert response.status_code == 200
        assert response.json()["status"] == "payment_failed"
        assert response.json()["payment_notes"] == "No such transfer"

        response = await _post(client, booking, "retry-payment", guest_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "awaiting_payment"

    async def test_approve_conflicts_with_host_blackout(
        self, client: AsyncClient, db_session, guest_headers: dict, host_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        db_session.add(AvailabilityOverride(property_id=test_property.id, day=date(2026, 4, 12), is_available=False))
        await db_session.flush()

        response = await _post(client, booking, "approve", host_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "unavailable"

    async def test_guest_cannot_approve(self, client: AsyncClient, guest_headers: dict, test_property: Property) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        response = await _post(client, booking, "approve", guest_headers)
        assert response.status_code == 403

    async def test_host_cannot_confirm_payment(
        self, client: AsyncClient, guest_headers: dict, host_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)
        await _post(client, booking, "mark-paid", guest_headers, json={"method": "mtn_momo", "reference": "r"})

        response = await _post(client, booking, "confirm-payment", host_headers, json={})
        assert response.status_code == 403

    async def test_other_guest_cannot_pay(
        self,
        client: AsyncClient,
        guest_headers: dict,
        host_headers: dict,
        other_guest_headers: dict,
        test_property: Property,
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)

        response = await _post(
            client, booking, "mark-paid", other_guest_headers, json={"method": "mtn_momo", "reference": "r"}
        )
        assert response.status_code == 403

    async def test_unsupported_payment_method(
        self, client: AsyncClient, guest_headers: dict, host_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)

        response = await _post(client, booking, "mark-paid", guest_headers, json={"method": "cash", "reference": "r"})
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_input"

    async def test_invalid_transition_body(
        self, client: AsyncClient, guest_headers: dict, host_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)

        response = await _post(client, booking, "approve", host_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "invalid_transition"
        assert body["current_status"] == "awaiting_payment"
        assert body["allowed"] == ["awaiting_confirmation", "cancelled", "expired"]

    async def test_guest_cancels(self, client: AsyncClient, guest_headers: dict, test_property: Property) -> None:
        booking = await _request_booking(client, guest_headers, test_property)

        response = await _post(client, booking, "cancel", guest_headers, json={"reason": "Found another place"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancellation_reason"] == "Found another place"
        assert data["cancelled_at"] is not None

    async def test_other_guest_cannot_cancel(
        self, client: AsyncClient, guest_headers: dict, other_guest_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        response = await _post(client, booking, "cancel", other_guest_headers, json={})
        assert response.status_code == 403

    async def test_complete_requires_confirmed(
        self, client: AsyncClient, guest_headers: dict, host_headers: dict, test_property: Property
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        response = await _post(client, booking, "complete", host_headers)
        assert response.status_code == 409
        assert response.json()["current_status"] == "pending"

    async def test_action_events_reach_dispatcher(
        self,
        client: AsyncClient,
        guest_headers: dict,
        host_headers: dict,
        booking_engine: BookingEngine,
        dispatcher,
        test_property: Property,
    ) -> None:
        booking = await _request_booking(client, guest_headers, test_property)
        await _post(client, booking, "approve", host_headers)

        assert [event.type.value for event in dispatcher.events] == ["booking.created", "booking.approved"]
        assert booking_engine.dispatcher is dispatcher
