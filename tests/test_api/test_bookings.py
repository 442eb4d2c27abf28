"""Tests for the booking endpoints: quote, details, payment, cancel and receipt."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.models.booking import Booking
from staydesk.models.room import Room
from staydesk.models.user import User
from tests.helpers import future_stay, headers_for, hotel_today

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _booking_payload(room_id: int, start: str, end: str, **overrides) -> dict:
    payload = {
        "room_id": room_id,
        "start_date": start,
        "end_date": end,
        "guest_name": "Amani Kabila",
        "guest_email": "amani@test.com",
        "guest_phone": "+243 970 000 000",
    }
    payload.update(overrides)
    return payload


async def _create_booking(client: AsyncClient, headers: dict, room_id: int, offset: int = 30, nights: int = 3, **kw):
    start, end = future_stay(offset, nights)
    response = await client.post("/api/v1/bookings", json=_booking_payload(room_id, start, end, **kw), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _pay(client: AsyncClient, headers: dict, booking_id: int, method: str = "orange_money", ref: str | None = "OM-1"):
    return await client.post(
        f"/api/v1/bookings/{booking_id}/payments",
        json={"method": method, "transaction_ref": ref},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# POST /api/v1/bookings/quote
# ---------------------------------------------------------------------------


class TestQuote:
    async def test_plain_quote(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        start, end = future_stay(nights=3)
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": start, "end_date": end},
            headers=guest_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["nights"] == 3
        assert data["base_total"] == 300
        assert data["discount"] == 0
        assert data["final_total"] == 300
        assert data["display_total"] == "$300.00"
        assert data["available"] is True
        assert data["promotion_cleared"] is False

    async def test_quote_with_promotion(
        self, client: AsyncClient, guest_headers: dict, test_room: Room, make_promotion
    ):
        promotion = await make_promotion(discount_percent=10)
        start, end = future_stay(nights=3)
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": start, "end_date": end, "promotion_id": promotion.id},
            headers=guest_headers,
        )
        data = response.json()
        assert data["promotion_id"] == promotion.id
        assert data["discount"] == pytest.approx(30)
        assert data["final_total"] == pytest.approx(270)

    async def test_quote_clears_ineligible_promotion(
        self, client: AsyncClient, guest_headers: dict, test_room: Room, make_promotion
    ):
        promotion = await make_promotion(title="Long Stay", minimum_amount=250)
        start, end = future_stay(nights=2)
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": start, "end_date": end, "promotion_id": promotion.id},
            headers=guest_headers,
        )
        data = response.json()
        assert data["promotion_cleared"] is True
        assert data["promotion_id"] is None
        assert data["discount"] == 0
        assert data["final_total"] == 200
        assert data["notice"] == "Long Stay no longer applies to this stay and was removed."

    async def test_quote_reports_unavailable(
        self, client: AsyncClient, guest_headers: dict, staff_headers: dict, test_room: Room
    ):
        booking = await _create_booking(client, guest_headers, test_room.id)
        await _pay(client, guest_headers, booking["id"])

        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": booking["start_date"], "end_date": booking["end_date"]},
            headers=staff_headers,
        )
        assert response.json()["available"] is False

    async def test_quote_room_under_maintenance(
        self, client: AsyncClient, guest_headers: dict, db_session: AsyncSession, test_room: Room
    ):
        test_room.status = "maintenance"
        await db_session.flush()
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": start, "end_date": end},
            headers=guest_headers,
        )
        data = response.json()
        assert data["final_total"] == 300
        assert data["available"] is False

    async def test_quote_empty_range(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        start, _ = future_stay()
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"room_id": test_room.id, "start_date": start, "end_date": start},
            headers=guest_headers,
        )
        data = response.json()
        assert (data["nights"], data["final_total"], data["available"]) == (0, 0, False)


# ---------------------------------------------------------------------------
# POST /api/v1/bookings
# ---------------------------------------------------------------------------


class TestCreateBooking:
    async def test_create_success(self, client: AsyncClient, guest_headers: dict, guest_user: User, test_room: Room):
        data = await _create_booking(client, guest_headers, test_room.id, nights=3)
        assert data["status"] == "pending_payment"
        assert data["step"] == 2
        assert data["user_id"] == str(guest_user.id)
        assert (data["base_price"], data["discount_amount"], data["total_price"]) == (300, 0, 300)

    async def test_create_with_fixed_promotion(
        self, client: AsyncClient, guest_headers: dict, db_session: AsyncSession, test_room: Room, make_promotion
    ):
        promotion = await make_promotion(discount_type="fixed", discount_percent=0, discount_amount=20, maximum_uses=5)
        data = await _create_booking(client, guest_headers, test_room.id, nights=3, promotion_id=promotion.id)
        assert data["promotion_id"] == promotion.id
        assert data["discount_amount"] == 60
        assert data["total_price"] == 240

        await db_session.refresh(promotion)
        assert promotion.current_uses == 1

    async def test_ineligible_promotion_rejected(
        self, client: AsyncClient, guest_headers: dict, test_room: Room, make_promotion
    ):
        promotion = await make_promotion(maximum_uses=1, current_uses=1)
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings",
            json=_booking_payload(test_room.id, start, end, promotion_id=promotion.id),
            headers=guest_headers,
        )
        assert response.status_code == 422

    async def test_missing_name(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings", json=_booking_payload(test_room.id, start, end, guest_name="  "), headers=guest_headers
        )
        assert response.status_code == 422
        assert "guest name" in response.json()["detail"]

    async def test_end_before_start(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings", json=_booking_payload(test_room.id, end, start), headers=guest_headers
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Check-out date must be after check-in date"

    async def test_unknown_room(self, client: AsyncClient, guest_headers: dict):
        start, end = future_stay()
        response = await client.post("/api/v1/bookings", json=_booking_payload(9999, start, end), headers=guest_headers)
        assert response.status_code == 404

    async def test_room_under_maintenance(
        self, client: AsyncClient, guest_headers: dict, db_session: AsyncSession, test_room: Room
    ):
        test_room.status = "maintenance"
        await db_session.flush()
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings", json=_booking_payload(test_room.id, start, end), headers=guest_headers
        )
        assert response.status_code == 409

    async def test_backend_failure_is_translated(
        self,
        client: AsyncClient,
        guest_headers: dict,
        db_session: AsyncSession,
        test_room: Room,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def failing_flush(objects=None):
            # The insert never reaches the database.
            for obj in list(db_session.new):
                db_session.expunge(obj)
            raise DBAPIError(
                "INSERT INTO bookings", {}, Exception("FOREIGN KEY constraint failed")
            )

        monkeypatch.setattr(db_session, "flush", failing_flush)
        start, end = future_stay()
        response = await client.post(
            "/api/v1/bookings", json=_booking_payload(test_room.id, start, end), headers=guest_headers
        )
        monkeypatch.undo()

        assert response.status_code == 400
        assert response.json()["detail"] == "A referenced record no longer exists."
        count = await db_session.scalar(select(func.count()).select_from(Booking))
        assert count == 0

    async def test_unpaid_booking_does_not_block(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        await _create_booking(client, guest_headers, test_room.id, offset=30, nights=3)
        await _create_booking(client, guest_headers, test_room.id, offset=30, nights=3)

    async def test_overlap_with_active_booking(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        first = await _create_booking(client, guest_headers, test_room.id, offset=30, nights=4)
        await _pay(client, guest_headers, first["id"])

        start, end = future_stay(32, 3)
        response = await client.post(
            "/api/v1/bookings", json=_booking_payload(test_room.id, start, end), headers=guest_headers
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Room is already booked for the selected dates"

    async def test_back_to_back_allowed(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        first = await _create_booking(client, guest_headers, test_room.id, offset=30, nights=3)
        await _pay(client, guest_headers, first["id"])
        await _create_booking(client, guest_headers, test_room.id, offset=33, nights=2)

    async def test_checkout_cutoff_releases_room(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        guest_user: User,
        guest_headers: dict,
        admin_headers: dict,
        test_room: Room,
    ):
        today = hotel_today()
        db_session.add(
            Booking(
                room_id=test_room.id,
                user_id=guest_user.id,
                start_date=today - timedelta(days=2),
                end_date=today,
                status="confirmed",
                base_price=200,
                discount_amount=0,
                total_price=200,
                guest_name="Leaving Today",
                guest_email="leaving@test.com",
            )
        )
        await db_session.flush()

        # With a midnight cutoff the stay ending today has already expired.
        response = await client.put(
            "/api/v1/settings/check_in",
            json={"value": {"kind": "check_in", "checkout_cutoff": "00:00:00", "timezone": "Africa/Lubumbashi"}},
            headers=admin_headers,
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/v1/bookings",
            json=_booking_payload(
                test_room.id, (today - timedelta(days=1)).isoformat(), (today + timedelta(days=1)).isoformat()
            ),
            headers=guest_headers,
        )
        assert response.status_code == 201


# ---------------------------------------------------------------------------
# GET /api/v1/bookings
# ---------------------------------------------------------------------------


class TestListAndGetBookings:
    async def test_guest_sees_only_own(
        self, client: AsyncClient, make_user, guest_headers: dict, staff_headers: dict, test_room: Room
    ):
        other_headers = headers_for(await make_user("guest"))
        await _create_booking(client, guest_headers, test_room.id, offset=30)
        other = await _create_booking(client, other_headers, test_room.id, offset=40)

        own = await client.get("/api/v1/bookings", headers=guest_headers)
        assert own.json()["total"] == 1

        everyone = await client.get("/api/v1/bookings", headers=staff_headers)
        assert everyone.json()["total"] == 2

        hidden = await client.get(f"/api/v1/bookings/{other['id']}", headers=guest_headers)
        assert hidden.status_code == 404

    async def test_filter_by_status(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        first = await _create_booking(client, guest_headers, test_room.id, offset=30)
        await _create_booking(client, guest_headers, test_room.id, offset=40)
        await _pay(client, guest_headers, first["id"])

        response = await client.get(
            "/api/v1/bookings", params={"status": "pending_verification"}, headers=guest_headers
        )
        assert [b["id"] for b in response.json()["items"]] == [first["id"]]

    async def test_get_own_booking(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await client.get(f"/api/v1/bookings/{booking['id']}", headers=guest_headers)
        assert response.status_code == 200
        assert response.json()["guest_name"] == "Amani Kabila"


# ---------------------------------------------------------------------------
# Payment, cancel, receipt
# ---------------------------------------------------------------------------


class TestPaymentStep:
    async def test_mobile_money_needs_verification(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await _pay(client, guest_headers, booking["id"], "Vodacom M-Pesa DRC", " MP-77 ")
        assert response.status_code == 201
        data = response.json()
        assert data["booking"]["status"] == "pending_verification"
        assert data["booking"]["step"] == 3
        assert data["payment"]["method"] == "vodacom_mpesa"
        assert data["payment"]["method_display"] == "Vodacom M-Pesa"
        assert data["payment"]["transaction_ref"] == "MP-77"
        assert data["payment"]["needs_verification"] is True
        assert data["payment"]["amount"] == booking["total_price"]

    async def test_reference_required(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await _pay(client, guest_headers, booking["id"], "airtel_money", None)
        assert response.status_code == 422
        assert response.json()["detail"] == "A transaction reference is required for this payment method"

    async def test_method_required(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await _pay(client, guest_headers, booking["id"], "  ", None)
        assert response.status_code == 422

    async def test_cash_by_staff_confirms(
        self, client: AsyncClient, guest_headers: dict, staff_headers: dict, test_room: Room
    ):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await _pay(client, staff_headers, booking["id"], "cash", None)
        assert response.status_code == 201
        data = response.json()
        assert data["booking"]["status"] == "confirmed"
        assert data["payment"]["status"] == "completed"
        assert data["payment"]["transaction_ref"].startswith("CASH-")
        assert data["payment"]["method_display"] == "Cash Payment"

    async def test_cash_by_guest_needs_verification(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await _pay(client, guest_headers, booking["id"], "cash", None)
        assert response.json()["booking"]["status"] == "pending_verification"

    async def test_cannot_pay_twice(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        await _pay(client, guest_headers, booking["id"])
        response = await _pay(client, guest_headers, booking["id"])
        assert response.status_code == 409


class TestCancel:
    async def test_guest_cancels_unpaid(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=guest_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_guest_cannot_cancel_paid(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        await _pay(client, guest_headers, booking["id"])
        response = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=guest_headers)
        assert response.status_code == 409

    async def test_staff_cancel_frees_dates(
        self, client: AsyncClient, guest_headers: dict, staff_headers: dict, test_room: Room
    ):
        booking = await _create_booking(client, guest_headers, test_room.id)
        await _pay(client, guest_headers, booking["id"])
        response = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=staff_headers)
        assert response.status_code == 200

        again = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=staff_headers)
        assert again.status_code == 409

        await _create_booking(client, guest_headers, test_room.id)


class TestReceipt:
    async def test_receipt_after_payment(
        self, client: AsyncClient, guest_headers: dict, staff_headers: dict, test_room: Room, make_promotion
    ):
        promotion = await make_promotion(title="Ten Percent", discount_percent=10)
        booking = await _create_booking(client, guest_headers, test_room.id, nights=3, promotion_id=promotion.id)
        await _pay(client, staff_headers, booking["id"], "cash", None)

        response = await client.get(f"/api/v1/bookings/{booking['id']}/receipt", headers=guest_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["room_name"] == "Room 101"
        assert data["nights"] == 3
        assert data["nightly_rate"] == "$100.00"
        assert data["base_price"] == "$300.00"
        assert data["discount"] == "$30.00"
        assert data["total"] == "$270.00"
        assert data["promotion_title"] == "Ten Percent"
        assert [p["method"] for p in data["payments"]] == ["Cash Payment"]

    async def test_no_receipt_before_payment(self, client: AsyncClient, guest_headers: dict, test_room: Room):
        booking = await _create_booking(client, guest_headers, test_room.id)
        response = await client.get(f"/api/v1/bookings/{booking['id']}/receipt", headers=guest_headers)
        assert response.status_code == 409
