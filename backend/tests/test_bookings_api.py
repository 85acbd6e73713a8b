import asyncio
from datetime import timedelta

from sqlalchemy import func, select

from conftest import TestingSessionLocal, auth, day, fetch, make_booking, make_property, run
from rentals.core.exceptions import ConflictError
from rentals.db.models import Booking, User
from rentals.services import bookings as booking_service


def booking_payload(prop, start, end, guests=2):
    return {
        "propertyId": prop.id,
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "guestCount": guests,
    }


def test_create_booking_success(client, guest, listing):
    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(listing, day(10), day(13)),
        headers=auth(guest),
    )

    assert response.status_code == 201
    data = response.json()["booking"]
    assert data["status"] == "pending"
    assert data["payment_status"] == "unpaid"
    assert data["guest_id"] == guest.id
    assert data["total_price"] == 300
    assert data["property"]["title"] == "Harbour Loft"


def test_create_booking_requires_login(client, listing):
    response = client.post("/api/guest/bookings", json=booking_payload(listing, day(10), day(13)))
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}


def test_overlapping_booking_is_rejected(client, guest, other_guest, listing):
    make_booking(listing, other_guest, day(10), day(13))

    # touching the last day of the existing stay still conflicts
    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(listing, day(13), day(15)),
        headers=auth(guest),
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Property is already booked for the selected dates"


def test_cancelled_booking_frees_the_dates(client, guest, other_guest, listing):
    make_booking(listing, other_guest, day(10), day(13), status="cancelled")

    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(listing, day(11), day(12)),
        headers=auth(guest),
    )
    assert response.status_code == 201


def test_host_cannot_book_own_property(client, host, listing):
    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(listing, day(10), day(13)),
        headers=auth(host),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot book your own property"


def test_booking_in_the_past_is_rejected(client, guest, listing):
    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(listing, day(-2), day(1)),
        headers=auth(guest),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Start date cannot be in the past"


def test_booking_missing_fields_is_a_bad_request(client, guest, listing):
    response = client.post(
        "/api/guest/bookings",
        json={"propertyId": listing.id},
        headers=auth(guest),
    )
    assert response.status_code == 400
    assert "message" in response.json()


def test_booking_unknown_property(client, guest):
    response = client.post(
        "/api/guest/bookings",
        json={"propertyId": 999, "startDate": day(3).isoformat(), "endDate": day(5).isoformat(), "guestCount": 1},
        headers=auth(guest),
    )
    assert response.status_code == 404


def test_monthly_listing_charges_a_fraction(client, guest, host, taxonomy):
    prop = make_property(host, taxonomy, slug="monthly", price=3000, rental_period="MONTH")

    response = client.post(
        "/api/guest/bookings",
        json=booking_payload(prop, day(10), day(25)),
        headers=auth(guest),
    )
    assert response.status_code == 201
    assert response.json()["booking"]["total_price"] == 1500


# --- Availability ---

def test_availability_lists_conflicts(client, other_guest, listing):
    existing = make_booking(listing, other_guest, day(10), day(13), status="confirmed")

    response = client.get(
        f"/api/guest/properties/{listing.id}/availability",
        params={"startDate": day(12).isoformat(), "endDate": day(14).isoformat()},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["available"] is False
    assert data["conflictingDates"] == [
        {"startDate": existing.start_date.isoformat(), "endDate": existing.end_date.isoformat()}
    ]


def test_availability_free_range(client, listing):
    response = client.get(
        f"/api/guest/properties/{listing.id}/availability",
        params={"startDate": day(20).isoformat(), "endDate": day(22).isoformat()},
    )
    assert response.json() == {"available": True}


def test_availability_requires_both_dates(client, listing):
    response = client.get(
        f"/api/guest/properties/{listing.id}/availability",
        params={"startDate": day(20).isoformat()},
    )
    assert response.status_code == 400


# --- Guest listing and cancellation ---

def test_guest_sees_only_own_bookings(client, guest, other_guest, listing):
    mine = make_booking(listing, guest, day(10), day(12))
    make_booking(listing, other_guest, day(20), day(22))

    response = client.get("/api/guest/bookings", headers=auth(guest))

    assert [b["id"] for b in response.json()["items"]] == [mine.id]


def test_guest_cancels_ahead_of_time(client, mocker, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))
    mocker.patch("rentals.services.bookings.utcnow", return_value=b.start_date - timedelta(hours=24))

    response = client.put(f"/api/guest/bookings/{b.id}/cancel", headers=auth(guest))

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"
    assert fetch(Booking, b.id).status == "cancelled"


def test_guest_cannot_cancel_inside_cutoff(client, mocker, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))
    mocker.patch(
        "rentals.services.bookings.utcnow",
        return_value=b.start_date - timedelta(hours=23, minutes=59),
    )

    response = client.put(f"/api/guest/bookings/{b.id}/cancel", headers=auth(guest))

    assert response.status_code == 400
    assert fetch(Booking, b.id).status == "pending"


def test_guest_cannot_cancel_someone_elses_booking(client, guest, other_guest, listing):
    b = make_booking(listing, other_guest, day(10), day(12))
    response = client.put(f"/api/guest/bookings/{b.id}/cancel", headers=auth(guest))
    assert response.status_code == 403


# --- Host status updates ---

def test_host_confirms_booking(client, host, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))

    response = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "confirmed"}, headers=auth(host)
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Booking for Harbour Loft has been confirmed"
    assert fetch(Booking, b.id).status == "confirmed"


def test_other_host_cannot_update_status_but_admin_can(client, other_host, admin, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))

    denied = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "confirmed"}, headers=auth(other_host)
    )
    allowed = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "confirmed"}, headers=auth(admin)
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200


def test_guest_role_cannot_reach_host_routes(client, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))
    response = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "confirmed"}, headers=auth(guest)
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Forbidden: Insufficient permissions"


def test_cancelled_booking_cannot_be_revived(client, host, guest, listing):
    b = make_booking(listing, guest, day(10), day(12), status="cancelled")
    response = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "confirmed"}, headers=auth(host)
    )
    assert response.status_code == 400
    assert fetch(Booking, b.id).status == "cancelled"


def test_invalid_status_value(client, host, guest, listing):
    b = make_booking(listing, guest, day(10), day(12))
    response = client.put(
        f"/api/host/bookings/{b.id}/status", json={"status": "archived"}, headers=auth(host)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status"


def test_booking_outside_listing_window_is_rejected(client, guest, host, taxonomy):
    prop = make_property(host, taxonomy, slug="seasonal", available_from=day(20), available_to=day(40))

    early = client.post(
        "/api/guest/bookings", json=booking_payload(prop, day(18), day(22)), headers=auth(guest)
    )
    late = client.post(
        "/api/guest/bookings", json=booking_payload(prop, day(38), day(41)), headers=auth(guest)
    )

    assert early.status_code == 400
    assert early.json()["message"] == f"Property is only available from {day(20).date().isoformat()}"
    assert late.status_code == 400
    assert late.json()["message"] == f"Property is only available until {day(40).date().isoformat()}"


def test_concurrent_requests_book_the_dates_once(guest, other_guest, listing):
    async def attempt(user_id):
        async with TestingSessionLocal() as session:
            # the request reads its user before booking
            user = await session.get(User, user_id)
            try:
                await booking_service.create_booking(
                    session,
                    guest=user,
                    property_id=listing.id,
                    start_date=day(5),
                    end_date=day(8),
                    guest_count=1,
                )
            except ConflictError:
                return "conflict"
            return "booked"

    async def race():
        return await asyncio.gather(attempt(guest.id), attempt(other_guest.id))

    async def booking_rows():
        async with TestingSessionLocal() as session:
            res = await session.execute(select(func.count(Booking.id)))
            return res.scalar_one()

    assert sorted(run(race())) == ["booked", "conflict"]
    assert run(booking_rows()) == 1
