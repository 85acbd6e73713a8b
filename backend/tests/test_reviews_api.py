from conftest import auth, day, make_booking, make_property


def review_payload(booking, prop, rating=5, comment="Lovely stay"):
    return {"bookingId": booking.id, "propertyId": prop.id, "rating": rating, "comment": comment}


def test_review_completed_booking(client, guest, listing):
    b = make_booking(listing, guest, day(-10), day(-7), status="completed")

    response = client.post("/api/guest/reviews", json=review_payload(b, listing), headers=auth(guest))

    assert response.status_code == 201
    review = response.json()["review"]
    assert review["rating"] == 5
    assert review["user"]["name"] == "Gina Guest"


def test_second_review_conflicts(client, guest, listing):
    b = make_booking(listing, guest, day(-10), day(-7), status="completed")

    first = client.post("/api/guest/reviews", json=review_payload(b, listing), headers=auth(guest))
    second = client.post(
        "/api/guest/reviews", json=review_payload(b, listing, rating=1), headers=auth(guest)
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["message"] == "Review already exists for this booking"


def test_cannot_review_unfinished_booking(client, guest, listing):
    b = make_booking(listing, guest, day(10), day(12), status="confirmed")
    response = client.post("/api/guest/reviews", json=review_payload(b, listing), headers=auth(guest))
    assert response.status_code == 400
    assert response.json()["message"] == "Can only review completed bookings"


def test_cannot_review_someone_elses_booking(client, guest, other_guest, listing):
    b = make_booking(listing, other_guest, day(-10), day(-7), status="completed")
    response = client.post("/api/guest/reviews", json=review_payload(b, listing), headers=auth(guest))
    assert response.status_code == 403


def test_booking_and_property_must_match(client, guest, host, taxonomy, listing):
    elsewhere = make_property(host, taxonomy, slug="elsewhere")
    b = make_booking(listing, guest, day(-10), day(-7), status="completed")

    response = client.post(
        "/api/guest/reviews", json=review_payload(b, elsewhere), headers=auth(guest)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Booking and property do not match"


def test_rating_out_of_range(client, guest, listing):
    b = make_booking(listing, guest, day(-10), day(-7), status="completed")
    response = client.post(
        "/api/guest/reviews", json=review_payload(b, listing, rating=7), headers=auth(guest)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Rating must be between 1 and 5"


def test_reviews_show_on_property_detail(client, guest, listing):
    b = make_booking(listing, guest, day(-10), day(-7), status="completed")
    client.post("/api/guest/reviews", json=review_payload(b, listing, rating=4), headers=auth(guest))

    response = client.get(f"/api/guest/properties/{listing.slug}")

    detail = response.json()["property"]
    assert detail["average_rating"] == 4
    assert [r["rating"] for r in detail["reviews"]] == [4]
