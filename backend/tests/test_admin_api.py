from sqlalchemy import select

from conftest import TestingSessionLocal, auth, day, fetch, make_booking, make_property, persist, run
from rentals.db.models import Amenity, Category, LocationFeature, User, property_amenities


def test_admin_creates_category(client, admin):
    response = client.post(
        "/api/admin/categories",
        json={"name": "  Cabin ", "description": "Small wooden houses"},
        headers=auth(admin),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Cabin"
    assert data["created_by"]["id"] == admin.id


def test_category_name_required(client, admin):
    response = client.post("/api/admin/categories", json={"name": ""}, headers=auth(admin))
    assert response.status_code == 400
    assert response.json()["message"] == "Name is required"


def test_duplicate_category_conflicts(client, admin, taxonomy):
    response = client.post("/api/admin/categories", json={"name": "Apartment"}, headers=auth(admin))
    assert response.status_code == 409


def test_non_admin_cannot_manage_taxonomy(client, host):
    response = client.post("/api/admin/amenities", json={"name": "Sauna"}, headers=auth(host))
    assert response.status_code == 403


def test_any_user_can_list_taxonomy(client, guest, taxonomy):
    response = client.get("/api/admin/categories", headers=auth(guest))
    assert [c["name"] for c in response.json()] == ["Apartment"]


def test_update_amenity(client, admin):
    amenity = persist(Amenity(name="Wifi", icon="wifi", created_by_id=admin.id))

    response = client.put(
        f"/api/admin/amenities/{amenity.id}",
        json={"name": "WiFi", "icon": "signal"},
        headers=auth(admin),
    )

    assert response.status_code == 200
    assert response.json()["icon"] == "signal"
    assert fetch(Amenity, amenity.id).name == "WiFi"


def test_update_unknown_item(client, admin):
    response = client.put(
        "/api/admin/location-features/404", json={"name": "Nowhere"}, headers=auth(admin)
    )
    assert response.status_code == 404


def test_category_in_use_cannot_be_deleted(client, admin, host, taxonomy):
    make_property(host, taxonomy)

    response = client.delete(f"/api/admin/categories/{taxonomy['category'].id}", headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete: 1 properties are using this category"
    assert fetch(Category, taxonomy["category"].id) is not None


def test_deleting_amenity_detaches_it(client, admin, host, taxonomy, listing):
    amenity = persist(Amenity(name="Pool", created_by_id=admin.id))
    client.put(
        f"/api/host/properties/{listing.id}", json={"amenityIds": [amenity.id]}, headers=auth(host)
    )

    response = client.delete(f"/api/admin/amenities/{amenity.id}", headers=auth(admin))

    async def links():
        async with TestingSessionLocal() as session:
            res = await session.execute(select(property_amenities))
            return res.all()

    assert response.status_code == 200
    assert fetch(Amenity, amenity.id) is None
    assert run(links()) == []


def test_delete_location_feature(client, admin):
    feature = persist(LocationFeature(name="Near Park", created_by_id=admin.id))
    response = client.delete(f"/api/admin/location-features/{feature.id}", headers=auth(admin))
    assert response.status_code == 200
    assert fetch(LocationFeature, feature.id) is None


# --- Users ---

def test_users_with_activity_counts(client, admin, host, guest, listing):
    make_booking(listing, guest, day(10), day(12))

    response = client.get("/api/admin/users", headers=auth(admin))

    users = {u["email"]: u for u in response.json()["items"]}
    assert users["host@test.io"]["properties_count"] == 1
    assert users["guest@test.io"]["bookings_count"] == 1
    assert users["admin@test.io"]["reviews_count"] == 0


def test_change_user_role(client, admin, guest):
    response = client.put(f"/api/admin/users/{guest.id}/role", json={"role": "host"}, headers=auth(admin))

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "host"
    assert fetch(User, guest.id).role == "host"


def test_change_role_rejects_unknown_role(client, admin, guest):
    response = client.put(
        f"/api/admin/users/{guest.id}/role", json={"role": "owner"}, headers=auth(admin)
    )
    assert response.status_code == 400


def test_change_role_unknown_user(client, admin):
    response = client.put("/api/admin/users/999/role", json={"role": "host"}, headers=auth(admin))
    assert response.status_code == 404
