from conftest import PASSWORD, auth


def register(client, **overrides):
    body = {"name": "Nia", "email": "nia@test.io", "password": "Strong@123"}
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_returns_tokens(client):
    response = register(client, role="host")

    assert response.status_code == 201
    data = response.json()
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["role"] == "host"


def test_register_cannot_self_assign_admin(client):
    response = register(client, role="admin")
    assert response.json()["user"]["role"] == "guest"


def test_register_rejects_weak_password(client):
    response = register(client, password="password")
    assert response.status_code == 400


def test_register_duplicate_email(client, guest):
    response = register(client, email=guest.email)
    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"


def test_login(client, guest):
    response = client.post("/api/auth/login", json={"email": guest.email, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == guest.id


def test_login_wrong_password(client, guest):
    response = client.post("/api/auth/login", json={"email": guest.email, "password": "Wrong@123"})
    assert response.status_code == 401


def test_refresh_rotates_token(client, guest):
    tokens = client.post("/api/auth/login", json={"email": guest.email, "password": PASSWORD}).json()

    rotated = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    reused = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    assert rotated.status_code == 200
    assert rotated.json()["refresh_token"] != tokens["refresh_token"]
    assert reused.status_code == 401


def test_refresh_requires_token(client):
    response = client.post("/api/auth/refresh", json={})
    assert response.status_code == 400


def test_logout_revokes_refresh_token(client, guest):
    tokens = client.post("/api/auth/login", json={"email": guest.email, "password": PASSWORD}).json()

    client.post("/api/auth/logout", json={"refresh_token": tokens["refresh_token"]})
    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    assert response.status_code == 401


def test_me(client, host):
    response = client.get("/api/auth/me", headers=auth(host))
    assert response.json()["user"]["email"] == host.email


def test_me_with_bad_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_check_email(client, guest):
    assert client.get(f"/api/auth/check-email/{guest.email}").json() == {"exists": True}
    assert client.get("/api/auth/check-email/none@test.io").json() == {"exists": False}
