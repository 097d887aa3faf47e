# backend/tests/routes/test_auth_routes.py
from fastapi import status


def test_register_then_login(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "New.Member@Example.com", "password": "longenough1", "name": "New Member"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["email"] == "new.member@example.com"
    assert body["role"] == "user"
    assert "hashedPassword" not in body and "password" not in body

    login = client.post(
        "/api/v1/auth/login", json={"email": "new.member@example.com", "password": "longenough1"}
    )
    assert login.status_code == status.HTTP_200_OK
    token = login.json()
    assert token["token_type"] == "bearer"

    me = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token['access_token']}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["id"] == body["id"]


def test_duplicate_email_conflicts(client, member):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "member@example.com", "password": "longenough1", "name": "Again"},
    )

    assert response.status_code == status.HTTP_409_CONFLICT


def test_wrong_password(client, member):
    response = client.post(
        "/api/v1/auth/login", json={"email": "member@example.com", "password": "wrong-password"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["code"] == "INVALID_CREDENTIALS"


def test_missing_token(client):
    response = client.get("/api/v1/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["code"] == "UNAUTHORIZED"


def test_garbage_token(client):
    response = client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["code"] == "UNAUTHORIZED"


def test_inactive_user_is_rejected(client, make_user, headers_for):
    sleeper = make_user(email="sleeper@example.com", is_active=False)

    response = client.get("/api/v1/me", headers=headers_for(sleeper))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_short_password_is_validation_error(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "short@example.com", "password": "short", "name": "Short"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
