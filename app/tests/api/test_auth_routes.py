from datetime import timedelta
from unittest.mock import patch

from app.core.security import limiter
from app.services.auth_services import create_access_token

GOOGLE_CLAIMS = {
    "iss": "https://accounts.google.com",
    "sub": "1234567890",
    "email": "grace@example.com",
    "email_verified": True,
    "name": "Grace Hopper",
    "picture": "https://example.com/grace.png",
}


def test_sign_up_starts_session(client, sign_up):
    user = sign_up("Alice@Example.com", display_name="Alice")

    assert user["email"] == "alice@example.com"
    assert "hashed_password" not in user
    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]


def test_duplicate_sign_up_does_not_create_second_user(client, sign_up, sign_in):
    original = sign_up("alice@example.com")

    response = client.post(
        "/auth/sign-up",
        json={"display_name": "Other Alice", "email": "ALICE@example.com", "password": "An0ther!pass"},
    )

    assert response.status_code == 409
    assert sign_in("alice@example.com")["id"] == original["id"]
    assert client.get("/auth/me").json()["display_name"] == "Tester"


def test_sign_up_rejects_weak_password(client):
    response = client.post(
        "/auth/sign-up", json={"display_name": "Alice", "email": "alice@example.com", "password": "short"}
    )

    assert response.status_code == 400
    messages = {error["msg"] for error in response.json()["detail"]}
    assert {"8_characters_long", "one_digit", "one_uppercase", "one_special"} <= messages


def test_sign_up_rejects_invalid_email(client):
    response = client.post(
        "/auth/sign-up", json={"display_name": "Alice", "email": "not-an-email", "password": "Sup3r$ecret"}
    )

    assert response.status_code == 400
    assert response.json()["detail"][0]["loc"] == ["email"]


def test_sign_in_with_wrong_password_is_unauthenticated(client, sign_up):
    sign_up("alice@example.com")
    client.post("/auth/sign-out")

    response = client.post("/auth/sign-in", json={"email": "alice@example.com", "password": "Wr0ng!pass"})

    assert response.status_code == 401
    assert client.get("/auth/me").status_code == 401


def test_sign_in_with_unknown_email_is_unauthenticated(client):
    response = client.post("/auth/sign-in", json={"email": "nobody@example.com", "password": "Sup3r$ecret"})

    assert response.status_code == 401


def test_sign_out_clears_session(client, sign_up):
    sign_up("alice@example.com")

    response = client.post("/auth/sign-out")

    assert response.status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_me_without_session_is_unauthenticated(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_bearer_token_is_accepted(client, sign_up):
    user = sign_up("alice@example.com")
    client.cookies.clear()
    token = create_access_token({"sub": str(user["id"])})

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["id"] == user["id"]


def test_expired_token_is_unauthenticated(client, sign_up):
    user = sign_up("alice@example.com")
    client.cookies.clear()
    token = create_access_token({"sub": str(user["id"])}, expires_delta=timedelta(minutes=-5))

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_for_missing_user_is_unauthenticated(client):
    token = create_access_token({"sub": "4242"})

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_google_sign_in_creates_user_once(client):
    with patch("app.services.auth_services.id_token.verify_oauth2_token", return_value=dict(GOOGLE_CLAIMS)):
        first = client.post("/auth/google", json={"credential": "google-id-token"})
        client.post("/auth/sign-out")
        second = client.post("/auth/google", json={"credential": "google-id-token"})

    assert first.status_code == 200
    assert second.status_code == 200
    user = first.json()["user"]
    assert user["display_name"] == "Grace Hopper"
    assert user["avatar_url"] == "https://example.com/grace.png"
    assert second.json()["user"]["id"] == user["id"]
    assert client.get("/auth/me").json()["id"] == user["id"]


def test_google_sign_in_reuses_password_account_with_same_email(client, sign_up):
    existing = sign_up("grace@example.com", display_name="Grace")
    client.post("/auth/sign-out")

    with patch("app.services.auth_services.id_token.verify_oauth2_token", return_value=dict(GOOGLE_CLAIMS)):
        response = client.post("/auth/google", json={"credential": "google-id-token"})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == existing["id"]


def test_google_sign_in_rejects_invalid_credential(client):
    with patch(
        "app.services.auth_services.id_token.verify_oauth2_token",
        side_effect=ValueError("Token used too late"),
    ):
        response = client.post("/auth/google", json={"credential": "forged"})

    assert response.status_code == 401


def test_google_sign_in_requires_verified_email(client):
    claims = dict(GOOGLE_CLAIMS, email_verified=False)
    with patch("app.services.auth_services.id_token.verify_oauth2_token", return_value=claims):
        response = client.post("/auth/google", json={"credential": "google-id-token"})

    assert response.status_code == 401


def test_google_sign_in_when_not_configured(client):
    with patch("app.services.auth_services.settings.GOOGLE_CLIENT_ID", None):
        response = client.post("/auth/google", json={"credential": "google-id-token"})

    assert response.status_code == 401


def test_federated_account_cannot_sign_in_with_password(client):
    with patch("app.services.auth_services.id_token.verify_oauth2_token", return_value=dict(GOOGLE_CLAIMS)):
        client.post("/auth/google", json={"credential": "google-id-token"})
    client.post("/auth/sign-out")

    response = client.post("/auth/sign-in", json={"email": "grace@example.com", "password": "Sup3r$ecret"})

    assert response.status_code == 401


def test_sign_up_rejects_password_longer_than_bcrypt_accepts(client):
    response = client.post(
        "/auth/sign-up",
        json={"display_name": "Alice", "email": "alice@example.com", "password": "Aa1!" + "x" * 80},
    )

    assert response.status_code == 400
    assert "max_72_bytes" in {error["msg"] for error in response.json()["detail"]}


def test_sign_in_with_overlong_password_is_unauthenticated(client, sign_up):
    sign_up("alice@example.com")
    client.post("/auth/sign-out")

    response = client.post("/auth/sign-in", json={"email": "alice@example.com", "password": "Aa1!" + "x" * 80})

    assert response.status_code == 401


def test_valid_bearer_token_wins_over_stale_cookie(client, sign_up):
    user = sign_up("alice@example.com")
    client.cookies.clear()
    token = create_access_token({"sub": str(user["id"])})

    response = client.get(
        "/auth/me",
        headers={"Cookie": "access_token=stale-token", "Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json()["id"] == user["id"]


def test_stale_cookie_alone_is_unauthenticated(client):
    response = client.get("/auth/me", headers={"Cookie": "access_token=stale-token"})

    assert response.status_code == 401


def test_repeated_sign_in_is_rate_limited(client):
    limiter.reset()
    try:
        with patch("app.core.security.settings.AUTH_RATE_LIMIT", "2/minute"):
            statuses = [
                client.post(
                    "/auth/sign-in", json={"email": "nobody@example.com", "password": "Sup3r$ecret"}
                ).status_code
                for _ in range(3)
            ]
    finally:
        limiter.reset()

    assert statuses == [401, 401, 429]
