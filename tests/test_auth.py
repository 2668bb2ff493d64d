from datetime import timedelta

from conftest import create_user
from app.models.user import User
from app.utils.security import create_access_token, decode_token


def register(client, email="new@example.com", password="secret123", name="New Player"):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


def test_register_returns_token_and_user(client, db_session):
    response = register(client, email="New@Example.com", name="  New Player  ")

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["name"] == "New Player"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]

    claims = decode_token(body["token"])
    assert claims["user_id"] == body["user"]["id"]
    assert claims["role"] == "user"
    assert claims["type"] == "access"


def test_register_stores_hashed_password(client, db_session):
    register(client)

    db_session.expire_all()
    user = db_session.query(User).filter(User.email == "new@example.com").one()
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$2")


def test_register_duplicate_email(client, user):
    response = register(client, email=user.email)

    assert response.status_code == 400
    assert response.json() == {"detail": "User already exists"}


def test_register_validation(client):
    short_password = register(client, password="12345")
    assert short_password.status_code == 400
    assert short_password.json()["detail"].startswith("password")

    short_name = register(client, name=" a ")
    assert short_name.status_code == 400

    bad_email = register(client, email="not-an-email")
    assert bad_email.status_code == 400


def test_login_success(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": "Password123!"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == user.id
    assert decode_token(body["token"])["user_id"] == user.id


def test_login_failures_are_indistinguishable(client, user):
    wrong_password = client.post("/api/auth/login", json={"email": user.email, "password": "nope-nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "Password123!"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}


def test_me_returns_stored_profile(client, db_session, user, user_headers):
    # Role comes from the database, not from the token claim
    user.role = "admin"
    db_session.commit()

    response = client.get("/api/auth/me", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"
    assert response.json()["user"]["email"] == user.email


def test_invalid_tokens_all_look_the_same(client, db_session, user):
    expired = create_access_token(user.id, user.role, expires_delta=timedelta(minutes=-1))
    ghost = create_access_token(9999, "user")
    cases = [
        {},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {expired}"},
        {"Authorization": f"Bearer {ghost}"},
    ]

    for headers in cases:
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired token"}


def test_wrongly_signed_token_rejected(client, user):
    from jose import jwt

    forged = jwt.encode({"user_id": user.id, "role": "admin", "type": "access"}, "other-secret", algorithm="HS256")
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401


def test_non_admin_gets_403_on_admin_routes(client, user_headers):
    response = client.post("/api/admin/games", json={"title": "Nope"}, headers=user_headers)

    assert response.status_code == 403
    assert response.json() == {"detail": "Admin access required"}


def test_admin_claim_in_token_is_not_trusted(client, db_session):
    player = create_user(db_session, email="sneaky@example.com")
    token = create_access_token(player.id, "admin")

    response = client.post("/api/admin/games", json={"title": "Nope"}, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
