from datetime import datetime, timedelta, timezone

from config import get_settings
from database import SessionLocal
from models.users import Role, User
from utils.tokenJWT import create_access_token

from conftest import API, PASSWORD, auth, create_user, login, register


def test_register_creates_customer_and_returns_token(client):
    res = client.post(
        f"{API}/auth/register",
        json={"name": "Alice", "email": "Alice@Example.com", "password": PASSWORD, "role": "admin"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "customer"
    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]

    with SessionLocal() as db:
        stored = db.query(User).filter(User.email == "alice@example.com").one()
        assert stored.role == Role.CUSTOMER
        assert stored.password_hash != PASSWORD


def test_register_duplicate_email_is_conflict(client):
    register(client, email="bob@example.com")
    res = client.post(
        f"{API}/auth/register",
        json={"name": "Bob", "email": "BOB@example.com", "password": PASSWORD},
    )
    assert res.status_code == 409
    assert res.json() == {"success": False, "message": "User already exists"}


def test_register_missing_field_is_validation_error(client):
    res = client.post(f"{API}/auth/register", json={"email": "x@example.com", "password": PASSWORD})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_register_rejects_short_password(client):
    res = client.post(f"{API}/auth/register", json={"name": "X", "email": "x@example.com", "password": "123"})
    assert res.status_code == 400


def test_register_rejects_password_over_72_bytes(client):
    # 40 characters, 80 bytes in UTF-8
    res = client.post(f"{API}/auth/register", json={"name": "X", "email": "x@example.com", "password": "é" * 40})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_register_accepts_multibyte_password_within_limit(client):
    register(client, email="zoe@example.com", name="Zoë", password="é" * 36)
    assert login(client, "zoe@example.com", "é" * 36)


def test_password_byte_limit_applies_to_change_and_reset(client, customer):
    _, token = customer
    res = client.post(
        f"{API}/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "é" * 40},
        headers=auth(token),
    )
    assert res.status_code == 400

    reset_token = client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"}).json()["reset_token"]
    res = client.post(f"{API}/auth/reset-password/{reset_token}", json={"password": "é" * 40})
    assert res.status_code == 400


def test_login_success(client):
    register(client, email="carol@example.com")
    res = client.post(f"{API}/auth/login", json={"email": "carol@example.com", "password": PASSWORD})
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Login successful"
    assert body["token"]
    assert body["user"]["email"] == "carol@example.com"


def test_login_wrong_password_returns_no_token(client):
    register(client, email="dave@example.com")
    res = client.post(f"{API}/auth/login", json={"email": "dave@example.com", "password": "wrong-pass"})
    assert res.status_code == 401
    assert "token" not in res.json()


def test_login_unknown_email(client):
    res = client.post(f"{API}/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert res.status_code == 401


def test_login_missing_password(client):
    res = client.post(f"{API}/auth/login", json={"email": "ghost@example.com"})
    assert res.status_code == 400


def test_login_deactivated_account_is_forbidden(client):
    create_user("frozen@example.com", is_active=False)
    res = client.post(f"{API}/auth/login", json={"email": "frozen@example.com", "password": PASSWORD})
    assert res.status_code == 403
    assert "token" not in res.json()


def test_login_deactivated_account_is_forbidden_whatever_the_password(client):
    create_user("frozen@example.com", is_active=False)
    res = client.post(f"{API}/auth/login", json={"email": "frozen@example.com", "password": "nope-nope"})
    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "Account is deactivated"}


def test_me_returns_identity_from_token(client, customer):
    user, token = customer
    res = client.get(f"{API}/auth/me", headers=auth(token))
    assert res.status_code == 200
    assert res.json()["data"] == {"id": user["id"], "role": "customer"}


def test_me_requires_bearer_token(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Token abc"}).status_code == 401


def test_me_rejects_tampered_and_expired_tokens(client, customer):
    user, token = customer
    tampered = token[:-2] + ("aa" if token[-2:] != "aa" else "bb")
    res = client.get(f"{API}/auth/me", headers=auth(tampered))
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid token"

    expired = create_access_token(user["id"], Role.CUSTOMER, get_settings(), expires_delta=timedelta(seconds=-30))
    res = client.get(f"{API}/auth/me", headers=auth(expired))
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid token"


def test_update_profile(client, customer):
    _, token = customer
    res = client.put(f"{API}/auth/me", json={"name": "Alice Cooper"}, headers=auth(token))
    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Alice Cooper"
    assert res.json()["user"]["email"] == "alice@example.com"

    res = client.put(f"{API}/auth/me", json={"email": "Cooper@Example.com"}, headers=auth(token))
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "cooper@example.com"


def test_update_profile_email_taken(client, customer):
    _, token = customer
    register(client, email="taken@example.com", name="Taken")
    res = client.put(f"{API}/auth/me", json={"email": "taken@example.com"}, headers=auth(token))
    assert res.status_code == 409


def test_change_password(client, customer):
    _, token = customer
    res = client.post(
        f"{API}/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "newsecret"},
        headers=auth(token),
    )
    assert res.status_code == 401

    res = client.post(
        f"{API}/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "newsecret"},
        headers=auth(token),
    )
    assert res.status_code == 200
    assert login(client, "alice@example.com", "newsecret")
    res = client.post(f"{API}/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
    assert res.status_code == 401


def test_change_password_for_missing_account(client):
    token = create_access_token(999, Role.CUSTOMER, get_settings())
    res = client.post(
        f"{API}/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "newsecret"},
        headers=auth(token),
    )
    assert res.status_code == 404


def test_forgot_password_unknown_email(client):
    res = client.post(f"{API}/auth/forgot-password", json={"email": "ghost@example.com"})
    assert res.status_code == 404


def test_reset_password_token_is_single_use(client, customer):
    res = client.post(f"{API}/auth/forgot-password", json={"email": "ALICE@example.com"})
    assert res.status_code == 200
    body = res.json()
    reset_token = body["reset_token"]
    assert body["reset_url"].endswith(f"/auth/reset-password/{reset_token}")

    with SessionLocal() as db:
        stored = db.query(User).filter(User.email == "alice@example.com").one()
        assert stored.reset_password_token and stored.reset_password_token != reset_token
        assert stored.reset_password_expire is not None

    res = client.post(f"{API}/auth/reset-password/{reset_token}", json={"password": "brandnew"})
    assert res.status_code == 200
    assert login(client, "alice@example.com", "brandnew")

    with SessionLocal() as db:
        stored = db.query(User).filter(User.email == "alice@example.com").one()
        assert stored.reset_password_token is None
        assert stored.reset_password_expire is None

    res = client.post(f"{API}/auth/reset-password/{reset_token}", json={"password": "another1"})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid or expired reset token"


def test_reset_password_expired_token(client, customer):
    reset_token = client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"}).json()["reset_token"]

    with SessionLocal() as db:
        stored = db.query(User).filter(User.email == "alice@example.com").one()
        stored.reset_password_expire = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()

    res = client.post(f"{API}/auth/reset-password/{reset_token}", json={"password": "brandnew"})
    assert res.status_code == 400


def test_reset_password_requires_password(client, customer):
    reset_token = client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"}).json()["reset_token"]
    res = client.post(f"{API}/auth/reset-password/{reset_token}", json={})
    assert res.status_code == 400


def test_logout(client, customer):
    _, token = customer
    res = client.post(f"{API}/auth/logout", headers=auth(token))
    assert res.status_code == 200
    assert res.json()["success"] is True
