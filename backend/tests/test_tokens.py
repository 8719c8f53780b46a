from datetime import timedelta

import pytest
from jose import jwt

from config import Settings
from models.users import Role
from utils.errors import Forbidden
from utils.hashing import get_password_hash, verify_password
from utils.permissions import Action, can, ensure_owner_or, roles_for
from utils.tokenJWT import (
    Identity, InvalidTokenError, create_access_token, decode_access_token, generate_reset_token, hash_reset_token
)

SETTINGS = Settings(SECRET_KEY="unit-test-secret", DATABASE_URL="sqlite://")


def test_token_round_trip_carries_id_and_role():
    token = create_access_token(7, Role.ADMIN, SETTINGS)
    identity = decode_access_token(token, SETTINGS)
    assert identity == Identity(id=7, role=Role.ADMIN)
    assert identity.is_admin


def test_token_expires_after_seven_days_by_default():
    token = create_access_token(1, Role.CUSTOMER, SETTINGS)
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "1"
    assert claims["role"] == "customer"
    assert SETTINGS.ACCESS_TOKEN_EXPIRE_MINUTES == 7 * 24 * 60


def test_token_signed_with_other_key_is_rejected():
    other = Settings(SECRET_KEY="someone-else", DATABASE_URL="sqlite://")
    token = create_access_token(1, Role.CUSTOMER, other)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, SETTINGS)


def test_expired_and_malformed_tokens_are_rejected():
    expired = create_access_token(1, Role.CUSTOMER, SETTINGS, expires_delta=timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        decode_access_token(expired, SETTINGS)
    with pytest.raises(InvalidTokenError):
        decode_access_token("not-a-jwt", SETTINGS)


def test_token_with_unknown_role_is_rejected():
    token = jwt.encode({"sub": "1", "role": "root"}, SETTINGS.SECRET_KEY, algorithm=SETTINGS.ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, SETTINGS)


def test_reset_token_hash_matches():
    plain, hashed = generate_reset_token()
    assert len(plain) == 64
    assert hashed == hash_reset_token(plain)
    assert hashed != plain
    assert generate_reset_token()[0] != plain


def test_password_hashing():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_permissions_table():
    admin = Identity(id=1, role=Role.ADMIN)
    customer = Identity(id=2, role=Role.CUSTOMER)
    assert all(can(admin, action) for action in Action)
    assert not any(can(customer, action) for action in Action)
    assert roles_for(Action.MANAGE_ORDERS) == (Role.ADMIN,)


def test_ensure_owner_or():
    customer = Identity(id=2, role=Role.CUSTOMER)
    ensure_owner_or(customer, 2, Action.VIEW_ALL_ORDERS)
    ensure_owner_or(Identity(id=1, role=Role.ADMIN), 2, Action.VIEW_ALL_ORDERS)
    with pytest.raises(Forbidden):
        ensure_owner_or(customer, 3, Action.VIEW_ALL_ORDERS)
    with pytest.raises(Forbidden):
        ensure_owner_or(customer, None, Action.VIEW_ALL_ORDERS)


def test_postgres_url_is_normalized():
    settings = Settings(DATABASE_URL="postgres://u:p@db/shop")
    assert settings.database_url == "postgresql://u:p@db/shop"


def test_settings_ignore_unknown_keys():
    settings = Settings(DATABASE_URL="sqlite://", ADMIN_EMAIL="root@example.com")
    assert Settings.model_config["extra"] == "ignore"
    assert Settings.model_config["env_file"].endswith(".env")
    assert not hasattr(settings, "ADMIN_EMAIL")
