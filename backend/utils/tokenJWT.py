# utils/tokenJWT.py
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from config import Settings, get_settings
from models.users import Role
from utils.errors import Forbidden, Unauthorized

# auto_error is off so a missing header is reported as 401 by get_current_identity
bearer_scheme = HTTPBearer(auto_error=False)


class InvalidTokenError(Exception):
    pass


# Identity attached to a request after the bearer token has been verified
class Identity(BaseModel):
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# Generate a new JWT access token bound to the user id and role
def create_access_token(user_id: int, role: Role, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "role": Role(role).value, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Identity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    sub = payload.get("sub")
    role = payload.get("role")
    if sub is None or role is None:
        raise InvalidTokenError("Token payload is incomplete")
    try:
        return Identity(id=int(sub), role=Role(role))
    except ValueError as exc:
        raise InvalidTokenError(str(exc)) from exc


# Password reset tokens: the plaintext goes to the user, only the hash is stored
def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)


# Retrieve the identity of the caller from the bearer token
def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized("Unauthorized")
    try:
        return decode_access_token(credentials.credentials, settings)
    except InvalidTokenError:
        # Expired and tampered tokens are reported the same way
        raise Unauthorized("Invalid token")


# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles: Role):
    allowed = {Role(r) for r in allowed_roles}

    def _checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise Forbidden("Access denied")
        return identity

    return _checker

