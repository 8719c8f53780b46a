from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field

from models.users import Role


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Emails are compared case-insensitively, so they are stored lower-case
Email = Annotated[EmailStr, BeforeValidator(_normalize_email)]


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes when UTF-8 encoded")
    return value


# bcrypt only accepts 72 bytes, which is fewer than 72 characters for non-ASCII input
Password = Annotated[str, Field(min_length=6, max_length=72), AfterValidator(_check_password_bytes)]


# Shared properties for user models
class UserBase(BaseModel):
    email: Email


# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)


# Schema for user registration requests; any client-supplied role is ignored
class UserCreate(UserBase):
    name: str = Field(min_length=1, max_length=50)
    password: Password


# Output schema for user profile details (never carries the password hash)
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: Role
    is_active: bool
    created_at: Optional[datetime] = None


class UserEnvelope(BaseModel):
    success: bool = True
    message: str
    user: UserResponse


# Register/login result: the user plus a session token
class AuthResponse(UserEnvelope):
    token: str
    token_type: str = "bearer"


class IdentityResponse(BaseModel):
    success: bool = True
    data: dict


# Self-service profile update
class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[Email] = None


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class ForgotPasswordRequest(BaseModel):
    email: Email


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str
    reset_token: str
    reset_url: str
    expires_at: datetime


class ResetPasswordRequest(BaseModel):
    password: Password


# Administrative update; only these fields can be changed
class AdminUserUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[Email] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Schema for paginated user list response
class UsersPage(BaseModel):
    success: bool = True
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
