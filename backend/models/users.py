# backend/models/users.py
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, func

from database import Base


# Closed set of account roles used for access control
class Role(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    USER = "user"


DEFAULT_ROLE = Role.CUSTOMER


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(Role, values_callable=lambda e: [r.value for r in e]), nullable=False, default=DEFAULT_ROLE)
    is_active = Column(Boolean, nullable=False, default=True)

    # Password reset: sha256 of the plaintext token and its expiry, set and cleared together
    reset_password_token = Column(String, nullable=True, index=True)
    reset_password_expire = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def set_reset_token(self, token_hash: str, expires_at) -> None:
        self.reset_password_token = token_hash
        self.reset_password_expire = expires_at

    def clear_reset_token(self) -> None:
        self.reset_password_token = None
        self.reset_password_expire = None
