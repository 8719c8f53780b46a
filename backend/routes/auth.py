# backend/routes/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from models.users import DEFAULT_ROLE, User
from schemas import user as schemas
from utils.audit import write_log
from utils.errors import Conflict, Forbidden, NotFound, Unauthorized, ValidationFailed
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import (
    Identity, create_access_token, generate_reset_token, get_current_identity, hash_reset_token
)

router = APIRouter(prefix="/auth", tags=["Auth"])


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def ensure_email_free(db: Session, email: str, user_id: Optional[int] = None) -> None:
    owner = find_user_by_email(db, email)
    if owner and owner.id != user_id:
        raise Conflict("Email already in use")


# Register a new user; the role is always the default one
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if find_user_by_email(db, payload.email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  request=request, meta={"email": payload.email, "reason": "Email exists"})
        raise Conflict("User already exists")

    new_user = User(
        name=payload.name.strip(),
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role=DEFAULT_ROLE,
        is_active=True,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    token = create_access_token(new_user.id, new_user.role, settings)
    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              request=request, meta={"email": new_user.email})

    return {
        "message": "User registered successfully",
        "user": schemas.UserResponse.model_validate(new_user),
        "token": token,
    }


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.UserLogin,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    db_user = find_user_by_email(db, payload.email)
    if not db_user:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  request=request, meta={"email": payload.email})
        raise Unauthorized("Invalid credentials")

    # Deactivated accounts are refused before the password is compared
    if not db_user.is_active:
        write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="FAIL",
                  request=request, meta={"email": db_user.email, "reason": "Deactivated"})
        raise Forbidden("Account is deactivated")

    if not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="FAIL",
                  request=request, meta={"email": payload.email})
        raise Unauthorized("Invalid credentials")

    token = create_access_token(db_user.id, db_user.role, settings)
    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              request=request, meta={"email": db_user.email})

    return {
        "message": "Login successful",
        "user": schemas.UserResponse.model_validate(db_user),
        "token": token,
    }


# Identity decoded from the caller's token
@router.get("/me", response_model=schemas.IdentityResponse)
def me(identity: Identity = Depends(get_current_identity)):
    return {"data": identity.model_dump(mode="json")}


# Update the caller's own name and/or email
@router.put("/me", response_model=schemas.UserEnvelope)
def update_my_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    user = db.get(User, identity.id)
    if not user:
        raise NotFound("User not found")

    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.email is not None and payload.email != user.email:
        ensure_email_free(db, payload.email, user.id)
        user.email = payload.email

    db.commit()
    db.refresh(user)
    return {"message": "Profile updated successfully", "user": schemas.UserResponse.model_validate(user)}


# Tokens are stateless; the client discards its copy
@router.post("/logout", response_model=schemas.MessageResponse)
def logout(identity: Identity = Depends(get_current_identity)):
    return {"message": "Logout successful"}


@router.post("/change-password", response_model=schemas.MessageResponse)
def change_password(
    payload: schemas.PasswordChange,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    user = db.get(User, identity.id)
    if not user:
        raise NotFound("User not found")

    if not verify_password(payload.current_password, user.password_hash):
        write_log(db, user_id=user.id, action="PASSWORD_CHANGE", resource="auth", status="FAIL", request=request)
        raise Unauthorized("Current password incorrect")

    user.password_hash = get_password_hash(payload.new_password)
    db.commit()
    write_log(db, user_id=user.id, action="PASSWORD_CHANGE", resource="auth", request=request)
    return {"message": "Password changed successfully"}


# Issue a one-time reset token; only its hash and expiry are stored
@router.post("/forgot-password", response_model=schemas.ForgotPasswordResponse)
def forgot_password(
    payload: schemas.ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = find_user_by_email(db, payload.email)
    if not user:
        raise NotFound("User not found")

    reset_token, token_hash = generate_reset_token()
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    user.set_reset_token(token_hash, expires_at)
    db.commit()

    write_log(db, user_id=user.id, action="PASSWORD_FORGOT", resource="auth", request=request)

    # TODO: deliver reset_url by email instead of returning the token in the response
    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/auth/reset-password/{reset_token}"
    return {
        "message": "Password reset link generated",
        "reset_token": reset_token,
        "reset_url": reset_url,
        "expires_at": expires_at,
    }


@router.post("/reset-password/{reset_token}", response_model=schemas.MessageResponse)
def reset_password(
    reset_token: str,
    payload: schemas.ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(
        User.reset_password_token == hash_reset_token(reset_token),
        User.reset_password_expire > datetime.now(timezone.utc),
    ).first()
    if not user:
        raise ValidationFailed("Invalid or expired reset token")

    user.password_hash = get_password_hash(payload.password)
    user.clear_reset_token()
    db.commit()

    write_log(db, user_id=user.id, action="PASSWORD_RESET", resource="auth", request=request)
    return {"message": "Password reset successfully"}
