# backend/routes/admin.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart
from models.log import Log
from models.order import Order
from models.users import Role, User
from routes.auth import ensure_email_free
from schemas.user import AdminUserUpdate, MessageResponse, UserEnvelope, UserResponse, UsersPage
from utils.audit import write_log
from utils.errors import NotFound, ValidationFailed
from utils.permissions import Action, permission_required
from utils.tokenJWT import Identity

router = APIRouter(prefix="/auth", tags=["Admin"])

ADMIN_FIELDS = ("name", "email", "role", "is_active")


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("/users", response_model=UsersPage)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by email"),
    role: Optional[Role] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_USERS)),
):
    query = db.query(User)

    if q:
        query = query.filter(User.email.ilike(f"%{q.lower()}%"))
    if role:
        query = query.filter(User.role == role)

    sort_map = {"id": User.id, "email": User.email, "role": User.role, "name": User.name}
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [UserResponse.model_validate(u) for u in users],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Update name, email, role or active flag of any user (Admin only)
@router.put("/users/{user_id}", response_model=UserEnvelope)
def admin_update_user(
    user_id: int,
    payload: AdminUserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_USERS)),
):
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if field in ADMIN_FIELDS and value is not None
    }
    if "email" in changes and changes["email"] != user.email:
        ensure_email_free(db, changes["email"], user.id)
    if "name" in changes:
        changes["name"] = changes["name"].strip()

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=identity.id, action="USER_UPDATE", resource="users", request=request,
              meta={"target_id": user.id, "fields": sorted(changes)})

    return {"message": "User updated successfully", "user": UserResponse.model_validate(user)}


# Delete a user account (Admin only)
@router.delete("/users/{user_id}", response_model=MessageResponse)
def admin_delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_USERS)),
):
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    # Prevent self-deletion
    if user.id == identity.id:
        raise ValidationFailed("You cannot delete your own account")

    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if cart:
        db.delete(cart)
    # Order history and audit entries outlive the account
    db.query(Order).filter(Order.user_id == user.id).update({Order.user_id: None}, synchronize_session=False)
    db.query(Log).filter(Log.user_id == user.id).update({Log.user_id: None}, synchronize_session=False)

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=identity.id, action="USER_DELETE", resource="users", request=request,
              meta={"target_id": user_id, "email": email})

    return {"message": "User deleted successfully"}
