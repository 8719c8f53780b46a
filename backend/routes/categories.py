# backend/routes/categories.py
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from schemas.category import CategoryCreate, CategoryEnvelope, CategoryList, CategoryOut, CategoryUpdate
from schemas.user import MessageResponse
from utils.errors import Conflict, NotFound
from utils.permissions import Action, permission_required
from utils.tokenJWT import Identity

router = APIRouter(prefix="/categories", tags=["Categories"])


def _get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def _ensure_name_free(db: Session, name: str, category_id: int = None) -> None:
    exists = db.query(Category).filter(func.lower(Category.name) == name.lower()).first()
    if exists and exists.id != category_id:
        raise Conflict("Category already exists")


@router.get("", response_model=CategoryList)
def list_categories(db: Session = Depends(get_db)):
    categories = db.query(Category).order_by(Category.created_at.desc(), Category.id.desc()).all()
    return {
        "message": "All categories retrieved successfully",
        "categories": [CategoryOut.model_validate(c) for c in categories],
    }


@router.get("/{category_id}", response_model=CategoryEnvelope)
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = _get_category(db, category_id)
    return {"message": "Category retrieved successfully", "category": CategoryOut.model_validate(category)}


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    name = payload.name.strip()
    _ensure_name_free(db, name)

    category = Category(name=name, description=payload.description)
    db.add(category)
    db.commit()
    db.refresh(category)
    return {"message": "Category created successfully", "category": CategoryOut.model_validate(category)}


@router.put("/{category_id}", response_model=CategoryEnvelope)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    category = _get_category(db, category_id)

    if payload.name is not None:
        name = payload.name.strip()
        _ensure_name_free(db, name, category.id)
        category.name = name
    if payload.description is not None:
        category.description = payload.description

    db.commit()
    db.refresh(category)
    return {"message": "Category updated successfully", "category": CategoryOut.model_validate(category)}


@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    category = _get_category(db, category_id)
    db.delete(category)
    db.commit()
    return {"message": "Category deleted successfully"}
