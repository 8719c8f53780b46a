# backend/routes/products.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product, ProductCategory
import schemas.product as product_schemas
from schemas.user import MessageResponse
from utils.errors import NotFound
from utils.permissions import Action, permission_required
from utils.tokenJWT import Identity

router = APIRouter(prefix="/products", tags=["Products"])


def _get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


def _out(product: Product) -> product_schemas.ProductOut:
    return product_schemas.ProductOut.model_validate(product)


# Public catalog listing with filters and pagination
@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    name: Optional[str] = Query(None),
    category: Optional[ProductCategory] = Query(None),
    in_stock: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("id"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)

    if name:
        query = query.filter(Product.name.ilike(f"%{name}%"))
    if category:
        query = query.filter(Product.category == category.value)
    if in_stock is True:
        query = query.filter(Product.stock_quantity > 0)
    elif in_stock is False:
        query = query.filter(Product.stock_quantity <= 0)

    allowed = {
        "id": Product.id, "name": Product.name, "price": Product.price,
        "stock_quantity": Product.stock_quantity, "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by.lower(), Product.id)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": [_out(p) for p in items], "total": total, "page": page, "page_size": page_size}


@router.get("/{product_id}", response_model=product_schemas.ProductEnvelope)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return {"message": "Product retrieved successfully", "product": _out(_get_product(db, product_id))}


@router.post("", response_model=product_schemas.ProductEnvelope, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    data = payload.model_dump()
    data["category"] = payload.category.value
    data["name"] = payload.name.strip()

    product = Product(**data)
    db.add(product)
    db.commit()
    db.refresh(product)
    return {"message": "Product created successfully", "product": _out(product)}


# Partial update; omitted fields keep their values
@router.put("/{product_id}", response_model=product_schemas.ProductEnvelope)
def update_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    product = _get_product(db, product_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        if field == "category":
            value = ProductCategory(value).value
        setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return {"message": "Product updated successfully", "product": _out(product)}


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_CATALOG)),
):
    product = _get_product(db, product_id)
    db.delete(product)
    db.commit()
    return {"message": "Product deleted successfully"}
