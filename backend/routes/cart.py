# backend/routes/cart.py
from typing import Dict, Iterable

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart, CartItem
from models.product import Product
from schemas.cart import CartEnvelope, CartItemIn, CartItemOut, CartItemsPayload, CartList, CartOut
from schemas.user import MessageResponse
from utils.audit import write_log
from utils.errors import Conflict, Forbidden, NotFound
from utils.permissions import Action, ensure_owner_or, permission_required
from utils.tokenJWT import Identity, get_current_identity

router = APIRouter(prefix="/carts", tags=["Cart"])


def get_user_cart(db: Session, user_id: int) -> Cart:
    return db.query(Cart).filter(Cart.user_id == user_id).first()


def _get_or_create_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create an empty one
    cart = get_user_cart(db, user_id)
    if not cart:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _get_cart(db: Session, cart_id: int) -> Cart:
    cart = db.get(Cart, cart_id)
    if not cart:
        raise NotFound("Cart not found")
    return cart


def _merge_lines(items: Iterable[CartItemIn]) -> Dict[int, int]:
    # Repeated product lines collapse into one line with the summed quantity
    merged: Dict[int, int] = {}
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return merged


def _ensure_products_exist(db: Session, product_ids: Iterable[int]) -> None:
    ids = set(product_ids)
    if not ids:
        return
    found = {pid for (pid,) in db.query(Product.id).filter(Product.id.in_(ids)).all()}
    missing = sorted(ids - found)
    if missing:
        raise NotFound(f"Product not found: {', '.join(str(m) for m in missing)}")


def _replace_items(db: Session, cart: Cart, lines: Dict[int, int]) -> None:
    if cart.items:
        cart.items.clear()
        # Old lines must be deleted before new ones are inserted, (cart, product) is unique
        db.flush()
    for product_id, quantity in lines.items():
        cart.items.append(CartItem(product_id=product_id, quantity=quantity))


def _cart_to_out(cart: Cart) -> CartOut:
    items_out = []
    total = 0.0

    for it in cart.items:
        name = it.product.name if it.product else ""
        unit_price = it.product.price if it.product else 0.0
        line_total = unit_price * it.quantity
        total += line_total

        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=name,
            quantity=it.quantity,
            unit_price=round(unit_price, 2),
            line_total=round(line_total, 2),
        ))

    return CartOut(id=cart.id, user_id=cart.user_id, items=items_out, total=round(total, 2), updated_at=cart.updated_at)


# All carts (Admin only)
@router.get("", response_model=CartList)
def get_all_carts(
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.VIEW_ALL_CARTS)),
):
    carts = db.query(Cart).order_by(Cart.id).all()
    return {"message": "All carts retrieved successfully", "carts": [_cart_to_out(c) for c in carts]}


# The caller's cart, created on first access
@router.get("/me", response_model=CartEnvelope)
def get_my_cart(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    cart = _get_or_create_cart(db, identity.id)
    return {"message": "Cart retrieved successfully", "cart": _cart_to_out(cart)}


# Add a product to the caller's cart, merging with an existing line
@router.post("/me/items", response_model=CartEnvelope)
def add_to_cart(
    payload: CartItemIn,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    _ensure_products_exist(db, [payload.product_id])
    cart = _get_or_create_cart(db, identity.id)

    item = next((it for it in cart.items if it.product_id == payload.product_id), None)
    if item:
        item.quantity += payload.quantity
    else:
        cart.items.append(CartItem(product_id=payload.product_id, quantity=payload.quantity))

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    write_log(db, user_id=identity.id, action="CART_ADD", resource="cart", request=request,
              meta={"product_id": payload.product_id, "quantity": payload.quantity, "total": out.total})
    return {"message": "Item added to cart", "cart": out}


@router.get("/{cart_id}", response_model=CartEnvelope)
def get_cart_by_id(
    cart_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    cart = _get_cart(db, cart_id)
    ensure_owner_or(identity, cart.user_id, Action.VIEW_ALL_CARTS)
    return {"message": "Cart retrieved successfully", "cart": _cart_to_out(cart)}


@router.post("", response_model=CartEnvelope, status_code=status.HTTP_201_CREATED)
def create_cart(
    payload: CartItemsPayload,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    if get_user_cart(db, identity.id):
        raise Conflict("Cart already exists for user")

    lines = _merge_lines(payload.items)
    _ensure_products_exist(db, lines)

    cart = Cart(user_id=identity.id)
    _replace_items(db, cart, lines)
    db.add(cart)
    db.commit()
    db.refresh(cart)

    write_log(db, user_id=identity.id, action="CART_CREATE", resource="cart", request=request,
              meta={"cart_id": cart.id, "items": len(lines)})
    return {"message": "Cart created successfully", "cart": _cart_to_out(cart)}


# Replace the items of the caller's cart wholesale
@router.put("/{cart_id}", response_model=CartEnvelope)
def update_cart(
    cart_id: int,
    payload: CartItemsPayload,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    cart = _get_cart(db, cart_id)
    if cart.user_id != identity.id:
        raise Forbidden("Access denied")

    lines = _merge_lines(payload.items)
    _ensure_products_exist(db, lines)

    _replace_items(db, cart, lines)
    db.commit()
    db.refresh(cart)

    write_log(db, user_id=identity.id, action="CART_UPDATE", resource="cart", request=request,
              meta={"cart_id": cart.id, "items": len(lines)})
    return {"message": "Cart updated successfully", "cart": _cart_to_out(cart)}


@router.delete("/{cart_id}", response_model=MessageResponse)
def delete_cart(
    cart_id: int,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    cart = _get_cart(db, cart_id)
    ensure_owner_or(identity, cart.user_id, Action.MANAGE_ANY_CART)

    db.delete(cart)
    db.commit()

    write_log(db, user_id=identity.id, action="CART_DELETE", resource="cart", request=request,
              meta={"cart_id": cart_id})
    return {"message": "Cart deleted successfully"}
