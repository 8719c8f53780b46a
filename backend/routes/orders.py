# backend/routes/orders.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.order import Order, OrderItem, OrderStatus
from routes.cart import get_user_cart
from schemas.order import OrderCreatePayload, OrderEnvelope, OrderResponse, OrdersPage, OrderUpdate
from utils.audit import write_log
from utils.errors import NotFound, ValidationFailed
from utils.permissions import Action, can, ensure_owner_or, permission_required
from utils.tokenJWT import Identity, get_current_identity

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Cancelled orders cannot be updated"


def _get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


def _order_to_out(order: Order) -> OrderResponse:
    return OrderResponse.model_validate(order)


# Snapshot the caller's cart into a new pending order and empty the cart
@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
def create_order(
    request: Request,
    payload: Optional[OrderCreatePayload] = Body(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    payload = payload or OrderCreatePayload()

    cart = get_user_cart(db, identity.id)
    if not cart or not cart.items:
        raise ValidationFailed("Cart is empty")

    # Name and price come from the product record at order time
    order_items = []
    total = 0.0
    for ci in cart.items:
        product = ci.product
        if product is None:
            raise ValidationFailed(f"Product {ci.product_id} is no longer available")
        order_items.append(OrderItem(
            product_id=product.id, name=product.name, price=product.price, quantity=ci.quantity
        ))
        total += product.price * ci.quantity

    order = Order(
        user_id=identity.id,
        items=order_items,
        total_amount=round(total, 2),
        payment_method=payload.payment_method,
        status=OrderStatus.PENDING,
        is_paid=False,
    )
    db.add(order)

    # Emptied, not deleted; committed together with the order
    cart.items.clear()
    db.commit()
    db.refresh(order)

    logger.info("Order %s created for user %s (%s items)", order.id, identity.id, len(order_items))
    write_log(db, user_id=identity.id, action="ORDER_CREATE", resource="orders", request=request,
              meta={"order_id": order.id, "total": order.total_amount})

    return {"message": "Order created successfully", "order": _order_to_out(order)}


# Admins see every order, everyone else their own
@router.get("", response_model=OrdersPage)
def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    query = db.query(Order)
    if not can(identity, Action.VIEW_ALL_ORDERS):
        query = query.filter(Order.user_id == identity.id)
    if status_filter:
        query = query.filter(Order.status == status_filter)

    total = query.count()
    rows = (
        query.options(joinedload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": [_order_to_out(o) for o in rows], "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order_by_id(
    order_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    order = _get_order(db, order_id)
    ensure_owner_or(identity, order.user_id, Action.VIEW_ALL_ORDERS)
    return {"message": "Order retrieved successfully", "order": _order_to_out(order)}


# Status/payment update (Admin only); marking paid always lands on "paid"
@router.put("/{order_id}", response_model=OrderEnvelope)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_ORDERS)),
):
    order = _get_order(db, order_id)
    if order.is_cancelled:
        raise ValidationFailed(CANCELLED_MESSAGE)

    old_status = order.status
    if payload.status is not None:
        order.status = payload.status

    if payload.is_paid is not None:
        order.is_paid = payload.is_paid
        if payload.is_paid:
            order.paid_at = datetime.now(timezone.utc)
            order.status = OrderStatus.PAID
        else:
            order.paid_at = None
            # An unpaid order cannot stay in "paid"
            if order.status == OrderStatus.PAID:
                order.status = OrderStatus.PENDING

    db.commit()
    db.refresh(order)

    write_log(db, user_id=identity.id, action="ORDER_UPDATE", resource="orders", request=request,
              meta={"order_id": order.id, "old": old_status.value, "new": order.status.value,
                    "is_paid": order.is_paid})

    return {"message": "Order updated successfully", "order": _order_to_out(order)}


# Owner cancels an order that is still pending and unpaid
@router.patch("/{order_id}/cancel", response_model=OrderEnvelope)
def cancel_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == identity.id).first()
    if not order:
        raise NotFound("Order not found")

    if order.is_paid or order.status != OrderStatus.PENDING:
        raise ValidationFailed("Order cannot be cancelled at this stage")

    order.status = OrderStatus.CANCELLED
    db.commit()
    db.refresh(order)

    write_log(db, user_id=identity.id, action="ORDER_CANCEL", resource="orders", request=request,
              meta={"order_id": order.id})

    return {"message": "Order cancelled successfully", "order": _order_to_out(order)}


# Soft delete (Admin only): the order stays, its status becomes cancelled
@router.delete("/{order_id}", response_model=OrderEnvelope)
def delete_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(permission_required(Action.MANAGE_ORDERS)),
):
    order = _get_order(db, order_id)
    if order.is_cancelled:
        raise ValidationFailed(CANCELLED_MESSAGE)

    old_status = order.status
    order.status = OrderStatus.CANCELLED
    db.commit()
    db.refresh(order)

    write_log(db, user_id=identity.id, action="ORDER_DELETE", resource="orders", request=request,
              meta={"order_id": order.id, "old": old_status.value})

    return {"message": "Order cancelled by admin", "order": _order_to_out(order)}
