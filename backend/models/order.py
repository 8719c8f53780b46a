# backend/models/order.py
import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum, Float, ForeignKey, Integer, String, func
)
from sqlalchemy.orm import relationship

from database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"


def _enum_values(e):
    return [m.value for m in e]


class Order(Base):
    __tablename__ = "orders"

    # Assigned by the database sequence, never computed from the current maximum
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(Enum(PaymentMethod, values_callable=_enum_values), nullable=False, default=PaymentMethod.CARD)
    status = Column(Enum(OrderStatus, values_callable=_enum_values), nullable=False, default=OrderStatus.PENDING, index=True)

    # Payment state
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED


# Line item snapshot; product_id is kept without a foreign key so catalog
# deletions never touch order history
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False)

    order = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)
