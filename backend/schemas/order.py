from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from models.order import OrderStatus, PaymentMethod


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    price: float
    quantity: int
    line_total: float


# Input schema for placing an order from the caller's cart
class OrderCreatePayload(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.CARD


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    status: OrderStatus
    payment_method: PaymentMethod
    total_amount: float
    is_paid: bool
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]


class OrderEnvelope(BaseModel):
    success: bool = True
    message: str
    order: OrderResponse


# Schema for paginated order lists
class OrdersPage(BaseModel):
    success: bool = True
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for administrative order updates
class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    is_paid: Optional[bool] = None
