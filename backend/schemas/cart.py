from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# Request schema for a single cart line
class CartItemIn(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


# Request schema for creating a cart or replacing its items
class CartItemsPayload(BaseModel):
    items: List[CartItemIn] = Field(default_factory=list)


# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    unit_price: float
    line_total: float


# Response schema for the entire cart summary
class CartOut(BaseModel):
    id: int
    user_id: int
    items: List[CartItemOut]
    total: float
    updated_at: Optional[datetime] = None


class CartEnvelope(BaseModel):
    success: bool = True
    message: str
    cart: CartOut


class CartList(BaseModel):
    success: bool = True
    message: str
    carts: List[CartOut]
