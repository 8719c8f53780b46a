# backend/schemas/product.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.product import ProductCategory


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1, max_length=50)
    category: ProductCategory
    category_id: Optional[int] = None
    description: Optional[str] = None
    price: float = Field(ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    images: List[str] = Field(default_factory=list)


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PUT requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[ProductCategory] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None


# Full product representation including ID and derived stock flag
class ProductOut(ProductBase):
    id: int
    in_stock: bool
    created_at: Optional[datetime] = None


class ProductEnvelope(BaseModel):
    success: bool = True
    message: str
    product: ProductOut


# Paginated response for product listings
class ProductListPage(ORMBase):
    success: bool = True
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
