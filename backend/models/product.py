# backend/models/product.py
import enum

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Float, Integer, String, func

from database import Base


class ProductCategory(str, enum.Enum):
    ELECTRONICS = "Electronics"
    ACCESSORIES = "Accessories"
    CLOTHING = "Clothing"
    BOOKS = "Books"


# Model Product
# A single catalog entry. The category name and id are copied here rather
# than referenced, and orders snapshot name/price so edits never rewrite history.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, index=True)

    category = Column(String, nullable=False, index=True)
    category_id = Column(Integer, nullable=True)
    description = Column(String, nullable=True)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    # Image URLs
    images = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def in_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0
