from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None


# Schema for partial category updates
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class CategoryEnvelope(BaseModel):
    success: bool = True
    message: str
    category: CategoryOut


class CategoryList(BaseModel):
    success: bool = True
    message: str
    categories: List[CategoryOut]
