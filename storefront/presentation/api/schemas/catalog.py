from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreateRequest(BaseModel):
    name: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str


class ProductResponse(BaseModel):
    """Catalog entry without photo bytes; fetch those from the photo endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    description: str
    price: float
    quantity: int
    category_id: str
    category: Optional[CategoryResponse] = None
    shipping: bool
    has_photo: bool
    created_at: datetime
    updated_at: datetime


class ProductFilterRequest(BaseModel):
    categories: List[str] = Field(default_factory=list)
    price_range: Optional[Tuple[float, float]] = None
