"""Catalog entities and the query description consumed by product stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(slots=True)
class Category:
    id: str
    name: str
    slug: str


@dataclass(slots=True)
class ProductPhoto:
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class Product:
    """Catalog entry as returned by queries. Photo bytes are never loaded here."""

    id: str
    name: str
    slug: str
    description: str
    price: float
    quantity: int
    category_id: str
    shipping: bool
    has_photo: bool
    created_at: datetime
    updated_at: datetime
    category: Optional[Category] = None


@dataclass(slots=True)
class ProductDraft:
    """Validated field set for creating or replacing a product."""

    name: str
    slug: str
    description: str
    price: float
    quantity: int
    category_id: str
    shipping: bool


@dataclass(slots=True)
class ProductQuery:
    """Conjunctive product lookup.

    Empty ``category_ids`` and ``price_range=None`` leave that dimension
    unconstrained. ``keyword`` matches name OR description, case-insensitively.
    Results are ordered newest first.
    """

    category_ids: List[str] = field(default_factory=list)
    price_range: Optional[Tuple[float, float]] = None
    keyword: Optional[str] = None
    slug: Optional[str] = None
    exclude_id: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0
