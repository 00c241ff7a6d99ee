from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ...domain.errors import NotFound, PayloadTooLarge, ValidationFailed
from ...domain.models import Category, Product, ProductDraft, ProductPhoto, ProductQuery
from ...domain.ports.persistence import CategoryRepository, ProductRepository
from ...domain.slugs import slugify

logger = logging.getLogger(__name__)

MAX_PHOTO_BYTES = 1_000_000
PAGE_SIZE = 6
LATEST_LIMIT = 12
RELATED_LIMIT = 3


@dataclass(slots=True)
class ProductFields:
    """Raw catalog-management input. Anything may be missing."""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category_id: Optional[str] = None
    quantity: Optional[int] = None
    shipping: Optional[bool] = None


class CatalogService:
    """Product catalog queries and catalog management."""

    def __init__(self, products: ProductRepository, categories: CategoryRepository) -> None:
        self._products = products
        self._categories = categories

    # Queries ------------------------------------------------------------
    def list_latest(self, limit: int = LATEST_LIMIT) -> List[Product]:
        return self._products.find_products(ProductQuery(limit=limit))

    def list_page(self, page: int = 1, page_size: int = PAGE_SIZE) -> List[Product]:
        if page < 1:
            raise ValidationFailed("Page must be 1 or greater", field="page")
        return self._products.find_products(
            ProductQuery(limit=page_size, offset=(page - 1) * page_size)
        )

    def filter_products(
        self,
        category_ids: Optional[Sequence[str]] = None,
        price_range: Optional[Tuple[float, float]] = None,
    ) -> List[Product]:
        if price_range is not None:
            low, high = price_range
            if low > high:
                raise ValidationFailed("Price range minimum exceeds maximum", field="price_range")
        return self._products.find_products(
            ProductQuery(category_ids=list(category_ids or []), price_range=price_range)
        )

    def search(self, keyword: str) -> List[Product]:
        # an empty keyword would match everything; report nothing instead
        if not keyword.strip():
            return []
        return self._products.find_products(ProductQuery(keyword=keyword.strip()))

    def count(self) -> int:
        return self._products.count_products()

    def related_products(
        self, product_id: str, category_id: str, limit: int = RELATED_LIMIT
    ) -> List[Product]:
        return self._products.find_products(
            ProductQuery(category_ids=[category_id], exclude_id=product_id, limit=limit)
        )

    def get_by_slug(self, slug: str) -> Product:
        found = self._products.find_products(ProductQuery(slug=slug, limit=1))
        if not found:
            raise NotFound("Product not found")
        return found[0]

    def get_by_category_slug(self, slug: str) -> Tuple[Category, List[Product]]:
        category = self._categories.get_category_by_slug(slug)
        if not category:
            raise NotFound("Category not found")
        return category, self._products.find_products(ProductQuery(category_ids=[category.id]))

    def get_photo(self, product_id: str) -> ProductPhoto:
        photo = self._products.get_product_photo(product_id)
        if photo is None:
            raise NotFound("Photo not found")
        return photo

    # Management ---------------------------------------------------------
    def create_product(self, fields: ProductFields, photo: Optional[ProductPhoto] = None) -> Product:
        draft = self._validate(fields, photo)
        product = self._products.create_product(draft, photo)
        logger.info("Product %s (%s) created", product.id, product.slug)
        return product

    def update_product(
        self, product_id: str, fields: ProductFields, photo: Optional[ProductPhoto] = None
    ) -> Product:
        draft = self._validate(fields, photo)
        product = self._products.update_product(product_id, draft, photo)
        if product is None:
            raise NotFound("Product not found")
        logger.info("Product %s (%s) updated", product.id, product.slug)
        return product

    def delete_product(self, product_id: str) -> None:
        if self._products.delete_product(product_id):
            logger.info("Product %s deleted", product_id)

    def _validate(self, fields: ProductFields, photo: Optional[ProductPhoto]) -> ProductDraft:
        name = (fields.name or "").strip()
        description = (fields.description or "").strip()
        category_id = (fields.category_id or "").strip()
        if not name:
            raise ValidationFailed("Name is required", field="name")
        if not description:
            raise ValidationFailed("Description is required", field="description")
        if fields.price is None or fields.price <= 0:
            raise ValidationFailed("Price is required", field="price")
        if not category_id:
            raise ValidationFailed("Category is required", field="category")
        if fields.quantity is None or fields.quantity <= 0:
            raise ValidationFailed("Quantity is required", field="quantity")
        if fields.shipping is None:
            raise ValidationFailed("Shipping is required", field="shipping")
        if photo is not None and photo.size > MAX_PHOTO_BYTES:
            raise PayloadTooLarge()
        if self._categories.get_category(category_id) is None:
            raise ValidationFailed("Category not found", field="category")
        return ProductDraft(
            name=name,
            slug=slugify(name),
            description=description,
            price=float(fields.price),
            quantity=int(fields.quantity),
            category_id=category_id,
            shipping=fields.shipping,
        )

    # Categories ---------------------------------------------------------
    def create_category(self, name: Optional[str]) -> Category:
        clean = (name or "").strip()
        if not clean:
            raise ValidationFailed("Name is required", field="name")
        category = self._categories.create_category(clean, slugify(clean))
        logger.info("Category %s (%s) created", category.id, category.slug)
        return category

    def list_categories(self) -> List[Category]:
        return self._categories.list_categories()

    def get_category_by_slug(self, slug: str) -> Category:
        category = self._categories.get_category_by_slug(slug)
        if not category:
            raise NotFound("Category not found")
        return category
