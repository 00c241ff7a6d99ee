from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from ..models import (
    Category,
    Order,
    OrderStatus,
    PaymentResult,
    Product,
    ProductDraft,
    ProductPhoto,
    ProductQuery,
    User,
    UserRole,
)


class UserRepository(Protocol):
    """Persistence functions related to storefront accounts."""

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone: str,
        address: str,
        answer: str,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        """Insert a user. Raises ``DuplicateUser`` when the email is taken."""
        ...

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        ...

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_user_by_email_and_answer(self, email: str, answer: str) -> Optional[User]:
        ...

    def save_user_profile(self, user: User) -> User:
        """Persist name, phone, address and password hash of ``user``."""
        ...

    def update_user_password(self, user_id: str, password_hash: str) -> None:
        ...

    def set_user_role(self, user_id: str, role: UserRole) -> None:
        ...

    def list_users(self) -> List[User]:
        ...


class CategoryRepository(Protocol):
    """Persistence functions related to product categories."""

    def create_category(self, name: str, slug: str) -> Category:
        """Insert a category. Raises ``DuplicateCategory`` when the name is taken."""
        ...

    def get_category(self, category_id: str) -> Optional[Category]:
        ...

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        ...

    def list_categories(self) -> List[Category]:
        ...


class ProductRepository(Protocol):
    """Persistence functions related to catalog products and their photos."""

    def create_product(self, draft: ProductDraft, photo: Optional[ProductPhoto]) -> Product:
        ...

    def update_product(
        self, product_id: str, draft: ProductDraft, photo: Optional[ProductPhoto]
    ) -> Optional[Product]:
        """Replace the fields of a product; keep the stored photo when ``photo`` is None."""
        ...

    def delete_product(self, product_id: str) -> bool:
        ...

    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    def find_products(self, query: ProductQuery) -> List[Product]:
        ...

    def count_products(self) -> int:
        ...

    def get_product_photo(self, product_id: str) -> Optional[ProductPhoto]:
        ...

    def reserve_stock(self, quantities: Dict[str, int]) -> None:
        """Atomically decrement stock for every product, or for none.

        Raises ``OutOfStock`` when any product lacks the requested quantity.
        """
        ...

    def release_stock(self, quantities: Dict[str, int]) -> None:
        ...


class OrderRepository(Protocol):
    """Persistence functions related to customer orders."""

    def create_order(
        self,
        buyer_id: str,
        product_ids: List[str],
        payment: PaymentResult,
        status: OrderStatus = OrderStatus.NOT_PROCESSED,
    ) -> Order:
        ...

    def get_order(self, order_id: str) -> Optional[Order]:
        ...

    def list_orders(self, buyer_id: Optional[str] = None) -> List[Order]:
        """Orders newest first, with products (no photo) and buyer name populated."""
        ...

    def compare_and_set_order_status(
        self, order_id: str, expected: OrderStatus, status: OrderStatus
    ) -> bool:
        """Set ``status`` only if the stored status still equals ``expected``."""
        ...


class PersistenceGateway(
    UserRepository,
    CategoryRepository,
    ProductRepository,
    OrderRepository,
    Protocol,
):
    """Composite gateway combining every persistence concern used by the app."""

    pass
