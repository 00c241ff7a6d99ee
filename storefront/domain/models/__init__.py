"""Domain models for the storefront backend."""

from .catalog import Category, Product, ProductDraft, ProductPhoto, ProductQuery
from .order import Order, OrderStatus, PaymentResult
from .user import ProfilePatch, User, UserRole

__all__ = [
    "Category",
    "Order",
    "OrderStatus",
    "PaymentResult",
    "Product",
    "ProductDraft",
    "ProductPhoto",
    "ProductQuery",
    "ProfilePatch",
    "User",
    "UserRole",
]
