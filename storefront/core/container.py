from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from ..application.services.catalog_service import CatalogService
from ..application.services.order_service import OrderService
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    auth_service: AuthService
    catalog_service: CatalogService
    order_service: OrderService
