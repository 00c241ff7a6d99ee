from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from storefront.application.services.auth_service import AuthService
from storefront.application.services.catalog_service import CatalogService, ProductFields
from storefront.application.services.order_service import OrderService
from storefront.core.app_factory import create_application
from storefront.core.config import Settings
from storefront.domain.errors import PaymentGatewayError
from storefront.domain.models import Category, PaymentResult, Product
from storefront.infrastructure.persistence.sqlite import SQLitePersistence
from storefront.services.password_hasher import PasswordHasher
from storefront.services.token_service import TokenService

ADMIN_EMAIL = "admin@shop.test"
ADMIN_PASSWORD = "admin-pass"


class FakePaymentGateway:
    """In-memory gateway recording every sale."""

    def __init__(self) -> None:
        self.sales: List[Tuple[Decimal, str]] = []
        self.decline_message: Optional[str] = None
        self.unavailable = False

    def generate_client_token(self) -> str:
        return "client-token-123"

    def sale(self, amount: Decimal, payment_method_nonce: str) -> PaymentResult:
        self.sales.append((amount, payment_method_nonce))
        if self.unavailable:
            raise PaymentGatewayError()
        if self.decline_message:
            return PaymentResult(success=False, transaction={}, message=self.decline_message)
        return PaymentResult(
            success=True,
            transaction={"id": f"txn_{len(self.sales)}", "amount": str(amount)},
        )


@pytest.fixture
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "store.db")
    yield store
    store.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key="test-secret")


@pytest.fixture
def auth_service(persistence, hasher, tokens) -> AuthService:
    return AuthService(users=persistence, hasher=hasher, tokens=tokens)


@pytest.fixture
def catalog_service(persistence) -> CatalogService:
    return CatalogService(products=persistence, categories=persistence)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def order_service(persistence, gateway) -> OrderService:
    return OrderService(orders=persistence, products=persistence, gateway=gateway)


@pytest.fixture
def make_product(catalog_service):
    def _make(
        category: Category,
        name: str = "Widget",
        price: float = 10.0,
        quantity: int = 5,
        description: str = "A useful widget",
    ) -> Product:
        return catalog_service.create_product(
            ProductFields(
                name=name,
                description=description,
                price=price,
                category_id=category.id,
                quantity=quantity,
                shipping=True,
            )
        )

    return _make


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    return Settings()


@pytest.fixture
def client(settings, gateway):
    app = create_application(settings, payment_gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client


def login_headers(client: TestClient, email: str, password: str) -> Dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def login():
    return login_headers


@pytest.fixture
def admin_headers(client) -> Dict[str, str]:
    return login_headers(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def customer_headers(client) -> Dict[str, str]:
    response = client.post(
        "/api/v1/auth/register",
        json={
            "name": "Ann",
            "email": "a@x.com",
            "password": "secret1",
            "phone": "555",
            "address": "1 St",
            "answer": "blue",
        },
    )
    assert response.status_code == 201, response.text
    return login_headers(client, "a@x.com", "secret1")
