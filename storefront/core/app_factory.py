from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..application.services.catalog_service import CatalogService
from ..application.services.order_service import OrderService
from ..domain.errors import StorefrontError
from ..domain.ports.payments import PaymentGateway
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import categories as categories_router
from ..presentation.api.routers import orders as orders_router
from ..presentation.api.routers import products as products_router
from ..services.password_hasher import PasswordHasher
from ..services.stripe_gateway import StripePaymentGateway
from ..services.token_service import TokenService

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    *,
    payment_gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Storefront API",
        lifespan=_create_lifespan(settings, payment_gateway),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorefrontError, _handle_storefront_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(sqlite3.Error, _handle_store_error)

    app.include_router(auth_router.router)
    app.include_router(categories_router.router)
    app.include_router(products_router.router)
    app.include_router(orders_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


async def _handle_storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


async def _handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    field = ".".join(str(part) for part in errors[0]["loc"][1:]) if errors else ""
    message = f"Invalid value for {field}" if field else "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


async def _handle_store_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
    logger.exception("Store failure while handling %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


def _create_lifespan(settings: Settings, payment_gateway: Optional[PaymentGateway]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        persistence = SQLitePersistence(settings.database_path)
        gateway = payment_gateway or StripePaymentGateway(
            secret_key=settings.stripe_secret_key,
            currency=settings.payment_currency,
        )
        auth_service = AuthService(
            users=persistence,
            hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
            tokens=TokenService(
                secret_key=settings.jwt_secret,
                token_exp_days=settings.jwt_exp_days,
            ),
        )
        auth_service.ensure_default_admin(
            settings.admin_default_email, settings.admin_default_password
        )

        container = ApplicationContainer(
            settings=settings,
            auth_service=auth_service,
            catalog_service=CatalogService(products=persistence, categories=persistence),
            order_service=OrderService(orders=persistence, products=persistence, gateway=gateway),
        )

        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Storefront API ready (database %s)", settings.database_path)

        try:
            yield
        finally:
            persistence.close()

    return lifespan
