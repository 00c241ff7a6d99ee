from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from ....application.services.order_service import OrderService
from ....core.config import Settings
from ....core.dependencies import get_order_service, get_settings
from ....domain.models import User
from ....services.token_service import TokenClaim
from ...api.dependencies import require_admin, require_sign_in
from ...api.schemas.orders import CheckoutRequest, OrderResponse, StatusUpdateRequest

router = APIRouter(prefix="/api/v1/orders", tags=["Orders"])


# ============ PAYMENT ============

@router.get("/payment-token")
def payment_token(
    _: TokenClaim = Depends(require_sign_in),
    order_service: OrderService = Depends(get_order_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return {
        "clientToken": order_service.payment_token(),
        "publishableKey": settings.stripe_publishable_key,
    }


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    claim: TokenClaim = Depends(require_sign_in),
    order_service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    order = order_service.checkout(
        buyer_id=claim.user_id,
        product_ids=[item.id for item in payload.cart],
        nonce=payload.nonce,
    )
    return {"success": True, "message": "Order placed", "order": OrderResponse.from_order(order)}


# ============ ORDERS ============

@router.get("")
def list_own_orders(
    claim: TokenClaim = Depends(require_sign_in),
    order_service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    return [OrderResponse.from_order(order) for order in order_service.list_own_orders(claim.user_id)]


@router.get("/all")
def list_all_orders(
    _: User = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    return [OrderResponse.from_order(order) for order in order_service.list_all_orders()]


@router.put("/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    _: User = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    order = order_service.update_status(order_id, payload.status)
    return {"success": True, "order": OrderResponse.from_order(order)}
