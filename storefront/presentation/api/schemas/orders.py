from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ....domain.models import OrderStatus
from .catalog import ProductResponse


class CartItem(BaseModel):
    """A cart entry as the client holds it; only the product id is trusted."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")


class CheckoutRequest(BaseModel):
    cart: List[CartItem] = Field(default_factory=list)
    nonce: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    transaction: Dict[str, Any]
    message: Optional[str] = None


class BuyerResponse(BaseModel):
    name: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    status: OrderStatus
    buyer: BuyerResponse
    products: List[ProductResponse]
    payment: PaymentResponse
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            status=order.status,
            buyer=BuyerResponse(name=order.buyer_name),
            products=[ProductResponse.model_validate(product) for product in order.products],
            payment=PaymentResponse.model_validate(order.payment),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
