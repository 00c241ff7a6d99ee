"""Order domain model and its fulfilment state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .catalog import Product


class OrderStatus(str, Enum):
    NOT_PROCESSED = "Not Processed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Forward moves (skipping allowed) or cancellation, never out of a terminal state."""
        if self.is_terminal:
            return False
        if target is OrderStatus.CANCELLED:
            return True
        return _WORKFLOW.index(target) > _WORKFLOW.index(self)


_WORKFLOW = [
    OrderStatus.NOT_PROCESSED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


@dataclass(slots=True)
class PaymentResult:
    success: bool
    transaction: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None


@dataclass(slots=True)
class Order:
    """
    Customer order created after a successful gateway sale.

    Attributes:
        id: Unique identifier
        buyer_id: Reference to the purchasing User
        product_ids: Ordered product references, one entry per unit
        status: Fulfilment status
        payment: Gateway outcome recorded at checkout
        created_at: Order creation timestamp
        updated_at: Last status change timestamp
        buyer_name: Populated buyer name
        products: Populated products, in ``product_ids`` order
    """

    id: str
    buyer_id: str
    product_ids: List[str]
    status: OrderStatus
    payment: PaymentResult
    created_at: datetime
    updated_at: datetime
    buyer_name: Optional[str] = None
    products: List[Product] = field(default_factory=list)
