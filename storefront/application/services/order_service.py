from __future__ import annotations

import logging
from collections import Counter
from decimal import Decimal
from typing import List, Optional, Sequence

from ...domain.errors import (
    InvalidTransition,
    NotFound,
    PaymentDeclined,
    ValidationFailed,
)
from ...domain.models import Order, OrderStatus
from ...domain.ports.payments import PaymentGateway
from ...domain.ports.persistence import OrderRepository, ProductRepository

logger = logging.getLogger(__name__)


class OrderService:
    """Checkout through the payment gateway and order status management."""

    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        gateway: PaymentGateway,
    ) -> None:
        self._orders = orders
        self._products = products
        self._gateway = gateway

    def payment_token(self) -> str:
        return self._gateway.generate_client_token()

    def checkout(self, buyer_id: str, product_ids: Sequence[str], nonce: Optional[str]) -> Order:
        """
        Charge the buyer for every cart item and record the order.

        Prices are re-read from the catalog; the client only names products.
        Stock is reserved before the charge and released if the charge or the
        order write fails, so a failed checkout leaves no stock change behind.
        A charge whose order could not be written is logged with its
        transaction id for reconciliation.

        Raises:
            ValidationFailed: Empty cart or missing nonce
            NotFound: A cart item does not resolve to a product
            OutOfStock: Not enough units left for some cart item
            PaymentDeclined: The gateway rejected the transaction
            PaymentGatewayError: The gateway could not be reached or is not configured
        """
        cart = [product_id for product_id in product_ids if product_id]
        if not cart:
            raise ValidationFailed("Cart is empty", field="cart")
        if not nonce or not nonce.strip():
            raise ValidationFailed("Payment nonce is required", field="nonce")

        quantities = Counter(cart)
        total = Decimal("0")
        for product_id, units in quantities.items():
            product = self._products.get_product(product_id)
            if product is None:
                raise NotFound(f"Product {product_id} not found")
            total += Decimal(str(product.price)) * units

        reserved = dict(quantities)
        self._products.reserve_stock(reserved)
        try:
            result = self._gateway.sale(total, nonce.strip())
        except BaseException:
            self._products.release_stock(reserved)
            raise
        if not result.success:
            self._products.release_stock(reserved)
            logger.warning("Payment declined for buyer %s: %s", buyer_id, result.message)
            raise PaymentDeclined(result.message)

        try:
            order = self._orders.create_order(buyer_id, cart, result)
        except BaseException:
            logger.exception(
                "Buyer %s was charged %s (transaction %s) but the order was not recorded",
                buyer_id,
                total,
                result.transaction.get("id"),
            )
            self._products.release_stock(reserved)
            raise
        logger.info("Order %s placed by %s for %s", order.id, buyer_id, total)
        return order

    def list_own_orders(self, buyer_id: str) -> List[Order]:
        return self._orders.list_orders(buyer_id=buyer_id)

    def list_all_orders(self) -> List[Order]:
        return self._orders.list_orders()

    def update_status(self, order_id: str, status: Optional[str]) -> Order:
        try:
            target = OrderStatus(status)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in OrderStatus)
            raise ValidationFailed(f"Status must be one of: {allowed}", field="status") from exc

        order = self._orders.get_order(order_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status is target:
            return order
        if not order.status.can_transition_to(target):
            raise InvalidTransition(
                f"Cannot change order status from {order.status.value} to {target.value}"
            )
        if not self._orders.compare_and_set_order_status(order_id, order.status, target):
            raise InvalidTransition("Order status changed concurrently, reload and retry")

        logger.info("Order %s moved from %s to %s", order_id, order.status.value, target.value)
        updated = self._orders.get_order(order_id)
        if updated is None:  # pragma: no cover - orders are never deleted
            raise NotFound("Order not found")
        return updated
