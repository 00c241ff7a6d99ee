from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from ..models import PaymentResult


class PaymentGateway(Protocol):
    """Remote payment processor used at checkout."""

    def generate_client_token(self) -> str:
        """Token the client uses to collect a payment method."""
        ...

    def sale(self, amount: Decimal, payment_method_nonce: str) -> PaymentResult:
        """Charge ``amount`` against the payment method behind the nonce.

        Declines are reported with ``success=False``; transport and configuration
        problems raise ``PaymentGatewayError``.
        """
        ...
