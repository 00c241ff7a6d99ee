"""Stripe-backed payment gateway used at checkout."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import stripe

from ..domain.errors import PaymentGatewayError
from ..domain.models import PaymentResult

logger = logging.getLogger(__name__)


class StripePaymentGateway:
    """Charges payment methods collected by the storefront client.

    The payment-method id produced by Stripe.js plays the role of the gateway
    nonce. The secret key is passed on every request instead of being set on
    the ``stripe`` module.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        currency: str = "usd",
    ) -> None:
        self._secret_key = secret_key
        self._currency = currency

    def _require_key(self) -> str:
        if not self._secret_key:
            raise PaymentGatewayError("Stripe not configured. Please set API keys first.")
        return self._secret_key

    def generate_client_token(self) -> str:
        """Client secret of a SetupIntent the client uses to collect a card."""
        api_key = self._require_key()
        try:
            intent = stripe.SetupIntent.create(api_key=api_key, usage="on_session")
        except stripe.StripeError as exc:
            logger.error("Failed to create Stripe setup intent: %s", str(exc))
            raise PaymentGatewayError() from exc
        return intent.client_secret

    def sale(self, amount: Decimal, payment_method_nonce: str) -> PaymentResult:
        api_key = self._require_key()
        minor_units = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        try:
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                amount=minor_units,
                currency=self._currency,
                payment_method=payment_method_nonce,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            )
        except stripe.CardError as exc:
            logger.info("Stripe declined a charge of %s %s: %s", amount, self._currency, exc.code)
            return PaymentResult(
                success=False,
                transaction={"decline_code": exc.code},
                message=exc.user_message or "Payment was declined",
            )
        except stripe.StripeError as exc:
            logger.error("Stripe charge failed: %s", str(exc))
            raise PaymentGatewayError() from exc

        succeeded = intent.status == "succeeded"
        return PaymentResult(
            success=succeeded,
            transaction={
                "id": intent.id,
                "amount": intent.amount,
                "currency": intent.currency,
                "status": intent.status,
            },
            message=None if succeeded else f"Payment {intent.status}",
        )
