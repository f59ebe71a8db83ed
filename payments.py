"""Stripe payment intents and price conversion."""

import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional

import stripe

from errors import InvalidInput, UpstreamFailure

logger = logging.getLogger(__name__)


def to_minor_units(price: Optional[float]) -> int:
    """
    Convert a price in major units (dollars) to whole minor units (cents).

    Fractions of a cent are truncated. Raises InvalidInput when the price is
    absent, not a number, or worth less than one cent.
    """
    if price is None:
        raise InvalidInput("Price is required")
    try:
        cents = (Decimal(str(price)) * 100).quantize(Decimal("1"), rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidInput(f"Invalid price: {price}")
    if not cents.is_finite() or cents < 1:
        raise InvalidInput("Price must be at least one cent")
    return int(cents)


class PaymentGateway:
    def __init__(self, api_key: str, currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    def create_intent(self, amount: int) -> str:
        """Create a card PaymentIntent for ``amount`` minor units and return its client secret."""
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=self.currency,
                payment_method_types=["card"],
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe PaymentIntent creation failed: %s", e)
            raise UpstreamFailure("Payment provider unavailable")
        return intent["client_secret"]
