"""
Stripe payment service
Creates PaymentIntents for club bookings and deposits. The Stripe SDK is
synchronous, so calls run in a worker thread.
"""
import asyncio
import logging
from typing import Dict, Optional

import stripe
from pydantic import BaseModel

from nursery_app.config.settings import settings

logger = logging.getLogger(__name__)


class PaymentRequest(BaseModel):
    """Amount in pounds - converted to pence when the intent is created"""

    amount: float
    receipt_email: str
    description: str
    metadata: Dict[str, str] = {}


class PaymentIntent(BaseModel):
    id: str
    client_secret: Optional[str] = None
    status: str


def to_pence(amount: float) -> int:
    return int(round(amount * 100))


class PaymentGateway:
    def __init__(self, api_key: str, currency: str = "gbp"):
        self.api_key = api_key
        self.currency = currency

    async def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=to_pence(request.amount),
                currency=self.currency,
                receipt_email=request.receipt_email,
                metadata=request.metadata,
                description=request.description,
            )
        except stripe.StripeError as exc:
            logger.error("❌ Stripe PaymentIntent creation failed: %s", exc)
            raise

        logger.info("💳 PaymentIntent %s created (%s)", intent.id, intent.status)
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret, status=intent.status)


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency - a gateway built from settings"""
    return PaymentGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_CURRENCY)
