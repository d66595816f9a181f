"""
Stripe payment gateway for vendor plan checkout and webhook handling.
"""
import logging
from typing import Optional

import stripe

from app.core.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, FRONTEND_URL
from app.core.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Thin wrapper over Stripe Checkout used by the payment service."""

    name = "stripe"

    def __init__(self, secret_key: Optional[str] = STRIPE_SECRET_KEY,
                 webhook_secret: Optional[str] = STRIPE_WEBHOOK_SECRET):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        if secret_key:
            stripe.api_key = secret_key
        else:
            logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")

    def _require_key(self):
        if not self.secret_key:
            raise PaymentGatewayError("Payment gateway is not configured")

    def create_checkout_session(
        self,
        payment_id: int,
        vendor_id: int,
        vendor_email: str,
        plan_code: str,
        plan_name: str,
        amount: float,
        currency: str,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> dict:
        """
        Create a one-off Stripe Checkout session for a vendor plan.

        Returns:
            Dictionary with 'url' and 'session_id'
        """
        self._require_key()

        if not success_url:
            success_url = f"{FRONTEND_URL}/vendor/payment/success?session_id={{CHECKOUT_SESSION_ID}}"
        if not cancel_url:
            cancel_url = f"{FRONTEND_URL}/vendor/payment/cancel"

        try:
            session = stripe.checkout.Session.create(
                customer_email=vendor_email,
                mode="payment",
                line_items=[{
                    "price_data": {
                        "currency": currency.lower(),
                        "unit_amount": int(round(amount * 100)),
                        "product_data": {"name": plan_name},
                    },
                    "quantity": 1,
                }],
                success_url=success_url,
                cancel_url=cancel_url,
                client_reference_id=str(payment_id),
                metadata={
                    "payment_id": str(payment_id),
                    "vendor_id": str(vendor_id),
                    "plan_code": plan_code,
                },
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session: payment_id={payment_id}: {e}")
            raise PaymentGatewayError("Failed to create checkout session") from e

        logger.info(f"Created checkout session for payment_id={payment_id}, session_id={session.id}")
        return {"url": session.url, "session_id": session.id}

    def retrieve_session(self, session_id: str) -> dict:
        """
        Fetch a checkout session and classify it.

        Returns:
            Dictionary with 'state' (paid | open | failed) and 'raw'
        """
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving session {session_id}: {e}")
            raise PaymentGatewayError("Failed to verify payment") from e

        payment_status = session.get("payment_status")
        if payment_status in ("paid", "no_payment_required"):
            state = "paid"
        elif session.get("status") == "open":
            state = "open"
        else:
            state = "failed"
        return {
            "state": state,
            "raw": {
                "session_id": session.get("id"),
                "payment_status": payment_status,
                "payment_intent": session.get("payment_intent"),
            },
        }

    def verify_webhook(self, request_body: bytes, signature: Optional[str]) -> dict:
        """
        Verify and parse a Stripe webhook event.

        Raises:
            ValueError: If the payload or signature is invalid
        """
        if not self.webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET not configured")

        try:
            event = stripe.Webhook.construct_event(request_body, signature, self.webhook_secret)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {e}")
            raise ValueError("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise ValueError("Invalid signature") from e

        logger.info(f"Verified webhook event: {event['type']}, id={event['id']}")
        return event
