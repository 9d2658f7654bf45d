"""
Payment Service - Stripe card payments on each restaurant's own Stripe account
"""

import logging
from typing import Any, Dict, Optional

import stripe

from database_models import PaymentSettings

logger = logging.getLogger(__name__)


def _error(message: str, status: int = 400, details: Optional[str] = None) -> dict:
    result = {"error": message, "is_error": True, "status": status}
    if details:
        result["details"] = {"details": details}
    return result


class PaymentService:
    """
    Stripe calls for a single restaurant. Uses the restaurant's secret key
    per request so one process can serve many restaurants.

    All methods return the normalized response shape:
    {"data": ..., "is_error": False} or {"error": str, "is_error": True, "status": int}
    """

    def __init__(self, payment_settings: Optional[PaymentSettings]):
        self.payment_settings = payment_settings

    def _stripe_key(self) -> Optional[str]:
        if self.payment_settings is None or not self.payment_settings.stripe_ready:
            return None
        return self.payment_settings.stripe_secret_key

    def create_payment_intent(self, restaurant_id: int, amount: int, currency: str,
                              metadata: Optional[Dict[str, Any]] = None) -> dict:
        """
        Create a card PaymentIntent.

        Args:
            restaurant_id: Restaurant receiving the payment
            amount: Amount in the smallest currency unit
            currency: ISO currency code
            metadata: Extra metadata (e.g. order_id) stored on the intent
        """
        if amount <= 0:
            return _error("Payment amount must be greater than 0")

        api_key = self._stripe_key()
        if not api_key:
            return _error("Stripe is not configured for this restaurant")

        intent_metadata = {**(metadata or {}), "restaurant_id": str(restaurant_id), "gateway": "stripe"}
        try:
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                amount=amount,
                currency=currency.lower(),
                metadata=intent_metadata,
                payment_method_types=["card"],
            )
        except stripe.CardError as e:
            logger.warning(f"Stripe card error for restaurant {restaurant_id}: {e}")
            return _error(e.user_message or str(e))
        except stripe.InvalidRequestError as e:
            logger.error(f"Invalid Stripe payment request for restaurant {restaurant_id}: {e}")
            return _error("Invalid payment request")
        except stripe.APIConnectionError as e:
            logger.error(f"Stripe unreachable: {e}", exc_info=True)
            return _error("Payment service temporarily unavailable", status=503)
        except stripe.APIError as e:
            logger.error(f"Stripe API error: {e}", exc_info=True)
            return _error("Payment service temporarily unavailable", status=503)
        except stripe.StripeError as e:
            logger.error(f"Failed to create payment intent: {e}", exc_info=True)
            return _error("Failed to create payment intent", status=500, details=str(e))

        logger.info(f"Created payment intent {intent.id} for restaurant {restaurant_id}")
        return {
            "data": {
                "id": intent.id,
                "client_secret": intent.client_secret,
                "amount": intent.amount,
                "currency": intent.currency,
                "status": intent.status,
            },
            "is_error": False,
        }

    def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        api_key = self._stripe_key()
        if not api_key:
            return _error("Stripe is not configured for this restaurant")

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=api_key)
        except stripe.InvalidRequestError as e:
            logger.warning(f"Payment intent {payment_intent_id} not found: {e}")
            return _error("Payment intent not found", status=404)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve payment intent: {e}", exc_info=True)
            return _error("Failed to confirm payment", status=500, details=str(e))

        return {
            "data": {
                "id": intent.id,
                "status": intent.status,
                "amount": intent.amount,
                "currency": intent.currency,
                "metadata": dict(intent.metadata or {}),
            },
            "is_error": False,
        }


def check_stripe_keys(public_key: str, secret_key: str, test_mode: bool = True) -> dict:
    """
    Validate the format of a pair of Stripe keys before saving them.
    Does not call Stripe.
    """
    if not public_key.startswith("pk_") or not secret_key.startswith("sk_"):
        return {"success": False, "message": "Invalid Stripe keys format. Keys should start with pk_ and sk_"}

    is_test_key = "_test_" in public_key or "_test_" in secret_key
    is_live_key = "_live_" in public_key or "_live_" in secret_key

    if test_mode and not is_test_key:
        return {
            "success": False,
            "message": "Test mode is enabled but you are using live keys. Please use test keys (pk_test_/sk_test_).",
        }
    if not test_mode and not is_live_key:
        return {
            "success": False,
            "message": "Live mode is enabled but you are using test keys. Please use live keys (pk_live_/sk_live_).",
        }

    return {"success": True, "message": f"Stripe keys look valid (test mode: {test_mode})"}
