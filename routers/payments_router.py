"""
Payments Router - per-restaurant Stripe and PayPal checkout
"""

import logging
from typing import Optional, Tuple

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id
from config.settings import settings
from crud.order import OrderRepository
from crud.restaurant import RestaurantRepository
from database import get_db
from database_models import PaymentSettings
from models.payment import (
    CapturePayPalOrderRequest,
    ConfirmStripePaymentRequest,
    CreatePaymentIntentRequest,
    CreatePayPalOrderRequest,
    PaymentSettingsUpdate,
    StripeKeyCheckRequest,
)
from services.payment_service import PaymentService, check_stripe_keys
from services.paypal_service import PayPalService
from utils.currency import to_minor_units
from utils.responses import error_response, from_service_result, success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


def serialize_payment_settings(payment_settings: Optional[PaymentSettings]) -> dict:
    """Public view of a restaurant's payment settings. Secrets are never echoed."""
    if payment_settings is None:
        return {
            "payments_enabled": False,
            "allow_cash": True,
            "test_mode": True,
            "stripe_enabled": False,
            "stripe_public_key": None,
            "has_stripe_secret": False,
            "paypal_enabled": False,
            "paypal_client_id": None,
            "has_paypal_secret": False,
        }
    return {
        "payments_enabled": payment_settings.payments_enabled,
        "allow_cash": payment_settings.allow_cash,
        "test_mode": payment_settings.test_mode,
        "stripe_enabled": payment_settings.stripe_enabled,
        "stripe_public_key": payment_settings.stripe_public_key,
        "has_stripe_secret": bool(payment_settings.stripe_secret_key),
        "paypal_enabled": payment_settings.paypal_enabled,
        "paypal_client_id": payment_settings.paypal_client_id,
        "has_paypal_secret": bool(payment_settings.paypal_client_secret),
    }


def _paypal_service(payment_settings: Optional[PaymentSettings]) -> Optional[PayPalService]:
    """Restaurant credentials first, then the platform-wide PayPal app."""
    if payment_settings is not None and not payment_settings.paypal_enabled:
        return None
    if payment_settings is not None and payment_settings.paypal_ready:
        return PayPalService(
            payment_settings.paypal_client_id,
            payment_settings.paypal_client_secret,
            test_mode=payment_settings.test_mode,
        )
    if settings.paypal_client_id and settings.paypal_client_secret:
        test_mode = payment_settings.test_mode if payment_settings is not None else True
        return PayPalService(settings.paypal_client_id, settings.paypal_client_secret, test_mode=test_mode)
    return None


async def _mark_order_paid(db: AsyncSession, order_id: int, restaurant_id: int,
                           method: str, reference: str, paid_for: Optional[str],
                           paid_amount: Optional[int], paid_currency: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Mark an order paid once the gateway payment is proven to be for it.

    Args:
        paid_for: Order id the payment was created for (intent metadata or PayPal custom_id)
        paid_amount: Captured amount in the smallest currency unit
        paid_currency: Currency the gateway charged in

    Returns:
        (order_updated, rejection reason). A payment already recorded on the
        same order is (False, None) so retried confirmations stay harmless.
    """
    repo = OrderRepository(db)
    order = await repo.get_order(order_id, restaurant_id)
    if order is None:
        logger.warning(f"Paid order {order_id} not found (restaurant {restaurant_id})")
        return False, "order_not_found"

    if str(paid_for) != str(order.id):
        logger.warning(f"Payment {reference} was made for order {paid_for}, not order {order.id}")
        return False, "payment_order_mismatch"

    if order.payment_status == "paid":
        if order.payment_reference == reference:
            return False, None
        logger.warning(f"Order {order.id} is already paid ({order.payment_reference}); ignoring {reference}")
        return False, "order_already_paid"

    used_by = await repo.get_by_payment_reference(reference)
    if used_by is not None:
        logger.warning(f"Payment {reference} already settled order {used_by.id}")
        return False, "payment_already_used"

    restaurant = await RestaurantRepository(db).get_by_id(restaurant_id)
    currency = restaurant.currency if restaurant is not None else "USD"
    if (paid_currency or "").upper() != currency.upper() or paid_amount != to_minor_units(order.total_amount, currency):
        logger.warning(
            f"Payment {reference} of {paid_amount} {paid_currency} does not cover order {order.id} "
            f"({order.total_amount} {currency})"
        )
        return False, "amount_mismatch"

    await repo.update_order(order, {
        "payment_status": "paid",
        "payment_method": method,
        "payment_reference": reference,
    })
    logger.info(f"Order {order_id} marked paid via {method} ({reference})")
    return True, None


def _paypal_minor_units(capture: dict) -> Optional[int]:
    try:
        return to_minor_units(float(capture.get("amount")), capture.get("currency") or "USD")
    except (TypeError, ValueError):
        return None


@router.get("/settings")
async def get_payment_settings(
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    payment_settings = await RestaurantRepository(db).get_payment_settings(restaurant_id)
    return success_response(serialize_payment_settings(payment_settings))


@router.put("/settings")
async def update_payment_settings(
    request: PaymentSettingsUpdate,
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    updates = request.model_dump(exclude_none=True)
    if request.stripe_public_key and request.stripe_secret_key:
        test_mode = request.test_mode if request.test_mode is not None else True
        check = check_stripe_keys(request.stripe_public_key, request.stripe_secret_key, test_mode)
        if not check["success"]:
            return error_response("invalid_stripe_keys", status=400, message=check["message"])

    payment_settings = await RestaurantRepository(db).save_payment_settings(restaurant_id, updates)
    logger.info(f"Payment settings updated for restaurant {restaurant_id}")
    return success_response(serialize_payment_settings(payment_settings), message="Payment settings saved")


@router.post("/create-intent")
async def create_payment_intent(request: CreatePaymentIntentRequest, db: AsyncSession = Depends(get_db)):
    payment_settings = await RestaurantRepository(db).get_payment_settings(request.restaurant_id)
    if payment_settings is None or not payment_settings.payments_enabled:
        return error_response("payments_disabled", status=400, message="Online payments are not enabled")

    result = PaymentService(payment_settings).create_payment_intent(
        request.restaurant_id, request.amount, request.currency, request.metadata
    )
    return from_service_result(result)


@router.post("/confirm-stripe")
async def confirm_stripe_payment(request: ConfirmStripePaymentRequest, db: AsyncSession = Depends(get_db)):
    payment_settings = await RestaurantRepository(db).get_payment_settings(request.restaurant_id)
    result = PaymentService(payment_settings).retrieve_payment_intent(request.payment_intent_id)
    if result.get("is_error"):
        return from_service_result(result)

    intent = result["data"]
    if intent["status"] != "succeeded":
        return error_response(
            "payment_not_completed",
            status=400,
            message=f"Payment not completed (status: {intent['status']})",
            data={"status": intent["status"]},
        )

    order_updated = False
    if request.order_id is not None:
        order_updated, reason = await _mark_order_paid(
            db, request.order_id, request.restaurant_id, "stripe", intent["id"],
            paid_for=intent["metadata"].get("order_id"),
            paid_amount=intent["amount"],
            paid_currency=intent["currency"],
        )
        if reason:
            return error_response(
                reason,
                status=400,
                message="Payment does not match this order",
                data={"payment_intent_id": intent["id"], "order_updated": False},
            )

    return success_response(
        {"payment_intent_id": intent["id"], "status": intent["status"], "order_updated": order_updated},
        message="Payment confirmed",
    )


@router.post("/create-paypal-order")
async def create_paypal_order(request: CreatePayPalOrderRequest, db: AsyncSession = Depends(get_db)):
    payment_settings = await RestaurantRepository(db).get_payment_settings(request.restaurant_id)
    service = _paypal_service(payment_settings)
    if service is None:
        return error_response("paypal_not_configured", status=400, message="PayPal is not configured")

    result = await service.create_order(request.amount, request.currency, request.metadata)
    return from_service_result(result)


@router.post("/capture-paypal")
async def capture_paypal_order(request: CapturePayPalOrderRequest, db: AsyncSession = Depends(get_db)):
    payment_settings = await RestaurantRepository(db).get_payment_settings(request.restaurant_id)
    service = _paypal_service(payment_settings)
    if service is None:
        return error_response("paypal_not_configured", status=400, message="PayPal is not configured")

    result = await service.capture_order(request.order_id)
    if result.get("is_error"):
        return from_service_result(result)

    capture = result["data"]
    if request.local_order_id is not None and capture.get("status") == "COMPLETED":
        capture["order_updated"], reason = await _mark_order_paid(
            db, request.local_order_id, request.restaurant_id, "paypal",
            capture.get("capture_id") or request.order_id,
            paid_for=capture.get("custom_id"),
            paid_amount=_paypal_minor_units(capture),
            paid_currency=capture.get("currency"),
        )
        if reason:
            return error_response(reason, status=400, message="Payment does not match this order", data=capture)
    return success_response(capture, message="Payment captured")


@router.post("/test-stripe")
async def test_stripe_keys(
    request: StripeKeyCheckRequest,
    restaurant_id: int = Depends(get_current_restaurant_id),
):
    check = check_stripe_keys(request.public_key, request.secret_key, request.test_mode)
    if not check["success"]:
        return error_response("invalid_stripe_keys", status=400, message=check["message"])
    return success_response(check, message=check["message"])


@router.post("/webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Stripe webhook for card payments.

    Verifies the Stripe-Signature header, then marks the order named in the
    intent metadata as paid on payment_intent.succeeded. Always returns 200
    so Stripe does not retry.
    """
    try:
        webhook_secret = settings.stripe_webhook_secret
        if not webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET environment variable is not set")
            return JSONResponse(
                status_code=200,
                content={"ok": False, "received": True, "error": "Webhook secret not configured"}
            )

        payload = await request.body()
        stripe_signature = request.headers.get("stripe-signature")
        if not stripe_signature:
            logger.error("Missing Stripe-Signature header")
            return JSONResponse(
                status_code=200,
                content={"ok": False, "received": True, "error": "Missing signature header"}
            )

        try:
            event = stripe.Webhook.construct_event(payload, stripe_signature, webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.error(f"Stripe webhook signature verification failed: {e}")
            return JSONResponse(
                status_code=200,
                content={"ok": False, "received": True, "error": "Invalid webhook signature"}
            )
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {e}")
            return JSONResponse(
                status_code=200,
                content={"ok": False, "received": True, "error": "Invalid payload format"}
            )

        handled = False
        if event["type"] == "payment_intent.succeeded":
            intent = event["data"]["object"]
            metadata = intent.get("metadata") or {}
            order_id = metadata.get("order_id")
            restaurant_id = metadata.get("restaurant_id")
            if order_id and str(order_id).isdigit() and restaurant_id and str(restaurant_id).isdigit():
                handled, reason = await _mark_order_paid(
                    db,
                    int(order_id),
                    int(restaurant_id),
                    "stripe",
                    intent.get("id"),
                    paid_for=order_id,
                    paid_amount=intent.get("amount"),
                    paid_currency=intent.get("currency"),
                )
                if reason:
                    logger.warning(f"Webhook left order {order_id} unpaid: {reason}")
            else:
                logger.warning(f"Payment intent {intent.get('id')} has no order or restaurant metadata")
        else:
            logger.info(f"Ignoring Stripe event {event['type']}")

        return JSONResponse(
            status_code=200,
            content={"ok": handled, "received": True, "event_type": event["type"]}
        )

    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)
        return JSONResponse(
            status_code=200,
            content={"ok": False, "received": True, "error": str(e)}
        )
