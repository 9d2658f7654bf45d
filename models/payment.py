"""
Payment request models
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel


class CreatePaymentIntentRequest(BaseModel):
    restaurant_id: int
    amount: int  # smallest currency unit (cents)
    currency: str
    metadata: Dict[str, Any] = {}


class ConfirmStripePaymentRequest(BaseModel):
    restaurant_id: int
    payment_intent_id: str
    order_id: Optional[int] = None


class CreatePayPalOrderRequest(BaseModel):
    restaurant_id: int
    amount: float
    currency: str
    metadata: Dict[str, Any] = {}


class CapturePayPalOrderRequest(BaseModel):
    restaurant_id: int
    order_id: str
    local_order_id: Optional[int] = None


class StripeKeyCheckRequest(BaseModel):
    public_key: str
    secret_key: str
    test_mode: bool = True


class PaymentSettingsUpdate(BaseModel):
    payments_enabled: Optional[bool] = None
    allow_cash: Optional[bool] = None
    test_mode: Optional[bool] = None
    stripe_enabled: Optional[bool] = None
    stripe_public_key: Optional[str] = None
    stripe_secret_key: Optional[str] = None
    paypal_enabled: Optional[bool] = None
    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
