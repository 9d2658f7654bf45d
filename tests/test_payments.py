"""
Tests for Stripe and PayPal payments. External APIs are mocked.
"""
import json
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest
import stripe

from services.payment_service import PaymentService, check_stripe_keys
from services.paypal_service import PayPalService

STRIPE_SETTINGS = {
    "payments_enabled": True,
    "stripe_enabled": True,
    "stripe_public_key": "pk_test_123",
    "stripe_secret_key": "sk_test_456",
}


def fake_intent(status="requires_payment_method", metadata=None, amount=2250, intent_id="pi_123"):
    return SimpleNamespace(
        id=intent_id,
        client_secret=f"{intent_id}_secret",
        amount=amount,
        currency="usd",
        status=status,
        metadata=metadata or {},
    )


def paypal_transport(capture_status="COMPLETED", auth_status=200, custom_id=None, value="22.50"):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/oauth2/token":
            if auth_status != 200:
                return httpx.Response(auth_status, json={"error_description": "bad client"})
            return httpx.Response(200, json={"access_token": "token-abc"})
        assert request.headers["Authorization"] == "Bearer token-abc"
        if request.url.path == "/v2/checkout/orders":
            body = json.loads(request.content)
            assert body["purchase_units"][0]["amount"]["value"] == "22.50"
            return httpx.Response(201, json={
                "id": "PAYPAL-1",
                "status": "CREATED",
                "links": [{"rel": "approve", "href": "https://paypal.test/approve"}],
            })
        if request.url.path == "/v2/checkout/orders/PAYPAL-1/capture":
            return httpx.Response(201, json={
                "id": "PAYPAL-1",
                "status": capture_status,
                "purchase_units": [{"payments": {"captures": [{
                    "custom_id": custom_id,
                    "amount": {"value": value, "currency_code": "USD"},
                }]}}],
            })
        return httpx.Response(404, json={"message": "not found"})
    return httpx.MockTransport(handler)


def enable_stripe(client, owner):
    response = client.put("/api/payments/settings", headers=owner["headers"], json=STRIPE_SETTINGS)
    assert response.status_code == 200


def place_order(client, restaurant_id):
    payload = {
        "restaurant_id": restaurant_id,
        "order_number": "P-1",
        "customer_info": {"name": "Ana"},
        "cart_items": [{"name": "Burger", "price": 22.5, "quantity": 1}],
    }
    return client.post("/api/orders", json=payload).json()["order"]["id"]


def confirm(client, owner, order_id, intent_id="pi_123"):
    return client.post(
        "/api/payments/confirm-stripe",
        json={"restaurant_id": owner["restaurant_id"], "payment_intent_id": intent_id, "order_id": order_id},
    )


def payment_status(client, owner, order_id):
    return client.get(f"/api/orders/{order_id}", headers=owner["headers"]).json()["order"]["payment_status"]


def test_check_stripe_keys():
    assert check_stripe_keys("pk_test_1", "sk_test_2", test_mode=True)["success"] is True
    assert check_stripe_keys("pk_live_1", "sk_live_2", test_mode=False)["success"] is True
    assert check_stripe_keys("abc", "sk_test_2")["success"] is False
    assert "live keys" in check_stripe_keys("pk_live_1", "sk_live_2", test_mode=True)["message"]
    assert "test keys" in check_stripe_keys("pk_test_1", "sk_test_2", test_mode=False)["message"]


def test_payment_service_without_stripe():
    result = PaymentService(None).create_payment_intent(1, 1000, "usd")

    assert result["is_error"] is True
    assert result["status"] == 400


def test_payment_service_rejects_zero_amount():
    settings = SimpleNamespace(stripe_ready=True, stripe_secret_key="sk_test_1")

    assert PaymentService(settings).create_payment_intent(1, 0, "usd")["is_error"] is True


def test_payment_service_maps_connection_errors():
    settings = SimpleNamespace(stripe_ready=True, stripe_secret_key="sk_test_1")
    with patch("stripe.PaymentIntent.create", side_effect=stripe.APIConnectionError("down")):
        result = PaymentService(settings).create_payment_intent(1, 1000, "usd")

    assert result["status"] == 503


def test_settings_never_echo_secrets(client, owner):
    default = client.get("/api/payments/settings", headers=owner["headers"]).json()["data"]
    assert default["payments_enabled"] is False

    enable_stripe(client, owner)
    data = client.get("/api/payments/settings", headers=owner["headers"]).json()["data"]

    assert data["stripe_enabled"] is True
    assert data["has_stripe_secret"] is True
    assert "sk_test_456" not in json.dumps(data)


def test_settings_reject_mismatched_keys(client, owner):
    response = client.put(
        "/api/payments/settings",
        headers=owner["headers"],
        json={"stripe_public_key": "pk_live_1", "stripe_secret_key": "sk_live_2", "test_mode": True},
    )

    assert response.status_code == 400


def test_create_intent_requires_enabled_payments(client, owner):
    response = client.post(
        "/api/payments/create-intent",
        json={"restaurant_id": owner["restaurant_id"], "amount": 2250, "currency": "usd"},
    )

    assert response.status_code == 400


def test_create_intent(client, owner):
    enable_stripe(client, owner)

    with patch("stripe.PaymentIntent.create", return_value=fake_intent()) as create:
        response = client.post(
            "/api/payments/create-intent",
            json={"restaurant_id": owner["restaurant_id"], "amount": 2250, "currency": "USD",
                  "metadata": {"order_id": "7"}},
        )

    assert response.status_code == 200
    assert response.json()["data"]["client_secret"] == "pi_123_secret"
    kwargs = create.call_args.kwargs
    assert kwargs["api_key"] == "sk_test_456"
    assert kwargs["currency"] == "usd"
    assert kwargs["metadata"]["order_id"] == "7"
    assert kwargs["metadata"]["restaurant_id"] == str(owner["restaurant_id"])


def test_confirm_stripe_marks_order_paid(client, owner):
    enable_stripe(client, owner)
    order_id = place_order(client, owner["restaurant_id"])

    intent = fake_intent(status="succeeded", metadata={"order_id": str(order_id)})

    with patch("stripe.PaymentIntent.retrieve", return_value=intent):
        response = confirm(client, owner, order_id)
        retried = confirm(client, owner, order_id)

    assert response.status_code == 200
    assert response.json()["data"]["order_updated"] is True
    assert retried.status_code == 200
    assert retried.json()["data"]["order_updated"] is False
    order = client.get(f"/api/orders/{order_id}", headers=owner["headers"]).json()["order"]
    assert order["payment_status"] == "paid"
    assert order["payment_method"] == "stripe"


def test_confirm_stripe_rejects_intent_for_another_order(client, owner):
    enable_stripe(client, owner)
    first = place_order(client, owner["restaurant_id"])
    second = place_order(client, owner["restaurant_id"])
    intent = fake_intent(status="succeeded", metadata={"order_id": str(first)})

    with patch("stripe.PaymentIntent.retrieve", return_value=intent):
        assert confirm(client, owner, first).status_code == 200
        reused = confirm(client, owner, second)

    assert reused.status_code == 400
    assert reused.json()["error"] == "payment_order_mismatch"
    assert payment_status(client, owner, second) == "unpaid"


def test_confirm_stripe_rejects_wrong_amount(client, owner):
    enable_stripe(client, owner)
    order_id = place_order(client, owner["restaurant_id"])
    intent = fake_intent(status="succeeded", metadata={"order_id": str(order_id)}, amount=50)

    with patch("stripe.PaymentIntent.retrieve", return_value=intent):
        response = confirm(client, owner, order_id)

    assert response.status_code == 400
    assert response.json()["error"] == "amount_mismatch"
    assert payment_status(client, owner, order_id) == "unpaid"


def test_confirm_stripe_rejects_second_payment_for_paid_order(client, owner):
    enable_stripe(client, owner)
    order_id = place_order(client, owner["restaurant_id"])
    metadata = {"order_id": str(order_id)}

    with patch("stripe.PaymentIntent.retrieve", return_value=fake_intent(status="succeeded", metadata=metadata)):
        assert confirm(client, owner, order_id).status_code == 200
    with patch("stripe.PaymentIntent.retrieve",
               return_value=fake_intent(status="succeeded", metadata=metadata, intent_id="pi_456")):
        again = confirm(client, owner, order_id, intent_id="pi_456")

    assert again.status_code == 400
    assert again.json()["error"] == "order_already_paid"


def test_confirm_stripe_is_scoped_to_the_restaurant(client, owner, signup_user):
    enable_stripe(client, owner)
    other_headers, _ = signup_user("other@example.com", restaurant_name="Other Place")
    other_restaurant = client.get("/api/auth/me", headers=other_headers).json()["restaurant_id"]
    other_order = place_order(client, other_restaurant)
    intent = fake_intent(status="succeeded", metadata={"order_id": str(other_order)})

    with patch("stripe.PaymentIntent.retrieve", return_value=intent):
        response = confirm(client, owner, other_order)

    assert response.status_code == 400
    assert response.json()["error"] == "order_not_found"


def test_confirm_stripe_incomplete_payment(client, owner):
    enable_stripe(client, owner)

    with patch("stripe.PaymentIntent.retrieve", return_value=fake_intent(status="requires_action")):
        response = client.post(
            "/api/payments/confirm-stripe",
            json={"restaurant_id": owner["restaurant_id"], "payment_intent_id": "pi_123"},
        )

    assert response.status_code == 400


def test_test_stripe_endpoint(client, owner):
    ok = client.post(
        "/api/payments/test-stripe",
        headers=owner["headers"],
        json={"public_key": "pk_test_1", "secret_key": "sk_test_2"},
    )
    bad = client.post(
        "/api/payments/test-stripe",
        headers=owner["headers"],
        json={"public_key": "nope", "secret_key": "sk_test_2"},
    )

    assert ok.status_code == 200
    assert bad.status_code == 400


def test_webhook_without_secret_still_returns_200(client):
    response = client.post("/api/payments/webhook", content=b"{}")

    assert response.status_code == 200
    assert response.json()["received"] is True
    assert response.json()["ok"] is False


def webhook_event(order_id, restaurant_id, amount=2250, intent_id="pi_999"):
    metadata = {"order_id": str(order_id)}
    if restaurant_id is not None:
        metadata["restaurant_id"] = str(restaurant_id)
    return {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": intent_id, "amount": amount, "currency": "usd", "metadata": metadata}},
    }


def post_webhook(client, event):
    with patch("routers.payments_router.settings.stripe_webhook_secret", "whsec_test"), \
            patch("stripe.Webhook.construct_event", return_value=event):
        return client.post(
            "/api/payments/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=abc"}
        )


def test_webhook_marks_order_paid(client, owner):
    order_id = place_order(client, owner["restaurant_id"])

    response = post_webhook(client, webhook_event(order_id, owner["restaurant_id"]))

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert payment_status(client, owner, order_id) == "paid"


def test_webhook_ignores_intent_without_restaurant(client, owner):
    order_id = place_order(client, owner["restaurant_id"])

    response = post_webhook(client, webhook_event(order_id, None))

    assert response.status_code == 200
    assert response.json()["ok"] is False
    assert payment_status(client, owner, order_id) == "unpaid"


def test_webhook_ignores_short_payment(client, owner):
    order_id = place_order(client, owner["restaurant_id"])

    response = post_webhook(client, webhook_event(order_id, owner["restaurant_id"], amount=50))

    assert response.status_code == 200
    assert response.json()["ok"] is False
    assert payment_status(client, owner, order_id) == "unpaid"


@pytest.mark.asyncio
async def test_paypal_create_and_capture():
    service = PayPalService("client", "secret", transport=paypal_transport(custom_id="7"))

    created = await service.create_order(22.5, "usd", {"order_id": 7})
    captured = await service.capture_order("PAYPAL-1")

    assert created["data"] == {
        "order_id": "PAYPAL-1",
        "approval_url": "https://paypal.test/approve",
        "status": "CREATED",
    }
    assert captured["data"]["status"] == "COMPLETED"
    assert captured["data"]["amount"] == "22.50"
    assert captured["data"]["currency"] == "USD"
    assert captured["data"]["custom_id"] == "7"


@pytest.mark.asyncio
async def test_paypal_authentication_failure():
    service = PayPalService("client", "wrong", transport=paypal_transport(auth_status=401))

    result = await service.create_order(22.5, "USD")

    assert result["is_error"] is True
    assert result["status"] == 401


@pytest.mark.asyncio
async def test_paypal_rejects_zero_amount():
    service = PayPalService("client", "secret", transport=paypal_transport())

    assert (await service.create_order(0, "USD"))["is_error"] is True


def test_paypal_not_configured(client, owner):
    response = client.post(
        "/api/payments/create-paypal-order",
        json={"restaurant_id": owner["restaurant_id"], "amount": 22.5, "currency": "USD"},
    )

    assert response.status_code == 400


def enable_paypal(client, owner):
    client.put(
        "/api/payments/settings",
        headers=owner["headers"],
        json={"payments_enabled": True, "paypal_enabled": True,
              "paypal_client_id": "client", "paypal_client_secret": "secret"},
    )


def capture_with(client, owner, transport, local_order_id):
    original_init = PayPalService.__init__

    def init_with_transport(self, *args, **kwargs):
        kwargs["transport"] = transport
        original_init(self, *args, **kwargs)

    with patch.object(PayPalService, "__init__", init_with_transport):
        return client.post(
            "/api/payments/capture-paypal",
            json={"restaurant_id": owner["restaurant_id"], "order_id": "PAYPAL-1", "local_order_id": local_order_id},
        )


def test_capture_paypal_marks_order_paid(client, owner):
    enable_paypal(client, owner)
    order_id = place_order(client, owner["restaurant_id"])
    transport = paypal_transport(custom_id=str(order_id))
    original_init = PayPalService.__init__

    def init_with_transport(self, *args, **kwargs):
        kwargs["transport"] = transport
        original_init(self, *args, **kwargs)

    with patch.object(PayPalService, "__init__", init_with_transport):
        created = client.post(
            "/api/payments/create-paypal-order",
            json={"restaurant_id": owner["restaurant_id"], "amount": 22.5, "currency": "USD",
                  "metadata": {"order_id": order_id}},
        )
    captured = capture_with(client, owner, transport, order_id)

    assert created.json()["data"]["order_id"] == "PAYPAL-1"
    assert captured.status_code == 200
    assert captured.json()["data"]["order_updated"] is True
    order = client.get(f"/api/orders/{order_id}", headers=owner["headers"]).json()["order"]
    assert order["payment_status"] == "paid"
    assert order["payment_method"] == "paypal"


def test_capture_paypal_rejects_capture_for_another_order(client, owner):
    enable_paypal(client, owner)
    first = place_order(client, owner["restaurant_id"])
    second = place_order(client, owner["restaurant_id"])

    captured = capture_with(client, owner, paypal_transport(custom_id=str(first)), second)

    assert captured.status_code == 400
    assert captured.json()["error"] == "payment_order_mismatch"
    assert payment_status(client, owner, second) == "unpaid"


def test_capture_paypal_rejects_wrong_amount(client, owner):
    enable_paypal(client, owner)
    order_id = place_order(client, owner["restaurant_id"])

    captured = capture_with(client, owner, paypal_transport(custom_id=str(order_id), value="0.50"), order_id)

    assert captured.status_code == 400
    assert captured.json()["error"] == "amount_mismatch"
    assert payment_status(client, owner, order_id) == "unpaid"


def test_platform_settings_hold_only_the_webhook_secret():
    from config.settings import Settings

    assert "stripe_secret_key" not in Settings.model_fields
    assert "stripe_webhook_secret" in Settings.model_fields
