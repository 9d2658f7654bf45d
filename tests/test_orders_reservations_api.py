"""
API tests for restaurants, orders and reservations
"""
from datetime import date, timedelta


def order_payload(restaurant_id, **overrides):
    payload = {
        "restaurant_id": restaurant_id,
        "order_number": "A-1001",
        "customer_info": {"name": "Ana", "phone": "555-0100", "table_number": "4"},
        "cart_items": [
            {"id": "burger", "name": "Burger", "price": 9.5, "quantity": 2},
            {"id": "soda", "name": "Soda", "price": 2.0, "quantity": 1},
        ],
        "tax_amount": 1.5,
    }
    payload.update(overrides)
    return payload


def reservation_payload(restaurant_id, **overrides):
    payload = {
        "restaurant_id": restaurant_id,
        "customer_name": "Luis",
        "customer_phone": "555-0101",
        "party_size": 4,
        "reservation_date": (date.today() + timedelta(days=3)).isoformat(),
        "reservation_time": "19:30",
        "table_preference": "any",
    }
    payload.update(overrides)
    return payload


def test_my_restaurant_and_public_page(client, owner):
    mine = client.get("/api/restaurants/me", headers=owner["headers"]).json()["restaurant"]
    assert mine["name"] == "Casa Tably"
    assert mine["slug"] == "casa-tably"

    public = client.get(f"/api/restaurants/{mine['slug']}")
    assert public.status_code == 200
    assert public.json()["restaurant"]["id"] == owner["restaurant_id"]

    assert client.get("/api/restaurants/nowhere").status_code == 404


def test_update_restaurant_currency(client, owner):
    response = client.patch(
        "/api/restaurants/me",
        headers=owner["headers"],
        json={"currency": "eur", "currency_position": "after", "tax_rate": 10},
    )
    assert response.status_code == 200
    assert response.json()["restaurant"]["currency"] == "EUR"

    bad = client.patch("/api/restaurants/me", headers=owner["headers"], json={"currency": "ZZZ"})
    assert bad.status_code == 400


def test_create_order_computes_totals(client, owner):
    response = client.post("/api/orders", json=order_payload(owner["restaurant_id"]))

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["subtotal"] == 21.0
    assert order["total_amount"] == 22.5
    assert order["formatted_total"] == "$22.50"
    assert order["status"] == "pending"
    assert order["payment_status"] == "unpaid"
    assert [item["total_price"] for item in order["items"]] == [19.0, 2.0]


def test_create_order_keeps_client_totals(client, owner):
    payload = order_payload(owner["restaurant_id"], subtotal=20.0, total_amount=25.0)

    order = client.post("/api/orders", json=payload).json()["order"]

    assert order["subtotal"] == 20.0
    assert order["total_amount"] == 25.0


def test_create_order_validation(client, owner):
    empty = client.post("/api/orders", json=order_payload(owner["restaurant_id"], cart_items=[]))
    assert empty.status_code == 400

    missing = client.post("/api/orders", json=order_payload(9999))
    assert missing.status_code == 404


def test_owner_order_board(client, owner, signup_user):
    order_id = client.post("/api/orders", json=order_payload(owner["restaurant_id"])).json()["order"]["id"]

    orders = client.get("/api/orders", headers=owner["headers"]).json()["orders"]
    assert [o["id"] for o in orders] == [order_id]

    updated = client.patch(f"/api/orders/{order_id}", headers=owner["headers"], json={"status": "preparing"})
    assert updated.status_code == 200
    assert updated.json()["order"]["status"] == "preparing"

    invalid = client.patch(f"/api/orders/{order_id}", headers=owner["headers"], json={"status": "eaten"})
    assert invalid.status_code == 422

    # Another restaurant cannot see the order
    other_headers, _ = signup_user("other@example.com")
    assert client.get(f"/api/orders/{order_id}", headers=other_headers).status_code == 404
    assert client.get("/api/orders", headers=other_headers).json()["orders"] == []


def test_order_summary(client, owner):
    client.post("/api/orders", json=order_payload(owner["restaurant_id"]))
    cancelled = client.post(
        "/api/orders", json=order_payload(owner["restaurant_id"], order_number="A-1002")
    ).json()["order"]
    client.patch(f"/api/orders/{cancelled['id']}", headers=owner["headers"], json={"status": "cancelled"})

    body = client.get("/api/orders/summary", headers=owner["headers"]).json()

    assert body["summary"]["total_orders"] == 2
    assert body["summary"]["total_revenue"] == 22.5
    assert body["summary"]["popular_items"][0] == {"name": "Burger", "quantity": 2}
    assert body["formatted_revenue"] == "$22.50"


def test_create_reservation(client, owner):
    response = client.post("/api/reservations", json=reservation_payload(owner["restaurant_id"]))

    assert response.status_code == 201
    reservation = response.json()
    assert reservation["status"] == "pending"
    assert reservation["table_preference"] is None
    assert reservation["reservation_time"] == "19:30"


def test_reservation_validation(client, owner):
    restaurant_id = owner["restaurant_id"]

    zero = client.post("/api/reservations", json=reservation_payload(restaurant_id, party_size=0))
    assert zero.status_code == 400

    past_day = (date.today() - timedelta(days=1)).isoformat()
    past = client.post("/api/reservations", json=reservation_payload(restaurant_id, reservation_date=past_day))
    assert past.status_code == 400

    missing = client.post("/api/reservations", json=reservation_payload(9999))
    assert missing.status_code == 404


def test_reservation_board(client, owner):
    restaurant_id = owner["restaurant_id"]
    later = (date.today() + timedelta(days=5)).isoformat()
    client.post("/api/reservations", json=reservation_payload(restaurant_id, reservation_date=later))
    first = client.post("/api/reservations", json=reservation_payload(restaurant_id)).json()

    reservations = client.get("/api/reservations", headers=owner["headers"]).json()
    assert [r["id"] for r in reservations][0] == first["id"]

    confirmed = client.patch(
        f"/api/reservations/{first['id']}", headers=owner["headers"], json={"status": "confirmed"}
    )
    assert confirmed.json()["status"] == "confirmed"

    assert client.patch(
        "/api/reservations/9999", headers=owner["headers"], json={"status": "confirmed"}
    ).status_code == 404
