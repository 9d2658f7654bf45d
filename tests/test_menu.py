"""
Menu management: categories, items and the public menu
"""
from datetime import datetime, timedelta, timezone

from services.ai_chat_service import build_restaurant_context


def add_category(client, owner, name, **extra):
    response = client.post("/api/menu/categories", headers=owner["headers"], json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()["category"]


def add_item(client, owner, name, price, **extra):
    response = client.post(
        "/api/menu/items", headers=owner["headers"], json={"name": name, "price": price, **extra}
    )
    assert response.status_code == 201, response.text
    return response.json()["item"]


def restaurant_slug(client, owner):
    return client.get("/api/restaurants/me", headers=owner["headers"]).json()["restaurant"]["slug"]


def test_categories_are_appended_in_order(client, owner):
    starters = add_category(client, owner, "  Starters ", description="  ")
    mains = add_category(client, owner, "Mains")

    categories = client.get("/api/menu/categories", headers=owner["headers"]).json()["categories"]

    assert starters["name"] == "Starters"
    assert starters["description"] is None
    assert [c["display_order"] for c in (starters, mains)] == [0, 1]
    assert [c["name"] for c in categories] == ["Starters", "Mains"]


def test_create_item_formats_price_and_cleans_tags(client, owner):
    mains = add_category(client, owner, "Mains")

    item = add_item(
        client, owner, "Burger", 12.5,
        category_id=mains["id"],
        allergens=["gluten", " gluten ", ""],
        preparation_time=15,
        image_url="https://cdn.example.com/burger.jpg",
    )

    assert item["formatted_price"] == "$12.50"
    assert item["allergens"] == ["gluten"]
    assert item["dietary_info"] == []
    assert item["image_url"] == "https://cdn.example.com/burger.jpg"


def test_item_validation(client, owner):
    invalid = (
        {"name": "Free lunch", "price": 0},
        {"name": "", "price": 5},
        {"name": "Soup", "price": 5, "preparation_time": -1},
    )
    for payload in invalid:
        response = client.post("/api/menu/items", headers=owner["headers"], json=payload)
        assert response.status_code == 422


def test_item_cannot_use_another_restaurants_category(client, owner, signup_user):
    other_headers, _ = signup_user("other@example.com", restaurant_name="Other Place")
    other = {"headers": other_headers}
    foreign = add_category(client, other, "Theirs")

    response = client.post(
        "/api/menu/items",
        headers=owner["headers"],
        json={"name": "Burger", "price": 10, "category_id": foreign["id"]},
    )

    assert response.status_code == 400


def test_update_item_and_clear_category(client, owner):
    mains = add_category(client, owner, "Mains")
    item = add_item(client, owner, "Burger", 12.5, category_id=mains["id"], description="Beef")

    updated = client.patch(
        f"/api/menu/items/{item['id']}",
        headers=owner["headers"],
        json={"price": 14, "is_available": False, "category_id": None, "name": None},
    ).json()["item"]

    assert updated["price"] == 14
    assert updated["is_available"] is False
    assert updated["category_id"] is None
    assert updated["name"] == "Burger"
    assert updated["description"] == "Beef"


def test_items_are_scoped_to_the_owner(client, owner, signup_user):
    item = add_item(client, owner, "Burger", 12.5)
    other_headers, _ = signup_user("other@example.com", restaurant_name="Other Place")

    assert client.patch(f"/api/menu/items/{item['id']}", headers=other_headers, json={"price": 1}).status_code == 404
    assert client.delete(f"/api/menu/items/{item['id']}", headers=other_headers).status_code == 404
    assert client.get("/api/menu/items", headers=other_headers).json()["items"] == []


def test_delete_category_removes_its_items(client, owner):
    drinks = add_category(client, owner, "Drinks")
    add_item(client, owner, "Cola", 2.5, category_id=drinks["id"])
    add_item(client, owner, "Water", 1.5, category_id=drinks["id"])
    kept = add_item(client, owner, "Bread", 1.0)

    response = client.delete(f"/api/menu/categories/{drinks['id']}", headers=owner["headers"])

    assert response.json()["deleted_items"] == 2
    items = client.get("/api/menu/items", headers=owner["headers"]).json()["items"]
    assert [item["id"] for item in items] == [kept["id"]]


def test_public_menu_shows_active_categories_and_available_items(client, owner):
    mains = add_category(client, owner, "Mains")
    hidden = add_category(client, owner, "Secret", is_active=False)
    add_category(client, owner, "Empty")
    add_item(client, owner, "Burger", 12.5, category_id=mains["id"], is_featured=True)
    add_item(client, owner, "Sold out", 9, category_id=mains["id"], is_available=False)
    add_item(client, owner, "Hidden dish", 20, category_id=hidden["id"])

    body = client.get(f"/api/menu/public/{restaurant_slug(client, owner)}").json()

    assert body["restaurant"]["name"] == "Casa Tably"
    assert [c["name"] for c in body["categories"]] == ["Mains"]
    assert [i["name"] for i in body["categories"][0]["items"]] == ["Burger"]
    assert [i["name"] for i in body["featured"]] == ["Burger"]
    assert client.get("/api/menu/public/no-such-place").status_code == 404


def test_expired_trial_cannot_edit_menu(client, owner, run_sql):
    item = add_item(client, owner, "Burger", 12.5)
    created = datetime.now(timezone.utc) - timedelta(days=20)
    run_sql(
        "UPDATE users SET created_at = :created WHERE email = :email",
        {"created": created.strftime("%Y-%m-%d %H:%M:%S.%f"), "email": "owner@example.com"},
    )

    blocked = client.post("/api/menu/items", headers=owner["headers"], json={"name": "Soup", "price": 5})

    assert blocked.status_code == 402
    assert blocked.json()["detail"]["feature"] == "menu_management"
    # Reading the menu stays open
    assert [i["id"] for i in client.get("/api/menu/items", headers=owner["headers"]).json()["items"]] == [item["id"]]


def test_context_names_sold_items_after_the_menu(client, owner):
    item = add_item(client, owner, "Burger", 12.5, is_featured=True)
    client.post("/api/orders", json={
        "restaurant_id": owner["restaurant_id"],
        "order_number": "M-1",
        "customer_info": {"name": "Ana"},
        "cart_items": [{"id": str(item["id"]), "name": "burger (old name)", "price": 12.5, "quantity": 2}],
    })

    summary = client.get("/api/orders/summary", headers=owner["headers"]).json()["summary"]

    assert summary["popular_items"] == [{"name": "Burger", "quantity": 2}]
    assert summary["menu_items"] == 1
    assert summary["featured_items"] == ["Burger"]


def test_context_without_menu():
    class Restaurant:
        name = "Casa"
        currency = "USD"
        currency_position = "before"

    stats = build_restaurant_context(Restaurant(), [])["stats"]

    assert stats["menu_items"] == 0
    assert stats["featured_items"] == []
