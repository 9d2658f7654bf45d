"""
Orders Router - customer checkout and the owner's order board
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id, require_feature
from crud.menu import MenuRepository
from crud.order import OrderRepository
from crud.restaurant import RestaurantRepository
from database import get_db
from database_models import Order, Restaurant
from models.order import CreateOrderRequest, UpdateOrderRequest
from services.ai_chat_service import build_restaurant_context
from services.subscription_service import Feature
from utils.currency import format_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def serialize_order(order: Order, restaurant: Restaurant) -> dict:
    return {
        "id": order.id,
        "restaurant_id": order.restaurant_id,
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "customer_table_number": order.customer_table_number,
        "customer_address": order.customer_address,
        "special_instructions": order.special_instructions,
        "order_type": order.order_type,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "delivery_fee": order.delivery_fee,
        "total_amount": order.total_amount,
        "formatted_total": format_price(order.total_amount, restaurant.currency, restaurant.currency_position),
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "items": [
            {
                "id": item.id,
                "menu_item_id": item.menu_item_id,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "special_instructions": item.special_instructions,
            }
            for item in order.items
        ],
    }


async def _get_restaurant(db: AsyncSession, restaurant_id: int) -> Restaurant:
    restaurant = await RestaurantRepository(db).get_by_id(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


@router.post("")
async def create_order(request: CreateOrderRequest, db: AsyncSession = Depends(get_db)):
    """Place an order from the public restaurant page (no authentication)."""
    if not request.cart_items:
        raise HTTPException(status_code=400, detail="Missing required fields: cart_items")

    restaurant = await _get_restaurant(db, request.restaurant_id)

    items_subtotal = round(sum(item.price * item.quantity for item in request.cart_items), 2)
    subtotal = request.subtotal if request.subtotal is not None else items_subtotal
    total_amount = request.total_amount
    if total_amount is None:
        total_amount = round(subtotal + request.tax_amount + request.delivery_fee, 2)

    customer = request.customer_info
    order = await OrderRepository(db).create_order(
        {
            "restaurant_id": restaurant.id,
            "order_number": request.order_number,
            "customer_name": customer.name,
            "customer_phone": customer.phone,
            "customer_email": customer.email,
            "customer_table_number": customer.table_number,
            "customer_address": customer.address,
            "special_instructions": customer.special_instructions,
            "order_type": customer.order_type or "dine-in",
            "status": "pending",
            "subtotal": subtotal,
            "tax_amount": request.tax_amount,
            "delivery_fee": request.delivery_fee,
            "total_amount": total_amount,
        },
        [
            {
                "menu_item_id": item.id,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.price,
                "special_instructions": item.special_instructions,
            }
            for item in request.cart_items
        ],
    )
    logger.info(f"Order {order.order_number} created for restaurant {restaurant.id}")
    return {"ok": True, "order": serialize_order(order, restaurant), "message": "Order created successfully"}


@router.get("")
async def list_orders(
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    orders = await OrderRepository(db).list_orders(restaurant_id)
    return {"ok": True, "orders": [serialize_order(order, restaurant) for order in orders]}


@router.get("/summary")
async def order_summary(
    current_user: dict = Depends(require_feature(Feature.ANALYTICS.value)),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """Revenue and order statistics for the analytics dashboard"""
    restaurant = await _get_restaurant(db, restaurant_id)
    orders = await OrderRepository(db).list_orders(restaurant_id)
    menu_items = await MenuRepository(db).list_items(restaurant_id)
    context = build_restaurant_context(restaurant, orders, menu_items)
    stats = context["stats"]
    return {
        "ok": True,
        "summary": stats,
        "formatted_revenue": format_price(stats["total_revenue"], restaurant.currency, restaurant.currency_position),
    }


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    order = await OrderRepository(db).get_order(order_id, restaurant_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"ok": True, "order": serialize_order(order, restaurant)}


@router.patch("/{order_id}")
async def update_order_status(
    order_id: int,
    request: UpdateOrderRequest,
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    repo = OrderRepository(db)
    order = await repo.get_order(order_id, restaurant_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    order = await repo.update_order(order, {"status": request.status})
    return {"ok": True, "order": serialize_order(order, restaurant)}
