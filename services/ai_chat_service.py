"""
AI assistant for restaurant owners.

Builds a statistics snapshot of the restaurant's orders and asks an
OpenAI-compatible chat completion API to answer questions grounded in it.
"""

import logging
from collections import Counter
from typing import List, Optional

from openai import OpenAI, OpenAIError

from config.settings import settings
from database_models import MenuItem, Order, Restaurant
from utils.currency import format_price

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = ("delivered", "ready")
TOP_ITEMS = 5
RECENT_ORDERS = 5


def build_restaurant_context(restaurant: Restaurant, orders: List[Order],
                             menu_items: Optional[List[MenuItem]] = None) -> dict:
    """
    Summarize a restaurant's orders and menu. Cancelled orders count towards
    the totals but not towards revenue. Sold items are named after the current
    menu item when the order line still points at one.
    """
    menu_items = menu_items or []
    menu_names = {str(item.id): item.name for item in menu_items}
    billable = [order for order in orders if order.status != "cancelled"]
    total_revenue = round(sum(order.total_amount or 0.0 for order in billable), 2)
    average_order_value = round(total_revenue / len(billable), 2) if billable else 0.0

    customers = {
        (order.customer_email or order.customer_phone or order.customer_name)
        for order in orders
        if order.customer_email or order.customer_phone or order.customer_name
    }

    item_counts = Counter()
    for order in billable:
        for item in order.items:
            item_counts[menu_names.get(item.menu_item_id, item.name)] += item.quantity

    recent = sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)[:RECENT_ORDERS]

    return {
        "name": restaurant.name,
        "currency": restaurant.currency,
        "currency_position": restaurant.currency_position,
        "stats": {
            "total_orders": len(orders),
            "total_revenue": total_revenue,
            "average_order_value": average_order_value,
            "pending_orders": sum(1 for order in orders if order.status == "pending"),
            "completed_orders": sum(1 for order in orders if order.status in COMPLETED_STATUSES),
            "total_customers": len(customers),
            "popular_items": [
                {"name": name, "quantity": quantity}
                for name, quantity in item_counts.most_common(TOP_ITEMS)
            ],
            "recent_orders": [
                {"number": order.order_number, "amount": order.total_amount, "status": order.status}
                for order in recent
            ],
            "menu_items": len(menu_items),
            "available_menu_items": sum(1 for item in menu_items if item.is_available),
            "featured_items": [item.name for item in menu_items if item.is_featured],
        },
    }


def build_system_prompt(context: dict) -> str:
    stats = context["stats"]
    currency = context.get("currency", "USD")
    position = context.get("currency_position", "before")

    def money(amount: float) -> str:
        return format_price(amount or 0.0, currency, position)

    popular = "\n".join(
        f"{index}. {item['name']}: {item['quantity']} units"
        for index, item in enumerate(stats["popular_items"], start=1)
    ) or "No sales recorded yet."
    recent = "\n".join(
        f"- Order #{order['number']}: {money(order['amount'])} ({order['status']})"
        for order in stats["recent_orders"]
    ) or "No orders yet."

    return f"""You are an AI assistant specialized in restaurant management. Respond in a professional, clear and helpful manner, based solely on the provided data.

Restaurant context:
- Name: {context['name']}
- Total orders: {stats['total_orders']}
- Total revenue: {money(stats['total_revenue'])}
- Average order value: {money(stats['average_order_value'])}
- Pending orders: {stats['pending_orders']}
- Completed orders: {stats['completed_orders']}
- Unique customers: {stats['total_customers']}
- Menu items: {stats.get('menu_items', 0)} ({stats.get('available_menu_items', 0)} available)
- Featured items: {', '.join(stats.get('featured_items') or []) or 'None'}

Best-selling products:
{popular}

Recent orders:
{recent}

Instructions:
1. Do not use emojis
2. Base your answers only on the data above and say clearly when it is insufficient
3. Do not invent information; use the real numbers provided
4. Be concise but informative"""


class AIChatService:
    """
    Args:
        client: Optional OpenAI client (tests inject a fake)
    """

    def __init__(self, client: Optional[OpenAI] = None):
        self._client = client

    def _get_client(self) -> Optional[OpenAI]:
        if self._client is not None:
            return self._client
        if not settings.ai_api_key:
            return None
        self._client = OpenAI(api_key=settings.ai_api_key, base_url=settings.ai_base_url)
        return self._client

    def chat(self, message: str, context: dict) -> dict:
        client = self._get_client()
        if client is None:
            logger.error("AI_API_KEY not configured - cannot answer assistant question")
            return {"error": "AI service is not configured", "is_error": True, "status": 500}

        try:
            completion = client.chat.completions.create(
                model=settings.ai_model,
                messages=[
                    {"role": "system", "content": build_system_prompt(context)},
                    {"role": "user", "content": message},
                ],
                max_tokens=1000,
                temperature=0.7,
                top_p=0.9,
            )
        except OpenAIError as e:
            logger.error(f"AI chat completion failed: {e}", exc_info=True)
            return {"error": "Error communicating with AI service", "is_error": True, "status": 502}

        if not completion.choices or not completion.choices[0].message:
            return {"error": "Invalid response from AI service", "is_error": True, "status": 502}

        return {"data": {"response": completion.choices[0].message.content}, "is_error": False}
