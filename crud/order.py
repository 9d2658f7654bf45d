"""
OrderRepository for orders and their line items
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Order, OrderItem


class OrderRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(self, order_data: dict, items: List[dict]) -> Order:
        """
        Create an order and its items in one flush.

        Args:
            order_data: Column values for the order
            items: Dicts with menu_item_id, name, quantity, unit_price and
                optional special_instructions; total_price is computed here
        """
        order = Order(**order_data)
        for item in items:
            order.items.append(OrderItem(
                menu_item_id=item.get("menu_item_id"),
                name=item["name"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=round(item["unit_price"] * item["quantity"], 2),
                special_instructions=item.get("special_instructions"),
            ))
        self.db.add(order)
        await self.db.flush()
        await self.db.refresh(order)
        return order

    async def get_order(self, order_id: int, restaurant_id: int) -> Optional[Order]:
        result = await self.db.execute(
            select(Order).where(Order.id == order_id, Order.restaurant_id == restaurant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        result = await self.db.execute(select(Order).where(Order.payment_reference == reference))
        return result.scalars().first()

    async def list_orders(self, restaurant_id: int) -> List[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.restaurant_id == restaurant_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def update_order(self, order: Order, updates: dict) -> Order:
        for key, value in updates.items():
            if hasattr(order, key):
                setattr(order, key, value)
        await self.db.flush()
        await self.db.refresh(order)
        return order
