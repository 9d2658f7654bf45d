"""
MenuRepository for menu categories and items
"""

from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Category, MenuItem


class MenuRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self, restaurant_id: int, active_only: bool = False) -> List[Category]:
        query = select(Category).where(Category.restaurant_id == restaurant_id)
        if active_only:
            query = query.where(Category.is_active.is_(True))
        result = await self.db.execute(query.order_by(Category.display_order, Category.name))
        return list(result.scalars().all())

    async def get_category(self, category_id: int, restaurant_id: int) -> Optional[Category]:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id, Category.restaurant_id == restaurant_id)
        )
        return result.scalar_one_or_none()

    async def create_category(self, restaurant_id: int, data: dict) -> Category:
        """New categories go to the end of the menu."""
        count = await self.db.scalar(
            select(func.count(Category.id)).where(Category.restaurant_id == restaurant_id)
        )
        category = Category(restaurant_id=restaurant_id, display_order=count or 0, **data)
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update_category(self, category: Category, updates: dict) -> Category:
        for key, value in updates.items():
            if key in ("id", "restaurant_id", "created_at"):
                continue
            if hasattr(category, key):
                setattr(category, key, value)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category: Category) -> None:
        await self.db.delete(category)
        await self.db.flush()

    async def list_items(self, restaurant_id: int, category_id: Optional[int] = None,
                         available_only: bool = False) -> List[MenuItem]:
        query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
        if category_id is not None:
            query = query.where(MenuItem.category_id == category_id)
        if available_only:
            query = query.where(MenuItem.is_available.is_(True))
        result = await self.db.execute(query.order_by(MenuItem.display_order, MenuItem.name))
        return list(result.scalars().all())

    async def get_item(self, item_id: int, restaurant_id: int) -> Optional[MenuItem]:
        result = await self.db.execute(
            select(MenuItem).where(MenuItem.id == item_id, MenuItem.restaurant_id == restaurant_id)
        )
        return result.scalar_one_or_none()

    async def create_item(self, restaurant_id: int, data: dict) -> MenuItem:
        item = MenuItem(restaurant_id=restaurant_id, **data)
        self.db.add(item)
        await self.db.flush()
        await self.db.refresh(item)
        return item

    async def update_item(self, item: MenuItem, updates: dict) -> MenuItem:
        for key, value in updates.items():
            if key in ("id", "restaurant_id", "created_at"):
                continue
            if hasattr(item, key):
                setattr(item, key, value)
        await self.db.flush()
        await self.db.refresh(item)
        return item

    async def delete_item(self, item: MenuItem) -> None:
        await self.db.delete(item)
        await self.db.flush()
