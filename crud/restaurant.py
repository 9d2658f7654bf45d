"""
RestaurantRepository for restaurants and their payment settings
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import PaymentSettings, Restaurant
from utils.security_utils import slugify

# Taken by routes under /api/restaurants
RESERVED_SLUGS = ("me",)


class RestaurantRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, restaurant_id: int) -> Optional[Restaurant]:
        result = await self.db.execute(
            select(Restaurant).where(Restaurant.id == restaurant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[Restaurant]:
        result = await self.db.execute(
            select(Restaurant).where(Restaurant.slug == slug)
        )
        return result.scalar_one_or_none()

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug = base
        suffix = 2
        while slug in RESERVED_SLUGS or await self.get_by_slug(slug) is not None:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def create_restaurant(self, data: dict) -> Restaurant:
        restaurant = Restaurant(
            name=data["name"],
            slug=await self._unique_slug(data.get("slug") or data["name"]),
            address=data.get("address"),
            phone=data.get("phone"),
            currency=data.get("currency", "USD"),
            currency_position=data.get("currency_position", "before"),
            tax_rate=data.get("tax_rate", 0.0),
        )
        self.db.add(restaurant)
        await self.db.flush()
        await self.db.refresh(restaurant)
        return restaurant

    async def update_restaurant(self, restaurant: Restaurant, updates: dict) -> Restaurant:
        for key, value in updates.items():
            if key in ("id", "slug", "created_at"):
                continue
            if hasattr(restaurant, key):
                setattr(restaurant, key, value)
        await self.db.flush()
        await self.db.refresh(restaurant)
        return restaurant

    async def get_payment_settings(self, restaurant_id: int) -> Optional[PaymentSettings]:
        result = await self.db.execute(
            select(PaymentSettings).where(PaymentSettings.restaurant_id == restaurant_id)
        )
        return result.scalar_one_or_none()

    async def save_payment_settings(self, restaurant_id: int, updates: dict) -> PaymentSettings:
        """Create or update a restaurant's gateway settings. None values are ignored."""
        payment_settings = await self.get_payment_settings(restaurant_id)
        if payment_settings is None:
            payment_settings = PaymentSettings(restaurant_id=restaurant_id)
            self.db.add(payment_settings)

        for key, value in updates.items():
            if value is not None and hasattr(payment_settings, key):
                setattr(payment_settings, key, value)

        await self.db.flush()
        await self.db.refresh(payment_settings)
        return payment_settings
