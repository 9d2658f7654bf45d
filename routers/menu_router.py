"""
Menu Router - categories and items for the owner dashboard, plus the public menu
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id, require_feature
from crud.menu import MenuRepository
from crud.restaurant import RestaurantRepository
from database import get_db
from database_models import Category, MenuItem, Restaurant
from models.menu import (
    CreateCategoryRequest,
    CreateMenuItemRequest,
    UpdateCategoryRequest,
    UpdateMenuItemRequest,
)
from routers.restaurants_router import serialize_restaurant
from services.subscription_service import Feature
from utils.currency import format_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["menu"])

can_edit_menu = require_feature(Feature.MENU_MANAGEMENT.value)

# Columns a PATCH may clear with an explicit null
CLEARABLE_ITEM_FIELDS = (
    "category_id", "description", "image_url", "allergens", "dietary_info", "ingredients", "preparation_time",
)


def serialize_category(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "display_order": category.display_order,
        "is_active": category.is_active,
    }


def serialize_menu_item(item: MenuItem, restaurant: Restaurant) -> dict:
    return {
        "id": item.id,
        "category_id": item.category_id,
        "name": item.name,
        "description": item.description,
        "price": item.price,
        "formatted_price": format_price(item.price, restaurant.currency, restaurant.currency_position),
        "image_url": item.image_url,
        "allergens": item.allergens or [],
        "dietary_info": item.dietary_info or [],
        "ingredients": item.ingredients or [],
        "preparation_time": item.preparation_time,
        "is_available": item.is_available,
        "is_featured": item.is_featured,
        "display_order": item.display_order,
    }


async def _get_restaurant(db: AsyncSession, restaurant_id: int) -> Restaurant:
    restaurant = await RestaurantRepository(db).get_by_id(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


async def _get_category(repo: MenuRepository, category_id: int, restaurant_id: int) -> Category:
    category = await repo.get_category(category_id, restaurant_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def _get_item(repo: MenuRepository, item_id: int, restaurant_id: int) -> MenuItem:
    item = await repo.get_item(item_id, restaurant_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


async def _check_category(repo: MenuRepository, category_id: Optional[int], restaurant_id: int) -> None:
    if category_id is not None and await repo.get_category(category_id, restaurant_id) is None:
        raise HTTPException(status_code=400, detail="Category does not belong to this restaurant")


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

@router.get("/categories")
async def list_categories(
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    categories = await MenuRepository(db).list_categories(restaurant_id)
    return {"ok": True, "categories": [serialize_category(c) for c in categories]}


@router.post("/categories", status_code=201)
async def create_category(
    request: CreateCategoryRequest,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    category = await MenuRepository(db).create_category(restaurant_id, {
        "name": request.name.strip(),
        "description": (request.description or "").strip() or None,
        "is_active": request.is_active,
    })
    logger.info(f"Category {category.id} created for restaurant {restaurant_id}")
    return {"ok": True, "category": serialize_category(category)}


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: int,
    request: UpdateCategoryRequest,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    repo = MenuRepository(db)
    category = await _get_category(repo, category_id, restaurant_id)
    category = await repo.update_category(category, request.model_dump(exclude_none=True))
    return {"ok": True, "category": serialize_category(category)}


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    repo = MenuRepository(db)
    category = await _get_category(repo, category_id, restaurant_id)
    deleted_items = len(category.items)
    await repo.delete_category(category)
    logger.info(f"Category {category_id} deleted with {deleted_items} items (restaurant {restaurant_id})")
    return {"ok": True, "deleted_items": deleted_items}


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

@router.get("/items")
async def list_menu_items(
    category_id: Optional[int] = Query(default=None),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    items = await MenuRepository(db).list_items(restaurant_id, category_id=category_id)
    return {"ok": True, "items": [serialize_menu_item(item, restaurant) for item in items]}


@router.post("/items", status_code=201)
async def create_menu_item(
    request: CreateMenuItemRequest,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    repo = MenuRepository(db)
    await _check_category(repo, request.category_id, restaurant_id)

    data = request.model_dump()
    data["name"] = data["name"].strip()
    data["description"] = (data["description"] or "").strip() or None
    item = await repo.create_item(restaurant_id, data)
    logger.info(f"Menu item {item.id} created for restaurant {restaurant_id}")
    return {"ok": True, "item": serialize_menu_item(item, restaurant)}


@router.patch("/items/{item_id}")
async def update_menu_item(
    item_id: int,
    request: UpdateMenuItemRequest,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await _get_restaurant(db, restaurant_id)
    repo = MenuRepository(db)
    item = await _get_item(repo, item_id, restaurant_id)

    updates = {
        key: value
        for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None or key in CLEARABLE_ITEM_FIELDS
    }
    await _check_category(repo, updates.get("category_id"), restaurant_id)

    item = await repo.update_item(item, updates)
    return {"ok": True, "item": serialize_menu_item(item, restaurant)}


@router.delete("/items/{item_id}")
async def delete_menu_item(
    item_id: int,
    current_user: dict = Depends(can_edit_menu),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    repo = MenuRepository(db)
    item = await _get_item(repo, item_id, restaurant_id)
    await repo.delete_item(item)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Public menu
# ---------------------------------------------------------------------------

def build_public_menu(restaurant: Restaurant, categories: List[Category], items: List[MenuItem]) -> dict:
    """
    Active categories with their available items. Items without a category,
    or whose category is hidden, are dropped; featured items are listed apart.
    """
    by_category = {category.id: [] for category in categories}
    for item in items:
        if item.category_id in by_category:
            by_category[item.category_id].append(serialize_menu_item(item, restaurant))

    sections = [
        {**serialize_category(category), "items": by_category[category.id]}
        for category in categories
        if by_category[category.id]
    ]
    featured = [item for section in sections for item in section["items"] if item["is_featured"]]
    return {"restaurant": serialize_restaurant(restaurant), "categories": sections, "featured": featured}


@router.get("/public/{slug}")
async def get_public_menu(slug: str, db: AsyncSession = Depends(get_db)):
    """Menu shown on the customer-facing restaurant page"""
    restaurant = await RestaurantRepository(db).get_by_slug(slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    repo = MenuRepository(db)
    categories = await repo.list_categories(restaurant.id, active_only=True)
    items = await repo.list_items(restaurant.id, available_only=True)
    return {"ok": True, **build_public_menu(restaurant, categories, items)}
