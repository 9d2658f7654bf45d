from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id
from crud.restaurant import RestaurantRepository
from database import get_db
from database_models import Restaurant
from models.restaurant import UpdateRestaurantRequest
from utils.currency import CURRENCY_CONFIGS

router = APIRouter(prefix="/api/restaurants", tags=["restaurants"])


def serialize_restaurant(restaurant: Restaurant) -> dict:
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "slug": restaurant.slug,
        "address": restaurant.address,
        "phone": restaurant.phone,
        "currency": restaurant.currency,
        "currency_position": restaurant.currency_position,
        "tax_rate": restaurant.tax_rate,
    }


@router.get("/me")
async def get_my_restaurant(
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await RestaurantRepository(db).get_by_id(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return {"ok": True, "restaurant": serialize_restaurant(restaurant)}


@router.patch("/me")
async def update_my_restaurant(
    request: UpdateRestaurantRequest,
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    repo = RestaurantRepository(db)
    restaurant = await repo.get_by_id(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    updates = request.model_dump(exclude_none=True)
    if "currency" in updates:
        updates["currency"] = updates["currency"].upper()
        if updates["currency"] not in CURRENCY_CONFIGS:
            raise HTTPException(status_code=400, detail=f"Unsupported currency: {updates['currency']}")

    restaurant = await repo.update_restaurant(restaurant, updates)
    return {"ok": True, "restaurant": serialize_restaurant(restaurant)}


@router.get("/{slug}")
async def get_public_restaurant(slug: str, db: AsyncSession = Depends(get_db)):
    """Public restaurant page data for the customer-facing site"""
    restaurant = await RestaurantRepository(db).get_by_slug(slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return {"ok": True, "restaurant": serialize_restaurant(restaurant)}
