"""
AI Router - restaurant assistant chat (Pro and Multi plans, and trials)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id, require_feature
from crud.menu import MenuRepository
from crud.order import OrderRepository
from crud.restaurant import RestaurantRepository
from database import get_db
from models.ai import ChatRequest
from services.ai_chat_service import AIChatService, build_restaurant_context
from services.subscription_service import Feature
from utils.responses import from_service_result, success_response

router = APIRouter(prefix="/api/ai", tags=["ai"])


def get_ai_chat_service() -> AIChatService:
    return AIChatService()


async def _load_context(db: AsyncSession, restaurant_id: int) -> dict:
    restaurant = await RestaurantRepository(db).get_by_id(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    orders = await OrderRepository(db).list_orders(restaurant_id)
    menu_items = await MenuRepository(db).list_items(restaurant_id)
    return build_restaurant_context(restaurant, orders, menu_items)


@router.get("/context")
async def get_ai_context(
    current_user: dict = Depends(require_feature(Feature.AI_CHAT.value)),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """Snapshot the assistant answers from"""
    return success_response(await _load_context(db, restaurant_id))


@router.post("/chat")
async def chat(
    request: ChatRequest,
    current_user: dict = Depends(require_feature(Feature.AI_CHAT.value)),
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
    service: AIChatService = Depends(get_ai_chat_service),
):
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    context = await _load_context(db, restaurant_id)
    result = service.chat(request.message.strip(), context)
    return from_service_result(result)
