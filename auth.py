"""
Authentication routes and dependencies
"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import TOKEN_MAX_AGE_SECONDS, create_jwt, decode_jwt, hash_password, verify_password
from config.settings import settings
from crud.restaurant import RestaurantRepository
from crud.user import UserRepository
from database import get_db
from database_models import User
from services.subscription_service import SubscriptionService
from utils.cache import get_cached
from utils.security_utils import validate_email, validate_password_strength

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])

USER_CACHE_TTL_SECONDS = 300


class SignupRequest(BaseModel):
    email: str
    password: str
    restaurant_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


def user_to_account(user: User) -> dict:
    """JSON-safe account record, the shape cached and handed to services."""
    return {
        "id": user.id,
        "email": user.email,
        "is_active": user.is_active,
        "role": user.role,
        "restaurant_id": user.restaurant_id,
        "plan_name": user.plan_name,
        "plan_started_at": user.plan_started_at.isoformat() if user.plan_started_at else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _auth_response(user: User) -> JSONResponse:
    token = create_jwt(str(user.id), role=user.role)
    response = JSONResponse(
        content={
            "ok": True,
            "user_id": str(user.id),
            "token": token,
        }
    )
    response.set_cookie(
        key="auth_token",
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=TOKEN_MAX_AGE_SECONDS,
    )
    return response


@auth_router.post("/signup")
async def signup(request: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Create a new account and its restaurant. The free trial starts now."""
    if not validate_email(request.email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    try:
        validate_password_strength(request.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    email = request.email.lower()
    user_repo = UserRepository(db)
    if await user_repo.get_user_by_email(email):
        raise HTTPException(status_code=400, detail="Email already registered")

    restaurant_name = (request.restaurant_name or "").strip() or f"{email.split('@')[0]}'s Restaurant"
    restaurant = await RestaurantRepository(db).create_restaurant({"name": restaurant_name})

    user = await user_repo.create_user({
        "email": email,
        "hashed_password": hash_password(request.password),
        "is_active": True,
        "role": "admin" if email in settings.admin_email_list else "owner",
        "restaurant_id": restaurant.id,
    })
    logger.info(f"New account {user.id} ({email}) with restaurant {restaurant.slug}")

    return _auth_response(user)


@auth_router.post("/login")
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login and get JWT token"""
    user = await UserRepository(db).get_user_by_email(request.email.lower())
    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive")

    return _auth_response(user)


@auth_router.post("/logout")
async def logout():
    """Logout and clear auth token cookie"""
    response = JSONResponse(
        content={
            "ok": True,
            "message": "Logged out successfully"
        }
    )
    response.set_cookie(
        key="auth_token",
        value="",
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=0
    )
    return response


async def _get_account_with_caching(user_id: int, user_repo: UserRepository) -> dict:
    async def fetch_user():
        user = await user_repo.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=401, detail="User not found")
        return user_to_account(user)

    return await get_cached(
        key=f"user:{user_id}",
        fallback_func=fetch_user,
        ttl_seconds=USER_CACHE_TTL_SECONDS,
    )


async def get_current_user(
    auth_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Dependency returning the authenticated account record.

    Authentication priority:
    1. auth_token cookie (set by login/signup)
    2. Authorization: Bearer header (API consumers)
    """
    token = None
    if auth_token:
        token = auth_token
    elif authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "").strip()

    if not token:
        raise HTTPException(status_code=401, detail="Missing authentication token")

    payload = decode_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise HTTPException(status_code=401, detail="Invalid user ID in token")

    account = await _get_account_with_caching(user_id, UserRepository(db))
    if not account.get("is_active"):
        raise HTTPException(status_code=401, detail="User account is inactive")

    return account


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Unauthorized: Admin access required")
    return current_user


async def get_current_restaurant_id(current_user: dict = Depends(get_current_user)) -> int:
    restaurant_id = current_user.get("restaurant_id")
    if not restaurant_id:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant_id


def require_feature(feature: str):
    """
    Dependency factory gating a route behind a plan feature.
    Responds 402 with the gate description when the account lacks access.
    """
    async def dependency(current_user: dict = Depends(get_current_user)) -> dict:
        gate = SubscriptionService.get_feature_gate(feature, current_user)
        if not gate.has_access:
            logger.info(f"User {current_user.get('id')} blocked from {feature} on plan {gate.current_plan}")
            raise HTTPException(status_code=402, detail=gate.model_dump())
        return current_user

    return dependency


@auth_router.get("/me")
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Current account, with its subscription status"""
    status = SubscriptionService.get_subscription_status(current_user)
    return {
        "ok": True,
        "user_id": str(current_user["id"]),
        "email": current_user["email"],
        "role": current_user["role"],
        "restaurant_id": current_user["restaurant_id"],
        "is_active": current_user["is_active"],
        "subscription": status.to_dict() if status else None,
    }
