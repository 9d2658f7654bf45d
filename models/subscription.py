"""
Subscription plan models
"""
from typing import Literal, Optional

from pydantic import BaseModel


class PlanFeatures(BaseModel):
    menu_management: bool = True
    order_management: bool = True
    analytics: bool = False
    export: bool = False
    ai_chat: bool = False
    multi_restaurant: bool = False


class PlanLimits(BaseModel):
    max_restaurants: int
    max_users: int
    max_orders_per_month: int


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    display_name: str
    description: str
    price: float
    billing_cycle: Literal["trial", "monthly", "yearly"]
    trial_days: int = 0
    features: PlanFeatures
    limits: PlanLimits
    priority_support: bool = False
    is_active: bool = True


class FeatureGateInfo(BaseModel):
    feature: str
    name: str
    description: str
    required_plan: str
    has_access: Optional[bool] = None
    current_plan: Optional[str] = None
