"""
Subscription Service - plan catalog, subscription status and feature access.

Every account starts on the 14-day Free Trial counted from its creation time.
Once an admin completes an upgrade request the account carries a paid plan
name and the start of its billing period, and the trial window no longer
applies. All functions take the account record explicitly so they stay pure.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from models.subscription import FeatureGateInfo, PlanFeatures, PlanLimits, SubscriptionPlan
from services.plan_badge import PlanName
from services.trial_service import TRIAL_DAYS, ceil_days, compute_trial_status, parse_timestamp

logger = logging.getLogger(__name__)

BILLING_PERIOD_DAYS = 30


class Feature(str, Enum):
    MENU_MANAGEMENT = "menu_management"
    ORDER_MANAGEMENT = "order_management"
    ANALYTICS = "analytics"
    EXPORT = "export"
    AI_CHAT = "ai_chat"
    MULTI_RESTAURANT = "multi_restaurant"


PLANS = [
    SubscriptionPlan(
        id="free-trial-plan",
        name="free-trial-plan",
        display_name=PlanName.FREE_TRIAL.value,
        description="Start selling today - 14-day free trial",
        price=0.0,
        billing_cycle="trial",
        trial_days=TRIAL_DAYS,
        features=PlanFeatures(analytics=True, export=True),
        limits=PlanLimits(max_restaurants=1, max_users=1, max_orders_per_month=100),
    ),
    SubscriptionPlan(
        id="starter-plan",
        name="starter-plan",
        display_name=PlanName.STARTER.value,
        description="Essential tools to sell without chaos",
        price=29.0,
        billing_cycle="monthly",
        features=PlanFeatures(),
        limits=PlanLimits(max_restaurants=1, max_users=1, max_orders_per_month=500),
    ),
    SubscriptionPlan(
        id="pro-plan",
        name="pro-plan",
        display_name=PlanName.PRO.value,
        description="Grow with intelligence - AI-powered insights",
        price=69.0,
        billing_cycle="monthly",
        features=PlanFeatures(analytics=True, export=True, ai_chat=True),
        limits=PlanLimits(max_restaurants=2, max_users=3, max_orders_per_month=2000),
        priority_support=True,
    ),
    SubscriptionPlan(
        id="multi-plan",
        name="multi-plan",
        display_name=PlanName.MULTI.value,
        description="Total control of multiple locations",
        price=149.0,
        billing_cycle="monthly",
        features=PlanFeatures(analytics=True, export=True, ai_chat=True, multi_restaurant=True),
        limits=PlanLimits(max_restaurants=5, max_users=10, max_orders_per_month=10000),
        priority_support=True,
    ),
]

PLANS_BY_ID = {plan.id: plan for plan in PLANS}
PLANS_BY_DISPLAY_NAME = {plan.display_name: plan for plan in PLANS}
FREE_TRIAL_PLAN = PLANS_BY_ID["free-trial-plan"]

FEATURE_GATES = {
    Feature.AI_CHAT: {
        "name": "AI Chat",
        "description": "Get instant help and insights from our AI assistant",
        "required_plan": PlanName.PRO.value,
    },
    Feature.ANALYTICS: {
        "name": "Analytics",
        "description": "Advanced analytics and reporting features",
        "required_plan": PlanName.PRO.value,
    },
    Feature.EXPORT: {
        "name": "Data Export",
        "description": "Export your data in multiple formats",
        "required_plan": PlanName.PRO.value,
    },
    Feature.MULTI_RESTAURANT: {
        "name": "Multi-Restaurant",
        "description": "Manage multiple restaurants from one account",
        "required_plan": PlanName.MULTI.value,
    },
}


@dataclass(frozen=True)
class SubscriptionStatus:
    plan_name: str
    is_trial: bool
    days_remaining: int
    status: str = "active"
    is_expired: bool = False
    expires_at: Optional[datetime] = None
    plan_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "status": self.status,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_trial": self.is_trial,
            "is_expired": self.is_expired,
            "days_remaining": self.days_remaining,
        }


def resolve_plan(identifier: Optional[str]) -> Optional[SubscriptionPlan]:
    """Look a plan up by id ("pro-plan") or display name ("Pro")."""
    if not identifier:
        return None
    return PLANS_BY_ID.get(identifier) or PLANS_BY_DISPLAY_NAME.get(identifier)


def _field(account: Any, name: str) -> Any:
    if isinstance(account, Mapping):
        return account.get(name)
    return getattr(account, name, None)


class SubscriptionService:
    """
    Derives subscription state from an account record.

    The account may be a User row or the cached dict produced by
    auth.get_current_user; it needs created_at, and optionally plan_name and
    plan_started_at.
    """

    @staticmethod
    def get_subscription_plans() -> list:
        return [plan for plan in PLANS if plan.is_active]

    @staticmethod
    def get_plan(account: Any) -> SubscriptionPlan:
        plan = resolve_plan(_field(account, "plan_name"))
        if plan is None or plan.id == FREE_TRIAL_PLAN.id or not _field(account, "plan_started_at"):
            return FREE_TRIAL_PLAN
        return plan

    @staticmethod
    def get_subscription_status(account: Any, now: Optional[datetime] = None) -> Optional[SubscriptionStatus]:
        """
        Compute the subscription status for an account.

        Returns None when the account has no creation timestamp, which
        callers surface as an unresolvable account.
        """
        created_at = _field(account, "created_at") if account is not None else None
        if not created_at:
            logger.warning("Cannot resolve subscription: account has no created_at")
            return None

        current = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        plan = SubscriptionService.get_plan(account)

        if plan.id == FREE_TRIAL_PLAN.id:
            trial = compute_trial_status(created_at, now=current)
            return SubscriptionStatus(
                plan_id=plan.id,
                plan_name=plan.display_name,
                status="trial_expired" if trial.is_expired else "trial",
                expires_at=trial.trial_end,
                is_trial=trial.is_trial,
                is_expired=trial.is_expired,
                days_remaining=trial.days_remaining,
            )

        period_start = parse_timestamp(_field(account, "plan_started_at"))
        period_end = period_start + timedelta(days=BILLING_PERIOD_DAYS)
        is_expired = current > period_end
        days_remaining = 0 if is_expired else min(BILLING_PERIOD_DAYS, max(0, ceil_days(period_end - current)))
        return SubscriptionStatus(
            plan_id=plan.id,
            plan_name=plan.display_name,
            status="expired" if is_expired else "active",
            expires_at=period_end,
            is_trial=False,
            is_expired=is_expired,
            days_remaining=days_remaining,
        )

    @staticmethod
    def has_feature_access(account: Any, feature: str, now: Optional[datetime] = None) -> bool:
        status = SubscriptionService.get_subscription_status(account, now=now)
        if status is None or status.is_expired:
            return False
        # During the trial every feature is unlocked
        if status.is_trial:
            return True
        plan = SubscriptionService.get_plan(account)
        return bool(getattr(plan.features, Feature(feature).value))

    @staticmethod
    def get_plan_limits(account: Any) -> Optional[PlanLimits]:
        if account is None or not _field(account, "created_at"):
            return None
        return SubscriptionService.get_plan(account).limits

    @staticmethod
    def get_feature_gate(feature: str, account: Any = None, now: Optional[datetime] = None) -> FeatureGateInfo:
        """Gate description for a feature, with the account's access when given."""
        key = Feature(feature)
        gate = FEATURE_GATES.get(key, {
            "name": key.value.replace("_", " ").title(),
            "description": "",
            "required_plan": PlanName.STARTER.value,
        })
        info = FeatureGateInfo(feature=key.value, **gate)
        if account is not None:
            status = SubscriptionService.get_subscription_status(account, now=now)
            info.has_access = SubscriptionService.has_feature_access(account, key.value, now=now)
            info.current_plan = status.plan_name if status else None
        return info
