"""
Subscription Router - plan catalog, trial status, plan badge and feature gates
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from auth import get_current_user
from services.plan_badge import present_plan_badge
from services.subscription_service import Feature, SubscriptionService
from services.trial_service import compute_trial_status

subscription_router = APIRouter(prefix="/api/subscription", tags=["subscription"])


def _status_or_404(account: dict):
    status = SubscriptionService.get_subscription_status(account)
    if status is None:
        raise HTTPException(status_code=404, detail="Account state could not be resolved")
    return status


@subscription_router.get("/plans")
async def list_plans():
    return {"ok": True, "plans": [plan.model_dump() for plan in SubscriptionService.get_subscription_plans()]}


@subscription_router.get("/status")
async def get_status(current_user: dict = Depends(get_current_user)):
    status = _status_or_404(current_user)
    limits = SubscriptionService.get_plan_limits(current_user)
    return {
        "ok": True,
        "subscription": status.to_dict(),
        "limits": limits.model_dump() if limits else None,
    }


@subscription_router.get("/trial")
async def get_trial_status(current_user: dict = Depends(get_current_user)):
    """
    Trial window for the account. show_expired_banner drives the dashboard
    banner and the locked-content card.
    """
    if not current_user.get("created_at"):
        raise HTTPException(status_code=404, detail="Account state could not be resolved")

    trial = compute_trial_status(current_user["created_at"])
    subscription = _status_or_404(current_user)
    return {
        "ok": True,
        "trial": trial.to_dict(),
        # Paid accounts never see the trial banner
        "show_expired_banner": subscription.status == "trial_expired",
    }


@subscription_router.get("/badge")
async def get_plan_badge(
    compact: bool = Query(default=False),
    current_user: dict = Depends(get_current_user),
):
    status = SubscriptionService.get_subscription_status(current_user)
    return {"ok": True, "badge": present_plan_badge(status, compact=compact).to_dict()}


@subscription_router.get("/features/{feature}")
async def get_feature_access(feature: str, current_user: dict = Depends(get_current_user)):
    if feature not in {f.value for f in Feature}:
        raise HTTPException(status_code=404, detail=f"Unknown feature: {feature}")
    gate = SubscriptionService.get_feature_gate(feature, current_user)
    return {"ok": True, "gate": gate.model_dump()}
