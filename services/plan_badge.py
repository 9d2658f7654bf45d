"""
Plan badge shown in the dashboard chrome.

Maps a subscription status to the label, icon, colour classes and status
suffix the frontend renders. Pure presentation, no I/O.
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class PlanName(str, Enum):
    FREE_TRIAL = "Free Trial"
    STARTER = "Starter"
    PRO = "Pro"
    MULTI = "Multi"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["PlanName"]:
        """Return the matching plan, or None for labels we don't know."""
        for plan in cls:
            if plan.value == label:
                return plan
        return None


@dataclass(frozen=True)
class PlanBadge:
    label: str
    icon: Optional[str]
    color_class: str
    suffix: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


# icon, colour classes
PLAN_STYLES = {
    PlanName.FREE_TRIAL: ("clock", "bg-blue-100 text-blue-700 border-blue-200"),
    PlanName.STARTER: ("zap", "bg-green-100 text-green-700 border-green-200"),
    PlanName.PRO: ("crown", "bg-purple-100 text-purple-700 border-purple-200"),
    PlanName.MULTI: ("crown", "bg-orange-100 text-orange-700 border-orange-200"),
}
DEFAULT_STYLE = ("sparkles", "bg-gray-100 text-gray-600 border-gray-200")

LOADING_BADGE = PlanBadge(label="Loading...", icon=None, color_class="bg-gray-100 text-gray-600 animate-pulse")
NO_PLAN_BADGE = PlanBadge(label="No Plan", icon="sparkles", color_class="bg-gray-100 text-gray-600")

EXPIRES_SOON_DAYS = 3


def plan_style(plan_name: Optional[str]) -> tuple:
    plan = PlanName.from_label(plan_name)
    if plan is None:
        return DEFAULT_STYLE
    return PLAN_STYLES[plan]


def status_suffix(is_trial: bool, days_remaining: int) -> str:
    if is_trial:
        return f"({days_remaining}d left)"
    if 0 < days_remaining <= EXPIRES_SOON_DAYS:
        return "(Expires soon)"
    return ""


def present_plan_badge(status, loading: bool = False, compact: bool = False) -> PlanBadge:
    """
    Build the plan badge for a subscription status.

    Args:
        status: SubscriptionStatus (or anything with plan_name, is_trial and
            days_remaining attributes), or None when the user has no plan
        loading: True while the status is still being fetched
        compact: Show only the first word of the plan name

    Returns:
        PlanBadge
    """
    if loading:
        return LOADING_BADGE
    if status is None:
        return NO_PLAN_BADGE

    icon, color_class = plan_style(status.plan_name)
    label = status.plan_name or "Unknown"
    if compact:
        label = label.split(" ")[0]

    return PlanBadge(
        label=label,
        icon=icon,
        color_class=color_class,
        suffix=status_suffix(status.is_trial, status.days_remaining),
    )
