"""
Unit tests for the dashboard plan badge
"""
from types import SimpleNamespace

import pytest

from services.plan_badge import (
    DEFAULT_STYLE,
    LOADING_BADGE,
    NO_PLAN_BADGE,
    PlanName,
    present_plan_badge,
)
from services.subscription_service import SubscriptionStatus


def make_status(plan_name, is_trial, days_remaining):
    return SubscriptionStatus(plan_name=plan_name, is_trial=is_trial, days_remaining=days_remaining)


def test_starter_expiring_soon():
    badge = present_plan_badge(make_status("Starter", False, 2))

    assert badge.label == "Starter"
    assert badge.icon == "zap"
    assert "green" in badge.color_class
    assert badge.suffix == "(Expires soon)"


def test_no_status_is_no_plan():
    assert present_plan_badge(None) == NO_PLAN_BADGE
    assert present_plan_badge(None, compact=True).label == "No Plan"


def test_loading_wins_over_status():
    assert present_plan_badge(make_status("Pro", False, 2), loading=True) == LOADING_BADGE
    assert present_plan_badge(None, loading=True) == LOADING_BADGE


def test_trial_countdown_suffix():
    badge = present_plan_badge(make_status("Free Trial", True, 9))

    assert badge.icon == "clock"
    assert badge.suffix == "(9d left)"


def test_trial_suffix_takes_priority_over_expires_soon():
    assert present_plan_badge(make_status("Free Trial", True, 2)).suffix == "(2d left)"


@pytest.mark.parametrize("days, suffix", [
    (0, ""),
    (1, "(Expires soon)"),
    (3, "(Expires soon)"),
    (4, ""),
    (30, ""),
])
def test_paid_plan_suffix(days, suffix):
    assert present_plan_badge(make_status("Pro", False, days)).suffix == suffix


@pytest.mark.parametrize("plan, icon, colour", [
    ("Free Trial", "clock", "blue"),
    ("Starter", "zap", "green"),
    ("Pro", "crown", "purple"),
    ("Multi", "crown", "orange"),
])
def test_known_plans(plan, icon, colour):
    badge = present_plan_badge(make_status(plan, False, 20))

    assert badge.icon == icon
    assert colour in badge.color_class


def test_unknown_plan_falls_back_to_default():
    badge = present_plan_badge(make_status("Enterprise Gold", False, 20))

    assert badge.label == "Enterprise Gold"
    assert (badge.icon, badge.color_class) == DEFAULT_STYLE


def test_compact_uses_first_word():
    assert present_plan_badge(make_status("Free Trial", True, 5), compact=True).label == "Free"


def test_accepts_any_status_like_object():
    status = SimpleNamespace(plan_name="Multi", is_trial=False, days_remaining=1)

    assert present_plan_badge(status).suffix == "(Expires soon)"


def test_plan_name_lookup():
    assert PlanName.from_label("Pro") is PlanName.PRO
    assert PlanName.from_label("pro") is None
    assert PlanName.from_label(None) is None


def test_to_dict():
    assert present_plan_badge(make_status("Pro", False, 10)).to_dict() == {
        "label": "Pro",
        "icon": "crown",
        "color_class": "bg-purple-100 text-purple-700 border-purple-200",
        "suffix": "",
    }
