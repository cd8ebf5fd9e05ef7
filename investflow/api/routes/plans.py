"""Subscription plan catalogue, used by clients to gate search UI."""

from fastapi import APIRouter

from investflow.api.deps import CallerPlan
from investflow.core.plan_features import PLAN_FEATURES, PLAN_ORDER, features_for
from investflow.utils.envelopes import api_success

router = APIRouter(tags=["plans"])


@router.get("/plans", response_model=dict)
async def list_plans():
    return api_success({"plans": [PLAN_FEATURES[key].to_dict() for key in PLAN_ORDER]})


@router.get("/plans/me", response_model=dict)
async def my_plan(plan_key: CallerPlan):
    """Features of the caller's effective plan (free when anonymous or expired)."""
    return api_success(features_for(plan_key).to_dict())
