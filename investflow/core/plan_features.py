"""Plan feature policy.

Static table of what each subscription tier unlocks in project search, plus
its monthly usage limits. Every gated code path asks this module; nothing
else decides whether a plan may use a capability.

Unknown or missing plan keys resolve to the free tier.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Union

from investflow.utils.exceptions import ForbiddenException


class SearchCapability(str, enum.Enum):
    """Search capabilities a plan can unlock."""

    BASIC_FILTERS = "basicFilters"
    ROI_RANGE = "roiRange"
    AMOUNT_RANGE = "amountRange"
    MULTIPLE_CATEGORIES = "multipleCategories"
    ADVANCED_SORT = "advancedSort"
    DURATION_FILTER = "durationFilter"


UNLIMITED = -1

DEFAULT_PLAN = "free"

# Cheapest first
PLAN_ORDER: tuple[str, ...] = ("free", "basic", "plus", "premium")


@dataclass(frozen=True)
class PlanLimits:
    projects_per_month: int
    simulations_per_month: int
    saved_searches: int


@dataclass(frozen=True)
class PlanFeatures:
    key: str
    name: str
    capabilities: frozenset[SearchCapability]
    limits: PlanLimits

    def allows(self, capability: SearchCapability) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> dict[str, Any]:
        """Client-facing shape used for UI gating."""
        return {
            "key": self.key,
            "name": self.name,
            "searchFilters": {cap.value: cap in self.capabilities for cap in SearchCapability},
            "limits": {
                "projectsPerMonth": self.limits.projects_per_month,
                "simulationsPerMonth": self.limits.simulations_per_month,
                "savedSearches": self.limits.saved_searches,
            },
        }


PLAN_FEATURES: dict[str, PlanFeatures] = {
    "free": PlanFeatures(
        key="free",
        name="Free",
        capabilities=frozenset({SearchCapability.BASIC_FILTERS}),
        limits=PlanLimits(projects_per_month=10, simulations_per_month=5, saved_searches=0),
    ),
    "basic": PlanFeatures(
        key="basic",
        name="Basic",
        capabilities=frozenset({SearchCapability.BASIC_FILTERS, SearchCapability.ROI_RANGE}),
        limits=PlanLimits(projects_per_month=50, simulations_per_month=20, saved_searches=3),
    ),
    "plus": PlanFeatures(
        key="plus",
        name="Plus",
        capabilities=frozenset(
            {
                SearchCapability.BASIC_FILTERS,
                SearchCapability.ROI_RANGE,
                SearchCapability.AMOUNT_RANGE,
                SearchCapability.MULTIPLE_CATEGORIES,
                SearchCapability.DURATION_FILTER,
            }
        ),
        limits=PlanLimits(projects_per_month=200, simulations_per_month=100, saved_searches=10),
    ),
    "premium": PlanFeatures(
        key="premium",
        name="Premium",
        capabilities=frozenset(SearchCapability),
        limits=PlanLimits(
            projects_per_month=UNLIMITED,
            simulations_per_month=UNLIMITED,
            saved_searches=UNLIMITED,
        ),
    ),
}


def _as_capability(capability: Union[SearchCapability, str]) -> SearchCapability:
    # Raises ValueError for names that are not capabilities
    return SearchCapability(capability)


def features_for(plan_key: Optional[str]) -> PlanFeatures:
    """Return the feature set for a plan, falling back to the free tier."""
    if not plan_key:
        return PLAN_FEATURES[DEFAULT_PLAN]
    return PLAN_FEATURES.get(plan_key.lower(), PLAN_FEATURES[DEFAULT_PLAN])


def has_capability(plan_key: Optional[str], capability: Union[SearchCapability, str]) -> bool:
    return features_for(plan_key).allows(_as_capability(capability))


def minimum_plan_for(capability: Union[SearchCapability, str]) -> str:
    """Cheapest plan that grants ``capability``; the top tier if none does."""
    cap = _as_capability(capability)
    for plan_key in PLAN_ORDER:
        if PLAN_FEATURES[plan_key].allows(cap):
            return plan_key
    return PLAN_ORDER[-1]


def require_capability(
    plan_key: Optional[str],
    capability: Union[SearchCapability, str],
    label: str,
) -> None:
    """Raise ForbiddenException naming the cheapest plan that unlocks ``capability``."""
    cap = _as_capability(capability)
    if has_capability(plan_key, cap):
        return

    required = minimum_plan_for(cap)
    required_name = PLAN_FEATURES[required].name
    if required == PLAN_ORDER[-1]:
        message = f"{label} requires {required_name} plan"
    else:
        message = f"{label} requires {required_name} plan or higher"
    raise ForbiddenException(
        message=message,
        required_plan=required,
        details={"capability": cap.value},
    )


def effective_plan_key(plan_key: Optional[str], plan_status: Optional[str] = None) -> str:
    """Plan used for gating: anonymous callers and expired plans count as free."""
    if not plan_key or plan_status == "expired":
        return DEFAULT_PLAN
    return plan_key.lower()
