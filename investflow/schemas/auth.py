"""User schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from investflow.models.models import PlanStatus, UserRole


class UserResponse(BaseModel):
    """Current user, with the plan used for feature gating."""

    id: str
    email: str
    name: str
    role: UserRole
    plan: str
    plan_status: PlanStatus = Field(..., alias="planStatus")
    effective_plan: str = Field(..., alias="effectivePlan")
    plan_renewal: Optional[datetime] = Field(None, alias="planRenewal")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True
