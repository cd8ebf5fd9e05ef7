"""Project schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from investflow.models.models import Project, ProjectStatus
from investflow.services.search_spec import SortField, SortOrder


class ProjectResponse(BaseModel):
    """Project payload, including derived funding progress."""

    id: str
    title: str
    description: str
    category: str
    min_investment: float = Field(..., alias="minInvestment")
    roi_percent: float = Field(..., alias="roiPercent")
    target_amount: float = Field(..., alias="targetAmount")
    funded_amount: float = Field(..., alias="fundedAmount")
    remaining_amount: float = Field(..., alias="remainingAmount")
    progress_percent: float = Field(..., alias="progressPercent")
    total_investors: int = Field(..., alias="totalInvestors")
    duration_months: int = Field(..., alias="durationMonths")
    start_date: Optional[datetime] = Field(None, alias="startDate")
    status: ProjectStatus
    is_premium: bool = Field(..., alias="isPremium")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=str(project.id),
            title=project.title,
            description=project.description,
            category=project.category,
            min_investment=float(project.min_investment),
            roi_percent=float(project.roi_percent),
            target_amount=float(project.target_amount),
            funded_amount=float(project.funded_amount),
            remaining_amount=float(project.remaining_amount),
            progress_percent=round(project.progress_percent, 2),
            total_investors=project.total_investors,
            duration_months=project.duration_months,
            start_date=project.start_date,
            status=project.status,
            is_premium=project.is_premium,
            image_url=project.image_url,
            created_by=str(project.created_by),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectListQuery(BaseModel):
    """Query parameters of the public and premium listings."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    category: Optional[str] = Field(None, max_length=100)
    status: Optional[ProjectStatus] = None
    search: Optional[str] = Field(None, max_length=200)
    min_roi: Optional[Decimal] = Field(None, ge=0, le=1000, alias="minROI")
    max_roi: Optional[Decimal] = Field(None, ge=0, le=1000, alias="maxROI")

    class Config:
        populate_by_name = True


class AdvancedSearchRequest(BaseModel):
    """Body of ``POST /projects/search``.

    Which fields a caller may set depends on their plan; see
    ``investflow.core.plan_features``.
    """

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    category: Optional[str] = Field(None, max_length=100)
    categories: Optional[list[str]] = Field(None, max_length=50)
    status: Optional[ProjectStatus] = None
    search: Optional[str] = Field(None, max_length=200)
    min_roi: Optional[Decimal] = Field(None, ge=0, le=1000, alias="minROI")
    max_roi: Optional[Decimal] = Field(None, ge=0, le=1000, alias="maxROI")
    min_amount: Optional[Decimal] = Field(None, ge=0, alias="minAmount")
    max_amount: Optional[Decimal] = Field(None, ge=0, alias="maxAmount")
    min_duration: Optional[int] = Field(None, ge=1, alias="minDuration")
    max_duration: Optional[int] = Field(None, ge=1, alias="maxDuration")
    sort_by: SortField = Field(SortField.CREATED_AT, alias="sortBy")
    sort_order: SortOrder = Field(SortOrder.DESC, alias="sortOrder")

    class Config:
        populate_by_name = True


class ProjectStats(BaseModel):
    total_projects: int = Field(..., alias="totalProjects")
    active_projects: int = Field(..., alias="activeProjects")
    completed_projects: int = Field(..., alias="completedProjects")
    total_funding: float = Field(..., alias="totalFunding")

    class Config:
        populate_by_name = True
