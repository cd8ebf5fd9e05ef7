"""Investment schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from investflow.models.models import (
    Investment,
    InvestmentStatus,
    PaymentMethod,
    Project,
    ProjectStatus,
    User,
)


class InvestmentCreate(BaseModel):
    project_id: uuid.UUID = Field(..., alias="projectId")
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")

    class Config:
        populate_by_name = True


class InvestmentCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ProjectSummary(BaseModel):
    id: str
    title: str
    description: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    status: ProjectStatus
    category: str
    roi_percent: float = Field(..., alias="roiPercent")
    duration_months: int = Field(..., alias="durationMonths")

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, project: Project) -> "ProjectSummary":
        return cls(
            id=str(project.id),
            title=project.title,
            description=project.description,
            image_url=project.image_url,
            status=project.status,
            category=project.category,
            roi_percent=float(project.roi_percent),
            duration_months=project.duration_months,
        )


class InvestorSummary(BaseModel):
    id: str
    name: str
    email: str

    @classmethod
    def from_model(cls, user: User) -> "InvestorSummary":
        return cls(id=str(user.id), name=user.name, email=user.email)


class InvestmentResponse(BaseModel):
    """Investment payload; ``project``/``investor`` are included where the route loads them."""

    id: str
    user_id: str = Field(..., alias="userId")
    project_id: str = Field(..., alias="projectId")
    amount: float
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    status: InvestmentStatus
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    investment_date: datetime = Field(..., alias="investmentDate")
    expected_return: float = Field(..., alias="expectedReturn")
    expected_return_date: Optional[datetime] = Field(None, alias="expectedReturnDate")
    actual_return: Optional[float] = Field(None, alias="actualReturn")
    actual_return_date: Optional[datetime] = Field(None, alias="actualReturnDate")
    roi_percentage: float = Field(..., alias="roiPercentage")
    notes: Optional[str] = None
    refund_reason: Optional[str] = Field(None, alias="refundReason")
    refund_date: Optional[datetime] = Field(None, alias="refundDate")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    project: Optional[ProjectSummary] = None
    investor: Optional[InvestorSummary] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(
        cls,
        investment: Investment,
        project: Optional[Project] = None,
        investor: Optional[User] = None,
    ) -> "InvestmentResponse":
        return cls(
            id=str(investment.id),
            user_id=str(investment.user_id),
            project_id=str(investment.project_id),
            amount=float(investment.amount),
            transaction_id=investment.transaction_id,
            status=investment.status,
            payment_method=investment.payment_method,
            investment_date=investment.investment_date,
            expected_return=float(investment.expected_return),
            expected_return_date=investment.expected_return_date,
            actual_return=(
                float(investment.actual_return) if investment.actual_return is not None else None
            ),
            actual_return_date=investment.actual_return_date,
            roi_percentage=round(investment.roi_percentage, 2),
            notes=investment.notes,
            refund_reason=investment.refund_reason,
            refund_date=investment.refund_date,
            created_at=investment.created_at,
            updated_at=investment.updated_at,
            project=ProjectSummary.from_model(project) if project is not None else None,
            investor=InvestorSummary.from_model(investor) if investor is not None else None,
        )


class StatusBreakdown(BaseModel):
    count: int
    total_amount: float = Field(..., alias="totalAmount")
    total_expected_return: float = Field(..., alias="totalExpectedReturn")
    total_actual_return: float = Field(..., alias="totalActualReturn")

    class Config:
        populate_by_name = True
