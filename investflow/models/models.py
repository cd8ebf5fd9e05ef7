from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from investflow.models.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


Money = Numeric(14, 2)


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), onupdate=utcnow)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    INVESTOR = "investor"


class PlanStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    TRIAL = "trial"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CLOSED = "closed"


class InvestmentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    WALLET = "wallet"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationType(str, enum.Enum):
    INVESTMENT = "investment"
    SUBSCRIPTION = "subscription"
    PROJECT = "project"
    SYSTEM = "system"
    PAYMENT = "payment"


class User(UUIDMixin, TimestampMixin, Base):
    """Marketplace account.

    Owned by the auth/billing services; the ledger only reads role and plan.
    """

    __tablename__ = "tbl_users"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum_column(UserRole, "user_role"), nullable=False, default=UserRole.INVESTOR
    )
    plan_key: Mapped[str] = mapped_column(String(20), nullable=False, default="free")
    plan_status: Mapped[PlanStatus] = mapped_column(
        _enum_column(PlanStatus, "plan_status"), nullable=False, default=PlanStatus.ACTIVE
    )
    plan_renewal: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    investments: Mapped[list["Investment"]] = relationship("Investment", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Project(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_projects"
    __table_args__ = (
        CheckConstraint("min_investment >= 0", name="ck_projects_min_investment"),
        CheckConstraint("roi_percent >= 0 AND roi_percent <= 1000", name="ck_projects_roi_percent"),
        CheckConstraint("target_amount >= 0", name="ck_projects_target_amount"),
        CheckConstraint("funded_amount >= 0", name="ck_projects_funded_amount"),
        CheckConstraint("total_investors >= 0", name="ck_projects_total_investors"),
        CheckConstraint("duration_months >= 1 AND duration_months <= 240", name="ck_projects_duration"),
        Index("ix_projects_status", "status"),
        Index("ix_projects_category", "category"),
        Index("ix_projects_created_at", "created_at"),
        Index("ix_projects_roi_percent", "roi_percent"),
        Index("ix_projects_is_premium", "is_premium"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    min_investment: Mapped[Decimal] = mapped_column(Money, nullable=False)
    roi_percent: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    funded_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_investors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    status: Mapped[ProjectStatus] = mapped_column(
        _enum_column(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.ACTIVE
    )
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tbl_users.id"), nullable=False)

    investments: Mapped[list["Investment"]] = relationship("Investment", back_populates="project")

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.funded_amount, Decimal("0"))

    @property
    def progress_percent(self) -> float:
        if not self.target_amount or self.target_amount <= 0:
            return 0.0
        return min(float(self.funded_amount / self.target_amount * 100), 100.0)


class Investment(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_investments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_investments_amount"),
        Index("ix_investments_user_created", "user_id", "created_at"),
        Index("ix_investments_project_status", "project_id", "status"),
        Index("ix_investments_status_date", "status", "investment_date"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_users.id"), nullable=False, index=True
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_projects.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    status: Mapped[InvestmentStatus] = mapped_column(
        _enum_column(InvestmentStatus, "investment_status"),
        nullable=False,
        default=InvestmentStatus.PENDING,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        _enum_column(PaymentMethod, "payment_method"), nullable=False
    )
    investment_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )
    expected_return: Mapped[Decimal] = mapped_column(Money, nullable=False)
    expected_return_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    actual_return: Mapped[Optional[Decimal]] = mapped_column(Money)
    actual_return_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(String(1000))
    refund_reason: Mapped[Optional[str]] = mapped_column(String(500))
    refund_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    user: Mapped[User] = relationship("User", back_populates="investments")
    project: Mapped[Project] = relationship("Project", back_populates="investments")

    @property
    def roi_percentage(self) -> float:
        realised = self.actual_return if self.actual_return is not None else self.expected_return
        return float((realised - self.amount) / self.amount * 100)


class Payment(UUIDMixin, TimestampMixin, Base):
    """Payment capture backing an investment."""

    __tablename__ = "tbl_payments"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_users.id"), nullable=False, index=True
    )
    investment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tbl_investments.id"), index=True
    )
    transaction_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[PaymentStatus] = mapped_column(
        _enum_column(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING
    )
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)


class Notification(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read_at"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[NotificationType] = mapped_column(
        _enum_column(NotificationType, "notification_type"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(Text)
    # Stored as TEXT; services are responsible for JSON serialization
    data: Mapped[Optional[str]] = mapped_column(Text)
    read_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))


class UserNotificationPreference(Base):
    __tablename__ = "tbl_user_notification_prefs"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_users.id", ondelete="CASCADE"), primary_key=True
    )
    # Stored as TEXT; service parses as JSON/CSV
    muted_types: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), onupdate=utcnow)
