from investflow.models.base import Base
from investflow.models.models import (
    Investment,
    InvestmentStatus,
    Notification,
    NotificationType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    PlanStatus,
    Project,
    ProjectStatus,
    User,
    UserNotificationPreference,
    UserRole,
)

__all__ = [
    "Base",
    "Investment",
    "InvestmentStatus",
    "Notification",
    "NotificationType",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PlanStatus",
    "Project",
    "ProjectStatus",
    "User",
    "UserNotificationPreference",
    "UserRole",
]
