"""Notification service for in-app user notifications."""

import json
import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from investflow.models.models import Notification, NotificationType, UserNotificationPreference


class NotificationService:
    """Service for managing user notifications."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: uuid.UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Create a notification for a user unless they muted its type."""
        if await NotificationService.is_muted(db, user_id, notification_type):
            return None

        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            link=link,
            data=json.dumps(data, default=str) if data is not None else None,
        )

        db.add(notification)
        await db.commit()
        await db.refresh(notification)

        return notification

    @staticmethod
    async def get_user_preferences(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> Optional[UserNotificationPreference]:
        result = await db.execute(
            select(UserNotificationPreference).where(
                UserNotificationPreference.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def is_muted(
        db: AsyncSession,
        user_id: uuid.UUID,
        notification_type: NotificationType,
    ) -> bool:
        prefs = await NotificationService.get_user_preferences(db, user_id)
        if not prefs or not prefs.muted_types:
            return False
        # JSON array first, comma-separated list otherwise
        try:
            muted = json.loads(prefs.muted_types)
        except ValueError:
            muted = [nt.strip() for nt in prefs.muted_types.split(",")]
        if not isinstance(muted, list):
            return False
        return notification_type.value in muted

    @staticmethod
    async def notify_investment_confirmed(
        db: AsyncSession,
        user_id: uuid.UUID,
        investment_id: uuid.UUID,
        project_id: uuid.UUID,
        project_title: str,
        amount: str,
    ) -> Optional[Notification]:
        return await NotificationService.create_notification(
            db=db,
            user_id=user_id,
            notification_type=NotificationType.INVESTMENT,
            title="Investment Confirmed",
            message=f"Your investment of ${amount} in {project_title} has been confirmed.",
            link=f"/investments/{investment_id}",
            data={
                "investmentId": str(investment_id),
                "projectId": str(project_id),
                "amount": amount,
            },
        )

    @staticmethod
    async def notify_investment_cancelled(
        db: AsyncSession,
        user_id: uuid.UUID,
        investment_id: uuid.UUID,
        project_id: uuid.UUID,
        project_title: str,
        amount: str,
        reason: str,
    ) -> Optional[Notification]:
        return await NotificationService.create_notification(
            db=db,
            user_id=user_id,
            notification_type=NotificationType.INVESTMENT,
            title="Investment Cancelled",
            message=f"Your investment of ${amount} in {project_title} has been cancelled and refunded.",
            link=f"/investments/{investment_id}",
            data={
                "investmentId": str(investment_id),
                "projectId": str(project_id),
                "amount": amount,
                "reason": reason,
            },
        )
