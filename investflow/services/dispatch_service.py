"""Fire-and-forget side effects of ledger transitions.

Emails and in-app notifications are scheduled after the ledger transaction
commits and are never awaited by the request. A failure in either is logged
and absorbed; the ledger outcome stands regardless.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from investflow.core.config import settings
from investflow.integrations.email_publisher import (
    INVESTMENT_CANCELLED_TEMPLATE,
    INVESTMENT_CONFIRMATION_TEMPLATE,
    EmailPublisher,
)
from investflow.models.models import Investment, Project, User
from investflow.services.notification_service import NotificationService
from investflow.utils.money import format_money

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected mid-flight
_background_tasks: set[asyncio.Task] = set()


async def _run_safely(coro: Awaitable[Any], description: str) -> None:
    try:
        await coro
    except Exception:
        logger.exception("Background task failed: %s", description)


def fire_and_forget(coro: Awaitable[Any], description: str) -> asyncio.Task:
    task = asyncio.create_task(_run_safely(coro, description))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


@dataclass(frozen=True)
class InvestmentEvent:
    """Plain snapshot of an investment transition, detached from any session."""

    user_id: uuid.UUID
    user_email: str
    user_name: str
    investment_id: uuid.UUID
    project_id: uuid.UUID
    project_title: str
    amount: str
    expected_return: str
    expected_return_date: Optional[str]
    transaction_id: Optional[str]
    refund_reason: Optional[str] = None

    @classmethod
    def capture(cls, user: User, project: Project, investment: Investment) -> "InvestmentEvent":
        return cls(
            user_id=user.id,
            user_email=user.email,
            user_name=user.name,
            investment_id=investment.id,
            project_id=project.id,
            project_title=project.title,
            amount=format_money(investment.amount),
            expected_return=format_money(investment.expected_return),
            expected_return_date=(
                investment.expected_return_date.isoformat()
                if investment.expected_return_date
                else None
            ),
            transaction_id=investment.transaction_id,
            refund_reason=investment.refund_reason,
        )

    def email_payload(self) -> dict[str, Any]:
        payload = {
            "userName": self.user_name,
            "projectTitle": self.project_title,
            "amount": self.amount,
            "expectedReturn": self.expected_return,
            "expectedReturnDate": self.expected_return_date,
            "transactionId": self.transaction_id,
            "dashboardUrl": f"{settings.CLIENT_URL}/investments/{self.investment_id}",
        }
        if self.refund_reason is not None:
            payload["reason"] = self.refund_reason
        return payload


class InvestmentEventDispatcher:
    """Schedules email + in-app notification for ledger transitions."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        email_publisher: type[EmailPublisher] = EmailPublisher,
    ):
        self.session_factory = session_factory
        self.email_publisher = email_publisher

    def investment_confirmed(self, user: User, project: Project, investment: Investment) -> None:
        event = InvestmentEvent.capture(user, project, investment)
        fire_and_forget(
            self.email_publisher.publish(
                event.user_email, INVESTMENT_CONFIRMATION_TEMPLATE, event.email_payload()
            ),
            f"investment confirmation email {event.investment_id}",
        )
        if self.session_factory is not None:
            fire_and_forget(
                self._notify_confirmed(event),
                f"investment confirmation notification {event.investment_id}",
            )

    def investment_cancelled(self, user: User, project: Project, investment: Investment) -> None:
        event = InvestmentEvent.capture(user, project, investment)
        fire_and_forget(
            self.email_publisher.publish(
                event.user_email, INVESTMENT_CANCELLED_TEMPLATE, event.email_payload()
            ),
            f"investment cancellation email {event.investment_id}",
        )
        if self.session_factory is not None:
            fire_and_forget(
                self._notify_cancelled(event),
                f"investment cancellation notification {event.investment_id}",
            )

    async def _notify_confirmed(self, event: InvestmentEvent) -> None:
        async with self.session_factory() as session:
            await NotificationService.notify_investment_confirmed(
                session,
                user_id=event.user_id,
                investment_id=event.investment_id,
                project_id=event.project_id,
                project_title=event.project_title,
                amount=event.amount,
            )

    async def _notify_cancelled(self, event: InvestmentEvent) -> None:
        async with self.session_factory() as session:
            await NotificationService.notify_investment_cancelled(
                session,
                user_id=event.user_id,
                investment_id=event.investment_id,
                project_id=event.project_id,
                project_title=event.project_title,
                amount=event.amount,
                reason=event.refund_reason or "",
            )
