"""Investment ledger.

Records investments against projects and reverses them on cancellation,
keeping each project's ``funded_amount``/``total_investors``/``status``
consistent with its completed investments. Counter changes are conditional
UPDATEs executed in the same transaction as the investment row, so two
concurrent investors cannot push a project past its target and two concurrent
cancels cannot release the same amount twice.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from investflow.core.config import settings
from investflow.database.investment_repo import InvestmentRepository, PaymentRepository
from investflow.database.project_repo import ProjectRepository
from investflow.models.models import (
    Investment,
    InvestmentStatus,
    PaymentMethod,
    Project,
    ProjectStatus,
    User,
)
from investflow.services.dispatch_service import InvestmentEventDispatcher
from investflow.utils.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from investflow.utils.money import format_money, quantize_money

logger = logging.getLogger(__name__)

DEFAULT_REFUND_REASON = "User requested refund"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def expected_return_for(amount: Decimal, roi_percent: Decimal) -> Decimal:
    return quantize_money(amount * (Decimal("1") + Decimal(roi_percent) / Decimal("100")))


@dataclass
class InvestmentPage:
    items: list[Investment]
    total: int
    page: int
    limit: int
    summary: dict[str, Any] = field(default_factory=dict)


class InvestmentService:
    """Ledger operations for a single request session."""

    def __init__(self, db: AsyncSession, dispatcher: Optional[InvestmentEventDispatcher] = None):
        self.db = db
        self.dispatcher = dispatcher

    @staticmethod
    def _check_can_invest(project: Optional[Project], amount: Decimal) -> Project:
        """Run the invest preconditions in order; first failure wins."""
        if project is None:
            raise NotFoundException("Project not found")

        if project.status != ProjectStatus.ACTIVE:
            raise InvalidStateException("This project is not accepting investments at the moment")

        if amount < project.min_investment:
            raise ValidationException(
                f"Minimum investment amount is ${format_money(project.min_investment)}",
                field="amount",
            )

        if project.funded_amount >= project.target_amount:
            raise InvalidStateException("This project is fully funded")

        remaining = project.target_amount - project.funded_amount
        if amount > remaining:
            raise ValidationException(
                "Investment amount exceeds remaining target. "
                f"Maximum you can invest: ${format_money(remaining)}",
                field="amount",
            )
        return project

    async def invest(
        self,
        user: User,
        project_id: uuid.UUID,
        amount: Decimal,
        payment_method: PaymentMethod,
    ) -> Investment:
        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationException("Investment amount must be greater than 0", field="amount")

        project = self._check_can_invest(
            await ProjectRepository.get_by_id(self.db, project_id), amount
        )

        now = datetime.now(timezone.utc)
        investment_id = uuid.uuid4()
        investment = Investment(
            id=investment_id,
            user_id=user.id,
            project_id=project.id,
            amount=amount,
            transaction_id=f"INV-{investment_id}",
            status=InvestmentStatus.COMPLETED,
            payment_method=payment_method,
            investment_date=now,
            expected_return=expected_return_for(amount, project.roi_percent),
            expected_return_date=now + relativedelta(months=project.duration_months),
        )

        try:
            if not await ProjectRepository.increment_funding(self.db, project.id, amount):
                # Lost a race: report against the fresh project state
                await self.db.rollback()
                await self.db.refresh(project)
                self._check_can_invest(project, amount)
                raise InvalidStateException(
                    "Project funding changed while processing the investment, please retry"
                )

            await ProjectRepository.complete_if_funded(self.db, project.id)

            self.db.add(investment)
            await self.db.flush()
            PaymentRepository.add_capture(self.db, investment, settings.INVESTMENT_CURRENCY)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(project)
        await self.db.refresh(investment)

        logger.info(
            "Investment %s recorded: user=%s project=%s amount=%s",
            investment.id,
            user.id,
            project.id,
            amount,
        )

        if self.dispatcher is not None:
            self.dispatcher.investment_confirmed(user, project, investment)

        return investment

    async def cancel(
        self,
        investment_id: uuid.UUID,
        caller: User,
        reason: Optional[str] = None,
    ) -> Investment:
        investment = await InvestmentRepository.get_by_id(
            self.db, investment_id, with_relations=True
        )
        if investment is None:
            raise NotFoundException("Investment not found")

        if investment.user_id != caller.id and not caller.is_admin:
            raise ForbiddenException("You do not have permission to cancel this investment")

        if investment.status == InvestmentStatus.REFUNDED:
            raise InvalidStateException("Investment is already refunded")

        if investment.status == InvestmentStatus.FAILED:
            raise InvalidStateException("Failed investments cannot be cancelled")

        now = datetime.now(timezone.utc)
        if not caller.is_admin:
            window = timedelta(hours=settings.CANCELLATION_WINDOW_HOURS)
            if now - _as_utc(investment.investment_date) > window:
                raise InvalidStateException(
                    f"Investments can only be cancelled within {settings.CANCELLATION_WINDOW_HOURS} hours"
                )

        refund_reason = (reason or "").strip() or DEFAULT_REFUND_REASON

        try:
            if not await InvestmentRepository.mark_refunded(
                self.db, investment.id, refund_reason, now
            ):
                raise InvalidStateException("Investment is already refunded")

            await ProjectRepository.release_funding(
                self.db, investment.project_id, investment.amount
            )
            await ProjectRepository.reopen_if_completed(self.db, investment.project_id)
            await PaymentRepository.mark_refunded_for_investment(self.db, investment.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        # Column attributes only; the loaded project/user stay usable
        await self.db.refresh(
            investment, ["status", "refund_reason", "refund_date", "updated_at"]
        )
        await self.db.refresh(investment.project)

        logger.info(
            "Investment %s refunded by %s (admin=%s)",
            investment.id,
            caller.id,
            caller.is_admin,
        )

        if self.dispatcher is not None:
            self.dispatcher.investment_cancelled(investment.user, investment.project, investment)

        return investment

    async def list_user_investments(
        self,
        user: User,
        status: Optional[InvestmentStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> InvestmentPage:
        items, total = await InvestmentRepository.list_for_user(
            self.db, user.id, status, (page - 1) * limit, limit
        )
        total_invested = await InvestmentRepository.total_completed_for_user(self.db, user.id)
        return InvestmentPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            summary={"total_invested": total_invested, "total_investments": total},
        )

    async def get_investment(self, investment_id: uuid.UUID, caller: User) -> Investment:
        investment = await InvestmentRepository.get_by_id(
            self.db, investment_id, with_relations=True
        )
        if investment is None:
            raise NotFoundException("Investment not found")
        if investment.user_id != caller.id and not caller.is_admin:
            raise ForbiddenException("You do not have permission to view this investment")
        return investment

    async def list_project_investments(
        self,
        project_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> InvestmentPage:
        project = await ProjectRepository.get_by_id(self.db, project_id)
        if project is None:
            raise NotFoundException("Project not found")

        items, total = await InvestmentRepository.list_completed_for_project(
            self.db, project_id, (page - 1) * limit, limit
        )
        total_invested, investor_count = await InvestmentRepository.completed_totals_for_project(
            self.db, project_id
        )
        return InvestmentPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            summary={"total_invested": total_invested, "total_investors": investor_count},
        )

    async def investment_stats(self, user: User) -> dict[str, Any]:
        by_status = await InvestmentRepository.stats_by_status(self.db, user.id)
        active_projects = await InvestmentRepository.count_active_projects(self.db, user.id)
        return {"by_status": by_status, "active_projects": active_projects}
