"""Repository layer for investment and payment database operations."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from investflow.models.models import (
    Investment,
    InvestmentStatus,
    Payment,
    PaymentStatus,
)


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class InvestmentRepository:
    """Repository for investment database operations."""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        investment_id: uuid.UUID,
        with_relations: bool = False,
    ) -> Optional[Investment]:
        stmt = (
            select(Investment)
            .where(Investment.id == investment_id)
            .execution_options(populate_existing=True)
        )
        if with_relations:
            stmt = stmt.options(selectinload(Investment.project), selectinload(Investment.user))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        status: Optional[InvestmentStatus],
        offset: int,
        limit: int,
    ) -> tuple[list[Investment], int]:
        """Page through a user's investments, newest first, with their projects loaded."""
        filters = [Investment.user_id == user_id]
        if status is not None:
            filters.append(Investment.status == status)

        total = (
            await db.execute(select(func.count()).select_from(Investment).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(Investment)
            .options(selectinload(Investment.project))
            .where(*filters)
            .order_by(Investment.created_at.desc(), Investment.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total)

    @staticmethod
    async def total_completed_for_user(db: AsyncSession, user_id: uuid.UUID) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(Investment.amount), 0)).where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.COMPLETED,
            )
        )
        return _to_decimal(result.scalar_one())

    @staticmethod
    async def list_completed_for_project(
        db: AsyncSession,
        project_id: uuid.UUID,
        offset: int,
        limit: int,
    ) -> tuple[list[Investment], int]:
        filters = [
            Investment.project_id == project_id,
            Investment.status == InvestmentStatus.COMPLETED,
        ]
        total = (
            await db.execute(select(func.count()).select_from(Investment).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(Investment)
            .options(selectinload(Investment.user))
            .where(*filters)
            .order_by(Investment.created_at.desc(), Investment.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total)

    @staticmethod
    async def completed_totals_for_project(
        db: AsyncSession, project_id: uuid.UUID
    ) -> tuple[Decimal, int]:
        """Return (sum of amounts, count) over a project's completed investments."""
        result = await db.execute(
            select(
                func.coalesce(func.sum(Investment.amount), 0).label("total"),
                func.count(Investment.id).label("count"),
            ).where(
                Investment.project_id == project_id,
                Investment.status == InvestmentStatus.COMPLETED,
            )
        )
        row = result.one()
        return _to_decimal(row.total), int(row.count or 0)

    @staticmethod
    async def stats_by_status(db: AsyncSession, user_id: uuid.UUID) -> list[dict[str, Any]]:
        result = await db.execute(
            select(
                Investment.status,
                func.count(Investment.id).label("count"),
                func.coalesce(func.sum(Investment.amount), 0).label("total_amount"),
                func.coalesce(func.sum(Investment.expected_return), 0).label("total_expected"),
                func.coalesce(func.sum(Investment.actual_return), 0).label("total_actual"),
            )
            .where(Investment.user_id == user_id)
            .group_by(Investment.status)
        )
        return [
            {
                "status": row.status,
                "count": int(row.count),
                "total_amount": _to_decimal(row.total_amount),
                "total_expected_return": _to_decimal(row.total_expected),
                "total_actual_return": _to_decimal(row.total_actual),
            }
            for row in result.all()
        ]

    @staticmethod
    async def count_active_projects(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(func.distinct(Investment.project_id))).where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.COMPLETED,
            )
        )
        return int(result.scalar_one() or 0)

    @staticmethod
    async def mark_refunded(
        db: AsyncSession,
        investment_id: uuid.UUID,
        reason: str,
        refunded_at: datetime,
    ) -> bool:
        """Flip a pending/completed investment to refunded.

        Returns False if another transaction got there first.
        """
        result = await db.execute(
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status.in_([InvestmentStatus.PENDING, InvestmentStatus.COMPLETED]),
            )
            .values(
                status=InvestmentStatus.REFUNDED,
                refund_reason=reason,
                refund_date=refunded_at,
                updated_at=refunded_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class PaymentRepository:
    """Repository for payment records backing investments."""

    @staticmethod
    def add_capture(
        db: AsyncSession,
        investment: Investment,
        currency: str,
    ) -> Payment:
        payment = Payment(
            user_id=investment.user_id,
            investment_id=investment.id,
            transaction_id=investment.transaction_id,
            amount=investment.amount,
            currency=currency,
            status=PaymentStatus.SUCCEEDED,
            method=investment.payment_method.value,
            description=f"Investment in project {investment.project_id}",
        )
        db.add(payment)
        return payment

    @staticmethod
    async def mark_refunded_for_investment(db: AsyncSession, investment_id: uuid.UUID) -> None:
        await db.execute(
            update(Payment)
            .where(
                Payment.investment_id == investment_id,
                Payment.status != PaymentStatus.REFUNDED,
            )
            .values(status=PaymentStatus.REFUNDED)
            .execution_options(synchronize_session=False)
        )
