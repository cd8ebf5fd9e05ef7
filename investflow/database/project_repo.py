"""Repository layer for project database operations."""

import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from investflow.models.models import Project, ProjectStatus
from investflow.queries.project_queries import ProjectQueries
from investflow.services.search_spec import PageSpec, ProjectFilterSpec, SortSpec


class ProjectRepository:
    """Repository for project database operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, project_id: uuid.UUID) -> Optional[Project]:
        result = await db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def search(
        db: AsyncSession,
        spec: ProjectFilterSpec,
        sort: SortSpec,
        page: PageSpec,
    ) -> tuple[list[Project], int]:
        """Return one page of matching projects and the total match count."""
        total = (await db.execute(ProjectQueries.count(spec))).scalar_one()
        result = await db.execute(ProjectQueries.select_page(spec, sort, page))
        return list(result.scalars().all()), int(total)

    @staticmethod
    async def list_categories(db: AsyncSession) -> list[str]:
        result = await db.execute(
            select(Project.category).distinct().order_by(Project.category.asc())
        )
        return [row for row in result.scalars().all() if row]

    @staticmethod
    async def get_stats(db: AsyncSession) -> dict[str, Any]:
        result = await db.execute(
            select(
                func.count(Project.id).label("total"),
                func.count(case((Project.status == ProjectStatus.ACTIVE, 1))).label("active"),
                func.count(case((Project.status == ProjectStatus.COMPLETED, 1))).label("completed"),
                func.coalesce(func.sum(Project.funded_amount), 0).label("funding"),
            )
        )
        row = result.one()
        return {
            "total_projects": int(row.total or 0),
            "active_projects": int(row.active or 0),
            "completed_projects": int(row.completed or 0),
            "total_funding": Decimal(str(row.funding or 0)),
        }

    @staticmethod
    async def increment_funding(db: AsyncSession, project_id: uuid.UUID, amount: Decimal) -> bool:
        """Add ``amount`` to an active project's funding if it stays within target.

        Returns False when the row no longer satisfies the guard (closed,
        completed or not enough headroom); nothing is changed in that case.
        """
        result = await db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.funded_amount + amount <= Project.target_amount,
            )
            .values(
                funded_amount=Project.funded_amount + amount,
                total_investors=Project.total_investors + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def complete_if_funded(db: AsyncSession, project_id: uuid.UUID) -> None:
        await db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.funded_amount >= Project.target_amount,
            )
            .values(status=ProjectStatus.COMPLETED)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def release_funding(db: AsyncSession, project_id: uuid.UUID, amount: Decimal) -> None:
        """Reverse one investment's contribution, flooring both counters at zero."""
        await db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(
                funded_amount=case(
                    (Project.funded_amount >= amount, Project.funded_amount - amount),
                    else_=0,
                ),
                total_investors=case(
                    (Project.total_investors > 0, Project.total_investors - 1),
                    else_=0,
                ),
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def reopen_if_completed(db: AsyncSession, project_id: uuid.UUID) -> None:
        await db.execute(
            update(Project)
            .where(Project.id == project_id, Project.status == ProjectStatus.COMPLETED)
            .values(status=ProjectStatus.ACTIVE)
            .execution_options(synchronize_session=False)
        )
