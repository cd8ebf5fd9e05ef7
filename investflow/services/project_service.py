"""Project search and read operations."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from investflow.core.plan_features import PlanFeatures, features_for
from investflow.database.project_repo import ProjectRepository
from investflow.models.models import Project
from investflow.services.search_spec import (
    PageSpec,
    ProjectFilterSpec,
    SortSpec,
    build_search_spec,
    with_basic_filters,
    with_premium_scope,
    with_roi_range,
)
from investflow.utils.exceptions import ForbiddenException, NotFoundException

logger = logging.getLogger(__name__)

PREMIUM_PLAN = "premium"


@dataclass
class ProjectPage:
    items: list[Project]
    total: int
    page: PageSpec
    plan_features: PlanFeatures

    @property
    def total_pages(self) -> int:
        return self.page.total_pages(self.total)


class ProjectService:
    """Service for project search and lookups."""

    @staticmethod
    async def _run(
        db: AsyncSession,
        spec: ProjectFilterSpec,
        sort: SortSpec,
        page: PageSpec,
        plan_key: Optional[str],
    ) -> ProjectPage:
        items, total = await ProjectRepository.search(db, spec, sort, page)
        return ProjectPage(items=items, total=total, page=page, plan_features=features_for(plan_key))

    @staticmethod
    async def search(db: AsyncSession, request: Any, plan_key: Optional[str]) -> ProjectPage:
        """Advanced search; every gated filter is checked before the query runs."""
        spec, sort = build_search_spec(request, plan_key)
        page = PageSpec(page=request.page, limit=request.limit)
        logger.debug("Project search plan=%s spec=%s sort=%s", plan_key, spec, sort)
        return await ProjectService._run(db, spec, sort, page, plan_key)

    @staticmethod
    def _listing_spec(query: Any, plan_key: Optional[str], premium_only: bool) -> ProjectFilterSpec:
        spec = with_basic_filters(
            ProjectFilterSpec(),
            plan_key,
            category=query.category,
            status=query.status,
            text=query.search,
        )
        spec = with_roi_range(spec, plan_key, query.min_roi, query.max_roi)
        return with_premium_scope(spec, premium_only)

    @staticmethod
    async def list_projects(db: AsyncSession, query: Any, plan_key: Optional[str]) -> ProjectPage:
        """Public listing, newest first; premium projects are hidden."""
        spec = ProjectService._listing_spec(query, plan_key, premium_only=False)
        page = PageSpec(page=query.page, limit=query.limit)
        return await ProjectService._run(db, spec, SortSpec(), page, plan_key)

    @staticmethod
    async def list_premium_projects(
        db: AsyncSession, query: Any, plan_key: Optional[str]
    ) -> ProjectPage:
        if (plan_key or "").lower() != PREMIUM_PLAN:
            raise ForbiddenException(
                "Premium plan required to access premium projects",
                required_plan=PREMIUM_PLAN,
            )
        spec = ProjectService._listing_spec(query, plan_key, premium_only=True)
        page = PageSpec(page=query.page, limit=query.limit)
        return await ProjectService._run(db, spec, SortSpec(), page, plan_key)

    @staticmethod
    async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project:
        project = await ProjectRepository.get_by_id(db, project_id)
        if project is None:
            raise NotFoundException("Project not found")
        return project

    @staticmethod
    async def list_categories(db: AsyncSession) -> list[str]:
        return await ProjectRepository.list_categories(db)

    @staticmethod
    async def get_stats(db: AsyncSession) -> dict[str, Any]:
        return await ProjectRepository.get_stats(db)
