"""Project search and read routes."""

import uuid
from decimal import Decimal
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from investflow.api.deps import DB, AdminUser, CallerPlan, CurrentUser, plan_for
from investflow.models.models import ProjectStatus
from investflow.schemas.common import Pagination
from investflow.schemas.projects import (
    AdvancedSearchRequest,
    ProjectListQuery,
    ProjectResponse,
    ProjectStats,
)
from investflow.services.project_service import ProjectPage, ProjectService
from investflow.utils.envelopes import api_success

router = APIRouter(tags=["projects"])


def _page_payload(result: ProjectPage, items_key: str = "projects") -> dict:
    pagination = Pagination(
        page=result.page.page,
        limit=result.page.limit,
        total=result.total,
        total_pages=result.total_pages,
    )
    return {
        items_key: [
            ProjectResponse.from_model(p).model_dump(by_alias=True, mode="json")
            for p in result.items
        ],
        "pagination": pagination.model_dump(by_alias=True),
    }


def _listing_query(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = Query(None, max_length=100),
    status: Optional[ProjectStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    min_roi: Optional[Decimal] = Query(None, ge=0, le=1000, alias="minROI"),
    max_roi: Optional[Decimal] = Query(None, ge=0, le=1000, alias="maxROI"),
) -> ProjectListQuery:
    return ProjectListQuery(
        page=page,
        limit=limit,
        category=category,
        status=status,
        search=search,
        min_roi=min_roi,
        max_roi=max_roi,
    )


ListingQuery = Annotated[ProjectListQuery, Depends(_listing_query)]


@router.post("/projects/search", response_model=dict)
async def search_projects(
    payload: AdvancedSearchRequest,
    current_user: CurrentUser,
    db: DB,
):
    """Advanced, plan-gated project search."""
    plan_key = plan_for(current_user)
    result = await ProjectService.search(db, payload, plan_key)
    data = _page_payload(result, items_key="items")
    data["planFeatures"] = result.plan_features.to_dict()
    return api_success(data)


@router.get("/projects/premium", response_model=dict)
async def list_premium_projects(
    query: ListingQuery,
    current_user: CurrentUser,
    db: DB,
):
    result = await ProjectService.list_premium_projects(db, query, plan_for(current_user))
    return api_success(_page_payload(result))


@router.get("/projects/categories", response_model=dict)
async def list_categories(db: DB):
    categories = await ProjectService.list_categories(db)
    return api_success({"categories": categories})


@router.get("/projects/stats", response_model=dict)
async def project_stats(admin: AdminUser, db: DB):
    stats = await ProjectService.get_stats(db)
    return api_success(ProjectStats(**stats).model_dump(by_alias=True))


@router.get("/projects", response_model=dict)
async def list_projects(
    query: ListingQuery,
    plan_key: CallerPlan,
    db: DB,
):
    """Public listing of non-premium projects, newest first."""
    result = await ProjectService.list_projects(db, query, plan_key)
    return api_success(_page_payload(result))


@router.get("/projects/{project_id}", response_model=dict)
async def get_project(project_id: uuid.UUID, db: DB):
    project = await ProjectService.get_project(db, project_id)
    return api_success(ProjectResponse.from_model(project).model_dump(by_alias=True, mode="json"))
