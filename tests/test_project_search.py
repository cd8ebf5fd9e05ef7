"""Tests for project search execution against the store."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from investflow.models import ProjectStatus
from investflow.schemas.projects import AdvancedSearchRequest, ProjectListQuery
from investflow.services.project_service import ProjectService
from investflow.utils.exceptions import ForbiddenException, NotFoundException

from tests.conftest import create_project

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def catalogue(db, users):
    owner = users["admin"]
    projects = {}
    specs = [
        ("Solar Farm", "Energy", "12", "100000", "25000", 24, False),
        ("Wind Park", "Energy", "8", "50000", "45000", 36, False),
        ("Fintech Seed", "Technology", "35", "200000", "20000", 48, False),
        ("Vineyard 100%_organic", "Agriculture", "15", "80000", "0", 12, False),
        ("Premium Tower", "Real Estate", "18", "900000", "450000", 60, True),
    ]
    for index, (title, category, roi, target, funded, months, premium) in enumerate(specs):
        projects[title] = await create_project(
            db,
            owner,
            title=title,
            description=f"{title} in the {category.lower()} sector",
            category=category,
            roi_percent=roi,
            target_amount=target,
            funded_amount=funded,
            duration_months=months,
            is_premium=premium,
            created_at=BASE_TIME + timedelta(days=index),
        )
    return projects


def _titles(page) -> list[str]:
    return [p.title for p in page.items]


async def test_default_search_is_newest_first(db, catalogue):
    page = await ProjectService.search(db, AdvancedSearchRequest(), "free")
    assert _titles(page)[0] == "Premium Tower"
    assert page.total == 5
    assert page.plan_features.key == "free"


async def test_roi_range_filters_for_basic(db, catalogue):
    page = await ProjectService.search(db, AdvancedSearchRequest(minROI=10, maxROI=20), "basic")
    assert set(_titles(page)) == {"Solar Farm", "Vineyard 100%_organic", "Premium Tower"}


async def test_gated_filter_never_returns_partial_results(db, catalogue):
    with pytest.raises(ForbiddenException):
        await ProjectService.search(db, AdvancedSearchRequest(minAmount=1000), "basic")


async def test_text_search_is_case_insensitive(db, catalogue):
    page = await ProjectService.search(db, AdvancedSearchRequest(search="WIND"), "free")
    assert _titles(page) == ["Wind Park"]


async def test_text_search_treats_wildcards_literally(db, catalogue):
    page = await ProjectService.search(db, AdvancedSearchRequest(search="100%_"), "free")
    assert _titles(page) == ["Vineyard 100%_organic"]
    page = await ProjectService.search(db, AdvancedSearchRequest(search="%"), "free")
    assert _titles(page) == ["Vineyard 100%_organic"]


async def test_multiple_categories_replace_single_category(db, catalogue):
    page = await ProjectService.search(
        db,
        AdvancedSearchRequest(category="Energy", categories=["Technology", "Agriculture"]),
        "plus",
    )
    assert set(_titles(page)) == {"Fintech Seed", "Vineyard 100%_organic"}


async def test_progress_sort_is_computed(db, catalogue):
    page = await ProjectService.search(
        db, AdvancedSearchRequest(sortBy="progress", sortOrder="desc"), "premium"
    )
    # 90%, 50%, 25%, 10%, 0%
    assert _titles(page) == [
        "Wind Park",
        "Premium Tower",
        "Solar Farm",
        "Fintech Seed",
        "Vineyard 100%_organic",
    ]


async def test_roi_sort_ascending(db, catalogue):
    page = await ProjectService.search(
        db, AdvancedSearchRequest(sortBy="roiPercent", sortOrder="asc"), "premium"
    )
    assert _titles(page)[0] == "Wind Park"
    assert _titles(page)[-1] == "Fintech Seed"


async def test_pagination_counts_with_same_predicate(db, catalogue):
    page = await ProjectService.search(
        db, AdvancedSearchRequest(category="Energy", page=2, limit=1), "free"
    )
    assert page.total == 2
    assert page.total_pages == 2
    assert _titles(page) == ["Solar Farm"]


async def test_page_past_the_end_is_empty(db, catalogue):
    page = await ProjectService.search(db, AdvancedSearchRequest(page=10, limit=10), "free")
    assert page.items == []
    assert page.total == 5


async def test_default_listing_hides_premium_projects(db, catalogue):
    page = await ProjectService.list_projects(db, ProjectListQuery(), "free")
    assert "Premium Tower" not in _titles(page)
    assert page.total == 4


async def test_public_listing_gates_roi_for_anonymous(db, catalogue):
    with pytest.raises(ForbiddenException) as exc_info:
        await ProjectService.list_projects(db, ProjectListQuery(minROI=10), "free")
    assert exc_info.value.required_plan == "basic"


async def test_premium_listing_requires_premium(db, catalogue):
    with pytest.raises(ForbiddenException) as exc_info:
        await ProjectService.list_premium_projects(db, ProjectListQuery(), "plus")
    assert exc_info.value.required_plan == "premium"

    page = await ProjectService.list_premium_projects(db, ProjectListQuery(), "premium")
    assert _titles(page) == ["Premium Tower"]


async def test_status_filter(db, users, catalogue):
    await create_project(db, users["admin"], title="Closed Deal", status=ProjectStatus.CLOSED)
    page = await ProjectService.search(db, AdvancedSearchRequest(status="closed"), "free")
    assert _titles(page) == ["Closed Deal"]


async def test_categories_and_stats(db, catalogue):
    assert await ProjectService.list_categories(db) == [
        "Agriculture",
        "Energy",
        "Real Estate",
        "Technology",
    ]
    stats = await ProjectService.get_stats(db)
    assert stats["total_projects"] == 5
    assert stats["active_projects"] == 5
    assert stats["total_funding"] == 540000


async def test_get_project_not_found(db, users):
    with pytest.raises(NotFoundException):
        await ProjectService.get_project(db, uuid.uuid4())


async def test_search_accepts_any_request_shaped_object(db, catalogue):
    request = SimpleNamespace(
        page=1,
        limit=2,
        category=None,
        categories=None,
        status=None,
        search=None,
        min_roi=None,
        max_roi=None,
        min_amount=None,
        max_amount=None,
        min_duration=None,
        max_duration=None,
        sort_by=None,
        sort_order=None,
    )
    page = await ProjectService.search(db, request, "free")
    assert len(page.items) == 2
