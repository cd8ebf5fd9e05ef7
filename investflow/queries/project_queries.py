"""Query layer for project search - translates search specs into SQL."""

from typing import Any

from sqlalchemy import Float, Select, case, cast, func, literal, or_, select
from sqlalchemy.sql.elements import ColumnElement

from investflow.models.models import Project
from investflow.services.search_spec import (
    NumericRange,
    PageSpec,
    ProjectFilterSpec,
    SortField,
    SortSpec,
)

_SORT_COLUMNS: dict[SortField, Any] = {
    SortField.CREATED_AT: Project.created_at,
    SortField.ROI_PERCENT: Project.roi_percent,
    SortField.TARGET_AMOUNT: Project.target_amount,
    SortField.FUNDED_AMOUNT: Project.funded_amount,
    SortField.DURATION_MONTHS: Project.duration_months,
}


def _contains_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _range_clauses(column: Any, bounds: NumericRange) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if not bounds.is_set:
        return clauses
    if bounds.minimum is not None:
        clauses.append(column >= bounds.minimum)
    if bounds.maximum is not None:
        clauses.append(column <= bounds.maximum)
    return clauses


class ProjectQueries:
    """Builds project search statements from a ``ProjectFilterSpec``."""

    @staticmethod
    def progress_ratio() -> ColumnElement[Any]:
        """funded/target as a float, 0 for projects with no target."""
        return case(
            (
                Project.target_amount > 0,
                cast(Project.funded_amount, Float) / cast(Project.target_amount, Float),
            ),
            else_=literal(0.0),
        )

    @staticmethod
    def where_clauses(spec: ProjectFilterSpec) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []

        if spec.categories:
            clauses.append(Project.category.in_(spec.categories))
        elif spec.category:
            clauses.append(Project.category == spec.category)

        if spec.status is not None:
            clauses.append(Project.status == spec.status)

        if spec.text:
            pattern = _contains_pattern(spec.text)
            clauses.append(
                or_(
                    Project.title.ilike(pattern, escape="\\"),
                    Project.description.ilike(pattern, escape="\\"),
                )
            )

        clauses.extend(_range_clauses(Project.roi_percent, spec.roi_percent))
        clauses.extend(_range_clauses(Project.target_amount, spec.target_amount))
        clauses.extend(_range_clauses(Project.duration_months, spec.duration_months))

        if spec.premium is not None:
            clauses.append(Project.is_premium == spec.premium)

        return clauses

    @staticmethod
    def order_by(sort: SortSpec) -> list[Any]:
        if sort.field == SortField.PROGRESS:
            primary = ProjectQueries.progress_ratio()
        else:
            primary = _SORT_COLUMNS[sort.field]

        ordering = [primary.desc() if sort.descending else primary.asc()]
        # Stable paging across equal sort keys
        if sort.field != SortField.CREATED_AT:
            ordering.append(Project.created_at.desc())
        ordering.append(Project.id.asc())
        return ordering

    @staticmethod
    def select_page(spec: ProjectFilterSpec, sort: SortSpec, page: PageSpec) -> Select:
        return (
            select(Project)
            .where(*ProjectQueries.where_clauses(spec))
            .order_by(*ProjectQueries.order_by(sort))
            .offset(page.offset)
            .limit(page.limit)
        )

    @staticmethod
    def count(spec: ProjectFilterSpec) -> Select:
        return (
            select(func.count())
            .select_from(Project)
            .where(*ProjectQueries.where_clauses(spec))
        )
