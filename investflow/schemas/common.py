"""Shared response schemas."""

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Offset pagination metadata."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0, alias="totalPages")

    class Config:
        populate_by_name = True

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if total else 0
        return cls(page=page, limit=limit, total=total, total_pages=total_pages)
