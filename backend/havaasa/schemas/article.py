"""Article schemas for API request/response validation."""

from datetime import datetime
from math import ceil
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArticleRecord(BaseModel):
    """Article as returned by the data collaborator, category name joined in."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    excerpt: str | None = None
    image_url: str | None = None
    image_path: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    author: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ArticleCreate(BaseModel):
    """Fields accepted when creating an article."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    category_id: int
    excerpt: str | None = None
    author: str | None = Field(default=None, max_length=200)
    image_url: str | None = None
    image_path: str | None = None


class ArticleUpdate(BaseModel):
    """Partial update; unset fields are left untouched."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    content: str | None = Field(default=None, min_length=1)
    category_id: int | None = None
    excerpt: str | None = None
    author: str | None = Field(default=None, max_length=200)
    image_url: str | None = None
    image_path: str | None = None


class OpenGraphMetadata(BaseModel):
    """Link-preview metadata derived from an article. Never persisted."""

    title: str
    description: str
    image: str
    url: str
    type: str = "article"
    site_name: str
    locale: str
    category: str = ""


class Pagination(BaseModel):
    """Paging block of the latest-articles response."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute page count and whether a next page exists."""
        total_pages = ceil(total / limit) if total else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        )


class ArticlePage(BaseModel):
    """Schema for paginated article list response."""

    articles: list[ArticleRecord]
    pagination: Pagination

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
