"""Article model for magazine content."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Article(SQLModel, table=True):
    """
    Published magazine article.
    Each article belongs to at most one category.
    """

    __tablename__ = "articles"

    id: int | None = Field(default=None, primary_key=True)
    category_id: int | None = Field(default=None, foreign_key="categories.id", index=True)

    # Article content
    title: str = Field(max_length=500)
    content: str
    excerpt: str | None = Field(default=None)
    author: str | None = Field(default=None, max_length=200)

    # Stored image (public URL + object path for deletion)
    image_url: str | None = Field(default=None, max_length=2048)
    image_path: str | None = Field(default=None, max_length=1024)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    updated_at: datetime | None = Field(default=None)
