"""Category model for PostgreSQL."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Category(SQLModel, table=True):
    """Article category (news, culture, sport...)."""

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    description: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
