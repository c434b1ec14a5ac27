"""Category schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class CategoryResponse(CategoryCreate):
    """Schema for category responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
