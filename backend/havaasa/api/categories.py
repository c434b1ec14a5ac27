"""Categories API endpoints."""

from fastapi import APIRouter, Depends, status

from havaasa.api.deps import get_category_repository, require_user
from havaasa.db.repository import CategoryRepository
from havaasa.schemas.auth import AuthUser
from havaasa.schemas.category import CategoryCreate, CategoryResponse

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    repository: CategoryRepository = Depends(get_category_repository),
) -> list[CategoryResponse]:
    """List all categories alphabetically."""
    categories = await repository.list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: CategoryCreate,
    user: AuthUser = Depends(require_user),
    repository: CategoryRepository = Depends(get_category_repository),
) -> CategoryResponse:
    """Create a new category."""
    category = await repository.create_category(
        name=category_in.name.strip(), description=category_in.description
    )
    return CategoryResponse.model_validate(category)
