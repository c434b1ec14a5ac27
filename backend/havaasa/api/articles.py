"""Articles API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Header, Query, Response, UploadFile, status
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from havaasa.api.deps import get_app_settings, get_article_service, require_user
from havaasa.config import Settings
from havaasa.exceptions import ValidationError
from havaasa.schemas.article import ArticleCreate, ArticleUpdate
from havaasa.schemas.auth import AuthUser
from havaasa.services.article_service import ArticleService
from havaasa.services.storage_service import ImageUpload, validate_image

router = APIRouter()


async def read_image(upload: UploadFile | None, settings: Settings) -> ImageUpload | None:
    """Pull an optional multipart image into memory and validate it."""
    if upload is None or not upload.filename:
        return None
    image = ImageUpload(
        filename=upload.filename,
        content_type=upload.content_type or "",
        data=await upload.read(),
    )
    validate_image(image, settings.max_upload_bytes)
    return image


def _build(schema: type[BaseModel], **values: Any) -> Any:
    try:
        return schema(**values)
    except SchemaError as e:
        fields = {".".join(str(p) for p in err["loc"]): True for err in e.errors()}
        raise ValidationError("Invalid article fields", fields=fields) from e


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


@router.get("")
async def list_articles(
    service: ArticleService = Depends(get_article_service),
) -> list[dict[str, Any]]:
    """All articles, newest first."""
    return await service.list_articles()


@router.get("/latest")
async def latest_articles(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    """
    Paginated newest-first listing.

    - page: 1-based page number
    - limit: page size (1-100)
    """
    return await service.list_latest(page, limit)


@router.get("/{article_id}")
async def get_article(
    article_id: int,
    user_agent: str | None = Header(default=None),
    service: ArticleService = Depends(get_article_service),
) -> Response:
    """
    Get a specific article by ID.

    Social-media crawlers receive an HTML page with Open Graph, Twitter Card
    and JSON-LD metadata; everyone else receives JSON.
    """
    rendered = await service.get_article(article_id, user_agent)
    return rendered.to_response()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    category_id: int | None = Form(default=None),
    excerpt: str | None = Form(default=None),
    author: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    user: AuthUser = Depends(require_user),
    settings: Settings = Depends(get_app_settings),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    """Create an article, uploading its image first when one is attached."""
    title, content = _clean(title), _clean(content)
    missing = {"title": not title, "content": not content, "category_id": category_id is None}
    if any(missing.values()):
        raise ValidationError("Missing required fields", fields=missing)

    upload = await read_image(image, settings)
    data = _build(
        ArticleCreate,
        title=title,
        content=content,
        category_id=category_id,
        excerpt=_clean(excerpt),
        author=_clean(author),
    )
    return await service.create_article(data, upload)


@router.put("/{article_id}")
async def update_article(
    article_id: int,
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    category_id: int | None = Form(default=None),
    excerpt: str | None = Form(default=None),
    author: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    user: AuthUser = Depends(require_user),
    settings: Settings = Depends(get_app_settings),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    """Update the submitted fields of an article; optionally replace its image."""
    fields = {
        "title": _clean(title),
        "content": _clean(content),
        "category_id": category_id,
        "excerpt": excerpt.strip() if excerpt is not None else None,
        "author": _clean(author),
    }
    changes = _build(ArticleUpdate, **{k: v for k, v in fields.items() if v is not None})
    upload = await read_image(image, settings)
    return await service.update_article(article_id, changes, upload)


@router.delete("/{article_id}")
async def delete_article(
    article_id: int,
    user: AuthUser = Depends(require_user),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, str]:
    """Delete an article and its stored image."""
    await service.delete_article(article_id)
    return {"message": "Article deleted successfully"}
