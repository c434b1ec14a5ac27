"""Article service: cached reads, crawler-aware rendering, cache-invalidating writes."""

from typing import Any, Protocol

import structlog

from havaasa.exceptions import NotFoundError, StorageError
from havaasa.schemas.article import (
    ArticleCreate,
    ArticlePage,
    ArticleRecord,
    ArticleUpdate,
    Pagination,
)
from havaasa.services.cache import ALL_ARTICLES_KEY, ResponseCache, article_key, page_key
from havaasa.services.responder import JSON_CONTENT_TYPE, RenderedResponse, Responder
from havaasa.services.storage_service import ImageUpload, StorageClient

logger = structlog.get_logger(__name__)


class ArticleStore(Protocol):
    """Data collaborator used by the service (see ``havaasa.db.repository``)."""

    async def get_article(self, article_id: int) -> ArticleRecord | None: ...

    async def list_articles(self) -> list[ArticleRecord]: ...

    async def list_articles_page(
        self, offset: int, limit: int
    ) -> tuple[list[ArticleRecord], int]: ...

    async def create_article(self, data: dict[str, Any]) -> ArticleRecord: ...

    async def update_article(
        self, article_id: int, changes: dict[str, Any]
    ) -> ArticleRecord | None: ...

    async def delete_article(self, article_id: int) -> ArticleRecord | None: ...


class ArticleService:
    """
    Read-through cache in front of the article store.

    Crawler reads bypass the cache entirely, so rendered HTML never ends up
    in it. Creating an article drops the list and page entries; updates and
    deletes also drop the entry for the touched article.
    """

    def __init__(
        self,
        store: ArticleStore,
        cache: ResponseCache,
        responder: Responder,
        storage: StorageClient | None = None,
    ):
        self.store = store
        self.cache = cache
        self.responder = responder
        self.storage = storage

    async def get_article(self, article_id: int, user_agent: str | None) -> RenderedResponse:
        """Single-article read, negotiated between JSON and Open Graph HTML."""
        if self.responder.classify(user_agent):
            article = await self.store.get_article(article_id)
            return self.responder.respond(article, user_agent)

        key = article_key(article_id)
        cached = self.cache.get(key)
        if cached is not None:
            return RenderedResponse(status_code=200, media_type=JSON_CONTENT_TYPE, body=cached)

        article = await self.store.get_article(article_id)
        rendered = self.responder.respond(article, user_agent)
        if article is not None:
            self.cache.set(key, rendered.body)
        return rendered

    async def list_articles(self) -> list[dict[str, Any]]:
        cached = self.cache.get(ALL_ARTICLES_KEY)
        if cached is not None:
            return cached

        articles = await self.store.list_articles()
        payload = [a.model_dump(mode="json") for a in articles]
        self.cache.set(ALL_ARTICLES_KEY, payload)
        return payload

    async def list_latest(self, page: int, limit: int) -> dict[str, Any]:
        """One page of the newest articles with paging info."""
        key = page_key(page, limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        articles, total = await self.store.list_articles_page((page - 1) * limit, limit)
        payload = ArticlePage(
            articles=articles, pagination=Pagination.build(page, limit, total)
        ).to_payload()
        self.cache.set(key, payload)
        return payload

    async def _store_image(self, image: ImageUpload | None) -> dict[str, str]:
        if image is None:
            return {}
        if self.storage is None:
            raise StorageError("Image storage is not configured")
        stored = await self.storage.upload_image(image)
        logger.info("image_uploaded", url=stored.url)
        return {"image_url": stored.url, "image_path": stored.path}

    async def create_article(
        self, data: ArticleCreate, image: ImageUpload | None = None
    ) -> dict[str, Any]:
        values = data.model_dump(exclude_none=True)
        values.update(await self._store_image(image))
        article = await self.store.create_article(values)
        self.cache.invalidate_aggregates()
        logger.info("article_created", article_id=article.id)
        return article.model_dump(mode="json")

    async def update_article(
        self, article_id: int, changes: ArticleUpdate, image: ImageUpload | None = None
    ) -> dict[str, Any]:
        values = changes.model_dump(exclude_unset=True)
        values.update(await self._store_image(image))
        article = await self.store.update_article(article_id, values)
        if article is None:
            raise NotFoundError("Article not found")
        self.cache.invalidate_aggregates()
        self.cache.invalidate(article_key(article_id))
        logger.info("article_updated", article_id=article_id, fields=sorted(values))
        return article.model_dump(mode="json")

    async def delete_article(self, article_id: int) -> None:
        article = await self.store.delete_article(article_id)
        if article is None:
            raise NotFoundError("Article not found")
        self.cache.invalidate_aggregates()
        self.cache.invalidate(article_key(article_id))
        logger.info("article_deleted", article_id=article_id)

        if article.image_path and self.storage is not None:
            try:
                await self.storage.delete_file(article.image_path)
            except StorageError as e:
                # The row is gone; an orphaned object is only logged
                logger.warning("image_delete_failed", path=article.image_path, error=e.details)
