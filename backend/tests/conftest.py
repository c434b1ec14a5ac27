"""Shared fixtures: fake clock, in-memory article store, fake hosted services."""

from collections import Counter
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from havaasa.api import deps
from havaasa.config import Settings
from havaasa.exceptions import AuthenticationError
from havaasa.main import create_app
from havaasa.schemas.article import ArticleRecord
from havaasa.schemas.auth import AuthUser
from havaasa.services.cache import ResponseCache
from havaasa.services.storage_service import ImageUpload, StoredFile

VALID_TOKEN = "valid-token"
AUTH_HEADERS = {"Authorization": f"Bearer {VALID_TOKEN}"}
BROWSER_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
FACEBOOK_UA = "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_article(article_id: int, **overrides: Any) -> ArticleRecord:
    fields: dict[str, Any] = {
        "id": article_id,
        "title": f"Article {article_id}",
        "content": f"Body of article {article_id}. " * 20,
        "excerpt": None,
        "image_url": None,
        "category_id": 1,
        "category_name": "News",
        "created_at": datetime(2024, 1, 1, tzinfo=UTC) + timedelta(hours=article_id),
    }
    fields.update(overrides)
    return ArticleRecord(**fields)


class FakeArticleStore:
    """In-memory stand-in for the article repository that counts calls."""

    def __init__(self, articles: list[ArticleRecord] | None = None):
        self.articles = {a.id: a for a in articles or []}
        self.calls: Counter[str] = Counter()

    def _newest_first(self) -> list[ArticleRecord]:
        return sorted(self.articles.values(), key=lambda a: (a.created_at, a.id), reverse=True)

    async def get_article(self, article_id: int) -> ArticleRecord | None:
        self.calls["get_article"] += 1
        return self.articles.get(article_id)

    async def list_articles(self) -> list[ArticleRecord]:
        self.calls["list_articles"] += 1
        return self._newest_first()

    async def list_articles_page(self, offset: int, limit: int) -> tuple[list[ArticleRecord], int]:
        self.calls["list_articles_page"] += 1
        return self._newest_first()[offset : offset + limit], len(self.articles)

    async def create_article(self, data: dict[str, Any]) -> ArticleRecord:
        self.calls["create_article"] += 1
        new_id = max(self.articles, default=0) + 1
        article = ArticleRecord(
            id=new_id,
            created_at=datetime(2030, 1, 1, tzinfo=UTC),
            category_name="News" if data.get("category_id") == 1 else None,
            **data,
        )
        self.articles[new_id] = article
        return article

    async def update_article(self, article_id: int, changes: dict[str, Any]) -> ArticleRecord | None:
        self.calls["update_article"] += 1
        existing = self.articles.get(article_id)
        if existing is None:
            return None
        updated = existing.model_copy(update=changes)
        self.articles[article_id] = updated
        return updated

    async def delete_article(self, article_id: int) -> ArticleRecord | None:
        self.calls["delete_article"] += 1
        return self.articles.pop(article_id, None)


class FakeAuthClient:
    async def get_user(self, token: str) -> AuthUser:
        if token != VALID_TOKEN:
            raise AuthenticationError("Invalid or expired token")
        return AuthUser(id="user-1", email="editor@havaasa.com")

    async def close(self) -> None:
        pass


class FakeStorageClient:
    def __init__(self) -> None:
        self.uploaded: list[ImageUpload] = []
        self.deleted: list[str] = []

    async def upload_image(self, upload: ImageUpload) -> StoredFile:
        self.uploaded.append(upload)
        path = f"stored-{len(self.uploaded)}.png"
        return StoredFile(url=f"https://storage.example.com/article-images/{path}", path=path)

    async def delete_file(self, path: str) -> None:
        self.deleted.append(path)

    async def close(self) -> None:
        pass


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        base_url="https://example.com",
        site_name="Havaasa",
        locale="dv_MV",
        cache_ttl_seconds=300,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeArticleStore:
    return FakeArticleStore([make_article(i) for i in range(1, 26)])


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def app(
    settings: Settings,
    clock: FakeClock,
    store: FakeArticleStore,
    storage: FakeStorageClient,
) -> FastAPI:
    application = create_app(settings)
    application.state.cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds, clock=clock)
    application.dependency_overrides[deps.get_article_store] = lambda: store
    application.dependency_overrides[deps.get_auth_client] = FakeAuthClient
    application.dependency_overrides[deps.get_storage_client] = lambda: storage
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    # No context manager: the lifespan (database bootstrap) is not run
    yield TestClient(app, headers={"User-Agent": BROWSER_UA})


@pytest.fixture
def cache(app: FastAPI) -> ResponseCache:
    return app.state.cache
