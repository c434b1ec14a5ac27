"""Articles API tests: crawler negotiation, read-through caching, writes."""

from bs4 import BeautifulSoup
from fastapi import FastAPI
from fastapi.testclient import TestClient

from havaasa.api import deps
from havaasa.exceptions import StorageError
from havaasa.services.cache import ALL_ARTICLES_KEY, ResponseCache, article_key
from tests.conftest import (
    AUTH_HEADERS,
    FACEBOOK_UA,
    VALID_TOKEN,
    FakeArticleStore,
    FakeClock,
    FakeStorageClient,
    make_article,
)

NEW_ARTICLE = {"title": "Fresh story", "content": "Something happened today.", "category_id": "1"}


class UnavailableStorageClient(FakeStorageClient):
    async def upload_image(self, upload):
        raise StorageError("Failed to upload image", details="503 from storage")


class TestGetArticle:
    def test_json_for_regular_clients(self, client: TestClient) -> None:
        response = client.get("/api/articles/7")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        body = response.json()
        assert body["id"] == 7
        assert body["title"] == "Article 7"
        assert body["category_name"] == "News"
        assert body["og"] == {
            "title": "Article 7",
            "description": ("Body of article 7. " * 20)[:200] + "...",
            "image": "https://example.com/og-image.png",
            "url": "https://example.com/article/7",
            "type": "article",
            "site_name": "Havaasa",
            "locale": "dv_MV",
            "category": "News",
        }

    def test_html_for_crawlers(self, client: TestClient) -> None:
        response = client.get("/api/articles/7", headers={"User-Agent": FACEBOOK_UA})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert response.headers["cache-control"] == "public, max-age=300"
        assert response.headers["x-robots-tag"] == "all"
        soup = BeautifulSoup(response.text, "lxml")
        assert soup.find("meta", attrs={"property": "og:title"})["content"] == "Article 7"
        assert soup.find("meta", attrs={"property": "og:url"})["content"] == (
            "https://example.com/article/7"
        )

    def test_missing_article_json(self, client: TestClient) -> None:
        response = client.get("/api/articles/999")

        assert response.status_code == 404
        assert response.json() == {"message": "Article not found"}

    def test_missing_article_html_for_crawlers(self, client: TestClient) -> None:
        response = client.get("/api/articles/999", headers={"User-Agent": "Twitterbot/1.0"})

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Article not found" in response.text

    def test_invalid_id_for_crawler_is_html(self, client: TestClient) -> None:
        response = client.get("/api/articles/abc", headers={"User-Agent": "WhatsApp/2.0"})

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")


class TestReadThroughCache:
    def test_second_read_is_served_from_cache(
        self, client: TestClient, store: FakeArticleStore
    ) -> None:
        first = client.get("/api/articles/7")
        second = client.get("/api/articles/7")

        assert first.json() == second.json()
        assert store.calls["get_article"] == 1

    def test_entry_expires_after_ttl(
        self, client: TestClient, store: FakeArticleStore, clock: FakeClock
    ) -> None:
        client.get("/api/articles/7")
        clock.advance(301)
        client.get("/api/articles/7")

        assert store.calls["get_article"] == 2

    def test_crawlers_bypass_and_never_populate_cache(
        self, client: TestClient, store: FakeArticleStore, cache: ResponseCache
    ) -> None:
        client.get("/api/articles/7", headers={"User-Agent": FACEBOOK_UA})
        client.get("/api/articles/7", headers={"User-Agent": FACEBOOK_UA})

        assert store.calls["get_article"] == 2
        assert cache.get(article_key(7)) is None

        # A regular read afterwards still has to fetch, and gets JSON
        response = client.get("/api/articles/7")
        assert store.calls["get_article"] == 3
        assert response.json()["id"] == 7

    def test_crawler_ignores_cached_json(
        self, client: TestClient, store: FakeArticleStore
    ) -> None:
        client.get("/api/articles/7")
        response = client.get("/api/articles/7", headers={"User-Agent": FACEBOOK_UA})

        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert store.calls["get_article"] == 2

    def test_not_found_is_not_cached(self, client: TestClient, store: FakeArticleStore) -> None:
        client.get("/api/articles/999")
        client.get("/api/articles/999")

        assert store.calls["get_article"] == 2

    def test_list_is_cached(self, client: TestClient, store: FakeArticleStore) -> None:
        first = client.get("/api/articles")
        second = client.get("/api/articles")

        assert first.json() == second.json()
        assert len(first.json()) == 25
        assert first.json()[0]["id"] == 25
        assert store.calls["list_articles"] == 1

    def test_create_invalidates_aggregates_only(
        self, client: TestClient, store: FakeArticleStore
    ) -> None:
        client.get("/api/articles")
        client.get("/api/articles/latest?page=1&limit=10")
        client.get("/api/articles/7")

        created = client.post("/api/articles", data=NEW_ARTICLE, headers=AUTH_HEADERS)
        assert created.status_code == 201
        new_id = created.json()["id"]

        listing = client.get("/api/articles").json()
        assert listing[0]["id"] == new_id
        assert store.calls["list_articles"] == 2

        page = client.get("/api/articles/latest?page=1&limit=10").json()
        assert page["articles"][0]["id"] == new_id
        assert store.calls["list_articles_page"] == 2

        # Unrelated single-article entry is still served from cache
        client.get("/api/articles/7")
        assert store.calls["get_article"] == 1

    def test_update_invalidates_the_article(
        self, client: TestClient, store: FakeArticleStore, cache: ResponseCache
    ) -> None:
        client.get("/api/articles/7")
        client.get("/api/articles")

        response = client.put("/api/articles/7", data={"title": "Renamed"}, headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert cache.get(article_key(7)) is None
        assert cache.get(ALL_ARTICLES_KEY) is None
        assert client.get("/api/articles/7").json()["og"]["title"] == "Renamed"


class TestPagination:
    def test_pages_of_ten(self, client: TestClient) -> None:
        pages = [
            client.get("/api/articles/latest", params={"page": page, "limit": 10}).json()
            for page in (1, 2, 3)
        ]

        assert [len(p["articles"]) for p in pages] == [10, 10, 5]
        assert [p["pagination"]["hasMore"] for p in pages] == [True, True, False]
        assert {p["pagination"]["totalPages"] for p in pages} == {3}
        assert pages[0]["pagination"]["total"] == 25
        assert pages[0]["articles"][0]["id"] == 25
        assert pages[2]["articles"][-1]["id"] == 1

    def test_pages_are_cached_per_shape(self, client: TestClient, store: FakeArticleStore) -> None:
        client.get("/api/articles/latest?page=1&limit=10")
        client.get("/api/articles/latest?page=1&limit=10")
        client.get("/api/articles/latest?page=1&limit=5")

        assert store.calls["list_articles_page"] == 2

    def test_page_past_the_end(self, client: TestClient) -> None:
        body = client.get("/api/articles/latest?page=9&limit=10").json()

        assert body["articles"] == []
        assert body["pagination"]["hasMore"] is False

    def test_invalid_limit(self, client: TestClient) -> None:
        assert client.get("/api/articles/latest?limit=0").status_code == 400
        assert client.get("/api/articles/latest?page=0").status_code == 400


class TestWrites:
    def test_create_requires_auth(self, client: TestClient, store: FakeArticleStore) -> None:
        response = client.post("/api/articles", data=NEW_ARTICLE)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "No authorization header"
        assert store.calls["create_article"] == 0

    def test_create_rejects_bad_token(self, client: TestClient) -> None:
        response = client.post(
            "/api/articles", data=NEW_ARTICLE, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    def test_bearer_scheme_is_case_insensitive(self, client: TestClient) -> None:
        response = client.post(
            "/api/articles", data=NEW_ARTICLE, headers={"Authorization": f"bearer {VALID_TOKEN}"}
        )

        assert response.status_code == 201

    def test_other_auth_schemes_are_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/articles", data=NEW_ARTICLE, headers={"Authorization": f"Token {VALID_TOKEN}"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    def test_create_reports_missing_fields(self, client: TestClient) -> None:
        response = client.post("/api/articles", data={"title": "Only"}, headers=AUTH_HEADERS)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "Missing required fields"
        assert error["fields"] == {"title": False, "content": True, "category_id": True}

    def test_create_with_image(
        self, client: TestClient, storage: FakeStorageClient
    ) -> None:
        response = client.post(
            "/api/articles",
            data=NEW_ARTICLE,
            files={"image": ("cover.png", b"\x89PNG fake", "image/png")},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["image_url"].startswith("https://storage.example.com/")
        assert storage.uploaded[0].filename == "cover.png"

    def test_create_reports_upload_failure(
        self, app: FastAPI, client: TestClient, store: FakeArticleStore
    ) -> None:
        app.dependency_overrides[deps.get_storage_client] = UnavailableStorageClient

        response = client.post(
            "/api/articles",
            data=NEW_ARTICLE,
            files={"image": ("cover.png", b"\x89PNG fake", "image/png")},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to upload image"}
        assert store.calls["create_article"] == 0

    def test_create_rejects_non_images(self, client: TestClient, storage: FakeStorageClient) -> None:
        response = client.post(
            "/api/articles",
            data=NEW_ARTICLE,
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400
        assert storage.uploaded == []

    def test_update_missing_article(self, client: TestClient) -> None:
        response = client.put("/api/articles/999", data={"title": "x"}, headers=AUTH_HEADERS)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_delete_removes_article_and_image(
        self, client: TestClient, store: FakeArticleStore, storage: FakeStorageClient
    ) -> None:
        store.articles[7] = make_article(7, image_path="old.png")
        client.get("/api/articles/7")

        response = client.delete("/api/articles/7", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"message": "Article deleted successfully"}
        assert storage.deleted == ["old.png"]
        assert client.get("/api/articles/7").status_code == 404
