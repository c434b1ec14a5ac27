"""Crawler-aware content negotiation for single-article reads."""

from dataclasses import dataclass, field
from typing import Any

from fastapi import Response
from fastapi.responses import HTMLResponse, JSONResponse

from havaasa.config import Settings
from havaasa.constants.link_preview import (
    CRAWLER_CACHE_CONTROL,
    CRAWLER_ROBOTS_TAG,
    HTML_CONTENT_TYPE,
)
from havaasa.schemas.article import ArticleRecord, OpenGraphMetadata
from havaasa.services.crawler_service import CrawlerDetector
from havaasa.services.og_service import (
    build_metadata,
    render_article_html,
    render_not_found_html,
)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RenderedResponse:
    """Status, content type and body chosen for one caller."""

    status_code: int
    media_type: str
    body: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_html(self) -> bool:
        return self.media_type.startswith("text/html")

    def to_response(self) -> Response:
        if self.is_html:
            # starlette appends "; charset=utf-8" to text/html
            return HTMLResponse(
                content=self.body, status_code=self.status_code, headers=self.headers
            )
        return JSONResponse(content=self.body, status_code=self.status_code, headers=self.headers)


class Responder:
    """Chooses between Open Graph HTML (crawlers) and JSON (everyone else)."""

    def __init__(self, settings: Settings, detector: CrawlerDetector):
        self.settings = settings
        self.detector = detector

    def classify(self, user_agent: str | None) -> bool:
        return self.detector.classify(user_agent)

    def metadata(self, article: ArticleRecord) -> OpenGraphMetadata:
        return build_metadata(
            article,
            self.settings.base_url,
            site_name=self.settings.site_name,
            locale=self.settings.locale,
        )

    def payload(self, article: ArticleRecord) -> dict[str, Any]:
        """JSON body for regular clients: the article plus its ``og`` block."""
        body = article.model_dump(mode="json")
        body["og"] = self.metadata(article).model_dump()
        return body

    def not_found(self, *, crawler: bool) -> RenderedResponse:
        if crawler:
            return RenderedResponse(
                status_code=404,
                media_type=HTML_CONTENT_TYPE,
                body=render_not_found_html(self.settings.site_name, self.settings.base_url),
            )
        return RenderedResponse(
            status_code=404,
            media_type=JSON_CONTENT_TYPE,
            body={"message": "Article not found"},
        )

    def respond(self, article: ArticleRecord | None, user_agent: str | None) -> RenderedResponse:
        """Build the response for a single-article read."""
        crawler = self.classify(user_agent)
        if article is None:
            return self.not_found(crawler=crawler)
        if crawler:
            return RenderedResponse(
                status_code=200,
                media_type=HTML_CONTENT_TYPE,
                body=render_article_html(self.metadata(article)),
                headers={
                    "Cache-Control": CRAWLER_CACHE_CONTROL,
                    "X-Robots-Tag": CRAWLER_ROBOTS_TAG,
                },
            )
        return RenderedResponse(
            status_code=200, media_type=JSON_CONTENT_TYPE, body=self.payload(article)
        )
