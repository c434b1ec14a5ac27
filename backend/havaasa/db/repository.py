"""Article and category data access on top of async SQLAlchemy sessions."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from havaasa.exceptions import DataAccessError, ValidationError
from havaasa.models import Article, Category
from havaasa.schemas.article import ArticleRecord

logger = structlog.get_logger(__name__)


class _Repository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _data_access(self, operation: str) -> AsyncIterator[None]:
        """Roll back and re-raise driver errors as Havaasa errors."""
        try:
            yield
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("integrity_error", operation=operation, error=str(e.orig))
            raise ValidationError(f"Could not {operation}: conflicting or unknown reference") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("data_access_failed", operation=operation, error=str(e))
            raise DataAccessError(f"Failed to {operation}", details=str(e)) from e


class ArticleRepository(_Repository):
    """Reads and writes articles, joining the category name on reads."""

    def _select(self):
        return select(Article, Category.name).join(
            Category, Article.category_id == Category.id, isouter=True
        )

    @staticmethod
    def _record(article: Article, category_name: str | None) -> ArticleRecord:
        return ArticleRecord(**article.model_dump(), category_name=category_name)

    async def get_article(self, article_id: int) -> ArticleRecord | None:
        """Select one article by id, or None."""
        async with self._data_access("fetch article"):
            result = await self.session.execute(self._select().where(Article.id == article_id))
            row = result.first()
        if row is None:
            return None
        return self._record(*row)

    async def list_articles(self) -> list[ArticleRecord]:
        """All articles, newest first."""
        async with self._data_access("fetch articles"):
            result = await self.session.execute(
                self._select().order_by(Article.created_at.desc(), Article.id.desc())
            )
            rows = result.all()
        return [self._record(*row) for row in rows]

    async def list_articles_page(
        self, offset: int, limit: int
    ) -> tuple[list[ArticleRecord], int]:
        """One page of articles (newest first) plus the total article count."""
        async with self._data_access("fetch articles page"):
            total = await self.session.scalar(select(func.count()).select_from(Article))
            result = await self.session.execute(
                self._select()
                .order_by(Article.created_at.desc(), Article.id.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = result.all()
        return [self._record(*row) for row in rows], total or 0

    async def create_article(self, data: dict[str, Any]) -> ArticleRecord:
        """Insert an article and return it with its category joined."""
        article = Article(**data)
        async with self._data_access("create article"):
            self.session.add(article)
            await self.session.commit()
            await self.session.refresh(article)
        created = await self.get_article(article.id)
        if created is None:
            raise DataAccessError("Article creation failed - no data returned")
        return created

    async def update_article(
        self, article_id: int, changes: dict[str, Any]
    ) -> ArticleRecord | None:
        """Apply changes to an article; None when it does not exist."""
        async with self._data_access("update article"):
            article = await self.session.get(Article, article_id)
            if article is None:
                return None
            for field, value in changes.items():
                setattr(article, field, value)
            article.updated_at = datetime.now(UTC)
            await self.session.commit()
        return await self.get_article(article_id)

    async def delete_article(self, article_id: int) -> ArticleRecord | None:
        """Delete an article and return what was removed, or None."""
        existing = await self.get_article(article_id)
        if existing is None:
            return None
        async with self._data_access("delete article"):
            article = await self.session.get(Article, article_id)
            if article is not None:
                await self.session.delete(article)
                await self.session.commit()
        return existing


class CategoryRepository(_Repository):
    """Reads and writes categories."""

    async def list_categories(self) -> list[Category]:
        async with self._data_access("fetch categories"):
            result = await self.session.execute(select(Category).order_by(Category.name))
            return list(result.scalars().all())

    async def create_category(self, name: str, description: str | None = None) -> Category:
        category = Category(name=name, description=description)
        async with self._data_access("create category"):
            self.session.add(category)
            await self.session.commit()
            await self.session.refresh(category)
        return category
