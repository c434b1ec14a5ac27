"""Database connections package."""

from havaasa.db.postgres import Database, get_session
from havaasa.db.repository import ArticleRepository, CategoryRepository

__all__ = ["Database", "get_session", "ArticleRepository", "CategoryRepository"]
