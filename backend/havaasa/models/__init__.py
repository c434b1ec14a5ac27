"""Models package - SQLModel database models."""

from havaasa.models.article import Article
from havaasa.models.category import Category

__all__ = ["Article", "Category"]
