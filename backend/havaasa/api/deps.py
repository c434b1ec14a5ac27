"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from havaasa.config import Settings
from havaasa.db.postgres import get_session
from havaasa.db.repository import ArticleRepository, CategoryRepository
from havaasa.exceptions import AuthenticationError
from havaasa.schemas.auth import AuthUser
from havaasa.services.article_service import ArticleService, ArticleStore
from havaasa.services.auth_service import AuthClient
from havaasa.services.cache import ResponseCache
from havaasa.services.responder import Responder
from havaasa.services.storage_service import StorageClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def get_responder(request: Request) -> Responder:
    return request.app.state.responder


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage_client


def get_article_store(session: AsyncSession = Depends(get_session)) -> ArticleStore:
    return ArticleRepository(session)


def get_category_repository(session: AsyncSession = Depends(get_session)) -> CategoryRepository:
    return CategoryRepository(session)


def get_article_service(
    store: ArticleStore = Depends(get_article_store),
    cache: ResponseCache = Depends(get_cache),
    responder: Responder = Depends(get_responder),
    storage: StorageClient = Depends(get_storage_client),
) -> ArticleService:
    return ArticleService(store=store, cache=cache, responder=responder, storage=storage)


async def require_user(
    authorization: str | None = Header(default=None),
    auth: AuthClient = Depends(get_auth_client),
) -> AuthUser:
    """Bearer-token check for write endpoints."""
    if not authorization:
        raise AuthenticationError("No authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid or expired token")
    return await auth.get_user(token)
