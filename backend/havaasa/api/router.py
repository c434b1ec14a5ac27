"""API main router - aggregates all endpoint routers."""

from fastapi import APIRouter

from havaasa.api import articles, auth, categories

api_router = APIRouter()

api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
