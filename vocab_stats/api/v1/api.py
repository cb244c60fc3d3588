"""API router for version 1."""
from fastapi import APIRouter

from vocab_stats.api.v1.endpoints import admin, stats, words


api_router = APIRouter()
api_router.include_router(admin.router)
api_router.include_router(stats.router)
api_router.include_router(words.router)
