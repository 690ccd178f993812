"""Versioned API routers."""

from fastapi import APIRouter

from . import account, avatars, health

router = APIRouter()
router.include_router(health.router)
router.include_router(avatars.router)
router.include_router(account.router)

__all__ = ["router"]
