"""Aggregate router mounted under /api."""

from fastapi import APIRouter

from backend.api.routers import (
    auth_configs,
    auth_links,
    connected_accounts,
    conversations,
    health,
)

router = APIRouter()

router.include_router(health.router)
router.include_router(auth_links.router)
router.include_router(auth_configs.router)
router.include_router(connected_accounts.router)
router.include_router(conversations.router)
router.include_router(auth_configs.toolkit_router)
router.include_router(connected_accounts.apps_router)
