"""API router package."""

from fastapi import APIRouter

from qbank.api import items

router = APIRouter(prefix="/api/v1")

router.include_router(items.router, tags=["items"])
