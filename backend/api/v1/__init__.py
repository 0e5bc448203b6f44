"""Version 1 routes."""

from fastapi import APIRouter

from . import auth, users

router = APIRouter(prefix="/api/v1/users")
router.include_router(auth.router)
router.include_router(users.router)

__all__ = ["router"]
