"""Version 1 of the REST API."""
from fastapi import APIRouter

from taskmanager.api.v1 import attachments, auth, health, tasks, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(attachments.router, prefix="/tasks", tags=["attachments"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(health.router, tags=["health"])

__all__ = ["api_router"]
