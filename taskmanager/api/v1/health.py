"""Liveness endpoint"""
from fastapi import APIRouter, Request

from taskmanager.utils.time_utils import utc_now

router = APIRouter()


@router.get("/health")
def health(request: Request):
    return {
        "success": True,
        "data": {
            "status": "OK",
            "timestamp": utc_now().isoformat(),
            "environment": request.app.state.settings.ENVIRONMENT,
        },
    }


# Served outside /api, so it is not rate limited.
root_router = APIRouter()


@root_router.get("/health")
def root_health(request: Request):
    return health(request)
