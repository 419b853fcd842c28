"""Liveness and readiness endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    """Readiness check: the storage capability probe."""
    service = request.app.state.challenge_service
    if service.is_available():
        return {"status": "ok", "storage": True, "remote": service.repository.remote_status()}
    return JSONResponse(status_code=503, content={"status": "degraded", "storage": False})
