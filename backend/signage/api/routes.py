"""API routes for service banner and health checks."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from signage.api.dependencies import Progress
from signage.core.config import get_settings

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    return f"{get_settings().app_name} backend running"


@router.get("/health")
async def health_check(service: Progress):
    """Health check endpoint."""
    settings = get_settings()
    store_status = await service.store.ping()

    return {
        "status": "healthy" if store_status != "disconnected" else "degraded",
        "service": "signage-backend",
        "version": "0.1.0",
        "dependencies": {
            "store": store_status,
            "storage_backend": settings.storage_backend.value,
        },
    }


@router.get("/health/ready")
async def readiness_check(service: Progress):
    """Readiness check for Kubernetes."""
    settings = get_settings()

    checks = {
        "config": True,
        "store": await service.store.ping() != "disconnected",
        "auth": bool(settings.auth_secret_key),
    }

    return {
        "ready": all(checks.values()),
        "checks": checks,
    }
