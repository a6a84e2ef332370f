"""
Health router — GET /health endpoint.

Used by liveness/readiness probes and load balancer health checks.
Reports ``starting`` until the lifespan handler has built the services.
"""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Return service readiness for probes."""
    ready = getattr(request.app.state, "chat_orchestrator", None) is not None
    return {
        "status": "healthy" if ready else "starting",
        "service": "zerodb-rag-chat",
    }
