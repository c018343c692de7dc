"""Health, readiness y métricas."""

from fastapi import APIRouter, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness: ok mientras el proceso corra."""
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    """Readiness: listo solo con el socket del hub conectado."""
    service = request.app.state.service
    state = service.manager.state.value
    if not service.manager.is_connected:
        raise HTTPException(status_code=503, detail=f"not ready ({state})")
    return {"status": "ready", "state": state}


@router.get("/stats")
def stats(request: Request):
    return request.app.state.service.stats


@router.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
