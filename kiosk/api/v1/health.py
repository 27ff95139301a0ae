"""
==============================================================================
Health Check Endpoints
==============================================================================

Kiosk health status endpoints for monitoring and supervisors.

==============================================================================
"""

from fastapi import APIRouter, Depends

from kiosk.api.dependencies import get_orchestrator
from kiosk.scanner import ScanOrchestrator


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, orchestrator: ScanOrchestrator):
        self._orchestrator = orchestrator

    def get_health(self) -> dict:
        """Get full health status."""
        session = self._orchestrator.session
        backends = self._orchestrator.chain.available_backends()

        camera = "healthy" if session.is_live else session.state.value
        decoder = "healthy" if backends else "unavailable"
        overall = "healthy" if session.is_live and backends else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "camera": camera,
                "decoder": decoder,
                "live_loop": self._orchestrator.live.state.value,
            },
            "details": {
                "backends": backends,
            }
        }


@router.get("")
async def health_check(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """
    Health check endpoint.

    Returns camera, decoder and live loop status.
    """
    return HealthController(orchestrator).get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness check."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness check."""
    return {"alive": True}
