"""
==============================================================================
API Dependencies
==============================================================================

FastAPI dependency resolving the orchestrator owned by the application.

==============================================================================
"""

from fastapi import Request

from kiosk.scanner import ScanOrchestrator


def get_orchestrator(request: Request) -> ScanOrchestrator:
    """Orchestrator created by the application factory."""
    return request.app.state.orchestrator
