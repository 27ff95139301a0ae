"""
==============================================================================
POS Scan Kiosk - Application Entry Point
==============================================================================

FastAPI control surface around the scan orchestrator:
- Auto-starts the preferred camera and the live loop on startup
- REST endpoints for status, retry, camera switch, stop and photo upload
- Releases the camera and the HTTP client on shutdown

Usage:
------
    # Development
    uvicorn kiosk.main:app --reload

    # Kiosk, reporting to a specific endpoint
    python -m kiosk.main --pi http://raspberrypi.local:5000/add_item

==============================================================================
"""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from kiosk import __version__
from kiosk.api import api_router
from kiosk.config import Settings, get_settings
from kiosk.core import register_exception_handlers
from kiosk.scanner import ScanOrchestrator


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Orchestrator construction and auto-start
    - Middleware configuration
    - Router registration
    - Exception handler setup
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        orchestrator: Optional[ScanOrchestrator] = None
    ):
        """
        Initialize the application.

        Args:
            settings: Settings to use (global settings if None)
            orchestrator: Pre-built orchestrator (built from settings if None)
        """
        self._settings = settings or get_settings()
        self._orchestrator = orchestrator or ScanOrchestrator.from_settings(self._settings)
        self._app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version=__version__,
            description="Capture-and-decode front end of a point-of-sale scanning kiosk",
            lifespan=self._lifespan,
            docs_url="/docs",
            redoc_url="/redoc",
        )
        app.state.orchestrator = self._orchestrator

        self._configure_middleware(app)
        register_exception_handlers(app)
        app.include_router(api_router)
        self._register_root(app)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        await self._startup()
        yield
        await self._shutdown()

    async def _startup(self) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info(f"📤 Reporting to {self._settings.endpoint_url}")
        logger.info("=" * 60)

        if self._settings.autostart:
            if not await self._orchestrator.init():
                logger.warning("⚠️ Camera not started; use POST /api/v1/scanner/retry")

        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"📖 API Docs: http://{self._settings.host}:{self._settings.port}/docs")

    async def _shutdown(self) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        await self._orchestrator.shutdown()
        logger.info("✅ Shutdown complete")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Allow the kiosk page served from another origin to call the API."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _register_root(self, app: FastAPI) -> None:
        """Register root endpoint."""

        @app.get("/", include_in_schema=False)
        async def root():
            """Redirect to the scanner status."""
            return RedirectResponse(url="/api/v1/scanner/status")

    @property
    def orchestrator(self) -> ScanOrchestrator:
        return self._orchestrator

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Launch-time overrides for the kiosk."""
    parser = argparse.ArgumentParser(description="POS scan kiosk")
    parser.add_argument(
        "--endpoint", "--pi",
        dest="endpoint_url",
        help="Reporting endpoint URL (overrides KIOSK_ENDPOINT_URL)",
    )
    parser.add_argument("--host", help="Control API bind address")
    parser.add_argument("--port", type=int, help="Control API port")
    parser.add_argument("--no-autostart", action="store_true", help="Do not open the camera on startup")
    return parser.parse_args(argv)


def launch_settings(args: argparse.Namespace) -> Settings:
    """Settings with launch-time overrides applied (validated)."""
    overrides = {
        key: value
        for key, value in (
            ("endpoint_url", args.endpoint_url),
            ("host", args.host),
            ("port", args.port),
        )
        if value is not None
    }
    if args.no_autostart:
        overrides["autostart"] = False

    return Settings(**{**get_settings().model_dump(), **overrides})


if __name__ == "__main__":
    import uvicorn

    launch = launch_settings(parse_args())

    uvicorn.run(
        Application(launch).app,
        host=launch.host,
        port=launch.port,
        log_level="debug" if launch.debug else "info"
    )
