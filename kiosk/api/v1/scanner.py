"""
==============================================================================
Scanner Control Endpoints
==============================================================================

Local control surface for the kiosk: status, camera retry/switch/stop and
photo upload.

Endpoints:
---------
- GET  /scanner/status   Status line, diagnostic log, session/loop state
- GET  /scanner/devices  Re-enumerated camera list
- POST /scanner/retry    Explicit retry after a camera failure
- POST /scanner/switch   Move to the next camera
- POST /scanner/stop     Stop sampling and release the camera
- POST /scanner/upload   Decode an uploaded photo (multipart ``file``)
- POST /scanner/snapshot Decode the current live frame

==============================================================================
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile

from kiosk.api.dependencies import get_orchestrator
from kiosk.core import exceptions
from kiosk.scanner import ScanOrchestrator


router = APIRouter(prefix="/scanner", tags=["Scanner"])


class ScannerController:
    """Controller for scanner control operations."""

    def __init__(self, orchestrator: ScanOrchestrator):
        self._orchestrator = orchestrator

    def status(self, log_tail: int) -> dict:
        return {"success": True, **self._orchestrator.snapshot(log_tail=log_tail)}

    def devices(self) -> dict:
        devices = self._orchestrator.devices.refresh()
        return {
            "success": True,
            "current": self._orchestrator.session.device_id,
            "preferred": self._orchestrator.devices.pick_preferred(),
            "devices": [d.model_dump(mode="json") for d in devices],
        }

    async def retry(self) -> dict:
        if not await self._orchestrator.retry():
            raise self._orchestrator.session.last_error or exceptions.no_devices()
        return {
            "success": True,
            "device_id": self._orchestrator.session.device_id,
            "status": self._orchestrator.status.status,
        }

    async def switch(self) -> dict:
        device_id = await self._orchestrator.switch_camera()
        return {
            "success": True,
            "device_id": device_id,
            "status": self._orchestrator.status.status,
        }

    async def stop(self) -> dict:
        await self._orchestrator.stop()
        return {"success": True, "status": self._orchestrator.status.status}

    async def upload(self, file: UploadFile) -> dict:
        data = await file.read()
        event, result = await self._orchestrator.upload(data)
        return {
            "success": True,
            "detection": event.model_dump(mode="json"),
            "dispatch": result.model_dump(),
        }

    async def snapshot(self) -> dict:
        event, result = await self._orchestrator.snapshot_decode()
        return {
            "success": True,
            "detection": event.model_dump(mode="json"),
            "dispatch": result.model_dump(),
        }


@router.get("/status")
async def scanner_status(
    log_tail: int = Query(50, ge=0, le=1000),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator)
):
    """Current status line, recent diagnostic log and pipeline state."""
    return ScannerController(orchestrator).status(log_tail)


@router.get("/devices")
async def list_devices(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """Re-enumerate cameras."""
    return ScannerController(orchestrator).devices()


@router.post("/retry")
async def retry_camera(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """Re-run camera selection and start scanning."""
    return await ScannerController(orchestrator).retry()


@router.post("/switch")
async def switch_camera(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """Switch to the next camera and keep scanning."""
    return await ScannerController(orchestrator).switch()


@router.post("/stop")
async def stop_scanning(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """Stop the live loop and release the camera."""
    return await ScannerController(orchestrator).stop()


@router.post("/upload")
async def upload_image(
    file: UploadFile = File(...),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator)
):
    """Decode one uploaded photo and report the code."""
    return await ScannerController(orchestrator).upload(file)


@router.post("/snapshot")
async def snapshot_decode(orchestrator: ScanOrchestrator = Depends(get_orchestrator)):
    """Decode the current camera frame with the upload candidates and report it."""
    return await ScannerController(orchestrator).snapshot()
