"""
==============================================================================
Kiosk Settings Module
==============================================================================

Configuration management for the scanning kiosk using Pydantic Settings.

A single cached Settings instance is shared by the orchestrator, the
dispatcher and the control API.

Configuration Priority (highest to lowest):
------------------------------------------
1. Launch-time flags (``--endpoint`` / ``--pi``, see kiosk.main)
2. Environment variables (prefix ``KIOSK_``)
3. .env file
4. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


DEFAULT_BACKENDS = '["opencv-barcode", "opencv-qr", "zxing", "pyzbar"]'


class Settings(BaseSettings):
    """
    Kiosk settings loaded from environment variables.

    Attributes:
        app_name: Display name for the control API
        debug: Enable verbose logging
        host: Control API bind address
        port: Control API port
        autostart: Start the camera and live loop on application startup
        endpoint_url: Remote reporting endpoint receiving detected items
        dispatch_timeout_seconds: HTTP timeout for one report
        products_file: Path to the code -> {name, price} lookup table
        device_root: Sysfs directory listing video-input devices
        capture_width: Ideal capture width requested from the camera
        capture_height: Ideal capture height requested from the camera
        scan_interval_ms: Live loop tick interval
        debounce_seconds: Window suppressing repeats of the same code
        live_crop_fraction: Centered fraction of the frame decoded live
        upload_min_long_side: Minimum long side (px) before decoding uploads
        upload_contrast_pass: Try a grayscale contrast-stretch candidate
        decode_backends: Backend priority order (JSON array string)
        transient_log_every: Log one of every N transient decode errors
        status_log_lines: Diagnostic log lines kept for the status surface

    Example:
        >>> settings = Settings(endpoint_url="http://pi.local:5000/add_item")
        >>> settings.scan_interval
        0.3
    """

    model_config = SettingsConfigDict(
        env_prefix="KIOSK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="POS Scan Kiosk",
        description="Display name for the control API"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    host: str = Field(
        default="127.0.0.1",
        description="Control API bind address"
    )

    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Control API port"
    )

    autostart: bool = Field(
        default=True,
        description="Start camera and live scanning on startup"
    )

    # =========================================================================
    # REPORTING SETTINGS
    # =========================================================================
    endpoint_url: str = Field(
        default="http://127.0.0.1:5000/add_item",
        description="Remote endpoint receiving {name, price} reports"
    )

    dispatch_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="HTTP timeout for a single report"
    )

    products_file: str = Field(
        default="data/products.json",
        description="Path to product lookup table JSON"
    )

    # =========================================================================
    # CAMERA SETTINGS
    # =========================================================================
    device_root: str = Field(
        default="/sys/class/video4linux",
        description="Directory enumerating video-input devices"
    )

    capture_width: int = Field(
        default=1280,
        ge=160,
        le=7680,
        description="Ideal capture width"
    )

    capture_height: int = Field(
        default=720,
        ge=120,
        le=4320,
        description="Ideal capture height"
    )

    # =========================================================================
    # SCANNING SETTINGS
    # =========================================================================
    scan_interval_ms: int = Field(
        default=300,
        ge=20,
        le=5000,
        description="Live loop tick interval in milliseconds"
    )

    debounce_seconds: float = Field(
        default=2.5,
        ge=0,
        le=60,
        description="Suppress repeats of the same code within this window"
    )

    live_crop_fraction: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="Centered fraction of each live frame that is decoded"
    )

    upload_min_long_side: int = Field(
        default=1600,
        ge=64,
        le=8000,
        description="Upscale uploads until the long side reaches this size"
    )

    upload_contrast_pass: bool = Field(
        default=True,
        description="Include a grayscale contrast-stretch upload candidate"
    )

    decode_backends: str = Field(
        default=DEFAULT_BACKENDS,
        description="Backend priority order as JSON array string"
    )

    transient_log_every: int = Field(
        default=100,
        ge=1,
        description="Log one of every N transient decode errors"
    )

    status_log_lines: int = Field(
        default=200,
        ge=10,
        le=10000,
        description="Diagnostic log lines kept in memory"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("endpoint_url")
    @classmethod
    def validate_endpoint_url(cls, value: str) -> str:
        """
        Validate the reporting endpoint is an HTTP(S) URL.

        Raises:
            ValueError: If the scheme is not http or https
        """
        normalized = value.strip()
        if not normalized.startswith(("http://", "https://")):
            raise ValueError(f"Endpoint must be an http(s) URL: {value}")
        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def scan_interval(self) -> float:
        """Live loop tick interval in seconds."""
        return self.scan_interval_ms / 1000.0

    @property
    def products_path(self) -> Path:
        """Get products file as Path object."""
        return Path(self.products_file)

    @property
    def device_root_path(self) -> Path:
        """Get the device enumeration directory as Path object."""
        return Path(self.device_root)

    @property
    def decode_backend_list(self) -> List[str]:
        """
        Parse backend order from JSON string to list.

        Returns:
            List of backend names, default order on invalid input
        """
        try:
            names = json.loads(self.decode_backends)
            if isinstance(names, list) and all(isinstance(n, str) for n in names):
                return names
        except json.JSONDecodeError:
            pass

        logger.warning(
            f"Invalid decode backends JSON: {self.decode_backends}, "
            "using default order"
        )
        return json.loads(DEFAULT_BACKENDS)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(endpoint_url={self.endpoint_url!r}, "
            f"backends={self.decode_backend_list!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
