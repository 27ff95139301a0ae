"""
==============================================================================
Detection Dispatcher Module
==============================================================================

Resolves a detected code to a product identity and reports it.

Protocol:
---------
    POST <endpoint_url>
    Content-Type: application/json

    {"name": "Biscuits", "price": 45}

Reporting is at-most-once: a failed report (transport error or non-2xx
response) is logged and surfaced on the status board, never retried, and
never raised into the scanning pipelines.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from kiosk.catalog import ProductCatalog
from kiosk.core import exceptions
from kiosk.utils import StatusBoard

from .models import DetectionEvent, DispatchResult


# Module logger
logger = logging.getLogger(__name__)


class DetectionDispatcher:
    """
    Forwards detections to the remote reporting endpoint.

    Attributes:
        endpoint_url: Reporting endpoint

    Example:
        >>> dispatcher = DetectionDispatcher(catalog, "http://pi.local:5000/add_item")
        >>> result = await dispatcher.dispatch(event)
        >>> result.ok
        True
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        endpoint_url: str,
        timeout: float = 5.0,
        status: Optional[StatusBoard] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            catalog: Code -> product lookup
            endpoint_url: Reporting endpoint URL
            timeout: Per-request timeout in seconds
            status: Status board receiving user-facing messages
            transport: Custom httpx transport (tests, proxies)
        """
        self._catalog = catalog
        self.endpoint_url = endpoint_url
        self._timeout = timeout
        self._status = status or StatusBoard()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def dispatch(self, event: DetectionEvent) -> DispatchResult:
        """
        Resolve and report one detection.

        Args:
            event: Confirmed detection

        Returns:
            DispatchResult; failures are reported here, never raised
        """
        product = self._catalog.resolve(event.code)
        body = product.report_payload()
        self._status.log("detected", event.code, f"({event.source.value})")

        try:
            response = await self._get_client().post(self.endpoint_url, json=body)
        except httpx.HTTPError as e:
            return self._failed(event, body, exceptions.dispatch_failed(f"{type(e).__name__}: {e}"))

        if not response.is_success:
            error = exceptions.dispatch_failed(
                f"server {response.status_code} {response.text[:200]}",
                status=response.status_code,
            )
            return self._failed(event, body, error, response.status_code)

        logger.info(f"📤 Reported {body['name']} ({body['price']}) for {event.code}")
        self._status.log("posted", body)
        self._status.set(f"sent → {body['name']} ₹{body['price']}")

        return DispatchResult(
            ok=True,
            code=event.code,
            name=body["name"],
            price=body["price"],
            status_code=response.status_code,
        )

    def _failed(
        self,
        event: DetectionEvent,
        body: dict,
        error: exceptions.ScanException,
        status_code: Optional[int] = None,
    ) -> DispatchResult:
        reason = error.details.get("reason", error.message)
        logger.error(f"❌ Report failed for {event.code}: {reason}")
        self._status.log("post failed", reason)
        self._status.set("post failed, check endpoint")

        return DispatchResult(
            ok=False,
            code=event.code,
            name=body["name"],
            price=body["price"],
            status_code=status_code,
            error=reason,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
