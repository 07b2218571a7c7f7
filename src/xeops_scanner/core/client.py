"""Scan lifecycle client: submit, poll, fetch reports."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
import logging
import time
from typing import TYPE_CHECKING, Any

import aiohttp

from xeops_scanner.core.config import ClientConfig
from xeops_scanner.core.errors import ScannerError
from xeops_scanner.core.models import (
    HealthStatus,
    ScanRequest,
    ScanResponse,
    ScanResult,
    ScanStatus,
    UsageStats,
)
from xeops_scanner.core.transport import Transport
from xeops_scanner.http import AiohttpAdapter, HTTPClientProtocol

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL = 5_000
DEFAULT_WAIT_TIMEOUT = 1_800_000


@contextmanager
def _operation(label: str) -> Iterator[None]:
    """Re-raise ScannerError as is, wrap anything else under ``label``."""
    try:
        yield
    except ScannerError:
        raise
    except Exception as exc:
        msg = f"{label}: {str(exc) or type(exc).__name__}"
        raise ScannerError(
            msg, getattr(exc, "status_code", None), getattr(exc, "details", None)
        ) from exc


class ScannerClient:
    """Client for the XeOps scanning service.

    Use as an async context manager. A client built without an explicit HTTP
    client opens its own ``aiohttp.ClientSession`` on entry and closes it on
    exit; an injected client is used as is and left open.
    """

    def __init__(self, config: ClientConfig, client: HTTPClientProtocol | None = None) -> None:
        """Initialize the client.

        Args:
            config: Connection settings
            client: Optional HTTP client, mainly for tests
        """
        self.config = config
        self._session: aiohttp.ClientSession | None = None
        self._transport: Transport | None = None
        if client is not None:
            self._transport = Transport(config, client)

    @classmethod
    def from_env(cls, **overrides: Any) -> ScannerClient:
        return cls(ClientConfig.from_env(**overrides))

    async def __aenter__(self) -> ScannerClient:
        """Async context manager entry."""
        if self._transport is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout / 1000),
            )
            self._transport = Transport(self.config, AiohttpAdapter(self._session))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None
            self._transport = None

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            msg = "ScannerClient must be used as async context manager"
            raise RuntimeError(msg)
        return self._transport

    async def start_scan(self, request: ScanRequest | Mapping[str, Any]) -> ScanResponse:
        """Submit a new scan.

        Returns:
            The service's acknowledgement with the assigned scan id
        """
        with _operation("Failed to start scan"):
            if not isinstance(request, ScanRequest):
                request = ScanRequest.model_validate(request)
            data = await self.transport.post_json("/api/scans", request.to_payload())
            response = ScanResponse.model_validate(data)
            logger.info("Scan %s queued for %s", response.scan_id, request.target_url)
            return response

    async def get_scan_result(self, scan_id: str) -> ScanResult:
        with _operation("Failed to get scan result"):
            data = await self.transport.get_json(f"/api/scans/{scan_id}")
            return ScanResult.model_validate(data)

    async def wait_for_scan_completion(
        self,
        scan_id: str,
        polling_interval: int = DEFAULT_POLLING_INTERVAL,
        timeout: int = DEFAULT_WAIT_TIMEOUT,
        on_progress: Callable[[ScanResult], None] | None = None,
    ) -> ScanResult:
        """Poll a scan until it completes.

        The timeout is checked before each poll, so a slow request can run
        past it by at most one request's latency.

        Args:
            scan_id: Identifier returned by :meth:`start_scan`
            polling_interval: Milliseconds to sleep between polls
            timeout: Total budget in milliseconds
            on_progress: Called with every snapshot, terminal ones included

        Returns:
            The first snapshot whose status is ``completed``

        Raises:
            ScannerError: On timeout, when the scan failed, when a poll fails,
                or when ``on_progress`` raises (the original is chained)
        """
        started = time.monotonic()
        polls = 0

        while True:
            elapsed_ms = (time.monotonic() - started) * 1000
            if elapsed_ms > timeout:
                logger.warning("Scan %s still running after %d polls", scan_id, polls)
                raise ScannerError(
                    "Scan timeout exceeded", None, {"scanId": scan_id, "timeout": timeout}
                )

            result = await self.get_scan_result(scan_id)
            polls += 1
            logger.debug(
                "Poll %d for scan %s: status=%s progress=%d",
                polls,
                scan_id,
                result.status.value,
                result.progress,
            )

            if on_progress is not None:
                try:
                    on_progress(result)
                except Exception as exc:
                    msg = f"Progress callback failed: {str(exc) or type(exc).__name__}"
                    raise ScannerError(msg, None, {"scanId": scan_id}) from exc

            if result.status is ScanStatus.COMPLETED:
                logger.info(
                    "Scan %s completed. Found %d vulnerabilities",
                    scan_id,
                    result.vulnerabilities_found,
                )
                return result

            if result.status is ScanStatus.FAILED:
                raise ScannerError("Scan failed", None, {"scanId": scan_id, "error": result.error})

            await asyncio.sleep(polling_interval / 1000)

    async def download_pdf_report(self, scan_id: str, validate_poc: bool = True) -> bytes:
        """Fetch the rendered PDF report; PoC validation happens server-side."""
        with _operation("Failed to download PDF report"):
            response = await self.transport.request(
                "GET",
                f"/api/scans/{scan_id}/report/pdf",
                params={"validate_poc": validate_poc},
            )
            return response.body

    async def get_usage(self) -> UsageStats:
        with _operation("Failed to get usage stats"):
            return UsageStats.model_validate(await self.transport.get_json("/api/users/usage"))

    async def verify_api_key(self) -> bool:
        """Return True when the service accepts the configured key.

        Never raises: any failure, including network errors, reads as False.
        """
        try:
            await self.transport.request("GET", "/api/auth/verify")
        except Exception as exc:
            logger.debug("API key verification failed: %s", exc)
            return False
        return True

    async def health_check(self) -> HealthStatus:
        with _operation("Health check failed"):
            return HealthStatus.model_validate(await self.transport.get_json("/health"))

    async def cancel_scan(self, scan_id: str) -> None:
        """Ask the service to stop a scan. Does not touch local poll loops."""
        with _operation("Failed to cancel scan"):
            await self.transport.request("POST", f"/api/scans/{scan_id}/cancel")
            logger.info("Cancellation requested for scan %s", scan_id)

    async def list_scans(
        self,
        status: ScanStatus | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ScanResult]:
        """List the caller's scans in the order the service returns them."""
        if isinstance(status, ScanStatus):
            status = status.value
        with _operation("Failed to list scans"):
            data = await self.transport.get_json(
                "/api/scans", {"status": status, "limit": limit, "offset": offset}
            )
            return [ScanResult.model_validate(item) for item in data]


def create_client(config: ClientConfig, client: HTTPClientProtocol | None = None) -> ScannerClient:
    """Create a new scanner client."""
    return ScannerClient(config, client)
