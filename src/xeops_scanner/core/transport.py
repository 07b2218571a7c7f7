"""Authenticated request/response wrapper around an HTTP client.

Every call gets the bearer token and client identification headers, and
every failure is classified into a :class:`ScannerError` before it reaches
the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from xeops_scanner import __version__
from xeops_scanner.core.errors import ScannerError

if TYPE_CHECKING:
    from xeops_scanner.core.config import ClientConfig
    from xeops_scanner.http import HTTPClientProtocol, SimpleResponse

logger = logging.getLogger(__name__)

CLIENT_NAME = "scanner-sdk"

# Request went out but nothing came back. ConnectionError covers adapters
# that surface refused/reset sockets as plain OS errors.
NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientConnectionError,
    ConnectionError,
    asyncio.TimeoutError,
)


class Transport:
    """Sends requests to the service on behalf of a :class:`ScannerClient`."""

    def __init__(self, config: ClientConfig, client: HTTPClientProtocol) -> None:
        self.config = config
        self._client = client

    @property
    def base_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "X-Client": CLIENT_NAME,
            "X-Client-Version": __version__,
        }

    def url_for(self, path: str) -> str:
        return f"{self.config.api_endpoint}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> SimpleResponse:
        """Send one request and return the response, raising on any failure.

        Raises:
            ScannerError: on HTTP error status or when no response arrived.
        """
        method = method.upper()
        url = self.url_for(path)
        headers = self.base_headers
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        query = _encode_params(params)

        if self.config.debug:
            logger.info("[XeOps SDK] %s %s", method, url)

        try:
            response = await self._client.request(
                method, url, params=query, json=json_body, headers=headers
            )
        except NETWORK_ERRORS as exc:
            logger.debug("No response from %s %s: %r", method, url, exc)
            msg = "Network error: No response from server"
            raise ScannerError(msg) from exc

        if self.config.debug:
            logger.info("[XeOps SDK] Response: %s", response.status)

        if not response.ok:
            raise _http_error(response)

        return response

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return response.json()

    async def post_json(self, path: str, body: Any = None) -> Any:
        response = await self.request("POST", path, json_body=body)
        return response.json() if response.body else None


def _encode_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    if not params:
        return None
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        else:
            query[key] = str(value)
    return query or None


def _http_error(response: SimpleResponse) -> ScannerError:
    try:
        details: Any = response.json()
    except (ValueError, UnicodeDecodeError):
        details = response.text or None

    message = None
    if isinstance(details, dict):
        message = details.get("message")
    if not message:
        message = f"Request failed with status code {response.status}"

    return ScannerError(str(message), response.status, details)

