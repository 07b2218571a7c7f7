"""Small HTTP client protocol and adapters to make the API client easier to test.

Provides:
- SimpleResponse: small container for status, headers, raw body
- HTTPClientProtocol: typing.Protocol for client implementations
- AiohttpAdapter: adapter for an aiohttp.ClientSession for production
- MockClient: scripted mock for tests that also records every call
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import json
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import aiohttp


@dataclass
class SimpleResponse:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)

    @classmethod
    def from_json(
        cls, data: Any, status: int = 200, headers: dict[str, str] | None = None
    ) -> SimpleResponse:
        return cls(
            status=status,
            headers={"Content-Type": "application/json", **(headers or {})},
            body=json.dumps(data).encode(),
        )


@dataclass
class RecordedRequest:
    method: str
    url: str
    params: dict[str, str] | None
    json: Any
    headers: dict[str, str]


class HTTPClientProtocol(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> SimpleResponse:  # pragma: no cover - thin protocol
        ...


class AiohttpAdapter:
    """Adapter that wraps an aiohttp.ClientSession and returns SimpleResponse objects."""

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self._session = session

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> SimpleResponse:
        async with self._session.request(
            method, url, params=params, json=json, headers=headers
        ) as resp:
            body = await resp.read()
            return SimpleResponse(status=resp.status, headers=dict(resp.headers), body=body)


ResponseScript = SimpleResponse | BaseException | list[SimpleResponse | BaseException]


class MockClient:
    """Scripted mock client for tests.

    Maps ``(METHOD, path)`` to a response, an exception to raise, or a list of
    those. Lists are consumed in order and the last entry repeats once the
    list is exhausted. Every call is kept in ``requests``.

    Example:
        client = MockClient({("GET", "/health"): SimpleResponse.from_json({"status": "ok"})})
    """

    def __init__(self, mapping: dict[tuple[str, str], ResponseScript] | None = None) -> None:
        self._scripts: dict[tuple[str, str], deque[SimpleResponse | BaseException]] = {}
        for key, script in (mapping or {}).items():
            self.add(key[0], key[1], script)
        self.requests: list[RecordedRequest] = []

    def add(self, method: str, path: str, script: ResponseScript) -> None:
        entries = script if isinstance(script, list) else [script]
        self._scripts[(method.upper(), path)] = deque(entries)

    def calls_to(self, method: str, path: str) -> list[RecordedRequest]:
        return [
            r for r in self.requests if r.method == method.upper() and r.url.endswith(path)
        ]

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> SimpleResponse:
        method = method.upper()
        self.requests.append(
            RecordedRequest(method=method, url=url, params=params, json=json, headers=headers or {})
        )

        # Longest matching path suffix wins so "/api/scans" does not shadow
        # "/api/scans/abc".
        matches = [
            (path, entries)
            for (m, path), entries in self._scripts.items()
            if m == method and url.endswith(path)
        ]
        if not matches:
            return SimpleResponse(status=404, body=b'{"message": "not mocked"}')

        _, entries = max(matches, key=lambda item: len(item[0]))
        entry = entries.popleft() if len(entries) > 1 else entries[0]
        if isinstance(entry, BaseException):
            raise entry
        return entry
