"""Test configuration and fixtures for the XeOps scanner client."""

import pytest

from xeops_scanner.core.client import ScannerClient
from xeops_scanner.core.config import ClientConfig
from xeops_scanner.http import MockClient, SimpleResponse

API = "https://scanner.test"


@pytest.fixture
def config():
    """Client configuration pointing at a fake service."""
    return ClientConfig(api_endpoint=API, api_key="test-key")


@pytest.fixture
def mock_client():
    """Empty MockClient; tests register routes with ``add``."""
    return MockClient()


@pytest.fixture
def scanner(config, mock_client):
    """ScannerClient wired to the shared MockClient."""
    return ScannerClient(config, client=mock_client)


@pytest.fixture
def json_response():
    """Return a factory for JSON SimpleResponses."""

    def _factory(data, status: int = 200) -> SimpleResponse:
        return SimpleResponse.from_json(data, status=status)

    return _factory


@pytest.fixture
def scan_payload():
    """Return a factory for ScanResult payloads as the service sends them."""

    def _factory(status: str = "running", progress: int = 0, **extra) -> dict:
        payload = {
            "id": "scan-1",
            "targetUrl": "https://example.com",
            "status": status,
            "progress": progress,
            "vulnerabilities": [],
            "vulnerabilitiesFound": 0,
        }
        payload.update(extra)
        return payload

    return _factory
