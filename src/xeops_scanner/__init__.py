"""XeOps Scanner - client and CLI for the XeOps security scanning service.

Submits web-application scans to the remote service, polls them to
completion and downloads PDF/JSON reports. All scanning happens server-side.
"""

__version__ = "1.0.0"
__author__ = "XeOps Team"

from xeops_scanner.core.client import ScannerClient, create_client
from xeops_scanner.core.config import ClientConfig
from xeops_scanner.core.errors import ScannerError
from xeops_scanner.core.models import (
    ScanRequest,
    ScanResponse,
    ScanResult,
    ScanStatus,
    Severity,
    UsageStats,
    Vulnerability,
)

__all__ = [
    "ClientConfig",
    "ScanRequest",
    "ScanResponse",
    "ScanResult",
    "ScanStatus",
    "ScannerClient",
    "ScannerError",
    "Severity",
    "UsageStats",
    "Vulnerability",
    "create_client",
]
