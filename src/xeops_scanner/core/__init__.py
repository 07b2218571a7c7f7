"""Core client components: transport, scan lifecycle and data models."""

from xeops_scanner.core.client import ScannerClient, create_client
from xeops_scanner.core.errors import ScannerError
from xeops_scanner.core.models import ScanResult, ScanStatus, Severity, Vulnerability

__all__ = [
    "ScanResult",
    "ScanStatus",
    "ScannerClient",
    "ScannerError",
    "Severity",
    "Vulnerability",
    "create_client",
]
