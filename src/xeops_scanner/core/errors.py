"""Error type raised by the scanner client."""

from __future__ import annotations

from typing import Any


class ScannerError(Exception):
    """Failure talking to the scanning service.

    Covers HTTP error responses (``status_code`` set), network failures,
    polling timeouts and scans the service reports as failed. ``details``
    carries whatever payload accompanies the failure: the response body for
    HTTP errors, or a small mapping for timeouts and failed scans.
    """

    def __init__(
        self, message: str, status_code: int | None = None, details: Any = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def __repr__(self) -> str:
        return f"ScannerError({self.message!r}, status_code={self.status_code!r})"
