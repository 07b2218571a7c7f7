"""Client configuration."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ENDPOINT = "https://xeops-scanner-97758009309.europe-west1.run.app"


class ClientConfig(BaseModel):
    """Connection settings for the scanning service.

    Durations are in milliseconds. ``max_retries`` and ``retry_delay`` are
    accepted for compatibility but no request path retries.

    ``debug`` traces each request and response status through the
    ``xeops_scanner.core.transport`` logger at INFO level. Nothing is printed
    unless logging is configured to show INFO, e.g.
    ``logging.basicConfig(level=logging.INFO)``; ``xeops-scan -v`` does this.
    """

    model_config = ConfigDict(frozen=True)

    api_endpoint: str = Field(..., min_length=1, description="Base URL of the service")
    api_key: str = Field(..., min_length=1, description="Bearer credential")
    timeout: int = Field(default=60_000, ge=1, description="Per-request deadline (ms)")
    max_retries: int = Field(default=3, ge=0)
    retry_delay: int = Field(default=1_000, ge=0)
    debug: bool = False

    @field_validator("api_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "api_endpoint must be an http(s) URL"
            raise ValueError(msg)
        return v.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Build a config from XEOPS_* environment variables.

        Keyword overrides win over the environment.
        """
        values: dict[str, object] = {
            "api_endpoint": os.environ.get("XEOPS_API_ENDPOINT", DEFAULT_ENDPOINT),
            "api_key": os.environ.get("XEOPS_API_KEY", ""),
            "debug": os.environ.get("XEOPS_DEBUG", "false").lower() == "true",
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
