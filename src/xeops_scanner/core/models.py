"""Data models for scan requests, scan results and account information.

The service speaks camelCase for scan objects and snake_case for
vulnerability objects. Attributes are snake_case everywhere; aliases carry
the wire names and models accept either spelling.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ScanStatus(str, Enum):
    """Lifecycle states of a remote scan.

    New states may appear server-side before this client knows them; they
    map to ``UNKNOWN``, which is not terminal.
    """

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> ScanStatus:
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


class Severity(str, Enum):
    """Vulnerability severity levels, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @classmethod
    def _missing_(cls, value: object) -> Severity:
        # Case variants map to their level; anything unrecognized counts as info.
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return cls.INFO

    @property
    def rank(self) -> int:
        """Higher is more severe (critical=4, info=0)."""
        return len(_SEVERITY_ORDER) - 1 - _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = list(Severity)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ScanConfig(_WireModel):
    """Optional per-scan settings forwarded to the service."""

    url: str | None = None
    depth: int | None = Field(None, ge=1)
    max_pages: int | None = Field(None, ge=1, alias="maxPages")
    timeout: int | None = Field(None, ge=1, description="Server-side scan timeout in seconds")
    scan_types: list[str] | None = Field(None, alias="scanTypes")


class ScanRequest(_WireModel):
    target_url: str = Field(..., min_length=1, alias="targetUrl")
    config: ScanConfig | None = None

    @field_validator("target_url")
    @classmethod
    def validate_target(cls, v: str) -> str:
        if not v.strip():
            msg = "target_url cannot be empty or whitespace"
            raise ValueError(msg)
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScanResponse(_WireModel):
    scan_id: str = Field(..., alias="scanId")
    status: ScanStatus
    message: str | None = None


class Vulnerability(_WireModel):
    """A finding reported by the service."""

    id: str
    title: str
    description: str
    severity: Severity
    category: str
    cvss_score: float | None = Field(None, ge=0.0, le=10.0)
    cwe_id: str | None = None
    url: str | None = None
    parameter: str | None = None
    evidence: str | None = None
    exploit_poc: str | None = None
    remediation: str | None = None
    references: list[str] | None = None
    validated: bool | None = None
    validation_evidence: str | None = None


class ScanMetadata(_WireModel):
    total_pages: int | None = Field(None, alias="totalPages")
    total_requests: int | None = Field(None, alias="totalRequests")
    critical_count: int | None = Field(None, alias="criticalCount")
    high_count: int | None = Field(None, alias="highCount")
    medium_count: int | None = Field(None, alias="mediumCount")
    low_count: int | None = Field(None, alias="lowCount")
    info_count: int | None = Field(None, alias="infoCount")


class ScanResult(_WireModel):
    """Snapshot of a scan as last reported by the service."""

    id: str
    target_url: str = Field(..., alias="targetUrl")
    status: ScanStatus
    progress: int = Field(0, ge=0, le=100)
    current_test: str | None = Field(None, alias="currentTest")
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    vulnerabilities_found: int = Field(0, ge=0, alias="vulnerabilitiesFound")
    started_at: datetime | None = Field(None, alias="startedAt")
    completed_at: datetime | None = Field(None, alias="completedAt")
    duration: float | None = Field(None, description="Scan duration in milliseconds")
    error: str | None = None
    metadata: ScanMetadata | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def get_by_severity(self, severity: Severity) -> list[Vulnerability]:
        """Filter vulnerabilities by severity level."""
        return [v for v in self.vulnerabilities if v.severity == severity]

    def severity_counts(self) -> dict[str, int]:
        """Severity histogram reported in metadata, zero for missing buckets."""
        meta = self.metadata or ScanMetadata()
        return {
            Severity.CRITICAL.value: meta.critical_count or 0,
            Severity.HIGH.value: meta.high_count or 0,
            Severity.MEDIUM.value: meta.medium_count or 0,
            Severity.LOW.value: meta.low_count or 0,
            Severity.INFO.value: meta.info_count or 0,
        }


class UsageStats(_WireModel):
    plan: str
    scans_used: int = Field(..., ge=0, alias="scansUsed")
    scans_limit: int = Field(..., ge=0, alias="scansLimit")
    scans_remaining: int | None = Field(None, alias="scansRemaining")

    @model_validator(mode="after")
    def derive_remaining(self) -> UsageStats:
        if self.scans_remaining is None:
            object.__setattr__(
                self, "scans_remaining", max(self.scans_limit - self.scans_used, 0)
            )
        return self


class HealthStatus(_WireModel):
    status: str
    version: str
