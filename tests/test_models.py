"""Tests for wire models."""

import pytest
from pydantic import ValidationError

from xeops_scanner.core.models import (
    ScanRequest,
    ScanResponse,
    ScanResult,
    ScanStatus,
    Severity,
    UsageStats,
    Vulnerability,
)


def test_scan_result_parses_wire_names(scan_payload):
    result = ScanResult.model_validate(
        scan_payload(
            "running",
            40,
            currentTest="XSS probes",
            vulnerabilitiesFound=2,
            startedAt="2025-01-10T12:00:00Z",
            metadata={"totalPages": 12, "criticalCount": 1},
        )
    )

    assert result.status is ScanStatus.RUNNING
    assert result.current_test == "XSS probes"
    assert result.vulnerabilities_found == 2
    assert result.started_at is not None
    assert result.metadata.total_pages == 12
    assert not result.is_terminal


def test_unknown_status_is_not_terminal(scan_payload):
    result = ScanResult.model_validate(scan_payload("paused"))

    assert result.status is ScanStatus.UNKNOWN
    assert not result.is_terminal
    assert ScanStatus("something-new") is ScanStatus.UNKNOWN


def test_terminal_statuses():
    assert ScanStatus.COMPLETED.is_terminal
    assert ScanStatus.FAILED.is_terminal
    assert not ScanStatus.QUEUED.is_terminal
    assert not ScanStatus.RUNNING.is_terminal


def test_progress_out_of_range_rejected(scan_payload):
    with pytest.raises(ValidationError):
        ScanResult.model_validate(scan_payload(progress=101))


def test_scan_result_is_read_only(scan_payload):
    result = ScanResult.model_validate(scan_payload())

    with pytest.raises(ValidationError):
        result.progress = 50


def test_severity_counts_fill_missing_buckets(scan_payload):
    result = ScanResult.model_validate(
        scan_payload("completed", 100, metadata={"criticalCount": 1, "mediumCount": 2})
    )

    assert result.severity_counts() == {
        "critical": 1,
        "high": 0,
        "medium": 2,
        "low": 0,
        "info": 0,
    }


def test_severity_counts_without_metadata(scan_payload):
    result = ScanResult.model_validate(scan_payload())

    assert set(result.severity_counts().values()) == {0}


def test_severity_rank_order():
    ranks = [s.rank for s in Severity]

    assert ranks == sorted(ranks, reverse=True)
    assert Severity.CRITICAL.rank > Severity.INFO.rank


def test_vulnerability_model_and_filtering(scan_payload):
    vuln = {
        "id": "v1",
        "title": "Reflected XSS",
        "description": "Search parameter reflected unescaped",
        "severity": "high",
        "category": "xss",
        "cvss_score": 7.1,
        "cwe_id": "CWE-79",
        "exploit_poc": "<script>alert(1)</script>",
        "validated": True,
    }
    result = ScanResult.model_validate(scan_payload("completed", 100, vulnerabilities=[vuln]))

    assert result.get_by_severity(Severity.HIGH)[0].title == "Reflected XSS"
    assert result.get_by_severity(Severity.CRITICAL) == []
    assert result.vulnerabilities[0].validated is True


def test_vulnerability_cvss_score_validation():
    with pytest.raises(ValidationError):
        Vulnerability(
            id="v1",
            title="Bad score",
            description="x",
            severity=Severity.LOW,
            category="misc",
            cvss_score=11.0,
        )


def test_scan_request_payload_uses_wire_names():
    request = ScanRequest(target_url="https://example.com", config={"depth": 3, "max_pages": 100})

    assert request.to_payload() == {
        "targetUrl": "https://example.com",
        "config": {"depth": 3, "maxPages": 100},
    }


@pytest.mark.parametrize("target", ["", "   "])
def test_scan_request_rejects_empty_target(target):
    with pytest.raises(ValidationError):
        ScanRequest(target_url=target)


def test_scan_response():
    response = ScanResponse.model_validate({"scanId": "abc", "status": "queued"})

    assert response.scan_id == "abc"
    assert response.status is ScanStatus.QUEUED
    assert response.message is None


def test_usage_remaining_is_derived_when_missing():
    usage = UsageStats.model_validate({"plan": "free", "scansUsed": 3, "scansLimit": 5})

    assert usage.scans_remaining == 2


def test_usage_remaining_from_server_wins():
    usage = UsageStats.model_validate(
        {"plan": "pro", "scansUsed": 3, "scansLimit": 5, "scansRemaining": 10}
    )

    assert usage.scans_remaining == 10


def test_unknown_status_maps_without_validator():
    response = ScanResponse.model_validate({"scanId": "abc", "status": "archived"})

    assert response.status is ScanStatus.UNKNOWN


@pytest.mark.parametrize(
    "raw,expected",
    [("HIGH", Severity.HIGH), (" Critical ", Severity.CRITICAL), ("severe", Severity.INFO)],
)
def test_vulnerability_severity_is_forgiving(raw, expected):
    vuln = Vulnerability.model_validate(
        {"id": "v", "title": "t", "description": "d", "severity": raw, "category": "c"}
    )

    assert vuln.severity is expected
