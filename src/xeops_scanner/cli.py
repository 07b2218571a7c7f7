"""Command-line interface for the XeOps scanner, aimed at CI/CD pipelines."""

from __future__ import annotations

import asyncio
from functools import partial
import json
import logging
from pathlib import Path
import sys

import click
from pydantic import ValidationError

from xeops_scanner import __version__
from xeops_scanner.core.client import ScannerClient
from xeops_scanner.core.config import DEFAULT_ENDPOINT, ClientConfig
from xeops_scanner.core.errors import ScannerError
from xeops_scanner.core.models import ScanRequest, ScanResult, ScanStatus

STATUS_COLORS = {
    ScanStatus.COMPLETED: "green",
    ScanStatus.FAILED: "red",
    ScanStatus.RUNNING: "yellow",
}

SEVERITY_COLORS = {
    "critical": "red",
    "high": "red",
    "medium": "yellow",
    "low": "bright_black",
    "info": "bright_black",
}


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def api_options(func):
    """Attach the --api-key/--endpoint/--verbose options every command shares."""
    func = click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")(func)
    func = click.option(
        "--endpoint",
        "-e",
        envvar="XEOPS_API_ENDPOINT",
        default=DEFAULT_ENDPOINT,
        show_default=True,
        help="API endpoint",
    )(func)
    return click.option(
        "--api-key",
        "-k",
        envvar="XEOPS_API_KEY",
        required=True,
        help="XeOps API key (or XEOPS_API_KEY)",
    )(func)


def build_config(api_key: str, endpoint: str, verbose: bool) -> ClientConfig:
    try:
        return ClientConfig(api_endpoint=endpoint, api_key=api_key, debug=verbose)
    except ValidationError as exc:
        click.echo(f"Error: Invalid configuration: {exc}", err=True)
        sys.exit(1)


def run_command(coro, verbose: bool) -> object:
    """Run an async command body, mapping failures to exit codes."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt as exc:
        click.echo("\nInterrupted by user", err=True)
        raise SystemExit(130) from exc
    except ScannerError as exc:
        click.echo(f"{click.style('Error:', fg='red')} {exc.message}", err=True)
        if exc.details:
            click.echo(
                click.style(json.dumps(exc.details, indent=2, default=str), fg="bright_black"),
                err=True,
            )
        if verbose:
            raise
        raise SystemExit(1) from exc


def get_exit_code(result: ScanResult, fail_on_high: bool, fail_on_medium: bool) -> int:
    """Exit code for a finished scan given the configured severity threshold."""
    if result.metadata is None:
        return 0

    counts = result.severity_counts()
    high_plus = counts["critical"] + counts["high"]

    if fail_on_high and high_plus > 0:
        return 1
    if fail_on_medium and high_plus + counts["medium"] > 0:
        return 1
    return 0


def format_progress(result: ScanResult) -> str:
    current_test = result.current_test or "Running..."
    return (
        f"Progress: {result.progress}% | {current_test} | "
        f"Vulnerabilities: {result.vulnerabilities_found}"
    )


def display_results(result: ScanResult, as_json: bool) -> None:
    """Print a scan snapshot as JSON or as a colorized summary."""
    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
        return

    lines: list[str] = []
    status_color = STATUS_COLORS.get(result.status, "bright_black")

    lines.append(click.style("\n=== Scan Results ===", fg="blue"))
    lines.append(f"Scan ID: {result.id}")
    lines.append(f"Target: {result.target_url}")
    lines.append(f"Status: {click.style(result.status.value, fg=status_color)}")
    lines.append(f"Progress: {result.progress}%")
    lines.append(
        f"Vulnerabilities Found: {click.style(str(result.vulnerabilities_found), fg='red')}"
    )

    if result.metadata is not None:
        lines.append(click.style("\n=== Severity Breakdown ===", fg="blue"))
        for name, count in result.severity_counts().items():
            count_text = click.style(str(count), fg=SEVERITY_COLORS[name])
            lines.append(f"  {name.capitalize()}: {count_text}")

    if result.vulnerabilities:
        lines.append(click.style("\n=== Findings ===", fg="blue"))
        for i, vuln in enumerate(result.vulnerabilities, 1):
            sev = click.style(vuln.severity.value.upper(), fg=SEVERITY_COLORS[vuln.severity.value])
            lines.append(f"[{i}] {vuln.title} - {sev}")
            if vuln.url:
                lines.append(f"    URL: {vuln.url}")
            if vuln.cwe_id:
                lines.append(f"    CWE: {vuln.cwe_id}")
            if vuln.validated:
                lines.append("    PoC validated")

    if result.error:
        lines.append(click.style(f"\nError: {result.error}", fg="red"))

    if result.duration:
        lines.append(f"\nDuration: {round(result.duration / 1000)}s")

    click.echo("\n".join(lines))


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """XeOps Security Scanner CLI for CI/CD pipelines.

    Starts scans on the XeOps service, waits for them, and fails the build
    when findings cross a severity threshold.
    """


@cli.command()
@click.option("--url", "-u", required=True, help="Target URL to scan")
@api_options
@click.option("--wait", "-w", is_flag=True, help="Wait for scan to complete")
@click.option(
    "--timeout",
    default=1800,
    type=click.IntRange(min=1),
    show_default=True,
    help="Scan timeout in seconds",
)
@click.option(
    "--poll-interval",
    default=5,
    type=click.FloatRange(min=0),
    show_default=True,
    help="Seconds between status checks",
)
@click.option(
    "--pdf",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Download PDF report to path",
)
@click.option(
    "--validate-poc/--no-validate-poc",
    default=True,
    show_default=True,
    help="Validate vulnerabilities with PoC",
)
@click.option(
    "--fail-on-high", is_flag=True, help="Exit with code 1 if high/critical vulnerabilities found"
)
@click.option(
    "--fail-on-medium", is_flag=True, help="Exit with code 1 if medium+ vulnerabilities found"
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
def scan(
    url: str,
    api_key: str,
    endpoint: str,
    verbose: bool,
    wait: bool,
    timeout: int,
    poll_interval: float,
    pdf: Path | None,
    validate_poc: bool,
    fail_on_high: bool,
    fail_on_medium: bool,
    as_json: bool,
) -> None:
    """Start a security scan of URL."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    exit_code = run_command(
        run_scan(
            config,
            url=url,
            wait=wait,
            timeout=timeout,
            poll_interval=poll_interval,
            pdf=pdf,
            validate_poc=validate_poc,
            fail_on_high=fail_on_high,
            fail_on_medium=fail_on_medium,
            as_json=as_json,
        ),
        verbose,
    )
    sys.exit(exit_code)


async def run_scan(
    config: ClientConfig,
    *,
    url: str,
    wait: bool,
    timeout: int,
    poll_interval: float,
    pdf: Path | None,
    validate_poc: bool,
    fail_on_high: bool,
    fail_on_medium: bool,
    as_json: bool,
) -> int:
    """Body of ``scan``; returns the process exit code."""
    # Keep stdout clean for machine-readable output.
    echo = partial(click.echo, err=as_json)

    async with ScannerClient(config) as client:
        echo("Verifying API key...")
        if not await client.verify_api_key():
            raise ScannerError("Invalid API key")
        echo(click.style("API key verified", fg="green"))

        response = await client.start_scan(ScanRequest(target_url=url))
        echo(click.style(f"Scan ID: {response.scan_id}", fg="blue"))
        echo(click.style(f"Target: {url}", fg="blue"))

        if not wait:
            echo(click.style("\nScan queued successfully!", fg="green"))
            echo(click.style("Use --wait flag to wait for completion", fg="bright_black"))
            echo(
                click.style(
                    f"Or check status with: xeops-scan status -s {response.scan_id}",
                    fg="bright_black",
                )
            )
            return 0

        echo(click.style("\nWaiting for scan to complete...\n", fg="yellow"))
        result = await client.wait_for_scan_completion(
            response.scan_id,
            polling_interval=int(poll_interval * 1000),
            timeout=timeout * 1000,
            on_progress=lambda snapshot: echo(format_progress(snapshot)),
        )
        echo(click.style("Scan completed", fg="green"))

        display_results(result, as_json)

        if pdf is not None:
            echo("Generating PDF report...")
            pdf.write_bytes(await client.download_pdf_report(response.scan_id, validate_poc))
            echo(click.style(f"PDF report saved to: {pdf}", fg="green"))

    exit_code = get_exit_code(result, fail_on_high, fail_on_medium)
    if exit_code != 0:
        echo(
            click.style(
                f"\nExiting with code {exit_code} due to vulnerability severity threshold",
                fg="red",
            )
        )
    return exit_code


@cli.command()
@click.option("--scan-id", "-s", required=True, help="Scan ID")
@api_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status(scan_id: str, api_key: str, endpoint: str, verbose: bool, as_json: bool) -> None:
    """Check scan status."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    async def _run() -> None:
        async with ScannerClient(config) as client:
            display_results(await client.get_scan_result(scan_id), as_json)

    run_command(_run(), verbose)


@cli.command()
@click.option("--scan-id", "-s", required=True, help="Scan ID")
@api_options
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output PDF path",
)
@click.option(
    "--validate-poc/--no-validate-poc",
    default=True,
    show_default=True,
    help="Validate vulnerabilities with PoC",
)
def report(
    scan_id: str, api_key: str, endpoint: str, verbose: bool, output: Path, validate_poc: bool
) -> None:
    """Download the PDF report of a scan."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    async def _run() -> None:
        async with ScannerClient(config) as client:
            click.echo("Generating PDF report...")
            output.write_bytes(await client.download_pdf_report(scan_id, validate_poc))
            click.echo(click.style(f"PDF report saved to: {output}", fg="green"))

    run_command(_run(), verbose)


@cli.command()
@api_options
def usage(api_key: str, endpoint: str, verbose: bool) -> None:
    """Show usage statistics."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    async def _run() -> None:
        async with ScannerClient(config) as client:
            stats = await client.get_usage()
        click.echo(click.style("Usage Statistics:", fg="blue"))
        click.echo(f"  Plan: {click.style(stats.plan, fg='green')}")
        used = click.style(str(stats.scans_used), fg="yellow")
        click.echo(f"  Scans Used: {used}/{stats.scans_limit}")
        click.echo(f"  Scans Remaining: {click.style(str(stats.scans_remaining), fg='green')}")

    run_command(_run(), verbose)


@cli.command()
@click.option("--scan-id", "-s", required=True, help="Scan ID")
@api_options
def cancel(scan_id: str, api_key: str, endpoint: str, verbose: bool) -> None:
    """Ask the service to cancel a running scan."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    async def _run() -> None:
        async with ScannerClient(config) as client:
            await client.cancel_scan(scan_id)
        click.echo(click.style(f"Cancellation requested for scan {scan_id}", fg="yellow"))

    run_command(_run(), verbose)


@cli.command(name="list")
@api_options
@click.option(
    "--status",
    "status_filter",
    type=click.Choice([s.value for s in ScanStatus if s is not ScanStatus.UNKNOWN]),
    help="Only scans in this state",
)
@click.option("--limit", type=click.IntRange(min=1), help="Maximum scans to return")
@click.option("--offset", type=click.IntRange(min=0), help="Scans to skip")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_command(
    api_key: str,
    endpoint: str,
    verbose: bool,
    status_filter: str | None,
    limit: int | None,
    offset: int | None,
    as_json: bool,
) -> None:
    """List your scans."""
    setup_logging(verbose)
    config = build_config(api_key, endpoint, verbose)

    async def _run() -> None:
        async with ScannerClient(config) as client:
            scans = await client.list_scans(status=status_filter, limit=limit, offset=offset)

        if as_json:
            payload = [s.model_dump(mode="json", by_alias=True) for s in scans]
            click.echo(json.dumps(payload, indent=2))
            return
        if not scans:
            click.echo("No scans found.")
            return
        for s in scans:
            color = STATUS_COLORS.get(s.status, "bright_black")
            click.echo(
                f"{s.id}  {click.style(s.status.value, fg=color):<20} "
                f"{s.progress:>3}%  {s.vulnerabilities_found:>4} vulns  {s.target_url}"
            )

    run_command(_run(), verbose)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"xeops-scan version {__version__}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
