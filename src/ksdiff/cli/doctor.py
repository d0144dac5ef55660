"""``ksdiff doctor`` - environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies ksdiff's requirements.

This module lives in the CLI layer - it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys
from importlib import metadata
from pathlib import Path

from ksdiff.cli import exit_codes
from ksdiff.cli.console import console
from ksdiff.exceptions import AppNotFoundError, DependencyError
from ksdiff.infra.app_layout import find_app_root
from ksdiff.infra.kubeconfig import kubeconfig_location, kubeconfig_paths
from ksdiff.version import __version__

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = major >= 3 and minor >= 10
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _package_check(label: str, module: str, distribution: str) -> Check:
    """Return (label, value, status) for an importable runtime library."""
    try:
        __import__(module)
    except ImportError:
        return label, "NOT INSTALLED", "[red]FAIL[/red]"
    try:
        version = metadata.version(distribution)
    except metadata.PackageNotFoundError:
        version = "unknown"
    return label, version, "[green]OK[/green]"


def _jsonnet_check() -> Check:
    return _package_check("jsonnet", "_jsonnet", "jsonnet")


def _kubernetes_check() -> Check:
    return _package_check("kubernetes", "kubernetes", "kubernetes")


def _kubeconfig_check() -> Check:
    """Return (label, value, status) for the kubeconfig row."""
    try:
        paths = kubeconfig_paths(kubeconfig_location())
    except DependencyError:
        return "kubeconfig", "unknown (kubernetes missing)", "[yellow]WARN[/yellow]"
    found = [path for path in paths if path.is_file()]
    if found:
        return "kubeconfig", ", ".join(str(path) for path in found), "[green]OK[/green]"
    return "kubeconfig", "not found", "[yellow]WARN[/yellow]"


def _app_check(start: Path | None = None) -> Check:
    """Return (label, value, status) for the app-root row."""
    try:
        root = find_app_root(start or Path.cwd())
    except AppNotFoundError:
        return "app", "no app.yaml here", "[yellow]WARN[/yellow]"
    return "app", str(root), "[green]OK[/green]"


def _ksdiff_version_check() -> Check:
    return "ksdiff", __version__, "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\nksdiff doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    checks = [
        _ksdiff_version_check(),
        _python_version_check(),
        _jsonnet_check(),
        _kubernetes_check(),
        _kubeconfig_check(),
        _app_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
        print("Some checks failed." if has_failure else "All checks passed.", file=sys.stderr)
        return exit_codes.GENERAL_ERROR if has_failure else exit_codes.SUCCESS

    table = Table(
        title="ksdiff doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
