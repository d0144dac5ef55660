"""CLI application entry point and command routing for ksdiff.

This module is the **sole error boundary** for the entire application.
It catches :class:`~ksdiff.exceptions.KsDiffError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here - all work is delegated to the core/service
  and infrastructure layers.
* Parsed flags are converted once into a frozen
  :class:`~ksdiff.core.models.DiffOptions` and passed down explicitly.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from ksdiff.cli import exit_codes
from ksdiff.cli.console import configure_logging, console
from ksdiff.core.models import DiffOptions, DiffStrategy
from ksdiff.exceptions import InvalidExtVarError, KsDiffError
from ksdiff.version import __version__

_EPILOG = """\
examples:
  ksdiff dev                                   local vs remote for 'dev'
  ksdiff dev -c redis                          same, Redis component only
  ksdiff remote:us-west/dev remote:us-west/prod
  ksdiff local:us-west/dev remote:us-west/prod
  ksdiff local:dev local:prod --diff-strategy all
  ksdiff doctor                                environment diagnostics
"""


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="ksdiff",
        description=(
            "Compare manifests based on environment or location: "
            "'local' app manifests or what is running on a 'remote' server."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "environments",
        nargs="*",
        metavar="ENV",
        help="One bare environment, or two locators prefixed local: or remote:.",
    )
    parser.add_argument(
        "-c",
        "--component",
        dest="components",
        action="append",
        default=[],
        metavar="NAME",
        help="Only diff this component (repeatable, single environment only).",
    )
    parser.add_argument(
        "--diff-strategy",
        default=DiffStrategy.SUBSET.value,
        metavar="{all,subset}",
        help="Diff strategy, all or subset (default: subset).",
    )
    parser.add_argument(
        "--app-dir",
        type=Path,
        default=None,
        help="Directory inside the app (default: current directory).",
    )

    remote = parser.add_argument_group("cluster connection")
    remote.add_argument("--kubeconfig", type=Path, default=None, help="Path to a kubeconfig file.")
    remote.add_argument("--context", default=None, help="Kubeconfig context to use.")
    remote.add_argument("-n", "--namespace", default=None, help="Namespace override.")

    jsonnet = parser.add_argument_group("jsonnet")
    jsonnet.add_argument(
        "-J",
        "--jpath",
        dest="jpaths",
        action="append",
        type=Path,
        default=[],
        metavar="DIR",
        help="Additional library search directory (repeatable).",
    )
    jsonnet.add_argument(
        "--ext-str",
        dest="ext_strs",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="External string variable (repeatable).",
    )
    jsonnet.add_argument(
        "--ext-code",
        dest="ext_codes",
        action="append",
        default=[],
        metavar="KEY=CODE",
        help="External code variable (repeatable); never overrides app variables.",
    )
    return parser


def _parse_ext_var(raw: str, flag: str) -> tuple[str, str]:
    """Split ``KEY=VALUE`` or raise :class:`InvalidExtVarError`."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise InvalidExtVarError(
            f"Invalid {flag} value {raw!r}",
            hint=f"Use {flag} KEY=VALUE",
        )
    return key, value


def _build_options(args: argparse.Namespace) -> DiffOptions:
    """Convert parsed flags into a :class:`DiffOptions` value."""
    return DiffOptions(
        app_dir=args.app_dir or Path.cwd(),
        components=tuple(args.components),
        diff_strategy=args.diff_strategy,
        kubeconfig=args.kubeconfig,
        context=args.context,
        namespace=args.namespace,
        jpaths=tuple(args.jpaths),
        ext_strs=tuple(_parse_ext_var(raw, "--ext-str") for raw in args.ext_strs),
        ext_codes=tuple(_parse_ext_var(raw, "--ext-code") for raw in args.ext_codes),
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_diff(
    environments: Sequence[str],
    options: DiffOptions,
    out: TextIO | None = None,
) -> int:
    """Resolve the diff target, then run it.

    Flow:
    1. Validate arguments (no I/O).
    2. Locate the app and wire infra adapters into core services.
    3. Resolve the target - expansion and connections happen here.
    4. Run the diff and map the result to an exit code.
    """
    from ksdiff.cli.context_prompt import prompt_context_selection
    from ksdiff.core.client_context import ClientContextBuilder
    from ksdiff.core.diff import run_diff
    from ksdiff.core.expander import ManifestExpander
    from ksdiff.core.resolver import DiffModeResolver, check_arguments
    from ksdiff.infra.app_layout import FileSystemAppLayout
    from ksdiff.infra.jsonnet_evaluator import JsonnetEvaluator
    from ksdiff.infra.kube_connector import KubeConnector

    check_arguments(environments, options)

    layout = FileSystemAppLayout.find(options.app_dir)
    expander = ManifestExpander(
        layout,
        JsonnetEvaluator(),
        jpaths=options.jpaths,
        ext_codes=options.ext_codes,
        ext_strs=options.ext_strs,
    )
    client_builder = ClientContextBuilder(
        KubeConnector(chooser=prompt_context_selection),
        layout,
        kubeconfig=options.kubeconfig,
        context=options.context,
        namespace=options.namespace,
    )
    target = DiffModeResolver(expander, client_builder).resolve(environments, options)

    result = run_diff(target, out or sys.stdout)
    if result.has_differences:
        return exit_codes.DIFFERENCES_FOUND
    return exit_codes.SUCCESS


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from ksdiff.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ksdiff CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_intermixed_args(argv)
    configure_logging(args.verbose)

    if not args.environments:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.environments == ["doctor"]:
        return _handle_doctor()

    return _handle_diff(args.environments, _build_options(args))


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except KsDiffError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
