"""Interactive kubeconfig context selection.

Used as the ``chooser`` of :class:`~ksdiff.infra.kube_connector.KubeConnector`
when several kubeconfig contexts point at an environment's server and
none of them is the current context.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any

from ksdiff.cli.console import console
from ksdiff.exceptions import missing_dependency


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise missing_dependency("questionary") from exc
    return questionary


def prompt_context_selection(server: str, contexts: Sequence[str]) -> str | None:
    """Ask the user which of *contexts* to use for *server*.

    Returns ``None`` without prompting when stdin is not a terminal, and
    when the user cancels the prompt (Esc / Ctrl+C).
    """
    if not sys.stdin.isatty():
        return None

    questionary = _import_questionary()

    console.print(f"[bold]Several kubeconfig contexts point at[/bold] {server}")
    choices = [questionary.Choice(title=name, value=name) for name in contexts]
    selected: str | None = questionary.select(
        "Select the context to use:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()
    return selected
