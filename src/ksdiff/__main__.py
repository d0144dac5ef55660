"""Allow ``python -m ksdiff`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m ksdiff`` behaves identically to the ``ksdiff``
console script.
"""

from __future__ import annotations

from ksdiff.cli.app import cli

if __name__ == "__main__":
    cli()
