"""Core / service layer - locator parsing, mode resolution, expansion, diffing.

Rules
-----
* No ``print()`` calls; diagnostics go through :mod:`logging`.
* No direct filesystem or network I/O - collaborators are injected as
  protocols from :mod:`ksdiff.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from ksdiff.core.client_context import ClientContextBuilder
from ksdiff.core.diff import run_diff
from ksdiff.core.expander import ManifestExpander
from ksdiff.core.locator import parse_locator
from ksdiff.core.models import (
    ClientContext,
    DiffOptions,
    DiffResult,
    DiffStrategy,
    DiffTarget,
    EnvironmentKind,
    EnvironmentLocator,
    LocalVersusRemote,
    SingleEnvironment,
    TwoLocalEnvironments,
    TwoRemoteEnvironments,
)
from ksdiff.core.resolver import DiffModeResolver

__all__: list[str] = [
    "ClientContext",
    "ClientContextBuilder",
    "DiffModeResolver",
    "DiffOptions",
    "DiffResult",
    "DiffStrategy",
    "DiffTarget",
    "EnvironmentKind",
    "EnvironmentLocator",
    "LocalVersusRemote",
    "ManifestExpander",
    "SingleEnvironment",
    "TwoLocalEnvironments",
    "TwoRemoteEnvironments",
    "parse_locator",
    "run_diff",
]
