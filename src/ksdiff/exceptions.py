"""Custom exception hierarchy for ksdiff.

All exceptions that cross layer boundaries must inherit from
:class:`KsDiffError`.  Raw third-party exceptions (from ``_jsonnet``,
``kubernetes``, ``urllib3``, ``yaml``) must NEVER propagate beyond the
infrastructure layer - they must be caught and re-raised as a typed
subclass defined here.

Hierarchy
---------
KsDiffError
├── ArgumentError
│   ├── InvalidLocatorFormatError
│   ├── MissingOrInvalidPrefixError
│   ├── PrefixNotAllowedForSingleArgumentError
│   ├── MissingArgumentError
│   ├── TooManyArgumentsError
│   ├── UnsupportedFlagCombinationError
│   ├── InvalidDiffStrategyError
│   └── InvalidExtVarError
├── ExpansionError
│   ├── AppNotFoundError
│   ├── EnvironmentNotFoundError
│   ├── ComponentNotFoundError
│   └── TemplateEvaluationError
├── RemoteError
│   ├── ClientConfigError
│   ├── ClusterConnectionError
│   └── DiscoveryError
└── DependencyError
"""

from __future__ import annotations

USAGE_HINT: str = (
    "Usage: ksdiff <env>  |  ksdiff local:<env1> remote:<env2>  "
    "(see ksdiff --help)"
)


class KsDiffError(Exception):
    """Base exception for all ksdiff errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Arguments -------------------------------------------------------------

class ArgumentError(KsDiffError):
    """Raised for invalid command-line input, always before any I/O."""

    def __init__(self, message: str, *, hint: str | None = USAGE_HINT) -> None:
        super().__init__(message, hint=hint)


class InvalidLocatorFormatError(ArgumentError):
    """Raised when a locator carries an unknown ``<kind>:`` prefix."""


class MissingOrInvalidPrefixError(ArgumentError):
    """Raised when one of two locators lacks a ``local:``/``remote:`` prefix."""


class PrefixNotAllowedForSingleArgumentError(ArgumentError):
    """Raised when a single locator is qualified with ``local:``/``remote:``."""


class MissingArgumentError(ArgumentError):
    """Raised when no environment locator was given."""


class TooManyArgumentsError(ArgumentError):
    """Raised when more than two environment locators were given."""


class UnsupportedFlagCombinationError(ArgumentError):
    """Raised when a component filter is combined with two locators."""


class InvalidDiffStrategyError(ArgumentError):
    """Raised when the diff strategy is neither ``all`` nor ``subset``."""


class InvalidExtVarError(ArgumentError):
    """Raised when an ``--ext-str``/``--ext-code`` value is not ``KEY=VALUE``."""


# --- Expansion -------------------------------------------------------------

class ExpansionError(KsDiffError):
    """Raised when local manifests cannot be expanded."""


class AppNotFoundError(ExpansionError):
    """Raised when no ``app.yaml`` is found in the directory or its parents."""


class EnvironmentNotFoundError(ExpansionError):
    """Raised when ``environments/<name>`` does not exist."""


class ComponentNotFoundError(ExpansionError):
    """Raised when a component filter names an unknown component."""


class TemplateEvaluationError(ExpansionError):
    """Raised when the jsonnet evaluator fails or returns a non-object."""


# --- Remote ----------------------------------------------------------------

class RemoteError(KsDiffError):
    """Raised when a remote cluster cannot be reached or configured."""


class ClientConfigError(RemoteError):
    """Raised on missing, malformed, or ambiguous kubeconfig data."""


class ClusterConnectionError(RemoteError):
    """Raised when the API server cannot be reached."""


class DiscoveryError(RemoteError):
    """Raised when the API server does not serve a requested resource."""


# --- Runtime dependencies --------------------------------------------------

class DependencyError(KsDiffError):
    """Raised when a required runtime library is not installed."""


def missing_dependency(package: str, *, module: str | None = None) -> DependencyError:
    """Build a :class:`DependencyError` with install guidance for *package*."""
    name = module or package
    return DependencyError(
        f"{name} is not installed.",
        hint=f"Install with: pip install {package}",
    )
