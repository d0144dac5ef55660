"""Domain models for ksdiff.

All models are **frozen** dataclasses - immutable value objects with no
behaviour beyond data access and trivial derivations.  The four diff
targets form a tagged union (:data:`DiffTarget`) dispatched once at run
time by :func:`ksdiff.core.diff.run_diff`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

from ksdiff.exceptions import InvalidDiffStrategyError

if TYPE_CHECKING:
    from ksdiff.core.protocols import Discovery, ObjectAccess

ResourceObject = dict[str, Any]
"""A schema-less Kubernetes API object (``apiVersion``/``kind``/``metadata``)."""

ResourceObjectList = tuple[ResourceObject, ...]
"""Resource objects in template evaluation order - never re-sorted."""


# ---------------------------------------------------------------------------
# Locators and strategy
# ---------------------------------------------------------------------------

class EnvironmentKind(str, enum.Enum):
    """Where a locator's manifests come from."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True, slots=True)
class EnvironmentLocator:
    """A parsed ``[local:|remote:]<env>`` argument."""

    kind: EnvironmentKind | None
    """Explicit kind, or ``None`` for the bare single-argument form."""

    name: str
    """Environment name, e.g. ``us-west/dev``."""

    @property
    def qualified(self) -> bool:
        return self.kind is not None

    def __str__(self) -> str:
        if self.kind is None:
            return self.name
        return f"{self.kind.value}:{self.name}"


class DiffStrategy(str, enum.Enum):
    """Comparison granularity."""

    ALL = "all"
    """Compare full object equality."""

    SUBSET = "subset"
    """Ignore live fields that the local manifest does not set."""

    @classmethod
    def parse(cls, raw: str) -> DiffStrategy:
        """Parse *raw* case-insensitively or raise :class:`InvalidDiffStrategyError`."""
        value = raw.strip().lower()
        for member in cls:
            if member.value == value:
                return member
        raise InvalidDiffStrategyError(
            f"Invalid diff strategy: {raw!r}",
            hint="Use --diff-strategy all or --diff-strategy subset.",
        )


# ---------------------------------------------------------------------------
# Resource identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, order=True)
class ResourceKey:
    """Identity used to match objects across the two sides of a diff."""

    kind: str
    namespace: str
    name: str

    @classmethod
    def of(cls, obj: ResourceObject, default_namespace: str = "") -> ResourceKey:
        metadata = obj.get("metadata") or {}
        return cls(
            kind=str(obj.get("kind", "")),
            namespace=str(metadata.get("namespace") or default_namespace),
            name=str(metadata.get("name", "")),
        )

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind} {self.namespace}/{self.name}"
        return f"{self.kind} {self.name}"


# ---------------------------------------------------------------------------
# App layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ExpansionPaths:
    """Filesystem locations used to expand one environment."""

    lib_path: Path
    """Shared ``lib/`` directory."""

    vendor_path: Path
    """Shared ``vendor/`` directory."""

    env_lib_path: Path
    """Environment-specific library directory (``.metadata``)."""

    env_component_path: Path
    """Environment entry point (``main.jsonnet``)."""

    env_params_path: Path
    """Environment parameter overrides (``params.libsonnet``)."""


@dataclass(frozen=True, slots=True)
class EnvironmentSpec:
    """Contents of ``environments/<name>/spec.json``."""

    name: str
    server: str | None = None
    namespace: str | None = None


# ---------------------------------------------------------------------------
# Remote clients
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Connection:
    """What a :class:`~ksdiff.core.protocols.ClusterConnector` hands back."""

    object_access: ObjectAccess
    discovery: Discovery
    context_name: str | None
    context_namespace: str | None
    """Namespace set on the selected kubeconfig context, if any."""


@dataclass(frozen=True, slots=True)
class ClientContext:
    """Connection handles plus the effective namespace for one remote target."""

    object_access: ObjectAccess
    discovery: Discovery
    namespace: str
    context_name: str | None = None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DiffOptions:
    """Explicit configuration threaded into the resolver and builders."""

    app_dir: Path = field(default_factory=Path.cwd)
    components: tuple[str, ...] = ()
    diff_strategy: str = DiffStrategy.SUBSET.value
    kubeconfig: Path | None = None
    context: str | None = None
    namespace: str | None = None
    jpaths: tuple[Path, ...] = ()
    ext_strs: tuple[tuple[str, str], ...] = ()
    ext_codes: tuple[tuple[str, str], ...] = ()


# ---------------------------------------------------------------------------
# Diff targets (tagged union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LocalSide:
    """Expanded manifests of one environment."""

    name: str
    objects: ResourceObjectList

    @property
    def label(self) -> str:
        return f"local:{self.name}"


@dataclass(frozen=True, slots=True)
class RemoteSide:
    """Live state of one environment.

    ``objects`` selects which live objects are fetched and serves as the
    reference for the ``subset`` strategy.
    """

    name: str
    objects: ResourceObjectList
    client: ClientContext

    @property
    def label(self) -> str:
        return f"remote:{self.name}"


@dataclass(frozen=True, slots=True)
class SingleEnvironment:
    name: str
    objects: ResourceObjectList
    client: ClientContext
    strategy: DiffStrategy


@dataclass(frozen=True, slots=True)
class TwoLocalEnvironments:
    first: LocalSide
    second: LocalSide
    strategy: DiffStrategy


@dataclass(frozen=True, slots=True)
class TwoRemoteEnvironments:
    first: RemoteSide
    second: RemoteSide
    strategy: DiffStrategy


@dataclass(frozen=True, slots=True)
class LocalVersusRemote:
    local: LocalSide
    remote: RemoteSide
    strategy: DiffStrategy


DiffTarget = Union[
    SingleEnvironment,
    TwoLocalEnvironments,
    TwoRemoteEnvironments,
    LocalVersusRemote,
]


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Counts produced by a diff run."""

    compared: int = 0
    changed: int = 0
    missing: int = 0

    @property
    def has_differences(self) -> bool:
        return self.changed + self.missing > 0
