"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols - never on concrete
implementations - so the resolver, expander, and diff engine can be
exercised with fakes that return canned objects.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from ksdiff.core.models import (
    Connection,
    EnvironmentSpec,
    ExpansionPaths,
    ResourceObject,
    ResourceObjectList,
)


class TemplateEvaluator(Protocol):
    """Contract for the jsonnet evaluation backend ("expand")."""

    def evaluate(
        self,
        entry_file: Path,
        *,
        search_paths: Sequence[Path],
        ext_codes: Mapping[str, str],
        ext_strs: Mapping[str, str],
    ) -> ResourceObjectList:
        """Evaluate *entry_file* and return its resource objects in order.

        Parameters
        ----------
        entry_file:
            The environment entry point.
        search_paths:
            Import search paths in first-match-wins order.
        ext_codes:
            External code variables, already resolved for precedence.
        ext_strs:
            External string variables.

        Raises
        ------
        TemplateEvaluationError
            When evaluation fails or yields something other than
            resource objects.
        """
        ...  # pragma: no cover


class ObjectAccess(Protocol):
    """Read access to live objects on one cluster."""

    def get(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None,
    ) -> ResourceObject | None:
        """Return the live object, or ``None`` when it does not exist.

        Raises
        ------
        DiscoveryError
            When the server does not serve *api_version*/*kind*.
        ClusterConnectionError
            When the request cannot reach the server.
        """
        ...  # pragma: no cover


class Discovery(Protocol):
    """API resource schema lookup on one cluster."""

    def is_namespaced(self, api_version: str, kind: str) -> bool:
        """Return whether *kind* is a namespaced resource.

        Raises
        ------
        DiscoveryError
            When the server does not serve *api_version*/*kind*.
        """
        ...  # pragma: no cover


class ClusterConnector(Protocol):
    """Contract for the cluster connection provider ("connect")."""

    def connect(
        self,
        *,
        server: str | None,
        kubeconfig: Path | None,
        context: str | None,
    ) -> Connection:
        """Resolve a kubeconfig context and open object/discovery handles.

        Raises
        ------
        ClientConfigError
            On missing, malformed, or ambiguous configuration.
        ClusterConnectionError
            When the API endpoint is unreachable.
        """
        ...  # pragma: no cover


class AppLayout(Protocol):
    """Where an app keeps its components and environments."""

    def lib_paths(self, env: str) -> ExpansionPaths:
        """Raises :class:`EnvironmentNotFoundError` for unknown *env*."""
        ...  # pragma: no cover

    def component_paths(self) -> list[Path]:
        """All files under the components directory, sorted."""
        ...  # pragma: no cover

    def environment_spec(self, env: str) -> EnvironmentSpec:
        """Raises :class:`EnvironmentNotFoundError` for unknown *env*."""
        ...  # pragma: no cover
