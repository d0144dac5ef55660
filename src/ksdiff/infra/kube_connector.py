"""kubernetes-backed implementation of :class:`~ksdiff.core.protocols.ClusterConnector`.

This module is the **only** place in the codebase that imports the
``kubernetes`` client.  Configuration failures surface as
:class:`~ksdiff.exceptions.ClientConfigError`, transport failures as
:class:`~ksdiff.exceptions.ClusterConnectionError`, and unknown kinds as
:class:`~ksdiff.exceptions.DiscoveryError`.  Nothing is retried.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ksdiff.core.models import Connection, ResourceObject
from ksdiff.exceptions import (
    ClientConfigError,
    ClusterConnectionError,
    DiscoveryError,
    missing_dependency,
)
from ksdiff.infra.kubeconfig import (
    ContextChooser,
    context_namespace,
    kubeconfig_location,
    load_kubeconfig,
    select_context,
)

logger = logging.getLogger(__name__)


def _transport_errors() -> tuple[type[BaseException], ...]:
    import urllib3
    from kubernetes.client.exceptions import ApiException

    return (urllib3.exceptions.HTTPError, ApiException, OSError)


class _ResourceLookup:
    """Shared discovery lookup over a ``DynamicClient``."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def _resource(self, api_version: str, kind: str) -> Any:
        from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError

        try:
            return self._client.resources.get(api_version=api_version, kind=kind)
        except (ResourceNotFoundError, ResourceNotUniqueError) as exc:
            raise DiscoveryError(
                f"Server does not serve {kind} in {api_version}: {exc}",
            ) from exc
        except _transport_errors() as exc:
            raise ClusterConnectionError(f"Discovery of {api_version}/{kind} failed: {exc}") from exc


class KubeDiscovery(_ResourceLookup):
    """Concrete :class:`~ksdiff.core.protocols.Discovery`."""

    def is_namespaced(self, api_version: str, kind: str) -> bool:
        return bool(self._resource(api_version, kind).namespaced)


class KubeObjectAccess(_ResourceLookup):
    """Concrete :class:`~ksdiff.core.protocols.ObjectAccess`."""

    def get(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None,
    ) -> ResourceObject | None:
        from kubernetes.dynamic.exceptions import NotFoundError

        resource = self._resource(api_version, kind)
        try:
            live = resource.get(name=name, namespace=namespace)
        except NotFoundError:
            return None
        except _transport_errors() as exc:
            raise ClusterConnectionError(
                f"Failed to read {kind} {name} from the cluster: {exc}",
            ) from exc
        return dict(live.to_dict())


class KubeConnector:
    """Concrete :class:`ClusterConnector` backed by the kubernetes client.

    Parameters
    ----------
    chooser:
        Called to settle ambiguous context selection interactively.
        ``None`` makes ambiguity an error.
    environ:
        Environment used for ``$KUBECONFIG``; defaults to ``os.environ``.
    """

    def __init__(
        self,
        chooser: ContextChooser | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._chooser = chooser
        self._environ: Mapping[str, str] = os.environ if environ is None else environ

    def connect(
        self,
        *,
        server: str | None,
        kubeconfig: Path | None,
        context: str | None,
    ) -> Connection:
        try:
            from kubernetes import client as kube_client
            from kubernetes import config as kube_config
            from kubernetes.config.config_exception import ConfigException
            from kubernetes.dynamic import DynamicClient
        except ModuleNotFoundError as exc:
            raise missing_dependency("kubernetes") from exc

        location = kubeconfig_location(kubeconfig, self._environ)
        config_dict = load_kubeconfig(location, explicit=kubeconfig is not None)
        context_name = select_context(
            config_dict,
            server=server,
            explicit=context,
            chooser=self._chooser,
        )
        logger.debug("Using kubeconfig context %s", context_name)

        configuration = kube_client.Configuration()
        try:
            kube_config.load_kube_config(
                config_file=location,
                context=context_name,
                client_configuration=configuration,
                persist_config=False,
            )
        except ConfigException as exc:
            raise ClientConfigError(
                f"Invalid kubeconfig for context {context_name!r}: {exc}",
            ) from exc
        configuration.retries = 0

        api_client = kube_client.ApiClient(configuration)
        try:
            dynamic = DynamicClient(api_client)
        except _transport_errors() as exc:
            raise ClusterConnectionError(
                f"Cannot reach API server {configuration.host}: {exc}",
                hint="Check that the cluster is running and your credentials are valid.",
            ) from exc

        return Connection(
            object_access=KubeObjectAccess(dynamic),
            discovery=KubeDiscovery(dynamic),
            context_name=context_name,
            context_namespace=context_namespace(config_dict, context_name),
        )
