"""Client context construction for remote environments."""

from __future__ import annotations

import logging
from pathlib import Path

from ksdiff.core.models import ClientContext
from ksdiff.core.protocols import AppLayout, ClusterConnector
from ksdiff.exceptions import ClientConfigError, KsDiffError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE: str = "default"


class ClientContextBuilder:
    """Build a :class:`ClientContext` for a named environment.

    Namespace resolution order: the explicit *namespace* override, the
    environment's ``spec.json`` namespace, the selected kubeconfig
    context's namespace, then :data:`DEFAULT_NAMESPACE`.
    """

    def __init__(
        self,
        connector: ClusterConnector,
        layout: AppLayout,
        *,
        kubeconfig: Path | None = None,
        context: str | None = None,
        namespace: str | None = None,
    ) -> None:
        self._connector = connector
        self._layout = layout
        self._kubeconfig = kubeconfig
        self._context = context
        self._namespace = namespace

    def build(self, env: str) -> ClientContext:
        """Connect to *env*'s cluster.

        Raises
        ------
        EnvironmentNotFoundError
            If the environment does not exist.
        ClientConfigError
            On missing or malformed connection configuration.
        ClusterConnectionError
            When the API endpoint is unreachable.
        """
        spec = self._layout.environment_spec(env)
        try:
            connection = self._connector.connect(
                server=spec.server,
                kubeconfig=self._kubeconfig,
                context=self._context,
            )
        except KsDiffError:
            raise
        except Exception as exc:
            raise ClientConfigError(
                f"Unexpected error configuring client for environment {env!r}: {exc}",
            ) from exc

        namespace = (
            self._namespace
            or spec.namespace
            or connection.context_namespace
            or DEFAULT_NAMESPACE
        )
        logger.info(
            "Connected to environment %s (context=%s, namespace=%s)",
            env,
            connection.context_name or "<current>",
            namespace,
        )
        return ClientContext(
            object_access=connection.object_access,
            discovery=connection.discovery,
            namespace=namespace,
            context_name=connection.context_name,
        )
