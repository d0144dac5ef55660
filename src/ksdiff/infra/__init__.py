"""Infrastructure layer - external system integration.

This layer wraps all interaction with the filesystem, the jsonnet
binding, kubeconfig files, and the Kubernetes API.  Every raw
third-party exception must be caught here and re-raised as a
:class:`~ksdiff.exceptions.KsDiffError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Third-party imports (``_jsonnet``, ``kubernetes``) are deferred to call
  time so the CLI can start without them.
"""

from ksdiff.infra.app_layout import FileSystemAppLayout, find_app_root
from ksdiff.infra.jsonnet_evaluator import JsonnetEvaluator
from ksdiff.infra.kube_connector import KubeConnector, KubeDiscovery, KubeObjectAccess

__all__: list[str] = [
    "FileSystemAppLayout",
    "JsonnetEvaluator",
    "KubeConnector",
    "KubeDiscovery",
    "KubeObjectAccess",
    "find_app_root",
]
