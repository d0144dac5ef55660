"""Infrastructure: kubeconfig loading and context selection.

Loading
-------
Files are read and merged by the kubernetes client's
``KubeConfigMerger``, so ksdiff sees the same configuration the client
later connects with:

* An explicit ``--kubeconfig`` path is used on its own.
* Otherwise ``$KUBECONFIG`` is split on the client's path separator;
  for each named cluster, user, and context the first file defining it
  wins, and missing files are skipped.
* Otherwise the client's default location (``~/.kube/config``) is used.

Relative certificate and key paths are left for the client to resolve
against the file that declares them.

Context selection
-----------------
An explicit context wins.  Otherwise the contexts whose cluster server
matches the environment's server are candidates; a single candidate is
used, the current context is preferred among several, and remaining
ambiguity is handed to an interactive *chooser*.  Without an environment
server the current context is used.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any
from urllib.parse import urlsplit

import yaml

from ksdiff.exceptions import ClientConfigError, missing_dependency

logger = logging.getLogger(__name__)

KUBECONFIG_ENV: str = "KUBECONFIG"

ContextChooser = Callable[[str, Sequence[str]], str | None]
"""``chooser(server, context_names) -> chosen name or None``."""

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

_SECTIONS: tuple[str, ...] = ("clusters", "users", "contexts")


def _kube_config() -> ModuleType:
    try:
        from kubernetes.config import kube_config
    except ModuleNotFoundError as exc:
        raise missing_dependency("kubernetes") from exc
    return kube_config


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def kubeconfig_location(explicit: Path | None = None, environ: Mapping[str, str] | None = None) -> str:
    """Return the kubeconfig location string handed to the kubernetes client.

    The result may name several files joined by the client's path
    separator.
    """
    if explicit is not None:
        return str(explicit.expanduser())
    env = os.environ if environ is None else environ
    value = env.get(KUBECONFIG_ENV)
    if value:
        return value
    return _kube_config().KUBE_CONFIG_DEFAULT_LOCATION


def kubeconfig_paths(location: str) -> list[Path]:
    """Split *location* into the individual files it names."""
    separator = _kube_config().ENV_KUBECONFIG_PATH_SEPARATOR
    return [Path(part).expanduser() for part in location.split(separator) if part]


def _named(entries: Any, location: str, section: str) -> list[dict[str, Any]]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ClientConfigError(f"Malformed '{section}' section in {location}.")
    plain = [getattr(entry, "value", entry) for entry in entries]
    if not all(isinstance(entry, dict) and "name" in entry for entry in plain):
        raise ClientConfigError(f"Malformed '{section}' section in {location}.")
    return plain


def load_kubeconfig(location: str, *, explicit: bool = False) -> dict[str, Any]:
    """Load and merge the kubeconfig files named by *location*.

    Missing files are skipped unless *explicit* is true.  The result is a
    plain dict with ``clusters``, ``users``, ``contexts`` and
    ``current-context``.

    Raises
    ------
    ClientConfigError
        If no file could be loaded, or a file is malformed.
    DependencyError
        If the kubernetes client is not installed.
    """
    kube_config = _kube_config()
    if explicit and not Path(location).is_file():
        raise ClientConfigError(f"Kubeconfig file {location} does not exist.")

    try:
        merged = kube_config.KubeConfigMerger(location).config
    except (kube_config.ConfigException, yaml.YAMLError, OSError) as exc:
        raise ClientConfigError(f"Cannot read kubeconfig {location}: {exc}") from exc
    except (AttributeError, KeyError, TypeError) as exc:
        raise ClientConfigError(f"Kubeconfig {location} is malformed: {exc}") from exc

    if merged is None:
        raise ClientConfigError(
            "No kubeconfig found.",
            hint=f"Set ${KUBECONFIG_ENV}, pass --kubeconfig, or create ~/.kube/config.",
        )

    data = merged.value
    if not isinstance(data, dict):
        raise ClientConfigError(f"Kubeconfig {location} is not a mapping.")
    config: dict[str, Any] = {
        section: _named(data.get(section), location, section) for section in _SECTIONS
    }
    config["current-context"] = data.get("current-context") or ""
    logger.debug("Loaded kubeconfig from %s", location)
    return config


# ---------------------------------------------------------------------------
# Context selection
# ---------------------------------------------------------------------------

def normalize_server(url: str) -> str:
    """Normalise an API server URL for comparison."""
    parts = urlsplit(url.strip() if "://" in url else f"https://{url.strip()}")
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    try:
        port = parts.port
    except ValueError as exc:
        raise ClientConfigError(f"Invalid server URL: {url}") from exc
    netloc = host if port is None or port == _DEFAULT_PORTS.get(scheme) else f"{host}:{port}"
    return f"{scheme}://{netloc}{parts.path.rstrip('/')}"


def _context_entry(config: Mapping[str, Any], name: str) -> dict[str, Any]:
    for entry in config["contexts"]:
        if entry["name"] == name:
            return entry.get("context") or {}
    raise ClientConfigError(
        f"Context {name!r} not found in kubeconfig.",
        hint="Run 'kubectl config get-contexts' to list available contexts.",
    )


def _cluster_server(config: Mapping[str, Any], cluster_name: str | None) -> str | None:
    for entry in config["clusters"]:
        if entry["name"] == cluster_name:
            return (entry.get("cluster") or {}).get("server")
    return None


def context_namespace(config: Mapping[str, Any], name: str) -> str | None:
    """Return the namespace set on context *name*, if any."""
    return _context_entry(config, name).get("namespace") or None


def select_context(
    config: Mapping[str, Any],
    *,
    server: str | None,
    explicit: str | None = None,
    chooser: ContextChooser | None = None,
) -> str:
    """Pick the kubeconfig context to use for an environment.

    Raises
    ------
    ClientConfigError
        If no suitable context exists or the choice is ambiguous with no
        chooser available.
    """
    current: str = config.get("current-context") or ""

    if explicit:
        _context_entry(config, explicit)
        return explicit

    if not server:
        if not current:
            raise ClientConfigError(
                "Kubeconfig has no current context.",
                hint="Pass --context or run 'kubectl config use-context <name>'.",
            )
        _context_entry(config, current)
        return current

    wanted = normalize_server(server)
    candidates = [
        entry["name"]
        for entry in config["contexts"]
        if (server_url := _cluster_server(config, (entry.get("context") or {}).get("cluster")))
        and normalize_server(server_url) == wanted
    ]

    if not candidates:
        raise ClientConfigError(
            f"Cannot locate a kubeconfig cluster at {server}.",
            hint="Add a cluster with that server to your kubeconfig, or pass --context.",
        )
    if len(candidates) == 1:
        return candidates[0]
    if current in candidates:
        return current
    if chooser is not None:
        chosen = chooser(server, candidates)
        if chosen in candidates:
            return chosen
    raise ClientConfigError(
        f"Several kubeconfig contexts point at {server}: {', '.join(candidates)}",
        hint="Pass --context to pick one.",
    )
