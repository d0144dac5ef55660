"""Diff execution for the four diff targets.

:func:`run_diff` dispatches once on the target variant, collects the two
object sets to compare, pairs them by :class:`ResourceKey`, and writes a
unified YAML diff per pair to the given sink.
"""

from __future__ import annotations

import difflib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TextIO

import yaml

from ksdiff.core.models import (
    ClientContext,
    DiffResult,
    DiffStrategy,
    DiffTarget,
    LocalSide,
    LocalVersusRemote,
    RemoteSide,
    ResourceKey,
    ResourceObject,
    ResourceObjectList,
    SingleEnvironment,
    TwoLocalEnvironments,
    TwoRemoteEnvironments,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Snapshot:
    """One side of a comparison: a label and its objects keyed by identity."""

    label: str
    objects: dict[ResourceKey, ResourceObject]


# ---------------------------------------------------------------------------
# Subset reduction
# ---------------------------------------------------------------------------

def remove_fields(config: Any, live: Any) -> Any:
    """Reduce *live* to the fields present in *config*, recursively.

    Maps keep only keys present in *config*.  Lists are reduced
    element-wise; live elements beyond the end of *config* are kept so
    they show up in the diff.  On a type mismatch *live* is returned
    unchanged.
    """
    if isinstance(config, dict) and isinstance(live, dict):
        return {key: remove_fields(value, live[key]) for key, value in config.items() if key in live}
    if isinstance(config, list) and isinstance(live, list):
        return [
            remove_fields(config[i], item) if i < len(config) else item
            for i, item in enumerate(live)
        ]
    return live


# ---------------------------------------------------------------------------
# Snapshot collection
# ---------------------------------------------------------------------------

def _index(
    objects: Iterable[ResourceObject],
    key_for: Callable[[ResourceObject], ResourceKey] = ResourceKey.of,
) -> dict[ResourceKey, ResourceObject]:
    indexed: dict[ResourceKey, ResourceObject] = {}
    for obj in objects:
        key = key_for(obj)
        if key in indexed:
            logger.warning("Duplicate object %s; keeping the last definition", key)
        indexed[key] = obj
    return indexed


def _local_snapshot(side: LocalSide) -> _Snapshot:
    return _Snapshot(label=side.label, objects=_index(side.objects))


def _effective_namespace(obj: ResourceObject, client: ClientContext) -> str | None:
    """Namespace *obj* lives in on *client*'s cluster; ``None`` if cluster-scoped."""
    if not client.discovery.is_namespaced(str(obj.get("apiVersion", "")), str(obj.get("kind", ""))):
        return None
    metadata = obj.get("metadata") or {}
    return metadata.get("namespace") or client.namespace


def _key_on_cluster(obj: ResourceObject, client: ClientContext) -> ResourceKey:
    return ResourceKey.of(obj, _effective_namespace(obj, client) or "")


def _local_keyed_for(objects: ResourceObjectList, client: ClientContext) -> dict[ResourceKey, ResourceObject]:
    """Key local objects the way :func:`_fetch_live` keys their live copies."""
    return _index(objects, lambda obj: _key_on_cluster(obj, client))


def _fetch_live(
    objects: ResourceObjectList,
    client: ClientContext,
    strategy: DiffStrategy,
    *,
    by_manifest: bool = False,
) -> dict[ResourceKey, ResourceObject]:
    """Fetch the live counterpart of each object in *objects*.

    Objects are fetched from the namespace they live in on *client*'s
    cluster.  With *by_manifest* the result is keyed by the manifest's own
    identity instead, so two clusters with different context namespaces
    still pair the same object.  Objects that do not exist on the server
    are left out of the result.
    """
    live_objects: dict[ResourceKey, ResourceObject] = {}
    for obj in objects:
        namespace = _effective_namespace(obj, client)
        key = ResourceKey.of(obj, namespace or "")
        logger.debug("Fetching %s from cluster", key)
        live = client.object_access.get(
            str(obj.get("apiVersion", "")),
            key.kind,
            key.name,
            namespace,
        )
        if live is None:
            continue
        if strategy is DiffStrategy.SUBSET:
            live = remove_fields(obj, live)
        live_objects[ResourceKey.of(obj) if by_manifest else key] = live
    return live_objects


def _remote_snapshot(side: RemoteSide, strategy: DiffStrategy) -> _Snapshot:
    return _Snapshot(
        label=side.label,
        objects=_fetch_live(side.objects, side.client, strategy, by_manifest=True),
    )


def _collect(target: DiffTarget) -> tuple[_Snapshot, _Snapshot]:
    """Return the (expected, actual) snapshots for *target*."""
    match target:
        case SingleEnvironment(name=name, objects=objects, client=client, strategy=strategy):
            local = _Snapshot(label=f"local:{name}", objects=_local_keyed_for(objects, client))
            remote = _Snapshot(label=f"remote:{name}", objects=_fetch_live(objects, client, strategy))
            return local, remote
        case LocalVersusRemote(local=local_side, remote=remote_side, strategy=strategy):
            local = _Snapshot(
                label=local_side.label,
                objects=_local_keyed_for(local_side.objects, remote_side.client),
            )
            remote = _Snapshot(
                label=remote_side.label,
                objects=_fetch_live(remote_side.objects, remote_side.client, strategy),
            )
            return local, remote
        case TwoLocalEnvironments(first=first, second=second):
            return _local_snapshot(first), _local_snapshot(second)
        case TwoRemoteEnvironments(first=first, second=second, strategy=strategy):
            return _remote_snapshot(first, strategy), _remote_snapshot(second, strategy)
    raise TypeError(f"Unsupported diff target: {type(target).__name__}")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_yaml(obj: ResourceObject) -> str:
    return yaml.safe_dump(obj, sort_keys=True, default_flow_style=False)


def _ordered_keys(first: _Snapshot, second: _Snapshot) -> list[ResourceKey]:
    keys = list(first.objects)
    keys.extend(key for key in second.objects if key not in first.objects)
    return keys


def run_diff(target: DiffTarget, sink: TextIO) -> DiffResult:
    """Compare the two sides of *target* and write a unified diff to *sink*.

    All inputs referenced by *target* must already be populated; this
    function performs the remote reads (for remote sides) and the
    comparison only.

    Raises
    ------
    DiscoveryError
        If a remote server does not serve one of the object kinds.
    ClusterConnectionError
        If a remote read fails.
    """
    before, after = _collect(target)
    compared = changed = missing = 0

    for key in _ordered_keys(before, after):
        compared += 1
        left = before.objects.get(key)
        right = after.objects.get(key)

        if left is None or right is None:
            missing += 1
            absent_from = before.label if left is None else after.label
            sink.write(f"---\n{key} not present in {absent_from}\n")
            continue

        diff_lines = list(
            difflib.unified_diff(
                render_yaml(left).splitlines(keepends=True),
                render_yaml(right).splitlines(keepends=True),
                fromfile=f"{before.label} {key}",
                tofile=f"{after.label} {key}",
            )
        )
        if not diff_lines:
            sink.write(f"---\n{key} has no differences\n")
            continue

        changed += 1
        sink.write("---\n")
        sink.writelines(diff_lines)
        if not diff_lines[-1].endswith("\n"):
            sink.write("\n")

    result = DiffResult(compared=compared, changed=changed, missing=missing)
    logger.info(
        "Compared %d object(s): %d changed, %d missing",
        result.compared,
        result.changed,
        result.missing,
    )
    return result
