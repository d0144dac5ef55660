"""jsonnet-backed implementation of :class:`~ksdiff.core.protocols.TemplateEvaluator`.

This module is the **only** place in the codebase that imports
``_jsonnet``.  Evaluation errors are caught here and re-raised as
:class:`~ksdiff.exceptions.TemplateEvaluationError`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from ksdiff.core.models import ResourceObject, ResourceObjectList
from ksdiff.exceptions import TemplateEvaluationError, missing_dependency

logger = logging.getLogger(__name__)


def _is_resource(value: Any) -> bool:
    return isinstance(value, dict) and "kind" in value and "apiVersion" in value


def flatten_objects(value: Any, *, path: str = "$") -> list[ResourceObject]:
    """Flatten an evaluated jsonnet value into resource objects.

    * A resource whose ``kind`` is ``List`` contributes its ``items``.
    * Any other resource contributes itself.
    * An array contributes its elements, in order.
    * A plain object (a map of components) contributes its values in
      key order.

    Raises
    ------
    TemplateEvaluationError
        If a leaf is not a resource object.
    """
    if _is_resource(value):
        if value["kind"] == "List" and isinstance(value.get("items"), list):
            return flatten_objects(value["items"], path=f"{path}.items")
        return [value]
    if isinstance(value, list):
        result: list[ResourceObject] = []
        for index, item in enumerate(value):
            result.extend(flatten_objects(item, path=f"{path}[{index}]"))
        return result
    if isinstance(value, dict):
        result = []
        for key in sorted(value):
            result.extend(flatten_objects(value[key], path=f"{path}.{key}"))
        return result
    raise TemplateEvaluationError(
        f"Expected a Kubernetes object at {path}, got {type(value).__name__}.",
        hint="Every leaf of the environment output needs apiVersion and kind.",
    )


class JsonnetEvaluator:
    """Concrete :class:`TemplateEvaluator` backed by the jsonnet Python binding.

    The protocol hands search paths in first-match-wins order; libjsonnet
    searches the *last* added path first, so they are passed reversed.
    """

    def evaluate(
        self,
        entry_file: Path,
        *,
        search_paths: Sequence[Path],
        ext_codes: Mapping[str, str],
        ext_strs: Mapping[str, str],
    ) -> ResourceObjectList:
        try:
            import _jsonnet
        except ModuleNotFoundError as exc:
            raise missing_dependency("jsonnet", module="_jsonnet") from exc

        if not entry_file.is_file():
            raise TemplateEvaluationError(
                f"Environment entry point {entry_file} does not exist.",
            )

        jpathdir = [str(path) for path in reversed(search_paths)]
        logger.debug("Evaluating %s with jpath %s", entry_file, jpathdir)
        try:
            output = _jsonnet.evaluate_file(
                str(entry_file),
                jpathdir=jpathdir,
                ext_vars=dict(ext_strs),
                ext_codes=dict(ext_codes),
            )
        except RuntimeError as exc:
            raise TemplateEvaluationError(
                f"Failed to evaluate {entry_file}",
                hint=str(exc).strip(),
            ) from exc

        try:
            value = json.loads(output)
        except json.JSONDecodeError as exc:
            raise TemplateEvaluationError(
                f"Evaluator returned invalid JSON for {entry_file}: {exc}",
            ) from exc

        return tuple(flatten_objects(value))
