"""Manifest expansion - turn an environment into resource objects.

The expander composes the jsonnet search paths and external code
variables for one environment and hands them to a
:class:`~ksdiff.core.protocols.TemplateEvaluator`.

Precedence
----------
* Search paths, first match wins:
  ``[env lib, vendor, shared lib, *caller jpaths]``.
* External code, first definition wins:
  ``[base object, env params, *caller ext codes]``.

Both orders decide which definition the evaluator sees on a name
collision, so they are fixed here rather than left to the adapter.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from ksdiff.core.models import ResourceObjectList
from ksdiff.core.protocols import AppLayout, TemplateEvaluator
from ksdiff.exceptions import ComponentNotFoundError, KsDiffError, TemplateEvaluationError

logger = logging.getLogger(__name__)

COMPONENTS_EXT_CODE_KEY: str = "__ksonnet/components"
PARAMS_EXT_CODE_KEY: str = "__ksonnet/params"

COMPONENT_EXTENSIONS: tuple[str, ...] = (".jsonnet", ".json", ".yaml")


def _jsonnet_string(value: str) -> str:
    # JSON string literals are valid jsonnet string literals.
    return json.dumps(value)


def _import_expression(path: Path) -> str:
    literal = _jsonnet_string(path.as_posix())
    if path.suffix == ".jsonnet":
        return f"import {literal}"
    if path.suffix == ".json":
        return f"std.parseJson(importstr {literal})"
    return f"std.parseYaml(importstr {literal})"


def construct_base_object(
    component_paths: Iterable[Path],
    components: Sequence[str] = (),
) -> str:
    """Build the jsonnet object literal holding the selected components.

    Each component file becomes one field named after its stem.  When
    *components* is non-empty only those stems are kept.

    Raises
    ------
    ComponentNotFoundError
        If a name in *components* matches no component file.
    """
    wanted = set(components)
    seen: set[str] = set()
    lines = ["{"]
    for path in component_paths:
        if path.suffix not in COMPONENT_EXTENSIONS:
            continue
        name = path.stem
        if wanted and name not in wanted:
            continue
        seen.add(name)
        lines.append(f"  {_jsonnet_string(name)}: {_import_expression(path)},")
    lines.append("}")

    unknown = [name for name in components if name not in seen]
    if unknown:
        raise ComponentNotFoundError(
            f"Unknown component(s): {', '.join(unknown)}",
            hint="Component names are file names under components/ without extension.",
        )
    return "\n".join(lines) + "\n"


def import_params(env_params_path: Path) -> str:
    """Return jsonnet code importing the environment parameter file."""
    return f"import {_jsonnet_string(env_params_path.as_posix())}"


class ManifestExpander:
    """Expand an environment into its ordered resource objects.

    Parameters
    ----------
    layout:
        App layout used to locate paths and components.
    evaluator:
        Template evaluation backend.
    jpaths:
        Caller-supplied search paths, appended after the app's own.
    ext_codes:
        Caller-supplied ``(key, code)`` pairs, lowest precedence.
    ext_strs:
        Caller-supplied ``(key, value)`` string variables.
    """

    def __init__(
        self,
        layout: AppLayout,
        evaluator: TemplateEvaluator,
        *,
        jpaths: Sequence[Path] = (),
        ext_codes: Sequence[tuple[str, str]] = (),
        ext_strs: Sequence[tuple[str, str]] = (),
    ) -> None:
        self._layout = layout
        self._evaluator = evaluator
        self._jpaths: tuple[Path, ...] = tuple(jpaths)
        self._ext_codes: tuple[tuple[str, str], ...] = tuple(ext_codes)
        self._ext_strs: tuple[tuple[str, str], ...] = tuple(ext_strs)

    def expand(self, env: str, components: Sequence[str] = ()) -> ResourceObjectList:
        """Expand *env*, optionally restricted to *components*.

        Raises
        ------
        EnvironmentNotFoundError
            If the environment does not exist.
        ComponentNotFoundError
            If the component filter names an unknown component.
        TemplateEvaluationError
            If evaluation fails.
        """
        paths = self._layout.lib_paths(env)
        base_obj = construct_base_object(self._layout.component_paths(), components)
        params = import_params(paths.env_params_path)

        search_paths = [paths.env_lib_path, paths.vendor_path, paths.lib_path, *self._jpaths]
        ext_codes = self._merge_ext_codes(
            [(COMPONENTS_EXT_CODE_KEY, base_obj), (PARAMS_EXT_CODE_KEY, params), *self._ext_codes],
        )
        ext_strs = dict(self._ext_strs)

        logger.debug(
            "Expanding %s from %s (search paths: %s)",
            env,
            paths.env_component_path,
            ", ".join(str(p) for p in search_paths),
        )
        try:
            objects = self._evaluator.evaluate(
                paths.env_component_path,
                search_paths=search_paths,
                ext_codes=ext_codes,
                ext_strs=ext_strs,
            )
        except KsDiffError:
            raise
        except Exception as exc:
            raise TemplateEvaluationError(
                f"Unexpected evaluator error for environment {env!r}: {exc}",
            ) from exc

        logger.info("Expanded %d object(s) for environment %s", len(objects), env)
        return objects

    @staticmethod
    def _merge_ext_codes(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Collapse ``(key, code)`` pairs, keeping the first definition of a key."""
        merged: dict[str, str] = {}
        for key, code in pairs:
            if key in merged:
                logger.warning("Ignoring ext code %s: an earlier definition takes precedence", key)
                continue
            merged[key] = code
        return merged
