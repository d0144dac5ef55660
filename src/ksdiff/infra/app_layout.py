"""Infrastructure: the on-disk layout of a jsonnet app.

::

    <root>/
      app.yaml
      components/<name>.{jsonnet,json,yaml}
      lib/
      vendor/
      environments/<env>/
        main.jsonnet
        params.libsonnet
        spec.json
        .metadata/

Environment names may contain ``/`` (e.g. ``us-west/prod``); they map
onto nested directories below ``environments/``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ksdiff.core.models import EnvironmentSpec, ExpansionPaths
from ksdiff.exceptions import AppNotFoundError, EnvironmentNotFoundError, ExpansionError

logger = logging.getLogger(__name__)

APP_FILE: str = "app.yaml"
COMPONENTS_DIR: str = "components"
ENVIRONMENTS_DIR: str = "environments"
LIB_DIR: str = "lib"
VENDOR_DIR: str = "vendor"
ENV_LIB_DIR: str = ".metadata"
ENV_COMPONENT_FILE: str = "main.jsonnet"
ENV_PARAMS_FILE: str = "params.libsonnet"
ENV_SPEC_FILE: str = "spec.json"


def find_app_root(start: Path) -> Path:
    """Walk up from *start* to the first directory containing ``app.yaml``.

    Raises
    ------
    AppNotFoundError
        If no ancestor of *start* (inclusive) contains ``app.yaml``.
    """
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / APP_FILE).is_file():
            logger.debug("Found app root at %s", candidate)
            return candidate
    raise AppNotFoundError(
        f"No {APP_FILE} found in {start} or any parent directory.",
        hint="Run ksdiff inside an app, or point --app-dir at one.",
    )


class FileSystemAppLayout:
    """Concrete :class:`~ksdiff.core.protocols.AppLayout` rooted at *root*."""

    def __init__(self, root: Path) -> None:
        self.root: Path = root

    @classmethod
    def find(cls, start: Path) -> FileSystemAppLayout:
        return cls(find_app_root(start))

    def _env_dir(self, env: str) -> Path:
        env_dir = self.root / ENVIRONMENTS_DIR / env
        if ".." in Path(env).parts or not env_dir.is_dir():
            raise EnvironmentNotFoundError(
                f"Environment {env!r} does not exist.",
                hint=f"Expected a directory at {env_dir}",
            )
        return env_dir

    def lib_paths(self, env: str) -> ExpansionPaths:
        env_dir = self._env_dir(env)
        return ExpansionPaths(
            lib_path=self.root / LIB_DIR,
            vendor_path=self.root / VENDOR_DIR,
            env_lib_path=env_dir / ENV_LIB_DIR,
            env_component_path=env_dir / ENV_COMPONENT_FILE,
            env_params_path=env_dir / ENV_PARAMS_FILE,
        )

    def component_paths(self) -> list[Path]:
        components_dir = self.root / COMPONENTS_DIR
        if not components_dir.is_dir():
            return []
        return sorted(path for path in components_dir.iterdir() if path.is_file())

    def environment_spec(self, env: str) -> EnvironmentSpec:
        spec_path = self._env_dir(env) / ENV_SPEC_FILE
        if not spec_path.is_file():
            return EnvironmentSpec(name=env)
        try:
            raw = json.loads(spec_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ExpansionError(f"Cannot read {spec_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ExpansionError(f"{spec_path} must contain a JSON object.")
        return EnvironmentSpec(
            name=env,
            server=raw.get("server") or None,
            namespace=raw.get("namespace") or None,
        )
