"""Shared pytest fixtures and configuration for the ksdiff test suite.

Guidelines
----------
* No network access in any test; the kubernetes client is mocked or
  replaced by fakes at the protocol boundary.
* ``_jsonnet`` is replaced by a fake module where evaluation is needed.
* Filesystem tests build apps under ``tmp_path`` only.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture()
def app_root(tmp_path: Path) -> Path:
    """A minimal app with two components and environments ``dev`` and ``us-west/prod``."""
    root = tmp_path / "app"
    (root / "components").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "vendor").mkdir()
    (root / "app.yaml").write_text("apiVersion: 0.1.0\nkind: ksonnet.io/app\nname: demo\n")
    (root / "components" / "redis.jsonnet").write_text("{}\n")
    (root / "components" / "web.yaml").write_text("kind: ConfigMap\n")
    (root / "components" / "params.libsonnet").write_text("{}\n")

    for env, spec in (
        ("dev", {"server": "https://dev.example.com:6443", "namespace": "dev-ns"}),
        ("us-west/prod", {"server": "https://prod.example.com"}),
    ):
        env_dir = root / "environments" / env
        (env_dir / ".metadata").mkdir(parents=True)
        (env_dir / "main.jsonnet").write_text("{}\n")
        (env_dir / "params.libsonnet").write_text("{}\n")
        (env_dir / "spec.json").write_text(json.dumps(spec))
    return root
