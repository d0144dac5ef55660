"""Tests for kubeconfig loading and context selection (infra/kubeconfig.py).

Loading runs the real ``KubeConfigMerger`` from the kubernetes client
over files in ``tmp_path``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
import yaml
from kubernetes.config.kube_config import ENV_KUBECONFIG_PATH_SEPARATOR, KUBE_CONFIG_DEFAULT_LOCATION

from ksdiff.exceptions import ClientConfigError, DependencyError
from ksdiff.infra.kubeconfig import (
    context_namespace,
    kubeconfig_location,
    kubeconfig_paths,
    load_kubeconfig,
    normalize_server,
    select_context,
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _config(
    clusters: dict[str, str],
    contexts: dict[str, tuple[str, str | None]],
    current: str = "",
) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{"name": n, "cluster": {"server": s}} for n, s in clusters.items()],
        "users": [{"name": "admin", "user": {"token": "t"}}],
        "contexts": [
            {"name": n, "context": {"cluster": c, "user": "admin", **({"namespace": ns} if ns else {})}}
            for n, (c, ns) in contexts.items()
        ],
        "current-context": current,
    }


def _write(path: Path, data: dict[str, Any]) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


def _joined(*paths: Path) -> str:
    return ENV_KUBECONFIG_PATH_SEPARATOR.join(str(path) for path in paths)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestKubeconfigLocation:
    def test_explicit_path_wins(self, tmp_path: Path) -> None:
        explicit = tmp_path / "cfg"
        assert kubeconfig_location(explicit, {"KUBECONFIG": "/a:/b"}) == str(explicit)

    def test_env_var_kept_whole(self) -> None:
        assert kubeconfig_location(None, {"KUBECONFIG": "/a:/b"}) == "/a:/b"

    def test_default(self) -> None:
        assert kubeconfig_location(None, {}) == KUBE_CONFIG_DEFAULT_LOCATION

    def test_paths_split_on_client_separator(self) -> None:
        assert kubeconfig_paths(_joined(Path("/a"), Path("/b"))) == [Path("/a"), Path("/b")]

    def test_paths_expand_home(self) -> None:
        assert kubeconfig_paths("~/.kube/config") == [Path("~/.kube/config").expanduser()]

    def test_missing_library(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "kubernetes", None)
        monkeypatch.setitem(sys.modules, "kubernetes.config", None)
        with pytest.raises(DependencyError, match="kubernetes"):
            kubeconfig_location(None, {})


class TestLoadKubeconfig:
    def test_single_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "a", _config({"dev": "https://a"}, {"dev": ("dev", "dev-ns")}, "dev"))
        config = load_kubeconfig(str(path), explicit=True)
        assert config["current-context"] == "dev"
        assert config["clusters"] == [{"name": "dev", "cluster": {"server": "https://a"}}]
        assert context_namespace(config, "dev") == "dev-ns"

    def test_first_file_wins_per_name(self, tmp_path: Path) -> None:
        a = _write(tmp_path / "a", _config({"dev": "https://a"}, {"dev": ("dev", None)}, "dev"))
        b = _write(
            tmp_path / "b",
            _config({"dev": "https://b", "prod": "https://p"}, {"prod": ("prod", None)}, "prod"),
        )
        config = load_kubeconfig(_joined(a, b))
        servers = {c["name"]: c["cluster"]["server"] for c in config["clusters"]}
        assert servers == {"dev": "https://a", "prod": "https://p"}
        assert [c["name"] for c in config["contexts"]] == ["dev", "prod"]

    def test_missing_files_skipped(self, tmp_path: Path) -> None:
        a = _write(tmp_path / "a", _config({"dev": "https://a"}, {"dev": ("dev", None)}))
        assert load_kubeconfig(_joined(tmp_path / "missing", a))["clusters"]

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ClientConfigError, match="does not exist"):
            load_kubeconfig(str(tmp_path / "missing"), explicit=True)

    def test_nothing_loaded(self, tmp_path: Path) -> None:
        with pytest.raises(ClientConfigError, match="No kubeconfig"):
            load_kubeconfig(str(tmp_path / "missing"))

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty"
        path.write_text("")
        with pytest.raises(ClientConfigError):
            load_kubeconfig(str(path))

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad"
        path.write_text("clusters: [unterminated")
        with pytest.raises(ClientConfigError):
            load_kubeconfig(str(path))

    def test_malformed_section(self, tmp_path: Path) -> None:
        path = tmp_path / "bad"
        path.write_text("clusters: {name: x}\n")
        with pytest.raises(ClientConfigError, match="clusters"):
            load_kubeconfig(str(path))

    def test_relative_certificate_paths_left_to_client(self, tmp_path: Path) -> None:
        data = _config({"dev": "https://a"}, {"dev": ("dev", None)})
        data["clusters"][0]["cluster"]["certificate-authority"] = "certs/ca.crt"
        config = load_kubeconfig(str(_write(tmp_path / "cfg", data)))
        assert config["clusters"][0]["cluster"]["certificate-authority"] == "certs/ca.crt"


# ---------------------------------------------------------------------------
# Context selection
# ---------------------------------------------------------------------------

class TestNormalizeServer:
    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ("https://Example.com:443/", "https://example.com"),
            ("http://example.com:80", "http://example.com"),
            ("example.com", "https://example.com"),
        ],
    )
    def test_equivalent(self, a: str, b: str) -> None:
        assert normalize_server(a) == normalize_server(b)

    def test_port_kept(self) -> None:
        assert normalize_server("https://example.com:6443") == "https://example.com:6443"


class TestSelectContext:
    CONFIG = _config(
        {"dev": "https://dev:6443", "prod": "https://prod", "prod-alt": "https://PROD/"},
        {
            "dev": ("dev", "dev-ns"),
            "prod-admin": ("prod", None),
            "prod-ro": ("prod-alt", None),
        },
        current="dev",
    )

    def test_explicit(self) -> None:
        assert select_context(self.CONFIG, server="https://dev:6443", explicit="prod-ro") == "prod-ro"

    def test_explicit_unknown(self) -> None:
        with pytest.raises(ClientConfigError, match="nope"):
            select_context(self.CONFIG, server=None, explicit="nope")

    def test_no_server_uses_current(self) -> None:
        assert select_context(self.CONFIG, server=None) == "dev"

    def test_no_server_no_current(self) -> None:
        config = {**self.CONFIG, "current-context": ""}
        with pytest.raises(ClientConfigError):
            select_context(config, server=None)

    def test_single_match(self) -> None:
        assert select_context(self.CONFIG, server="https://dev:6443/") == "dev"

    def test_no_match(self) -> None:
        with pytest.raises(ClientConfigError, match="Cannot locate"):
            select_context(self.CONFIG, server="https://other")

    def test_ambiguous_without_chooser(self) -> None:
        with pytest.raises(ClientConfigError, match="Several"):
            select_context(self.CONFIG, server="https://prod")

    def test_ambiguous_prefers_current(self) -> None:
        config = {**self.CONFIG, "current-context": "prod-ro"}
        assert select_context(config, server="https://prod") == "prod-ro"

    def test_ambiguous_uses_chooser(self) -> None:
        seen: list[tuple[str, list[str]]] = []

        def chooser(server: str, names: Any) -> str:
            seen.append((server, list(names)))
            return "prod-admin"

        assert select_context(self.CONFIG, server="https://prod", chooser=chooser) == "prod-admin"
        assert seen == [("https://prod", ["prod-admin", "prod-ro"])]

    def test_cancelled_chooser(self) -> None:
        with pytest.raises(ClientConfigError):
            select_context(self.CONFIG, server="https://prod", chooser=lambda s, n: None)

    def test_context_namespace(self) -> None:
        assert context_namespace(self.CONFIG, "dev") == "dev-ns"
        assert context_namespace(self.CONFIG, "prod-admin") is None
