"""Tests for domain models (core/models.py).

Verifies:
* Immutability of frozen dataclasses
* DiffStrategy parsing
* ResourceKey identity rules
* DiffResult summary
"""

from __future__ import annotations

import dataclasses

import pytest

from ksdiff.core.models import (
    DiffOptions,
    DiffResult,
    DiffStrategy,
    EnvironmentKind,
    EnvironmentLocator,
    LocalSide,
    ResourceKey,
)
from ksdiff.exceptions import InvalidDiffStrategyError


class TestDiffStrategy:
    @pytest.mark.parametrize("raw", ["subset", "SUBSET", " subset "])
    def test_parse_subset(self, raw: str) -> None:
        assert DiffStrategy.parse(raw) is DiffStrategy.SUBSET

    def test_parse_all(self) -> None:
        assert DiffStrategy.parse("all") is DiffStrategy.ALL

    @pytest.mark.parametrize("raw", ["", "full", "sub"])
    def test_parse_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidDiffStrategyError):
            DiffStrategy.parse(raw)


class TestResourceKey:
    def test_uses_object_namespace(self) -> None:
        obj = {"kind": "Service", "metadata": {"name": "web", "namespace": "prod"}}
        assert ResourceKey.of(obj, "default") == ResourceKey("Service", "prod", "web")

    def test_falls_back_to_default_namespace(self) -> None:
        obj = {"kind": "Service", "metadata": {"name": "web"}}
        assert ResourceKey.of(obj, "default") == ResourceKey("Service", "default", "web")

    def test_missing_metadata(self) -> None:
        assert ResourceKey.of({"kind": "Namespace"}) == ResourceKey("Namespace", "", "")

    def test_str(self) -> None:
        assert str(ResourceKey("Service", "prod", "web")) == "Service prod/web"
        assert str(ResourceKey("Namespace", "", "prod")) == "Namespace prod"


class TestImmutability:
    def test_locator_is_frozen(self) -> None:
        locator = EnvironmentLocator(kind=EnvironmentKind.LOCAL, name="dev")
        with pytest.raises(dataclasses.FrozenInstanceError):
            locator.name = "prod"  # type: ignore[misc]

    def test_options_are_frozen(self) -> None:
        options = DiffOptions()
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.components = ("x",)  # type: ignore[misc]

    def test_default_strategy_is_subset(self) -> None:
        assert DiffOptions().diff_strategy == "subset"


class TestSides:
    def test_local_label(self) -> None:
        assert LocalSide("dev", ()).label == "local:dev"


class TestDiffResult:
    def test_no_differences(self) -> None:
        assert not DiffResult(compared=3).has_differences

    def test_changed(self) -> None:
        assert DiffResult(compared=3, changed=1).has_differences

    def test_missing(self) -> None:
        assert DiffResult(compared=3, missing=1).has_differences
