"""Tests for environment locator parsing (core/locator.py)."""

from __future__ import annotations

import pytest

from ksdiff.core.locator import has_kind_prefix, parse_locator
from ksdiff.core.models import EnvironmentKind, EnvironmentLocator
from ksdiff.exceptions import InvalidLocatorFormatError


class TestParseLocator:
    @pytest.mark.parametrize(
        ("raw", "kind", "name"),
        [
            ("local:dev", EnvironmentKind.LOCAL, "dev"),
            ("remote:dev", EnvironmentKind.REMOTE, "dev"),
            ("local:us-west/prod", EnvironmentKind.LOCAL, "us-west/prod"),
            ("remote:a:b", EnvironmentKind.REMOTE, "a:b"),
        ],
    )
    def test_qualified(self, raw: str, kind: EnvironmentKind, name: str) -> None:
        assert parse_locator(raw) == EnvironmentLocator(kind=kind, name=name)

    def test_bare_name(self) -> None:
        locator = parse_locator("us-west/dev")
        assert locator.kind is None
        assert locator.name == "us-west/dev"
        assert not locator.qualified

    def test_is_pure(self) -> None:
        assert parse_locator("remote:prod") == parse_locator("remote:prod")

    @pytest.mark.parametrize("raw", ["cluster:dev", "Local:dev", ":dev", "local:", "", "   "])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidLocatorFormatError):
            parse_locator(raw)

    def test_str_round_trips_qualified(self) -> None:
        assert str(parse_locator("local:dev")) == "local:dev"
        assert str(parse_locator("dev")) == "dev"


class TestHasKindPrefix:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("local:dev", True),
            ("remote:dev", True),
            ("dev", False),
            ("localdev", False),
            ("staging:dev", False),
        ],
    )
    def test_prefix(self, raw: str, expected: bool) -> None:
        assert has_kind_prefix(raw) is expected
