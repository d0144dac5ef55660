"""Regression tests for optional CLI UI dependencies (rich/questionary).

These tests verify bootstrap commands are resilient when optional UI
packages are missing, and that the context prompt fails cleanly only
when it is actually needed.
"""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest

from ksdiff.cli import exit_codes
from ksdiff.cli.app import main
from ksdiff.cli.context_prompt import prompt_context_selection
from ksdiff.exceptions import DependencyError


def _hide_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "rich", None)
    monkeypatch.setitem(sys.modules, "rich.console", None)
    monkeypatch.setitem(sys.modules, "rich.logging", None)
    monkeypatch.setitem(sys.modules, "rich.table", None)


def _hide_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "questionary", None)


def test_help_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0


def test_version_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0


def test_doctor_works_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    code = main(["doctor"])
    assert code in (exit_codes.SUCCESS, exit_codes.GENERAL_ERROR)


def test_context_prompt_errors_cleanly_when_questionary_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _hide_questionary(monkeypatch)

    with patch("ksdiff.cli.context_prompt.sys.stdin") as stdin:
        stdin.isatty.return_value = True
        with pytest.raises(DependencyError, match="questionary is not installed"):
            prompt_context_selection("https://prod", ["a", "b"])


def test_context_prompt_skipped_without_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_questionary(monkeypatch)

    with patch("ksdiff.cli.context_prompt.sys.stdin") as stdin:
        stdin.isatty.return_value = False
        assert prompt_context_selection("https://prod", ["a", "b"]) is None
