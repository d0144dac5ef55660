"""CLI console and logging helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from ksdiff.exceptions import DependencyError, missing_dependency

LOG_FORMAT: str = "%(levelname)s %(name)s: %(message)s"


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``DependencyError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise missing_dependency("rich") from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except DependencyError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def verbosity_to_level(verbosity: int) -> int:
	"""Map ``-v`` count to a logging level."""
	if verbosity >= 2:
		return logging.DEBUG
	if verbosity == 1:
		return logging.INFO
	return logging.WARNING


def configure_logging(verbosity: int = 0) -> None:
	"""Route ``ksdiff`` log records to stderr.

	Uses ``rich.logging.RichHandler`` when Rich is installed, else a plain
	``StreamHandler``.  Calling this again replaces the previous handler.
	"""
	level = verbosity_to_level(verbosity)
	try:
		from rich.logging import RichHandler

		handler: logging.Handler = RichHandler(
			console=get_rich_console(),
			show_time=False,
			show_path=verbosity >= 2,
		)
		handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
	except (ModuleNotFoundError, DependencyError):
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter(LOG_FORMAT))

	logger = logging.getLogger("ksdiff")
	for existing in list(logger.handlers):
		logger.removeHandler(existing)
	logger.addHandler(handler)
	logger.setLevel(level)
	logger.propagate = False
