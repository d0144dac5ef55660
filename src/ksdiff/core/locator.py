"""Environment locator parsing.

A locator is ``local:<env>``, ``remote:<env>``, or a bare ``<env>``.
Parsing is a pure function of the input string.
"""

from __future__ import annotations

from ksdiff.core.models import EnvironmentKind, EnvironmentLocator
from ksdiff.exceptions import InvalidLocatorFormatError

_KINDS: dict[str, EnvironmentKind] = {kind.value: kind for kind in EnvironmentKind}


def has_kind_prefix(raw: str) -> bool:
    """Return whether *raw* starts with ``local:`` or ``remote:``."""
    return raw.startswith(tuple(f"{prefix}:" for prefix in _KINDS))


def parse_locator(raw: str) -> EnvironmentLocator:
    """Parse *raw* into an :class:`EnvironmentLocator`.

    Raises
    ------
    InvalidLocatorFormatError
        If *raw* is empty, has an unknown prefix, or has an empty name
        after a valid prefix.
    """
    if not raw.strip():
        raise InvalidLocatorFormatError("Environment locator must not be empty.")

    prefix, sep, name = raw.partition(":")
    if not sep:
        return EnvironmentLocator(kind=None, name=raw)

    kind = _KINDS.get(prefix)
    if kind is None:
        raise InvalidLocatorFormatError(
            f"Invalid environment locator: {raw!r}",
            hint="Prefix must be 'local:' or 'remote:', e.g. remote:us-west/prod",
        )
    if not name:
        raise InvalidLocatorFormatError(
            f"Environment locator {raw!r} has no environment name.",
        )
    return EnvironmentLocator(kind=kind, name=name)
