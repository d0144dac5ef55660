"""Diff mode resolution - decide what to compare.

:class:`DiffModeResolver` turns one or two raw locators into exactly one
:data:`~ksdiff.core.models.DiffTarget` variant:

=========  =========  ======================================
Locator 1  Locator 2  Variant
=========  =========  ======================================
<env>      -          SingleEnvironment
local      local      TwoLocalEnvironments
remote     remote     TwoRemoteEnvironments
local      remote     LocalVersusRemote (locator 1 is local)
remote     local      LocalVersusRemote (locator 2 is local)
=========  =========  ======================================

All argument validation (:func:`check_arguments`) happens before any
expansion or connection.  Expansion and connection then run eagerly, one
after another, so a failure aborts before anything is diffed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ksdiff.core.client_context import ClientContextBuilder
from ksdiff.core.expander import ManifestExpander
from ksdiff.core.locator import has_kind_prefix, parse_locator
from ksdiff.core.models import (
    DiffOptions,
    DiffStrategy,
    DiffTarget,
    EnvironmentKind,
    EnvironmentLocator,
    LocalSide,
    LocalVersusRemote,
    RemoteSide,
    SingleEnvironment,
    TwoLocalEnvironments,
    TwoRemoteEnvironments,
)
from ksdiff.exceptions import (
    InvalidLocatorFormatError,
    MissingArgumentError,
    MissingOrInvalidPrefixError,
    PrefixNotAllowedForSingleArgumentError,
    TooManyArgumentsError,
    UnsupportedFlagCombinationError,
)

logger = logging.getLogger(__name__)

_PREFIX_REQUIRED = "<env> must be prefaced by local: or remote:, ex: remote:us-west/prod"


def check_arguments(
    environments: Sequence[str],
    options: DiffOptions,
) -> tuple[DiffStrategy, tuple[EnvironmentLocator, ...]]:
    """Validate the raw arguments without touching the filesystem or network.

    Returns the parsed strategy and locators.

    Raises
    ------
    MissingArgumentError
        If no locator is given.
    TooManyArgumentsError
        If more than two locators are given.
    InvalidDiffStrategyError
        If the strategy is neither ``all`` nor ``subset``.
    PrefixNotAllowedForSingleArgumentError
        If a single locator carries a ``local:``/``remote:`` prefix.
    InvalidLocatorFormatError
        If a single locator is otherwise malformed.
    MissingOrInvalidPrefixError
        If either of two locators is not ``local:``/``remote:`` qualified.
    UnsupportedFlagCombinationError
        If a component filter is combined with two locators.
    """
    if not environments:
        raise MissingArgumentError(
            "'diff' requires at least one argument, the name of the environment.",
        )
    if len(environments) > 2:
        raise TooManyArgumentsError(
            "'diff' takes at most two arguments, the names of the environments.",
        )
    strategy = DiffStrategy.parse(options.diff_strategy)

    if len(environments) == 1:
        raw = environments[0]
        if has_kind_prefix(raw):
            raise PrefixNotAllowedForSingleArgumentError(
                "Single <env> argument with prefix 'local:' or 'remote:' not allowed.",
                hint="Use 'ksdiff <env>' or give two locators, e.g. local:dev remote:dev",
            )
        return strategy, (parse_locator(raw),)

    try:
        locators = tuple(parse_locator(raw) for raw in environments)
    except InvalidLocatorFormatError as exc:
        raise MissingOrInvalidPrefixError(_PREFIX_REQUIRED) from exc
    if not all(locator.qualified for locator in locators):
        raise MissingOrInvalidPrefixError(_PREFIX_REQUIRED)
    if options.components:
        raise UnsupportedFlagCombinationError(
            "Component filters are not supported when diffing two environments.",
            hint="Drop -c/--component to compare the whole app.",
        )
    return strategy, locators


class DiffModeResolver:
    """Choose and assemble the diff target for an invocation.

    Parameters
    ----------
    expander:
        Builds local manifest lists.
    client_builder:
        Builds remote client contexts.
    """

    def __init__(
        self,
        expander: ManifestExpander,
        client_builder: ClientContextBuilder,
    ) -> None:
        self._expander = expander
        self._client_builder = client_builder

    def resolve(self, environments: Sequence[str], options: DiffOptions) -> DiffTarget:
        """Resolve *environments* (one or two raw locators) into a target.

        Raises
        ------
        ArgumentError
            For any invalid argument combination, before any I/O.
        ExpansionError
            If a local environment cannot be expanded.
        RemoteError
            If a remote environment cannot be reached.
        """
        strategy, locators = check_arguments(environments, options)
        if len(locators) == 1:
            return self._resolve_single(locators[0], options.components, strategy)
        return self._resolve_pair(locators[0], locators[1], strategy)

    def _resolve_single(
        self,
        locator: EnvironmentLocator,
        components: Sequence[str],
        strategy: DiffStrategy,
    ) -> SingleEnvironment:
        logger.info("Diff mode: single environment %s", locator.name)
        objects = self._expander.expand(locator.name, components)
        client = self._client_builder.build(locator.name)
        return SingleEnvironment(
            name=locator.name,
            objects=objects,
            client=client,
            strategy=strategy,
        )

    def _resolve_pair(
        self,
        first: EnvironmentLocator,
        second: EnvironmentLocator,
        strategy: DiffStrategy,
    ) -> DiffTarget:
        local, remote = EnvironmentKind.LOCAL, EnvironmentKind.REMOTE

        if first.kind is local and second.kind is local:
            logger.info("Diff mode: local %s vs local %s", first.name, second.name)
            return TwoLocalEnvironments(
                first=LocalSide(first.name, self._expander.expand(first.name)),
                second=LocalSide(second.name, self._expander.expand(second.name)),
                strategy=strategy,
            )

        if first.kind is remote and second.kind is remote:
            logger.info("Diff mode: remote %s vs remote %s", first.name, second.name)
            objects1 = self._expander.expand(first.name)
            objects2 = self._expander.expand(second.name)
            client1 = self._client_builder.build(first.name)
            client2 = self._client_builder.build(second.name)
            return TwoRemoteEnvironments(
                first=RemoteSide(first.name, objects1, client1),
                second=RemoteSide(second.name, objects2, client2),
                strategy=strategy,
            )

        # Mixed kinds: the local locator supplies manifests, whatever its position.
        local_loc, remote_loc = (first, second) if first.kind is local else (second, first)
        logger.info("Diff mode: local %s vs remote %s", local_loc.name, remote_loc.name)
        objects = self._expander.expand(local_loc.name)
        client = self._client_builder.build(remote_loc.name)
        return LocalVersusRemote(
            local=LocalSide(local_loc.name, objects),
            remote=RemoteSide(remote_loc.name, objects, client),
            strategy=strategy,
        )
