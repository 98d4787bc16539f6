"""Promoting a published bundle from one channel to others.

Every charm the bundle builds from source is looked up on the ``from``
channel and that exact revision, with the resource revisions released
alongside it, is released to the ``to`` channels. The bundle itself is
promoted last, so it never points at charms that are not yet released.

Channels are not ordered here: promoting ``stable`` to ``edge`` is allowed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from jb.core.bundle import Bundle, BundleError
from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.result import Err, Ok, Result, collect
from jb.output.console import ConsoleProtocol
from jb.services.errors import AppFailure, WorkflowError
from jb.services.executor import ExecutionPolicy, run_all
from jb.services.resolve import PublishTarget, bundle_url, source_url
from jb.store.base import StoreClient, StoreError

__all__ = ["PromoteReport", "PromoteService", "promote_charm"]


@dataclass(frozen=True, slots=True)
class PromoteReport:
    """Revisions that were released to the new channels."""

    charms: dict[str, CharmUrl]
    bundle: CharmUrl


def promote_charm(
    client: StoreClient,
    url: CharmUrl,
    from_channel: Channel,
    to_channels: Sequence[Channel],
) -> Result[CharmUrl, StoreError]:
    """Release whatever ``from_channel`` serves to ``to_channels``."""
    current = client.channel_release(url, from_channel)
    if isinstance(current, Err):
        return current
    pinned = url.with_revision(current.value.revision)
    released = client.release(pinned, to_channels, current.value.resources)
    if isinstance(released, Err):
        return released
    return Ok(pinned)


class PromoteService:
    def __init__(
        self,
        *,
        clients: Mapping[Store, StoreClient],
        policy: ExecutionPolicy,
        console: ConsoleProtocol,
    ) -> None:
        self._clients = clients
        self._policy = policy
        self._console = console

    def promote(
        self,
        bundle: Bundle,
        bundle_path: Path,
        from_channel: Channel,
        to_channels: Sequence[Channel],
        target: PublishTarget,
    ) -> Result[PromoteReport, WorkflowError]:
        """Promote the bundle's own charms, then the bundle."""
        if not bundle.name:
            return Err(BundleError("Bundle has no name; cannot promote it", path=bundle_path))
        to_text = ", ".join(map(str, to_channels))
        owned = bundle.sources(bundle_path)
        self._console.header(f"Promoting {len(owned)} charms from {from_channel} to {to_text}")

        def unit(name: str, source: Path) -> Result[CharmUrl, AppFailure]:
            url = source_url(name, bundle.applications[name], source, target)
            if isinstance(url, Err):
                return Err(AppFailure(app=name, error=url.error))
            client = self._clients[url.value.store]
            promoted = promote_charm(client, url.value, from_channel, to_channels)
            if isinstance(promoted, Err):
                return Err(AppFailure(app=name, error=promoted.error))
            self._console.print(f"[{name}] {promoted.value} -> {to_text}")
            return promoted

        outcomes = run_all(list(owned.items()), unit, self._policy)
        if isinstance(outcomes, Err):
            return outcomes
        revisions = collect(outcomes.value)
        if isinstance(revisions, Err):
            return revisions

        url = bundle_url(bundle.name, target)
        promoted = promote_charm(self._clients[url.store], url, from_channel, to_channels)
        if isinstance(promoted, Err):
            return promoted
        self._console.success(f"Promoted {promoted.value} to {to_text}")
        return Ok(PromoteReport(charms=revisions.value, bundle=promoted.value))
