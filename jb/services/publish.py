"""Publishing a bundle and the charms built from its sources.

1. Every application is resolved (see ``jb.services.resolve``): charms with
   a source are built, uploaded and released to the target channels;
   the others are pinned to the revision their channel currently serves.
2. For each target channel a pinned copy of the bundle is written to a
   scratch directory together with ``README.md`` (required by the store)
   and ``charmcraft.yaml`` (if the bundle has one), then uploaded and
   released to that channel.

The caller's bundle is never modified, and nothing is uploaded for the
bundle itself unless every application resolved.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from jb.core.bundle import Application, Bundle, BundleError
from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.result import Err, Ok, Result, collect
from jb.output.console import ConsoleProtocol
from jb.services.builder import Builder, prune_cache
from jb.services.errors import AppFailure, WorkflowError
from jb.services.executor import ExecutionPolicy, check_policy, run_all
from jb.services.resolve import (
    PublishTarget,
    Resolved,
    bundle_url,
    check_references,
    resolve,
    target_url,
)
from jb.store.base import StoreClient, StoreError

__all__ = ["PublishReport", "PublishService", "pin_bundle"]


@dataclass(frozen=True, slots=True)
class PublishReport:
    """Pinned bundles that were uploaded, keyed by channel."""

    bundles: dict[str, Bundle]
    revisions: dict[str, CharmUrl]


def pin_bundle(bundle: Bundle, resolved: Mapping[str, Resolved], channel: Channel) -> Bundle:
    """Copy of ``bundle`` with every application replaced by its resolved form.

    Charms built for this publish also get ``channel`` recorded, matching
    the channel the bundle itself is released to.
    """
    pinned = bundle.clone()
    for name, result in resolved.items():
        app = result.app
        if result.built:
            app = replace(app, channel=channel)
        pinned.applications[name] = replace(app, source=None)
    return pinned


class PublishService:
    def __init__(
        self,
        *,
        builder: Builder,
        clients: Mapping[Store, StoreClient],
        policy: ExecutionPolicy,
        console: ConsoleProtocol,
    ) -> None:
        self._builder = builder
        self._clients = clients
        self._policy = policy
        self._console = console

    def publish(
        self,
        bundle: Bundle,
        bundle_path: Path,
        target: PublishTarget,
        *,
        prune: bool = False,
    ) -> Result[PublishReport, WorkflowError]:
        checked_policy = check_policy(self._policy, prune=prune)
        if isinstance(checked_policy, Err):
            return checked_policy
        checked_refs = check_references(bundle, bundle_path)
        if isinstance(checked_refs, Err):
            return checked_refs
        if not bundle.name:
            return Err(BundleError("Bundle has no name; cannot publish it", path=bundle_path))

        for store in self._stores_in_use(bundle, bundle_path, target):
            self._console.print(f"Ensuring valid {store} credentials.")
            whoami = self._clients[store].whoami()
            if isinstance(whoami, Err):
                return whoami

        resolved = self.resolve_all(bundle, bundle_path, target, prune=prune)
        if isinstance(resolved, Err):
            return resolved

        url = bundle_url(bundle.name, target)
        bundles: dict[str, Bundle] = {}
        for channel in target.channels:
            pinned = pin_bundle(bundle, resolved.value, channel)
            uploaded = self._upload_bundle(pinned, bundle_path, url, channel)
            if isinstance(uploaded, Err):
                return uploaded
            self._console.success(f"Published {uploaded.value} to {channel}")
            bundles[str(channel)] = pinned

        revisions = {
            name: r.app.charm
            for name, r in resolved.value.items()
            if r.built and isinstance(r.app.charm, CharmUrl)
        }
        return Ok(PublishReport(bundles=bundles, revisions=revisions))

    def resolve_all(
        self,
        bundle: Bundle,
        bundle_path: Path,
        target: PublishTarget,
        *,
        prune: bool = False,
    ) -> Result[dict[str, Resolved], WorkflowError]:
        """Resolve every application under the configured policy."""
        self._console.header(f"Resolving {len(bundle.applications)} charms ({self._policy})")

        def unit(name: str, app: Application) -> Result[Resolved, AppFailure]:
            return resolve(
                name,
                app,
                bundle_path,
                builder=self._builder,
                clients=self._clients,
                target=target,
                console=self._console,
            )

        def after_each() -> Result[None, AppFailure]:
            return prune_cache(bundle_path.parent, self._console).map_err(
                lambda e: AppFailure(app="docker", error=e)
            )

        outcomes = run_all(
            list(bundle.applications.items()),
            unit,
            self._policy,
            after_each=after_each if prune else None,
        )
        if isinstance(outcomes, Err):
            return outcomes
        return collect(outcomes.value)

    def _stores_in_use(
        self, bundle: Bundle, bundle_path: Path, target: PublishTarget
    ) -> list[Store]:
        stores = {target.default_store}
        for name, app in bundle.applications.items():
            if app.source_path(name, bundle_path) is not None:
                stores.add(target_url(name, app, target).store)
        return sorted(stores, key=lambda s: s.value)

    def _upload_bundle(
        self,
        pinned: Bundle,
        bundle_path: Path,
        url: CharmUrl,
        channel: Channel,
    ) -> Result[CharmUrl, BundleError | StoreError]:
        with tempfile.TemporaryDirectory(prefix="juju-bundle-") as tmp:
            directory = Path(tmp)
            saved = pinned.save(directory / "bundle.yaml")
            if isinstance(saved, Err):
                return saved

            readme = bundle_path.with_name("README.md")
            try:
                shutil.copy(readme, directory / "README.md")
            except OSError as e:
                return Err(BundleError(f"The store requires a README.md: {e}", path=readme))

            charmcraft = bundle_path.with_name("charmcraft.yaml")
            if charmcraft.is_file():
                shutil.copy(charmcraft, directory / "charmcraft.yaml")

            return self._clients[url.store].upload_bundle(directory, url, channel)
