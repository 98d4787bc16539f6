"""Deciding which immutable revision each application of a bundle pins.

Per application:

    source?  revision pinned?  action
    -------  ----------------  ---------------------------------------------
    no       yes               keep the reference as it is
    no       no                ask the store for the revision on the app's
                               channel (``stable`` unless declared) and pin it
    yes      (ignored)         build, upload, release to the target channels
                               and pin the revision the upload returned

An application with neither a source nor a charm reference cannot be
resolved at all; ``check_references`` reports that before any work starts.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from jb.core.bundle import Application, Bundle
from jb.core.charm_source import CharmSource, SourceInvalid
from jb.core.charm_url import Channel, CharmUrl, LocalCharm, Store
from jb.core.result import Err, Ok, Result
from jb.output.console import ConsoleProtocol
from jb.services.builder import Builder
from jb.services.errors import AppFailure, MissingCharmReference, UnitError
from jb.store.base import StoreClient, StoreError

__all__ = [
    "PublishTarget",
    "Resolved",
    "bundle_url",
    "check_references",
    "pin_existing",
    "publish_from_source",
    "resolve",
    "source_url",
    "target_url",
]


@dataclass(frozen=True, slots=True)
class PublishTarget:
    """Where freshly built charms go and how unpinned ones are looked up.

    Attributes:
        channels: Channels uploaded revisions are released to.
        query_channel: Channel used for apps that declare none.
        default_store: Store for apps whose reference names none.
        namespace: Namespace override for Charm Store uploads.
        destructive: Build on the host instead of in a container.
    """

    channels: tuple[Channel, ...]
    query_channel: Channel
    default_store: Store = Store.CHARMHUB
    namespace: str | None = None
    destructive: bool = False


@dataclass(frozen=True, slots=True)
class Resolved:
    app: Application
    built: bool


def check_references(bundle: Bundle, bundle_path: Path) -> Result[None, MissingCharmReference]:
    """Every application needs a source or a charm reference."""
    for name, app in bundle.applications.items():
        if app.charm is None and app.source_path(name, bundle_path) is None:
            return Err(MissingCharmReference(app=name))
    return Ok(None)


def target_url(name: str, app: Application, target: PublishTarget) -> CharmUrl:
    """Store URL an application built from source is uploaded to."""
    url = (app.charm_url or CharmUrl(name=name)).in_store(target.default_store)
    if target.namespace is not None and url.store is Store.CHARMSTORE:
        url = replace(url, namespace=target.namespace)
    return url.unpinned()


def bundle_url(name: str, target: PublishTarget) -> CharmUrl:
    """Store URL the bundle itself is published under."""
    namespace = target.namespace if target.default_store is Store.CHARMSTORE else None
    return CharmUrl(name=name, store=target.default_store, namespace=namespace)


def source_url(
    name: str, app: Application, source: Path, target: PublishTarget
) -> Result[CharmUrl, SourceInvalid]:
    """Like ``target_url``, but names an unreferenced charm after its metadata."""
    if app.charm_url is None:
        loaded = CharmSource.load(source)
        if isinstance(loaded, Err):
            return loaded
        app = replace(app, charm=CharmUrl(name=loaded.value.name))
    return Ok(target_url(name, app, target))


def pin_existing(
    name: str,
    app: Application,
    clients: Mapping[Store, StoreClient],
    target: PublishTarget,
) -> Result[Application, StoreError | MissingCharmReference]:
    """Resolve an application that is not built from source.

    The looked-up revision is written back on the store it was found in, so
    the pinned reference carries a prefix even when the bundle gave none.
    """
    match app.charm:
        case None:
            return Err(MissingCharmReference(app=name))
        case LocalCharm():
            return Ok(app)
        case CharmUrl(revision=int()):
            return Ok(app)
        case CharmUrl() as declared:
            url = declared.in_store(target.default_store)
            channel = app.channel or target.query_channel
            revision = clients[url.store].latest_revision(url, channel)
            if isinstance(revision, Err):
                return revision
            return Ok(replace(app, charm=url.with_revision(revision.value)))


def _resource_revisions(
    client: StoreClient, url: CharmUrl, resources: Mapping[str, object]
) -> Result[dict[str, int], StoreError]:
    revisions: dict[str, int] = {}
    for name, descriptor in resources.items():
        if isinstance(descriptor, int) and not isinstance(descriptor, bool):
            revisions[name] = descriptor
            continue
        uploaded = client.upload_resource(url, name, str(descriptor))
        if isinstance(uploaded, Err):
            return uploaded
        revisions[name] = uploaded.value
    return Ok(revisions)


def publish_from_source(
    name: str,
    app: Application,
    source: Path,
    *,
    builder: Builder,
    clients: Mapping[Store, StoreClient],
    target: PublishTarget,
    console: ConsoleProtocol,
) -> Result[Application, UnitError]:
    """Build, upload and release one charm; return the app pinned to it."""
    built = builder.build(name, source, destructive=target.destructive)
    if isinstance(built, Err):
        return built

    found = source_url(name, app, source, target)
    if isinstance(found, Err):
        return found
    url = found.value
    client = clients[url.store]

    uploaded = client.upload(built.value, url)
    if isinstance(uploaded, Err):
        return uploaded
    pinned = uploaded.value
    console.print(f"[{name}] uploaded {pinned}")

    resources = _resource_revisions(client, pinned, app.resources)
    if isinstance(resources, Err):
        return resources

    released = client.release(pinned, target.channels, resources.value)
    if isinstance(released, Err):
        return released
    console.print(f"[{name}] released to {', '.join(map(str, target.channels))}")

    return Ok(replace(app, charm=pinned, resources=dict(resources.value)))


def resolve(
    name: str,
    app: Application,
    bundle_path: Path,
    *,
    builder: Builder,
    clients: Mapping[Store, StoreClient],
    target: PublishTarget,
    console: ConsoleProtocol,
) -> Result[Resolved, AppFailure]:
    """Apply the decision table to one application."""
    source = app.source_path(name, bundle_path)
    if source is None:
        pinned = pin_existing(name, app, clients, target)
        if isinstance(pinned, Err):
            return Err(AppFailure(app=name, error=pinned.error))
        return Ok(Resolved(app=pinned.value, built=False))

    published = publish_from_source(
        name,
        app,
        source,
        builder=builder,
        clients=clients,
        target=target,
        console=console,
    )
    if isinstance(published, Err):
        return Err(AppFailure(app=name, error=published.error))
    return Ok(Resolved(app=published.value, built=True))
