"""Publish and promote commands."""

from __future__ import annotations

from pathlib import Path

import typer

from jb.cli.commands._helpers import exit_on_error, load_bundle, parse_channels, parse_store
from jb.cli.context import CLIContext, build_context
from jb.output.console import Style
from jb.services.builder import CharmBuilder
from jb.services.executor import policy_from_flags
from jb.services.promote import PromoteService
from jb.services.publish import PublishService
from jb.services.resolve import PublishTarget


def _target(
    ctx: CLIContext,
    release: list[str],
    store: str | None,
    namespace: str | None,
    destructive: bool,
) -> PublishTarget:
    channels = parse_channels(release, ctx) if release else ctx.config.channels.publish
    return PublishTarget(
        channels=channels,
        query_channel=ctx.config.channels.query,
        default_store=parse_store(store, ctx),
        namespace=namespace,
        destructive=destructive or ctx.config.build.destructive_mode,
    )


def publish(
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to publish"),
    release: list[str] = typer.Option(
        [], "--release", help="Channel to release to (repeatable; default: edge)"
    ),
    serial: bool = typer.Option(
        False, "--serial", help="Build and publish only one charm at a time"
    ),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Parallel workers"),
    prune: bool = typer.Option(
        False, "--prune", help="Prune docker between charms. Requires --serial."
    ),
    destructive_mode: bool = typer.Option(
        False, "--destructive-mode", help="Build charmcraft charms with --destructive-mode"
    ),
    store: str | None = typer.Option(
        None, "--store", help="Store for charms that name none (charmhub, charmstore)"
    ),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace for Charm Store uploads"
    ),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Publish a bundle and its charms to the store.

    Charms with a source are built, uploaded and released; the others are
    pinned to the revision their channel currently serves.
    """
    ctx = build_context(bundle, config)
    target = _target(ctx, release, store, namespace, destructive_mode)
    loaded = load_bundle(ctx)

    service = PublishService(
        builder=CharmBuilder(build_dir=ctx.bundle_path.parent / "build", console=ctx.console),
        clients=ctx.clients,
        policy=policy_from_flags(serial, workers or ctx.config.build.workers),
        console=ctx.console,
    )
    report = exit_on_error(service.publish(loaded, ctx.bundle_path, target, prune=prune), ctx)

    for name, url in report.revisions.items():
        ctx.console.print(f"{name}: {url}", Style.DIM)
    ctx.console.success(f"Published to {', '.join(report.bundles)}")


def promote(
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to promote"),
    from_channel: str = typer.Option("edge", "--from", help="Channel to promote from"),
    to: list[str] = typer.Option(..., "--to", help="Channel to promote to (repeatable)"),
    serial: bool = typer.Option(False, "--serial", help="Promote one charm at a time"),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Parallel workers"),
    store: str | None = typer.Option(
        None, "--store", help="Store for charms that name none (charmhub, charmstore)"
    ),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace for Charm Store entities"
    ),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Release what a channel serves to other channels, charms first."""
    ctx = build_context(bundle, config)
    target = _target(ctx, to, store, namespace, False)
    source = parse_channels([from_channel], ctx)[0]
    loaded = load_bundle(ctx)

    service = PromoteService(
        clients=ctx.clients,
        policy=policy_from_flags(serial, workers or ctx.config.build.workers),
        console=ctx.console,
    )
    report = exit_on_error(
        service.promote(loaded, ctx.bundle_path, source, target.channels, target), ctx
    )
    for name, url in report.charms.items():
        ctx.console.print(f"{name}: {url}", Style.DIM)
