"""Deploy and remove commands."""

from __future__ import annotations

from pathlib import Path

import typer

from jb.cli.commands._helpers import exit_on_error, load_bundle, parse_key_val
from jb.cli.context import CLIContext, build_context
from jb.core.bundle import Bundle
from jb.core.selection import dropped_relations, limit
from jb.output.console import Style
from jb.services.build import BuildService
from jb.services.builder import CharmBuilder
from jb.services.deploy import DeployService, JujuDeployer
from jb.services.executor import policy_from_flags


def select_apps(
    ctx: CLIContext,
    bundle: Bundle,
    apps: list[str],
    exceptions: list[str],
    *,
    verbose: bool = False,
) -> Bundle:
    """Narrow ``bundle`` to the chosen apps, exiting on unknown names."""
    narrowed = exit_on_error(limit(bundle, apps, exceptions), ctx)
    if verbose:
        for a, b in dropped_relations(bundle, narrowed):
            ctx.console.print(f"dropping relation {a} <-> {b}", Style.DIM)
    return narrowed


def deploy(
    recreate: bool = typer.Option(
        False, "--recreate", help="Remove the bundle's apps before deploying"
    ),
    upgrade_charms: bool = typer.Option(
        False, "--upgrade-charms", help="Run upgrade-charm on each app instead of redeploying"
    ),
    build: bool = typer.Option(False, "--build", help="Build every app with a source first"),
    build_apps: list[str] = typer.Option(
        [], "--build-app", help="Build only these apps first (name or name=source-path)"
    ),
    serial: bool = typer.Option(False, "--serial", help="Build only one charm at a time"),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Parallel build workers"),
    destructive_mode: bool = typer.Option(
        False, "--destructive-mode", help="Build charmcraft charms with --destructive-mode"
    ),
    wait: int | None = typer.Option(
        None, "--wait", min=0, help="Seconds to wait for the model to settle first (0 skips)"
    ),
    apps: list[str] = typer.Option([], "-a", "--app", help="Only deploy these apps"),
    exceptions: list[str] = typer.Option([], "-e", "--except", help="Skip these apps"),
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to deploy"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show dropped relations"),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
    deploy_args: list[str] | None = typer.Argument(
        None, help="Passed on to juju deploy (after --)"
    ),
) -> None:
    """Deploy a bundle, optionally building and/or recreating it.

    If a subset of apps is chosen, relations are only kept when both apps are.
    """
    ctx = build_context(bundle, config)
    ctx.console.print(f"Deploying bundle from {ctx.bundle_path}")
    loaded = select_apps(ctx, load_bundle(ctx), apps, exceptions, verbose=verbose)

    if build or build_apps:
        service = BuildService(
            builder=CharmBuilder(build_dir=ctx.bundle_path.parent / "build", console=ctx.console),
            policy=policy_from_flags(serial, workers or ctx.config.build.workers),
            console=ctx.console,
        )
        only = dict(parse_key_val(a) for a in build_apps) or None
        report = exit_on_error(
            service.build(
                loaded,
                ctx.bundle_path,
                only,
                destructive=destructive_mode or ctx.config.build.destructive_mode,
            ),
            ctx,
        )
        loaded = report.bundle

    deployer = DeployService(
        deployer=JujuDeployer(cwd=ctx.bundle_path.parent, console=ctx.console),
        console=ctx.console,
    )
    if upgrade_charms:
        exit_on_error(deployer.upgrade_charms(loaded, ctx.bundle_path), ctx)
        ctx.console.success("Charms upgraded")
        return

    exit_on_error(
        deployer.deploy(
            loaded,
            ctx.bundle_path,
            recreate=recreate,
            wait=wait if wait is not None else ctx.config.deploy.wait,
            extra_args=deploy_args or [],
        ),
        ctx,
    )
    ctx.console.success("Bundle deployed")


def remove(
    apps: list[str] = typer.Option([], "-a", "--app", help="Only remove these apps"),
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to remove"),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Remove a bundle's applications from the current model."""
    ctx = build_context(bundle, config)
    loaded = select_apps(ctx, load_bundle(ctx), apps, [])

    deployer = DeployService(
        deployer=JujuDeployer(cwd=ctx.bundle_path.parent, console=ctx.console),
        console=ctx.console,
    )
    failed = deployer.remove(loaded)
    if failed:
        ctx.console.warning(f"Could not remove: {', '.join(failed)}")
    else:
        ctx.console.success(f"Removed {len(loaded.applications)} applications")
