"""Build command - build charms and write a bundle that points at them."""

from __future__ import annotations

from pathlib import Path

import typer

from jb.cli.commands._helpers import exit_on_error, load_bundle, parse_key_val
from jb.cli.context import build_context
from jb.services.build import BuildService
from jb.services.builder import CharmBuilder
from jb.services.executor import policy_from_flags


def build(
    apps: list[str] = typer.Option(
        [], "--app", help="Only build these apps (name or name=source-path)"
    ),
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to build"),
    output_bundle: Path = typer.Option(
        Path("built-bundle.yaml"),
        "-o",
        "--output-bundle",
        help="Where the built bundle.yaml is written",
    ),
    destructive_mode: bool = typer.Option(
        False, "--destructive-mode", help="Build charmcraft charms with --destructive-mode"
    ),
    serial: bool = typer.Option(False, "--serial", help="Build only one charm at a time"),
    workers: int | None = typer.Option(
        None, "--workers", min=1, help="Parallel build workers (default: CPU count)"
    ),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Build a bundle.

    Outputs a new bundle file pointing at the built charms.
    """
    ctx = build_context(bundle, config)
    ctx.console.print(f"Building bundle from {ctx.bundle_path}")
    loaded = load_bundle(ctx)

    only = dict(parse_key_val(a) for a in apps) or None
    service = BuildService(
        builder=CharmBuilder(build_dir=ctx.bundle_path.parent / "build", console=ctx.console),
        policy=policy_from_flags(serial, workers or ctx.config.build.workers),
        console=ctx.console,
    )
    report = exit_on_error(
        service.build(
            loaded,
            ctx.bundle_path,
            only,
            destructive=destructive_mode or ctx.config.build.destructive_mode,
        ),
        ctx,
    )

    saved = exit_on_error(report.bundle.save(output_bundle), ctx)
    ctx.console.success(f"Bundle saved to {saved}")
