"""Export and verify commands."""

from __future__ import annotations

from pathlib import Path

import typer

from jb.cli.commands._helpers import load_bundle
from jb.cli.commands.deploy import select_apps
from jb.cli.context import build_context
from jb.core.errors import ErrorCode
from jb.core.graph import export as export_graph
from jb.core.graph import to_dot
from jb.output.console import Style
from jb.output.errors import error_exit_code, error_message
from jb.services.verify import verify as verify_bundle


def export(
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to export"),
    out: Path | None = typer.Option(None, "-o", "--out", help="Write DOT here instead of stdout"),
    url: str | None = typer.Option(
        None, "--url", help="Export a published bundle instead (e.g. ch:kubeflow)"
    ),
    channel: str | None = typer.Option(None, "--channel", help="Channel for --url"),
    apps: list[str] = typer.Option([], "-a", "--app", help="Only export these apps"),
    exceptions: list[str] = typer.Option([], "-e", "--except", help="Skip these apps"),
    no_labels: bool = typer.Option(False, "--no-labels", help="Omit relation names on edges"),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Export the bundle's relation graph as Graphviz DOT."""
    ctx = build_context(bundle, config)
    loaded = select_apps(ctx, load_bundle(ctx, url, channel), apps, exceptions)

    dot = to_dot(export_graph(loaded, edge_labels=not no_labels))
    if out is None:
        ctx.console.raw(dot)
        return
    try:
        out.write_text(dot, encoding="utf-8")
    except OSError as e:
        ctx.console.error(f"Error writing {out}: {e}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
    ctx.console.success(f"Graph written to {out}")


def verify(
    bundle: Path = typer.Option(Path("bundle.yaml"), "-b", "--bundle", help="Bundle to verify"),
    config: Path | None = typer.Option(None, "--config", help="juju-bundle.toml to use"),
) -> None:
    """Statically check the bundle and its charm sources."""
    ctx = build_context(bundle, config)
    ctx.console.print(f"Checking {ctx.bundle_path}")
    loaded = load_bundle(ctx)

    issues = verify_bundle(loaded, ctx.bundle_path, ctx.console)
    if not issues:
        ctx.console.success(f"{len(loaded.applications)} applications OK")
        return

    for issue in issues:
        ctx.console.error(f"Error for charm {issue.app}: {error_message(issue.error)}")
    ctx.console.print(f"{len(issues)} problem(s) found", Style.DIM)
    raise typer.Exit(code=max(error_exit_code(issue.error) for issue in issues))
