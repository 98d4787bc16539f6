"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import typer

from jb.core.bundle import Bundle
from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.errors import ErrorCode
from jb.core.result import Err, Result
from jb.output.errors import AnyError, error_exit_code, print_error

if TYPE_CHECKING:
    from jb.cli.context import CLIContext


def exit_on_error[T](result: Result[T, AnyError], ctx: CLIContext) -> T:
    """Return the value of ``result``, or report its error and exit.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                print_error(e, ctx.console)
                raise typer.Exit(code=error_exit_code(e))
            case Ok(value):
                ...

    The exit code is chosen from the error type.
    """
    if isinstance(result, Err):
        print_error(result.error, ctx.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def parse_key_val(value: str) -> tuple[str, str | None]:
    """``"name=path"`` -> ``("name", "path")``; ``"name"`` -> ``("name", None)``."""
    name, sep, rest = value.partition("=")
    name = name.strip()
    if not name:
        raise typer.BadParameter(f"invalid app selector: {value!r}")
    return name, (rest if sep else None)


def parse_channels(values: Sequence[str], ctx: CLIContext) -> tuple[Channel, ...]:
    channels: list[Channel] = []
    for value in values:
        channels.append(exit_on_error(Channel.parse(value), ctx))
    return tuple(channels)


def parse_store(value: str | None, ctx: CLIContext) -> Store:
    """``--store`` value, falling back to the configured default store."""
    if value is None:
        return ctx.config.store.default
    store = Store.from_name(value)
    if store is None:
        ctx.console.error(f"Unknown store: {value} (expected charmhub or charmstore)")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    return store


def load_bundle(ctx: CLIContext, url: str | None = None, channel: str | None = None) -> Bundle:
    """Load the bundle from ``ctx.bundle_path``, or from a store when ``url`` is set."""
    if url is None:
        return exit_on_error(Bundle.load(ctx.bundle_path), ctx)

    parsed = exit_on_error(CharmUrl.parse(url), ctx).in_store(ctx.config.store.default)
    fetch_channel = parse_channels([channel], ctx)[0] if channel else None
    if parsed.revision is None and fetch_channel is None:
        fetch_channel = ctx.config.channels.query
    return exit_on_error(Bundle.fetch(parsed, fetch_channel, ctx.clients[parsed.store]), ctx)
