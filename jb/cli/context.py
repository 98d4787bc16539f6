from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from jb.core.charm_url import Store
from jb.core.config import Config, find_config, load_config
from jb.core.errors import ErrorCode
from jb.core.result import Err
from jb.output.console import ConsoleProtocol, RichConsole
from jb.store import RealHttpClient, StoreClient, store_clients


@dataclass(frozen=True, slots=True)
class CLIContext:
    bundle_path: Path
    config: Config
    console: ConsoleProtocol
    clients: Mapping[Store, StoreClient]


def build_context(bundle_path: Path, config_path: Path | None = None) -> CLIContext:
    bundle_path = bundle_path.expanduser().resolve()
    console = RichConsole()

    config = Config()
    found = find_config(bundle_path, config_path)
    if found is not None:
        config_result = load_config(found)
        if isinstance(config_result, Err):
            console.error(f"{found}: {config_result.error.message}")
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        config = config_result.value

    http = RealHttpClient(timeout=config.store.timeout)
    return CLIContext(
        bundle_path=bundle_path,
        config=config,
        console=console,
        clients=store_clients(config.store, http, bundle_path.parent),
    )
