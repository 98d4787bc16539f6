"""Typed configuration loading and access.

Configuration is optional. When present it lives in a ``juju-bundle.toml``
next to the bundle file (or wherever ``--config`` / ``JUJU_BUNDLE_CONFIG``
points):

    [store]
    default = "charmhub"
    timeout = 30

    [channels]
    query = "stable"
    publish = ["edge"]

    [build]
    workers = 4
    destructive_mode = false

    [deploy]
    wait = 60
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .charm_url import Channel, Risk, Store
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_list, get_str, get_table

__all__ = [
    "BuildConfig",
    "ChannelsConfig",
    "Config",
    "ConfigError",
    "DeployConfig",
    "StoreConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "find_config",
    "load_config",
]

CONFIG_FILE_NAME = "juju-bundle.toml"
CONFIG_ENV_VAR = "JUJU_BUNDLE_CONFIG"

CHARMHUB_API = "https://api.charmhub.io"
CHARMSTORE_API = "https://api.jujucharms.com/charmstore/v5"
DEFAULT_WAIT_SECONDS = 60
DEFAULT_QUERY_CHANNEL = Channel(Risk.STABLE)
DEFAULT_PUBLISH_CHANNELS = (Channel(Risk.EDGE),)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class StoreConfig:
    default: Store = Store.CHARMHUB
    charmhub_api: str = CHARMHUB_API
    charmstore_api: str = CHARMSTORE_API
    timeout: float = 30.0


@dataclass(frozen=True, slots=True)
class ChannelsConfig:
    """Default channels.

    Attributes:
        query: Channel used to look up revisions for charms without a source.
        publish: Channels freshly uploaded charms are released to.
    """

    query: Channel = DEFAULT_QUERY_CHANNEL
    publish: tuple[Channel, ...] = DEFAULT_PUBLISH_CHANNELS


@dataclass(frozen=True, slots=True)
class BuildConfig:
    workers: int | None = None
    destructive_mode: bool = False


@dataclass(frozen=True, slots=True)
class DeployConfig:
    wait: int = DEFAULT_WAIT_SECONDS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    store: StoreConfig = field(default_factory=StoreConfig)
    channels: ChannelsConfig = field(default_factory=ChannelsConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    deploy: DeployConfig = field(default_factory=DeployConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[Config, ConfigError]:
        """Create Config from a mapping (parsed TOML)."""
        store: StrDict = get_table(data, "store") or {}
        channels: StrDict = get_table(data, "channels") or {}
        build: StrDict = get_table(data, "build") or {}
        deploy: StrDict = get_table(data, "deploy") or {}

        default_store = Store.CHARMHUB
        if (name := get_str(store, "default")) is not None:
            found = Store.from_name(name)
            if found is None:
                return Err(ConfigError(f"Unknown store in [store].default: {name}"))
            default_store = found

        query = DEFAULT_QUERY_CHANNEL
        if (raw := get_str(channels, "query")) is not None:
            parsed = Channel.parse(raw)
            if isinstance(parsed, Err):
                return Err(ConfigError(parsed.error.message))
            query = parsed.value

        publish = DEFAULT_PUBLISH_CHANNELS
        raw_publish = get_list(channels, "publish")
        if raw_publish is None and (single := get_str(channels, "publish")) is not None:
            raw_publish = [single]
        if raw_publish is not None:
            parsed_channels: list[Channel] = []
            for item in raw_publish:
                if not isinstance(item, str):
                    return Err(ConfigError("[channels].publish must be a list of strings"))
                parsed = Channel.parse(item)
                if isinstance(parsed, Err):
                    return Err(ConfigError(parsed.error.message))
                parsed_channels.append(parsed.value)
            publish = tuple(parsed_channels)

        workers = get_int(build, "workers")
        if workers is not None and workers < 1:
            return Err(ConfigError("[build].workers must be at least 1"))

        timeout = get_int(store, "timeout")
        wait = get_int(deploy, "wait")

        return Ok(
            cls(
                store=StoreConfig(
                    default=default_store,
                    charmhub_api=get_str(store, "charmhub_api") or CHARMHUB_API,
                    charmstore_api=get_str(store, "charmstore_api") or CHARMSTORE_API,
                    timeout=float(timeout) if timeout else 30.0,
                ),
                channels=ChannelsConfig(query=query, publish=publish),
                build=BuildConfig(
                    workers=workers,
                    destructive_mode=get_bool(build, "destructive_mode") or False,
                ),
                deploy=DeployConfig(
                    wait=wait if wait is not None else DEFAULT_WAIT_SECONDS,
                ),
            )
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure.
    """
    data = _parse_toml(path)
    if isinstance(data, Err):
        return data
    config = Config.from_dict(data.value)
    if isinstance(config, Err):
        return Err(ConfigError(config.error.message, path=path))
    return config


def find_config(bundle_path: Path, explicit: Path | None = None) -> Path | None:
    """Locate the config file for a bundle.

    Order: explicit ``--config`` path, ``$JUJU_BUNDLE_CONFIG``, then
    ``juju-bundle.toml`` beside the bundle. An explicit or env path is
    returned even if missing so that loading reports it.
    """
    if explicit is not None:
        return explicit
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    candidate = bundle_path.parent / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    return None
