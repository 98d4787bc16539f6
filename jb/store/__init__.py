"""Charm store clients."""

from __future__ import annotations

from pathlib import Path

from jb.core.charm_url import Store
from jb.core.config import StoreConfig

from .base import ChannelRelease, StoreClient, StoreError
from .charmhub import CharmhubClient
from .charmstore import CharmstoreClient
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "ChannelRelease",
    "CharmhubClient",
    "CharmstoreClient",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "StoreClient",
    "StoreError",
    "store_clients",
]


def store_clients(config: StoreConfig, http: HttpClient, cwd: Path) -> dict[Store, StoreClient]:
    """One client per supported store, keyed by store."""
    return {
        Store.CHARMHUB: CharmhubClient(http, cwd, api_url=config.charmhub_api),
        Store.CHARMSTORE: CharmstoreClient(http, cwd, api_url=config.charmstore_api),
    }
