"""Store client interface shared by Charmhub and the legacy Charm Store.

Each client wraps the store's CLI (``charmcraft`` or ``charm``) for writes
and the store's HTTP API for reads. Nothing here retries: one attempt per
call, and failures come back as ``StoreError``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.result import Err, Ok, Result
from jb.platform.process import ProcessError

__all__ = [
    "ChannelRelease",
    "StoreClient",
    "StoreError",
    "StoreErrorKind",
    "parse_revision",
    "process_error",
]

StoreErrorKind = Literal["auth", "lookup", "upload", "release", "fetch"]


@dataclass(frozen=True, slots=True)
class StoreError:
    kind: StoreErrorKind
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ChannelRelease:
    """What a channel currently points at."""

    revision: int
    resources: dict[str, int] = field(default_factory=dict)


class StoreClient(Protocol):
    """Publisher/lookup operations against one store."""

    @property
    def store(self) -> Store: ...

    def whoami(self) -> Result[str, StoreError]:
        """Check that credentials are valid before any upload starts."""
        ...

    def channel_release(
        self, url: CharmUrl, channel: Channel
    ) -> Result[ChannelRelease, StoreError]:
        """Revision (and resource revisions) currently released to ``channel``."""
        ...

    def latest_revision(self, url: CharmUrl, channel: Channel) -> Result[int, StoreError]: ...

    def upload(self, artifact: Path, url: CharmUrl) -> Result[CharmUrl, StoreError]:
        """Upload a built charm; returns ``url`` pinned to the new revision."""
        ...

    def upload_resource(self, url: CharmUrl, name: str, descriptor: str) -> Result[int, StoreError]:
        """Upload a resource (file path or OCI image) and return its revision."""
        ...

    def release(
        self,
        url: CharmUrl,
        channels: Sequence[Channel],
        resources: Mapping[str, int],
    ) -> Result[None, StoreError]:
        """Release a pinned revision to each channel."""
        ...

    def fetch_bundle(self, url: CharmUrl, channel: Channel | None) -> Result[str, StoreError]:
        """Download a published bundle's ``bundle.yaml``."""
        ...

    def upload_bundle(
        self, directory: Path, url: CharmUrl, channel: Channel
    ) -> Result[CharmUrl, StoreError]:
        """Pack and upload the bundle in ``directory`` and release it to ``channel``."""
        ...


def process_error(kind: StoreErrorKind, error: ProcessError) -> StoreError:
    return StoreError(kind=kind, message=f"{error}: {error.detail}")


def parse_revision(
    output: str, pattern: re.Pattern[str], kind: StoreErrorKind
) -> Result[int, StoreError]:
    """Pull the revision number out of a store CLI's output."""
    m = pattern.search(output)
    if m is None:
        message = f"Could not find a revision in output: {output.strip()!r}"
        return Err(StoreError(kind=kind, message=message))
    return Ok(int(m.group(1)))
