"""Charm references and release channels.

A charm reference in a bundle is either a store URL or a path to a locally
built artifact:

    ch:postgresql-k8s-42        Charmhub, pinned to revision 42
    cs:~containers/flannel      Charm Store, namespace "containers", unresolved
    mysql                       no store named, unresolved
    ./build/foo_ubuntu-22.04-amd64.charm
                                local artifact produced by ``juju-bundle build``

A reference without a prefix names no store; the workflows fill in the
configured default store (``--store``) before talking to one.

Channels follow Juju's ``[track/]risk[/branch]`` form. Only the risk takes
part in ordering; promotion walks ``edge -> beta -> candidate -> stable``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "CharmRef",
    "CharmUrl",
    "CharmUrlError",
    "Channel",
    "ChannelError",
    "LocalCharm",
    "Risk",
    "Store",
    "parse_charm_ref",
]


_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_NAMESPACE_RE = re.compile(r"^[a-z0-9][a-z0-9.+-]*$")
_REVISION_RE = re.compile(r"^(?P<name>.+?)-(?P<revision>\d+)$")


@dataclass(frozen=True, slots=True)
class CharmUrlError:
    """A charm reference string could not be parsed."""

    value: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid charm reference {self.value!r}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ChannelError:
    value: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid channel {self.value!r}: {self.reason}"


class Store(Enum):
    """Charm stores a reference can point at."""

    CHARMHUB = "ch"
    CHARMSTORE = "cs"

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, value: str) -> Store | None:
        """Accept both the URL prefix (``ch``) and the long name (``charmhub``)."""
        lowered = value.strip().lower()
        for store in cls:
            if lowered in (store.value, store.name.lower()):
                return store
        return None


class Risk(IntEnum):
    """Channel risk levels, least stable first."""

    EDGE = 0
    BETA = 1
    CANDIDATE = 2
    STABLE = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class Channel:
    """A release channel such as ``stable`` or ``1.28/edge/fix-123``."""

    risk: Risk
    track: str | None = None
    branch: str | None = None

    @classmethod
    def parse(cls, value: str) -> Result[Channel, ChannelError]:
        parts = value.strip().split("/")
        if not parts or any(not p for p in parts) or len(parts) > 3:
            return Err(ChannelError(value, "expected [track/]risk[/branch]"))

        risks = {str(r): r for r in Risk}
        match parts:
            case [risk] if risk in risks:
                return Ok(cls(risks[risk]))
            case [track, risk] if risk in risks:
                return Ok(cls(risks[risk], track=track))
            case [risk, branch] if risk in risks:
                return Ok(cls(risks[risk], branch=branch))
            case [track, risk, branch] if risk in risks:
                return Ok(cls(risks[risk], track=track, branch=branch))
            case _:
                return Err(ChannelError(value, f"risk must be one of {', '.join(risks)}"))

    def __str__(self) -> str:
        return "/".join(p for p in (self.track, str(self.risk), self.branch) if p)

    def __lt__(self, other: Channel) -> bool:
        return self.risk < other.risk

    def __le__(self, other: Channel) -> bool:
        return self.risk <= other.risk

    def __gt__(self, other: Channel) -> bool:
        return self.risk > other.risk

    def __ge__(self, other: Channel) -> bool:
        return self.risk >= other.risk


@dataclass(frozen=True, slots=True)
class CharmUrl:
    """A reference to a charm (or bundle) in a store."""

    name: str
    store: Store | None = None
    namespace: str | None = None
    revision: int | None = None

    @classmethod
    def parse(cls, value: str) -> Result[CharmUrl, CharmUrlError]:
        text = value.strip()
        if not text:
            return Err(CharmUrlError(value, "empty"))

        store: Store | None = None
        if ":" in text:
            prefix, text = text.split(":", 1)
            found = Store.from_name(prefix)
            if found is None:
                return Err(CharmUrlError(value, f"unknown store {prefix!r}"))
            store = found

        namespace: str | None = None
        if text.startswith("~"):
            namespace, sep, text = text[1:].partition("/")
            if not sep or not _NAMESPACE_RE.match(namespace):
                return Err(CharmUrlError(value, "namespace must look like ~owner/name"))

        if "/" in text:
            return Err(CharmUrlError(value, "unexpected '/' in charm name"))

        revision: int | None = None
        m = _REVISION_RE.match(text)
        if m is not None:
            text, revision = m.group("name"), int(m.group("revision"))

        if not _NAME_RE.match(text):
            return Err(CharmUrlError(value, f"invalid charm name {text!r}"))

        return Ok(cls(name=text, store=store, namespace=namespace, revision=revision))

    @property
    def is_resolved(self) -> bool:
        """True when pinned to an immutable revision."""
        return self.revision is not None

    def with_revision(self, revision: int | None) -> CharmUrl:
        return replace(self, revision=revision)

    def unpinned(self) -> CharmUrl:
        return replace(self, revision=None)

    def in_store(self, default: Store) -> CharmUrl:
        """The same reference, on ``default`` unless it already names a store."""
        if self.store is not None:
            return self
        return replace(self, store=default)

    @property
    def entity(self) -> str:
        """Name the store CLIs expect, e.g. ``~containers/flannel``."""
        if self.namespace:
            return f"~{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        suffix = f"-{self.revision}" if self.revision is not None else ""
        prefix = f"{self.store.value}:" if self.store is not None else ""
        return f"{prefix}{self.entity}{suffix}"


@dataclass(frozen=True, slots=True)
class LocalCharm:
    """A charm artifact on the local filesystem."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)


type CharmRef = CharmUrl | LocalCharm


def _looks_like_path(value: str) -> bool:
    return value.startswith(("./", "../", "/", "~/")) or value.endswith(".charm")


def parse_charm_ref(value: str) -> Result[CharmRef, CharmUrlError]:
    """Parse a ``charm:`` value from a bundle into a store URL or local path."""
    if _looks_like_path(value.strip()):
        return Ok(LocalCharm(Path(value.strip())))
    return CharmUrl.parse(value)
