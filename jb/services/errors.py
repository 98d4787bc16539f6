from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jb.core.bundle import BundleError
from jb.core.charm_source import SourceInvalid
from jb.core.selection import InvalidSelection
from jb.store.base import StoreError


@dataclass(frozen=True, slots=True)
class BuildFailed:
    source: Path
    tool: str
    returncode: int


@dataclass(frozen=True, slots=True)
class ArtifactMissing:
    source: Path
    pattern: str


@dataclass(frozen=True, slots=True)
class MissingCharmReference:
    """Application has neither a build source nor a charm to deploy."""

    app: str


@dataclass(frozen=True, slots=True)
class ConfigurationConflict:
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class PruneFailed:
    returncode: int


@dataclass(frozen=True, slots=True)
class DeployFailed:
    step: str
    returncode: int


BuilderError = BuildFailed | ArtifactMissing | SourceInvalid

UnitError = BuilderError | StoreError | PruneFailed | MissingCharmReference


@dataclass(frozen=True, slots=True)
class AppFailure:
    """A per-application unit of work failed; ``error`` is what the tool reported."""

    app: str
    error: UnitError


WorkflowError = (
    BundleError
    | InvalidSelection
    | ConfigurationConflict
    | MissingCharmReference
    | StoreError
    | AppFailure
    | DeployFailed
)
