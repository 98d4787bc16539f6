"""Building every (or a chosen subset of) charm(s) in a bundle.

The result is a copy of the bundle in which each built application points
at its local artifact, ready for ``juju deploy``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from jb.core.bundle import Bundle
from jb.core.charm_source import SourceInvalid
from jb.core.charm_url import LocalCharm
from jb.core.result import Err, Ok, Result, collect
from jb.core.selection import ensure_subset
from jb.output.console import ConsoleProtocol
from jb.services.builder import Builder
from jb.services.errors import AppFailure, WorkflowError
from jb.services.executor import ExecutionPolicy, run_all

__all__ = ["BuildReport", "BuildSelection", "BuildService", "build_targets"]

# App name -> source override (None keeps the bundle's own source)
type BuildSelection = Mapping[str, str | None]


def build_targets(
    bundle: Bundle,
    bundle_path: Path,
    only: BuildSelection | None = None,
) -> Result[dict[str, Path], WorkflowError]:
    """Work out which applications to build and from where.

    With no selection every application that has a source is built. A
    selection names applications explicitly; ``name=path`` points one at a
    different source directory (relative to the current directory).
    """
    if not only:
        return Ok(bundle.sources(bundle_path))

    checked = ensure_subset(only, bundle)
    if isinstance(checked, Err):
        return checked

    targets: dict[str, Path] = {}
    for name, override in only.items():
        if override is not None:
            targets[name] = Path(override).resolve()
            continue
        source = bundle.applications[name].source_path(name, bundle_path)
        if source is None:
            missing = SourceInvalid(bundle_path.parent / "charms" / name, "no source to build")
            return Err(AppFailure(app=name, error=missing))
        targets[name] = source
    return Ok(targets)


@dataclass(frozen=True, slots=True)
class BuildReport:
    bundle: Bundle
    artifacts: dict[str, Path]


class BuildService:
    def __init__(
        self,
        *,
        builder: Builder,
        policy: ExecutionPolicy,
        console: ConsoleProtocol,
    ) -> None:
        self._builder = builder
        self._policy = policy
        self._console = console

    def build(
        self,
        bundle: Bundle,
        bundle_path: Path,
        only: BuildSelection | None = None,
        *,
        destructive: bool = False,
    ) -> Result[BuildReport, WorkflowError]:
        """Build the selected charms and return a bundle pointing at them.

        ``bundle`` is not modified. If any build fails, no bundle is produced.
        """
        targets = build_targets(bundle, bundle_path, only)
        if isinstance(targets, Err):
            return targets
        if not targets.value:
            self._console.warning("Nothing to build: no application has a source")
            return Ok(BuildReport(bundle=bundle.clone(), artifacts={}))

        self._console.header(f"Building {len(targets.value)} charms ({self._policy})")

        def unit(name: str, source: Path) -> Result[Path, AppFailure]:
            self._console.print(f"[{name}] building from {source}")
            built = self._builder.build(name, source, destructive=destructive)
            if isinstance(built, Err):
                return Err(AppFailure(app=name, error=built.error))
            self._console.success(f"[{name}] {built.value}")
            return built

        outcomes = run_all(list(targets.value.items()), unit, self._policy)
        if isinstance(outcomes, Err):
            return outcomes
        artifacts = collect(outcomes.value)
        if isinstance(artifacts, Err):
            return artifacts

        updated = bundle.clone()
        for name, artifact in artifacts.value.items():
            updated.applications[name] = replace(
                updated.applications[name], charm=LocalCharm(artifact), source=None
            )
        return Ok(BuildReport(bundle=updated, artifacts=artifacts.value))
