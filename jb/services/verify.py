"""Static checks on a bundle that need no store or model access.

Loading the bundle already checks its structure and relations; on top of
that every application must have something to deploy, and every charm
source must be loadable.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jb.core.bundle import Bundle
from jb.core.charm_source import CharmSource, SourceInvalid
from jb.core.result import Err
from jb.output.console import ConsoleProtocol
from jb.services.errors import MissingCharmReference

__all__ = ["VerifyIssue", "verify"]


@dataclass(frozen=True, slots=True)
class VerifyIssue:
    app: str
    error: MissingCharmReference | SourceInvalid


def verify(bundle: Bundle, bundle_path: Path, console: ConsoleProtocol) -> list[VerifyIssue]:
    """Check every application and return all problems found.

    Unlike the workflows, verification does not stop at the first problem.
    """
    issues: list[VerifyIssue] = []
    for name, app in bundle.applications.items():
        source = app.source_path(name, bundle_path)
        if source is None:
            if app.charm is None:
                issues.append(VerifyIssue(name, MissingCharmReference(app=name)))
            continue

        loaded = CharmSource.load(source)
        if isinstance(loaded, Err):
            issues.append(VerifyIssue(name, loaded.error))
            continue
        charm = loaded.value
        console.print(f"[{name}] {charm.kind} charm {charm.name} at {charm.path}")

        missing = sorted(set(app.resources) - set(charm.resources))
        for resource in missing:
            console.warning(f"[{name}] resource {resource} is not declared by the charm")
    return issues
