"""Building charms from source, and pruning the build cache between builds."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from jb.core.charm_source import CharmSource
from jb.core.result import Err, Ok, Result
from jb.output.console import ConsoleProtocol, Style
from jb.platform.process import run_silent
from jb.services.errors import ArtifactMissing, BuilderError, BuildFailed, PruneFailed

__all__ = ["Builder", "CharmBuilder", "prune_cache"]

_BUILD_TIMEOUT_SECONDS = 60 * 60.0


class Builder(Protocol):
    def build(
        self, name: str, source: Path, *, destructive: bool = False
    ) -> Result[Path, BuilderError]: ...


class CharmBuilder:
    """Builds one charm source into an artifact.

    Safe to share between worker threads: every call works in its own
    source directory and the builder keeps no mutable state.
    """

    def __init__(self, *, build_dir: Path, console: ConsoleProtocol) -> None:
        self._build_dir = build_dir
        self._console = console

    def build(
        self, name: str, source: Path, *, destructive: bool = False
    ) -> Result[Path, BuilderError]:
        """Build ``source`` and return the path of the built charm.

        Args:
            name: Application name, used for progress output.
            source: Charm source directory.
            destructive: Build on the host instead of in an isolated
                container (``charmcraft pack --destructive-mode``).
        """
        loaded = CharmSource.load(source)
        if isinstance(loaded, Err):
            return loaded
        charm = loaded.value

        match charm.kind:
            case "charmcraft":
                return self._pack(name, charm, destructive)
            case "reactive":
                return self._reactive(name, charm)

    def _pack(self, name: str, charm: CharmSource, destructive: bool) -> Result[Path, BuilderError]:
        cmd = ["charmcraft", "pack"]
        if destructive:
            cmd.append("--destructive-mode")

        before = {p: p.stat().st_mtime for p in charm.path.glob("*.charm")}
        self._console.print(f"[{name}] {' '.join(cmd)}", Style.DIM)
        result = run_silent(cmd, cwd=charm.path, timeout=_BUILD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            code = result.error.returncode
            return Err(BuildFailed(source=charm.path, tool="charmcraft", returncode=code))

        built = [
            p for p in charm.path.glob("*.charm") if before.get(p) != p.stat().st_mtime
        ]
        if not built:
            return Err(ArtifactMissing(source=charm.path, pattern="*.charm"))
        return Ok(max(built, key=lambda p: p.stat().st_mtime).resolve())

    def _reactive(self, name: str, charm: CharmSource) -> Result[Path, BuilderError]:
        self._build_dir.mkdir(parents=True, exist_ok=True)
        cmd = ["charm", "build", "--build-dir", str(self._build_dir), str(charm.path)]
        self._console.print(f"[{name}] {' '.join(cmd)}", Style.DIM)
        result = run_silent(cmd, cwd=charm.path, timeout=_BUILD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            code = result.error.returncode
            return Err(BuildFailed(source=charm.path, tool="charm", returncode=code))

        artifact = self._build_dir / charm.name
        if not artifact.is_dir():
            return Err(ArtifactMissing(source=charm.path, pattern=str(artifact)))
        return Ok(artifact.resolve())


def prune_cache(cwd: Path, console: ConsoleProtocol) -> Result[None, PruneFailed]:
    """Reclaim disk used by container builds (``docker system prune -af``)."""
    cmd = ["docker", "system", "prune", "-af"]
    console.print(" ".join(cmd), Style.DIM)
    result = run_silent(cmd, cwd=cwd)
    if isinstance(result, Err):
        return Err(PruneFailed(returncode=result.error.returncode))
    return Ok(None)
