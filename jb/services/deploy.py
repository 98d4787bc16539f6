"""Deploying, upgrading and removing a bundle in the current Juju model."""

from __future__ import annotations

import tempfile
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Protocol

from jb.core.bundle import Bundle
from jb.core.charm_url import CharmUrl, LocalCharm
from jb.core.result import Err, Ok, Result
from jb.output.console import ConsoleProtocol, Style
from jb.platform.process import run_silent
from jb.services.errors import DeployFailed, WorkflowError

__all__ = ["DeployService", "Deployer", "JujuDeployer", "absolute_charms", "upgrade_args"]


class Deployer(Protocol):
    def wait_for_stability(self, timeout: int) -> Result[None, DeployFailed]: ...

    def deploy(
        self, bundle_path: Path, extra_args: Sequence[str]
    ) -> Result[None, DeployFailed]: ...

    def remove_application(self, name: str) -> Result[None, DeployFailed]: ...

    def upgrade_charm(self, name: str, args: Sequence[str]) -> Result[None, DeployFailed]: ...


class JujuDeployer:
    """Drives the ``juju`` CLI. Output streams straight to the terminal."""

    def __init__(self, *, cwd: Path, console: ConsoleProtocol) -> None:
        self._cwd = cwd
        self._console = console

    def _juju(self, step: str, args: list[str]) -> Result[None, DeployFailed]:
        cmd = ["juju", *args]
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_silent(cmd, cwd=self._cwd)
        if isinstance(result, Err):
            return Err(DeployFailed(step=step, returncode=result.error.returncode))
        return Ok(None)

    def wait_for_stability(self, timeout: int) -> Result[None, DeployFailed]:
        return self._juju("wait", ["wait", "-wv", "-t", str(timeout)])

    def deploy(self, bundle_path: Path, extra_args: Sequence[str]) -> Result[None, DeployFailed]:
        return self._juju("deploy", ["deploy", str(bundle_path), *extra_args])

    def remove_application(self, name: str) -> Result[None, DeployFailed]:
        return self._juju("remove-application", ["remove-application", name])

    def upgrade_charm(self, name: str, args: Sequence[str]) -> Result[None, DeployFailed]:
        return self._juju("upgrade-charm", ["upgrade-charm", name, *args])


def absolute_charms(bundle: Bundle, bundle_path: Path) -> Bundle:
    """Copy of ``bundle`` whose local charm paths no longer depend on its location.

    The bundle handed to ``juju deploy`` is written to a scratch file, so
    paths relative to the original bundle file would stop resolving.
    """
    base = bundle_path.parent
    moved = bundle.clone()
    for name, app in moved.applications.items():
        if isinstance(app.charm, LocalCharm) and not app.charm.path.is_absolute():
            path = (base / app.charm.path.expanduser()).resolve()
            moved.applications[name] = replace(app, charm=LocalCharm(path))
    return moved


def upgrade_args(bundle: Bundle, name: str) -> list[str] | None:
    """``juju upgrade-charm`` arguments for one application, or None to skip it."""
    app = bundle.applications[name]
    match app.charm:
        case LocalCharm(path=path):
            return ["--path", str(path)]
        case CharmUrl(revision=int() as revision):
            return ["--revision", str(revision)]
        case CharmUrl():
            return ["--channel", str(app.channel)] if app.channel is not None else []
        case _:
            return None


class DeployService:
    def __init__(self, *, deployer: Deployer, console: ConsoleProtocol) -> None:
        self._deployer = deployer
        self._console = console

    def deploy(
        self,
        bundle: Bundle,
        bundle_path: Path,
        *,
        recreate: bool = False,
        wait: int = 0,
        extra_args: Sequence[str] = (),
    ) -> Result[None, WorkflowError]:
        """Deploy ``bundle``, optionally removing its applications first.

        Args:
            bundle: Bundle to deploy (already narrowed and/or built).
            bundle_path: Where the bundle was loaded from; relative local
                charm paths are taken relative to it.
            recreate: Remove every application of the bundle before deploying.
            wait: Seconds to wait for the model to settle before deploying
                (0 skips the wait).
            extra_args: Passed through to ``juju deploy``.
        """
        deployable = absolute_charms(bundle, bundle_path)

        with tempfile.TemporaryDirectory(prefix="juju-bundle-") as tmp:
            saved = deployable.save(Path(tmp) / "bundle.yaml")
            if isinstance(saved, Err):
                return saved

            if recreate:
                self._console.header("Removing bundle before deploy")
                self.remove(bundle)

            if wait > 0:
                self._console.header("Waiting for stability before deploying")
                waited = self._deployer.wait_for_stability(wait)
                if isinstance(waited, Err):
                    return waited

            self._console.header("Deploying bundle")
            return self._deployer.deploy(saved.value, extra_args)

    def upgrade_charms(self, bundle: Bundle, bundle_path: Path) -> Result[None, DeployFailed]:
        """Upgrade each application in place instead of redeploying."""
        deployable = absolute_charms(bundle, bundle_path)
        for name in deployable.applications:
            args = upgrade_args(deployable, name)
            if args is None:
                self._console.warning(f"[{name}] no charm to upgrade to, skipping")
                continue
            upgraded = self._deployer.upgrade_charm(name, args)
            if isinstance(upgraded, Err):
                return upgraded
        return Ok(None)

    def remove(self, bundle: Bundle) -> list[str]:
        """Remove every application of ``bundle``.

        Failures are reported and skipped; an application that is already
        gone is not an error. Returns the applications that failed.
        """
        failed: list[str] = []
        for name in bundle.applications:
            removed = self._deployer.remove_application(name)
            if isinstance(removed, Err):
                self._console.warning(
                    f"[{name}] juju remove-application exited with {removed.error.returncode}"
                )
                failed.append(name)
        return failed
