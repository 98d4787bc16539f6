"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from jb.core.bundle import BundleError
from jb.core.charm_source import SourceInvalid
from jb.core.charm_url import ChannelError, CharmUrlError
from jb.core.config import ConfigError
from jb.core.errors import ErrorCode
from jb.core.selection import InvalidSelection
from jb.output.console import Style
from jb.services.errors import (
    AppFailure,
    ArtifactMissing,
    BuildFailed,
    ConfigurationConflict,
    DeployFailed,
    MissingCharmReference,
    PruneFailed,
)
from jb.store.base import StoreError

if TYPE_CHECKING:
    from jb.output.console import ConsoleProtocol

__all__ = ["AnyError", "error_exit_code", "error_message", "print_error"]

type AnyError = (
    BundleError
    | SourceInvalid
    | CharmUrlError
    | ChannelError
    | ConfigError
    | InvalidSelection
    | AppFailure
    | ArtifactMissing
    | BuildFailed
    | ConfigurationConflict
    | DeployFailed
    | MissingCharmReference
    | PruneFailed
    | StoreError
)


def error_message(error: AnyError) -> str:
    """One-line description of an error, without the ``error:`` prefix."""
    match error:
        case AppFailure(app=app, error=inner):
            return f"[{app}] {error_message(inner)}"
        case BundleError(message=message, path=None):
            return message
        case BundleError(message=message, path=path):
            return f"{path}: {message}"
        case ConfigError(message=message, path=None):
            return message
        case ConfigError(message=message, path=path):
            return f"{path}: {message}"
        case SourceInvalid() | CharmUrlError() | ChannelError() | InvalidSelection():
            return error.message
        case BuildFailed(source=source, tool=tool, returncode=rc):
            return f"{tool} failed for {source} (exit {rc})"
        case ArtifactMissing(source=source, pattern=pattern):
            return f"no built charm found for {source} ({pattern})"
        case ConfigurationConflict(message=message):
            return message
        case DeployFailed(step=step, returncode=rc):
            return f"juju {step} failed (exit {rc})"
        case MissingCharmReference(app=app):
            return f"Application {app} has neither a charm nor a source to build"
        case PruneFailed(returncode=rc):
            return f"docker system prune failed (exit {rc})"
        case StoreError(kind=kind, message=message):
            return f"store {kind} failed: {message}"


def _hint(error: AnyError) -> str | None:
    match error:
        case AppFailure(error=inner):
            return _hint(inner)
        case StoreError(hint=hint) | ConfigurationConflict(hint=hint):
            return hint
        case MissingCharmReference():
            return "Add a charm: reference, a source: path, or a charms/<name> directory"
        case InvalidSelection():
            return "Application names are the keys under applications: in the bundle"
        case _:
            return None


def print_error(error: AnyError, console: ConsoleProtocol) -> None:
    """Print error to console with appropriate formatting."""
    console.error(error_message(error))
    hint = _hint(error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def error_exit_code(error: AnyError) -> int:
    """Get exit code for an error."""
    match error:
        case AppFailure(error=inner):
            return error_exit_code(inner)
        case InvalidSelection() | ConfigurationConflict():
            return int(ErrorCode.USER_ERROR)
        case MissingCharmReference() | BundleError() | CharmUrlError() | ChannelError():
            return int(ErrorCode.CONFIG_ERROR)
        case ConfigError():
            return int(ErrorCode.CONFIG_ERROR)
        case BuildFailed() | ArtifactMissing() | SourceInvalid() | PruneFailed():
            return int(ErrorCode.BUILD_ERROR)
        case StoreError():
            return int(ErrorCode.STORE_ERROR)
        case DeployFailed():
            return int(ErrorCode.DEPLOY_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.INTERNAL_ERROR)
