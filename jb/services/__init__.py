"""Workflows that drive a bundle through build, publish, promote and deploy."""

from .build import BuildReport, BuildService
from .builder import Builder, CharmBuilder, prune_cache
from .deploy import Deployer, DeployService, JujuDeployer
from .errors import (
    AppFailure,
    ArtifactMissing,
    BuildFailed,
    ConfigurationConflict,
    DeployFailed,
    MissingCharmReference,
    PruneFailed,
)
from .executor import ExecutionPolicy, Parallel, Serial, check_policy, policy_from_flags, run_all
from .promote import PromoteReport, PromoteService
from .publish import PublishReport, PublishService
from .resolve import PublishTarget, Resolved, resolve
from .verify import VerifyIssue, verify

__all__ = [
    "AppFailure",
    "ArtifactMissing",
    "BuildFailed",
    "BuildReport",
    "BuildService",
    "Builder",
    "CharmBuilder",
    "ConfigurationConflict",
    "DeployFailed",
    "DeployService",
    "Deployer",
    "ExecutionPolicy",
    "JujuDeployer",
    "MissingCharmReference",
    "Parallel",
    "PromoteReport",
    "PromoteService",
    "PruneFailed",
    "PublishReport",
    "PublishService",
    "PublishTarget",
    "Resolved",
    "Serial",
    "VerifyIssue",
    "check_policy",
    "policy_from_flags",
    "prune_cache",
    "resolve",
    "run_all",
    "verify",
]
