"""Installer services: dependency resolution, install strategies and the pipeline."""

from getsymi.services.dependencies import (
    DependencyResolver,
    DependencySpec,
    Escalation,
    ProbeResult,
    git_spec,
    node_spec,
)
from getsymi.services.executor import Executor
from getsymi.services.orchestrator import Orchestrator, Stage
from getsymi.services.path_registrar import PathRegistrar
from getsymi.services.strategies import (
    InstalledTool,
    PrefixRegistryInstall,
    RegistryInstall,
    SourceInstall,
    detect_source_checkout,
)
from getsymi.services.verify import PostInstallVerifier

__all__ = [
    "DependencyResolver",
    "DependencySpec",
    "Escalation",
    "Executor",
    "InstalledTool",
    "Orchestrator",
    "PathRegistrar",
    "PostInstallVerifier",
    "PrefixRegistryInstall",
    "ProbeResult",
    "RegistryInstall",
    "SourceInstall",
    "Stage",
    "detect_source_checkout",
    "git_spec",
    "node_spec",
]
