"""Bootstrap package for preparing a fresh EKS cluster.

This package provides the `knit eks` command's machinery which:
1. Checks kubectl/helm/fluxctl are installed
2. Initializes Helm (Tiller) and installs nginx-ingress
3. Publishes the ingress load balancer hostname to Route 53
4. Installs cert-manager and the Let's Encrypt issuer
5. Installs Flux against the GitOps repository
6. Installs sealed-secrets and archives or restores its master key
"""

from .dns import ChangeStatus, DNSPublisher
from .loadbalancer import AddressResolver, clean_hostname
from .orchestrator import STAGES, BootstrapOrchestrator, BootstrapResult
from .prerequisites import PrerequisiteReport, ToolDetector, ToolStatus
from .runner import CommandInvocation, CommandResult, ProcessRunner
from .secrets import (
    ClusterKeys,
    KeyArchive,
    KubectlClusterKeys,
    MasterKey,
    SecretSynchronizer,
    SyncAction,
    SyncOutcome,
)

__all__ = [
    # Process execution
    "CommandInvocation",
    "CommandResult",
    "ProcessRunner",
    # Prerequisites
    "PrerequisiteReport",
    "ToolDetector",
    "ToolStatus",
    # Ingress address and DNS
    "AddressResolver",
    "clean_hostname",
    "ChangeStatus",
    "DNSPublisher",
    # Sealed-secrets key
    "ClusterKeys",
    "KeyArchive",
    "KubectlClusterKeys",
    "MasterKey",
    "SecretSynchronizer",
    "SyncAction",
    "SyncOutcome",
    # Orchestration
    "BootstrapOrchestrator",
    "BootstrapResult",
    "STAGES",
]
