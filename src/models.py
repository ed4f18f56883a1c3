"""Domain models for the PretzelAI operator.

This module defines typed data structures for all operator concepts,
making illegal states unrepresentable at the type level.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, TypedDict


# =============================================================================
# Enums for constrained values
# =============================================================================


class ServiceType(Enum):
    """How the workload is exposed on the network."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"


class GateDecision(Enum):
    """Outcome of the finalizer gate for one pass."""

    PROCEED = "Proceed"
    FINALIZER_ADDED = "FinalizerAdded"
    FINALIZER_REMOVED = "FinalizerRemoved"
    TERMINATING = "Terminating"


class Outcome(Enum):
    """How a reconcile pass ended."""

    NOT_FOUND = "NotFound"
    FINALIZER_ADDED = "FinalizerAdded"
    FINALIZER_REMOVED = "FinalizerRemoved"
    TERMINATING = "Terminating"
    CONVERGED = "Converged"
    CONFLICT = "Conflict"
    CANCELLED = "Cancelled"


# =============================================================================
# TypedDicts for CRD spec (external data from Kubernetes)
# =============================================================================


class PretzelAISpec(TypedDict, total=False):
    """PretzelAI CRD spec."""

    replicas: int
    image: str
    configMapName: str
    serviceType: Literal["ClusterIP", "NodePort", "LoadBalancer"]


# =============================================================================
# Dataclasses for internal state and status
# =============================================================================


@dataclass(frozen=True)
class ObjectKey:
    """Identity of a namespaced object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class PretzelAIStatus:
    """Observed state of a PretzelAI resource."""

    ready_replicas: int = 0
    available_replicas: int = 0
    service_status: str = ""
    config_map_status: str = ""

    def to_dict(self) -> dict[str, object]:
        """Convert to dict for Kubernetes status."""
        result: dict[str, object] = {
            "readyReplicas": self.ready_replicas,
            "availableReplicas": self.available_replicas,
        }
        if self.service_status:
            result["serviceStatus"] = self.service_status
        if self.config_map_status:
            result["configMapStatus"] = self.config_map_status
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PretzelAIStatus":
        """Create from Kubernetes status dict."""
        data = data or {}
        return cls(
            ready_replicas=data.get("readyReplicas") or 0,
            available_replicas=data.get("availableReplicas") or 0,
            service_status=data.get("serviceStatus") or "",
            config_map_status=data.get("configMapStatus") or "",
        )


@dataclass(frozen=True)
class ReconcileResult:
    """Result of a single reconcile pass."""

    outcome: Outcome
    requeue: bool = False
    status_updated: bool = False


# =============================================================================
# Exceptions
# =============================================================================


class OperatorError(Exception):
    """Base exception for operator errors."""

    pass


class ObjectStoreError(OperatorError):
    """Error reading from or writing to the object store."""

    pass


class ConflictError(ObjectStoreError):
    """A write carried a stale resourceVersion, or the object already exists."""

    pass


class ResourceNotFoundError(ObjectStoreError):
    """The object targeted by a write does not exist."""

    pass


class PassCancelled(OperatorError):
    """The reconcile pass was stopped or ran out of time."""

    pass
