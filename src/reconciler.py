"""Reconcile pass for PretzelAI resources.

A pass loads one PretzelAI, runs it through the finalizer gate, converges
the owned Deployment, Service and ConfigMap, and projects the observed state
back into the status. Passes are level-triggered and idempotent: the caller
re-runs them on any relevant change, and a pass that is cut short is
repaired by the next one.
"""

import logging
import time
from typing import Any, Protocol

from constants import KIND_PRETZELAI
from models import (
    ConflictError,
    GateDecision,
    ObjectKey,
    Outcome,
    PassCancelled,
    ReconcileResult,
)
from resources.configmap import CONFIG_BUNDLE
from resources.deployment import WORKLOAD
from resources.finalizer import evaluate_finalizer
from resources.service import EXPOSURE
from resources.status import project_status
from store import ObjectStore

logger = logging.getLogger(__name__)

_GATE_OUTCOMES = {
    GateDecision.FINALIZER_ADDED: Outcome.FINALIZER_ADDED,
    GateDecision.FINALIZER_REMOVED: Outcome.FINALIZER_REMOVED,
    GateDecision.TERMINATING: Outcome.TERMINATING,
}


class StopFlag(Protocol):
    """Anything that reports an external stop request, e.g. threading.Event."""

    def is_set(self) -> bool: ...


class PassContext:
    """Cancellation and timeout checks between the stages of a pass."""

    def __init__(self, stopped: StopFlag | None = None, timeout: float | None = None) -> None:
        self._stopped = stopped
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def check(self, stage: str) -> None:
        """Raise PassCancelled if the pass must not start the given stage."""
        if self._stopped is not None and self._stopped.is_set():
            raise PassCancelled(f"stopped before {stage}")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise PassCancelled(f"timed out before {stage}")


def load(store: ObjectStore, key: ObjectKey) -> dict[str, Any] | None:
    """Fetch the PretzelAI, or None if it has been deleted."""
    return store.get(KIND_PRETZELAI, key.namespace, key.name)


def _converge(store: ObjectStore, obj: dict[str, Any], ctx: PassContext) -> bool:
    """Converge all owned resources and project status. Returns True if status was written."""
    ctx.check("workload")
    deployment = WORKLOAD.converge(store, obj)

    ctx.check("exposure")
    service = EXPOSURE.converge(store, obj)

    ctx.check("config bundle")
    CONFIG_BUNDLE.converge(store, obj)

    ctx.check("status")
    return project_status(store, obj, deployment, service)


def reconcile(
    store: ObjectStore,
    key: ObjectKey,
    stopped: StopFlag | None = None,
    timeout: float | None = None,
) -> ReconcileResult:
    """Run one reconcile pass for a PretzelAI.

    Args:
        store: Object store holding the PretzelAI and its owned resources
        key: Identity of the PretzelAI
        stopped: Optional external stop flag
        timeout: Optional time budget for the pass in seconds

    Returns:
        The pass result. ``requeue`` is set when the pass was aborted and a
        fresh pass (with a full re-read) is needed.

    Raises:
        ObjectStoreError: Any store failure other than a version conflict
    """
    ctx = PassContext(stopped, timeout)

    try:
        ctx.check("load")
        obj = load(store, key)
        if obj is None:
            logger.debug(f"PretzelAI {key} not found, nothing to do")
            return ReconcileResult(Outcome.NOT_FOUND)

        ctx.check("finalizer gate")
        decision = evaluate_finalizer(store, obj)
        if decision is not GateDecision.PROCEED:
            return ReconcileResult(_GATE_OUTCOMES[decision])

        status_updated = _converge(store, obj, ctx)

    except ConflictError as e:
        logger.info(f"Conflict while reconciling {key}, requesting a fresh pass: {e}")
        return ReconcileResult(Outcome.CONFLICT, requeue=True)
    except PassCancelled as e:
        logger.warning(f"Reconcile of {key} cancelled: {e}")
        return ReconcileResult(Outcome.CANCELLED, requeue=True)

    logger.info(f"Successfully reconciled PretzelAI {key}")
    return ReconcileResult(Outcome.CONVERGED, status_updated=status_updated)
