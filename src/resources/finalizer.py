"""Finalizer gate for PretzelAI resources.

The finalizer guarantees the operator sees a PretzelAI before the platform's
garbage collector cascades the deletion to the owned Deployment, Service and
ConfigMap. Owned resources are never deleted here: removing the token is
what lets the cascade proceed.
"""

import logging
from typing import Any

from constants import FINALIZER, KIND_PRETZELAI
from models import GateDecision
from store import ObjectStore
from utils import (
    has_finalizer,
    is_terminating,
    object_key,
    with_finalizer,
    without_finalizer,
)

logger = logging.getLogger(__name__)


def run_pre_deletion_cleanup(store: ObjectStore, obj: dict[str, Any]) -> None:
    """Run cleanup that must happen before the owned resources are collected.

    Nothing needs tearing down outside the cluster yet; external cleanup
    belongs here, before the token is removed.
    """
    logger.debug(f"No pre-deletion cleanup required for {object_key(obj)}")


def evaluate_finalizer(store: ObjectStore, obj: dict[str, Any]) -> GateDecision:
    """Decide whether the pass may converge owned resources.

    Args:
        store: Object store
        obj: The freshly loaded PretzelAI object

    Returns:
        PROCEED when the object is active and already carries the token;
        any other decision ends the pass.
    """
    key = object_key(obj)
    present = has_finalizer(obj, FINALIZER)

    if is_terminating(obj):
        if not present:
            logger.debug(f"{key} is terminating and carries no finalizer of ours")
            return GateDecision.TERMINATING

        run_pre_deletion_cleanup(store, obj)
        store.update(KIND_PRETZELAI, without_finalizer(obj, FINALIZER))
        logger.info(f"Removed finalizer from {key}, deletion may proceed")
        return GateDecision.FINALIZER_REMOVED

    if not present:
        store.update(KIND_PRETZELAI, with_finalizer(obj, FINALIZER))
        logger.info(f"Added finalizer to {key}")
        return GateDecision.FINALIZER_ADDED

    return GateDecision.PROCEED
