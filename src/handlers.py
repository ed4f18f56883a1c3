"""Kopf handlers for the PretzelAI CRD.

Every handler funnels into the same level-triggered reconcile pass:

- events on a PretzelAI itself
- events on the Deployments, Services and ConfigMaps it controls
- a periodic resync timer that also retries passes asking for a requeue
"""

import logging
import sys
import time
from pathlib import Path
from typing import Any

# Add src directory to path for imports when run as script by Kopf
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import kopf
from prometheus_client import start_http_server

import config
from constants import (
    GROUP,
    KIND_PRETZELAI,
    KOPF_FINALIZER,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
    PLURAL,
    VERSION,
)
from metrics import (
    RECONCILE_TOTAL,
    RECONCILE_DURATION,
    RECONCILE_IN_PROGRESS,
    set_operator_info,
    init_metrics,
)
from models import ObjectKey, Outcome, ReconcileResult
from reconciler import StopFlag, reconcile
from state import state, get_store
from utils import controller_owner_name

logger = logging.getLogger(__name__)

# Operator version
OPERATOR_VERSION = "0.1.0"

_MANAGED = {MANAGED_BY_LABEL: MANAGED_BY_VALUE}


def run_pass(
    namespace: str,
    name: str,
    trigger: str,
    stopped: StopFlag | None = None,
) -> ReconcileResult:
    """Run one reconcile pass for a PretzelAI, serialized per identity.

    Args:
        namespace: Namespace of the PretzelAI
        name: Name of the PretzelAI
        trigger: What caused the pass ("event", "owned" or "resync")
        stopped: Optional stop flag handed over by kopf

    Returns:
        The pass result
    """
    key = ObjectKey(namespace, name)
    start_time = time.monotonic()
    RECONCILE_IN_PROGRESS.labels(resource=KIND_PRETZELAI).inc()

    try:
        with state.identity_lock(key):
            result = reconcile(
                get_store(), key, stopped=stopped, timeout=config.pass_timeout
            )
        if result.outcome is Outcome.NOT_FOUND:
            state.forget(key)

        RECONCILE_TOTAL.labels(
            resource=KIND_PRETZELAI, trigger=trigger, outcome=result.outcome.value
        ).inc()
        RECONCILE_DURATION.labels(resource=KIND_PRETZELAI, trigger=trigger).observe(
            time.monotonic() - start_time
        )
        return result

    except Exception as e:
        logger.error(f"Failed to reconcile PretzelAI {key} ({trigger}): {e}")
        RECONCILE_TOTAL.labels(
            resource=KIND_PRETZELAI, trigger=trigger, outcome="error"
        ).inc()
        raise
    finally:
        RECONCILE_IN_PROGRESS.labels(resource=KIND_PRETZELAI).dec()


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure operator settings on startup."""
    # Reduce logging noise
    settings.posting.level = logging.WARNING
    # kopf's finalizer (for the resync timer) must not be ours
    settings.persistence.finalizer = KOPF_FINALIZER
    # Set watching namespace - explicit cluster-wide or specific namespace
    if config.watch_namespace:
        settings.watching.namespaces = [config.watch_namespace]
    else:
        settings.watching.clusterwide = True

    # Start Prometheus metrics server
    try:
        start_http_server(config.metrics_port)
        logger.info("Prometheus metrics server started on port %d", config.metrics_port)
    except OSError as e:
        logger.warning(
            "Failed to start metrics server on port %d: %s", config.metrics_port, e
        )

    init_metrics()
    set_operator_info(OPERATOR_VERSION, config.watch_namespace)

    logger.info("PretzelAI operator started (version %s)", OPERATOR_VERSION)


@kopf.on.cleanup()
def cleanup(**_: Any) -> None:
    """Clean up resources on operator shutdown."""
    logger.info("PretzelAI operator shutting down")
    state.close()


@kopf.on.event(GROUP, VERSION, PLURAL)
def pretzelai_event(
    event: dict[str, Any],
    body: kopf.Body,
    namespace: str,
    name: str,
    **_: Any,
) -> None:
    """Run a pass on every change of a PretzelAI.

    kopf does not retry event handlers. A pass aborted by a conflict is
    followed by the watch event of the competing write; anything else is
    picked up by the resync timer.
    """
    if event.get("type") == "DELETED":
        logger.debug(f"PretzelAI {namespace}/{name} deleted")
        state.forget(ObjectKey(namespace, name))
        return

    try:
        result = run_pass(namespace, name, "event")
    except Exception as e:
        kopf.warn(body, reason="ReconcileFailed", message=str(e)[:200])
        raise

    if result.requeue:
        logger.info(
            f"Pass for {namespace}/{name} ended with {result.outcome.value}, "
            "waiting for the next event"
        )


def _reconcile_owner(kind: str, body: kopf.Body, namespace: str) -> None:
    """Run a pass on the PretzelAI controlling a changed owned object."""
    owner_name = controller_owner_name(body.get("metadata", {}))
    if not owner_name:
        return
    logger.debug(f"{kind} {namespace}/{body.get('metadata', {}).get('name')} changed")
    run_pass(namespace, owner_name, "owned")


@kopf.on.event("apps", "v1", "deployments", labels=_MANAGED)
def owned_deployment_event(body: kopf.Body, namespace: str, **_: Any) -> None:
    """Reconcile the owner when its Deployment changes."""
    _reconcile_owner("Deployment", body, namespace)


@kopf.on.event("v1", "services", labels=_MANAGED)
def owned_service_event(body: kopf.Body, namespace: str, **_: Any) -> None:
    """Reconcile the owner when its Service changes."""
    _reconcile_owner("Service", body, namespace)


@kopf.on.event("v1", "configmaps", labels=_MANAGED)
def owned_config_map_event(body: kopf.Body, namespace: str, **_: Any) -> None:
    """Reconcile the owner when its ConfigMap changes."""
    _reconcile_owner("ConfigMap", body, namespace)


@kopf.timer(GROUP, VERSION, PLURAL, interval=config.resync_interval)
def resync_pretzelai(
    namespace: str,
    name: str,
    body: kopf.Body,
    stopped: kopf.DaemonStopped,
    **_: Any,
) -> None:
    """Periodic resync to detect and repair drift missed by watch events."""
    logger.debug(f"Resyncing PretzelAI: {namespace}/{name}")

    try:
        result = run_pass(namespace, name, "resync", stopped=stopped)
    except Exception as e:
        kopf.warn(body, reason="ReconcileFailed", message=str(e)[:200])
        raise kopf.TemporaryError(f"Reconcile failed: {e}", delay=config.error_delay)

    if result.requeue:
        raise kopf.TemporaryError(
            f"Pass ended with {result.outcome.value}, retrying",
            delay=config.requeue_delay,
        )
    if result.outcome is Outcome.CONVERGED:
        logger.debug(f"PretzelAI {namespace}/{name} is converged")


def main() -> None:
    """Entry point for running the operator."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting PretzelAI operator...")
    kopf.run(
        clusterwide=not config.watch_namespace,
        namespaces=[config.watch_namespace] if config.watch_namespace else [],
    )


if __name__ == "__main__":
    main()
