"""Prometheus metrics for the PretzelAI operator."""

from prometheus_client import Counter, Histogram, Gauge, Info

# Reconciliation metrics
RECONCILE_TOTAL = Counter(
    "pretzelai_operator_reconcile_total",
    "Total number of reconcile passes",
    ["resource", "trigger", "outcome"],
)

RECONCILE_DURATION = Histogram(
    "pretzelai_operator_reconcile_duration_seconds",
    "Time spent in a reconcile pass",
    ["resource", "trigger"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

RECONCILE_IN_PROGRESS = Gauge(
    "pretzelai_operator_reconcile_in_progress",
    "Number of reconcile passes currently in progress",
    ["resource"],
)

# Owned resource metrics
OWNED_RESOURCE_WRITES = Counter(
    "pretzelai_operator_owned_resource_writes_total",
    "Total number of writes to owned resources",
    ["kind", "operation"],
)

STATUS_UPDATES = Counter(
    "pretzelai_operator_status_updates_total",
    "Total number of PretzelAI status writes",
)

# Kubernetes API metrics
STORE_API_CALLS = Counter(
    "pretzelai_operator_store_api_calls_total",
    "Total number of Kubernetes API calls made by the object store",
    ["kind", "operation", "status"],
)

# Operator info
OPERATOR_INFO = Info(
    "pretzelai_operator",
    "Information about the PretzelAI operator",
)


def set_operator_info(version: str, watch_namespace: str) -> None:
    """Set operator info labels."""
    OPERATOR_INFO.info(
        {"version": version, "namespace": watch_namespace or "cluster-wide"}
    )


def init_metrics() -> None:
    """Initialize all metrics with zero values.

    Prometheus metrics with labels don't appear until used.
    This ensures all metrics are visible immediately at startup.
    """
    resource = "PretzelAI"
    triggers = ["event", "owned", "resync"]
    outcomes = [
        "NotFound",
        "FinalizerAdded",
        "FinalizerRemoved",
        "Terminating",
        "Converged",
        "Conflict",
        "Cancelled",
        "error",
    ]

    RECONCILE_IN_PROGRESS.labels(resource=resource).set(0)
    for trigger in triggers:
        RECONCILE_DURATION.labels(resource=resource, trigger=trigger)
        for outcome in outcomes:
            RECONCILE_TOTAL.labels(resource=resource, trigger=trigger, outcome=outcome)

    for kind in ["Deployment", "Service", "ConfigMap"]:
        for operation in ["create", "update"]:
            OWNED_RESOURCE_WRITES.labels(kind=kind, operation=operation)
