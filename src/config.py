"""Operator configuration read from environment variables at import time."""

import os

watch_namespace = os.environ.get("WATCH_NAMESPACE", "")
"""Namespace watched by the operator. Empty means cluster-wide."""

metrics_port = int(os.environ.get("METRICS_PORT", "9090"))
"""Port for the Prometheus metrics HTTP server."""

resync_interval = float(os.environ.get("RESYNC_INTERVAL_SECONDS", "300"))
"""Interval of the periodic resync timer on every PretzelAI."""

requeue_delay = float(os.environ.get("REQUEUE_DELAY_SECONDS", "10"))
"""Delay before kopf retries a pass that asked for a fresh pass."""

error_delay = float(os.environ.get("ERROR_DELAY_SECONDS", "60"))
"""Delay before kopf retries a pass that failed."""

pass_timeout = float(os.environ.get("PASS_TIMEOUT_SECONDS", "30"))
"""Upper bound for a single reconcile pass."""

request_timeout = float(os.environ.get("KUBE_REQUEST_TIMEOUT_SECONDS", "10"))
"""Timeout applied to every Kubernetes API call."""

default_image = os.environ.get("PRETZELAI_DEFAULT_IMAGE", "pretzelai:local")
"""Container image used when spec.image is empty."""
