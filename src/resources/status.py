"""Status projection for PretzelAI resources."""

import copy
import logging
from typing import Any

from constants import CONFIG_BUNDLE_APPLIED, KIND_PRETZELAI
from metrics import STATUS_UPDATES
from models import PretzelAIStatus, ServiceType
from store import ObjectStore
from utils import object_key

logger = logging.getLogger(__name__)


def observed_status(
    obj: dict[str, Any],
    deployment: dict[str, Any],
    service: dict[str, Any],
) -> PretzelAIStatus:
    """Compute the status a PretzelAI should report.

    Replica counts come from the live Deployment, the service status from
    the live Service type. The config map status is set whenever a bundle
    is declared and otherwise keeps its current value, even after the
    bundle name has been removed from the PretzelAI spec.
    """
    current = PretzelAIStatus.from_dict(obj.get("status"))
    deployment_status = deployment.get("status") or {}
    service_type = service.get("spec", {}).get("type") or ServiceType.CLUSTER_IP.value

    config_map_status = current.config_map_status
    if (obj.get("spec") or {}).get("configMapName"):
        config_map_status = CONFIG_BUNDLE_APPLIED

    return PretzelAIStatus(
        ready_replicas=deployment_status.get("readyReplicas") or 0,
        available_replicas=deployment_status.get("availableReplicas") or 0,
        service_status=service_type,
        config_map_status=config_map_status,
    )


def project_status(
    store: ObjectStore,
    obj: dict[str, Any],
    deployment: dict[str, Any],
    service: dict[str, Any],
) -> bool:
    """Write observed state into the PretzelAI status if it changed.

    Only the status subresource is written, so concurrent spec edits are
    never overwritten.

    Returns:
        True if the status was written
    """
    status = observed_status(obj, deployment, service)
    if status == PretzelAIStatus.from_dict(obj.get("status")):
        logger.debug(f"Status of {object_key(obj)} is up to date")
        return False

    body = copy.deepcopy(obj)
    body["status"] = {**(obj.get("status") or {}), **status.to_dict()}
    store.update_status(KIND_PRETZELAI, body)
    STATUS_UPDATES.inc()
    logger.info(
        f"Updated status of {object_key(obj)}: ready={status.ready_replicas} "
        f"available={status.available_replicas} service={status.service_status}"
    )
    return True
