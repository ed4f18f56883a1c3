"""Service (exposure) management for PretzelAI resources."""

from typing import Any

from constants import (
    DEFAULT_PROTOCOL,
    KIND_SERVICE,
    SERVICE_PORT,
    SERVICE_TARGET_PORT,
)
from models import PretzelAISpec, ServiceType
from resources.converger import Converger
from utils import managed_labels, selector_labels


def desired_service_type(spec: PretzelAISpec) -> str:
    """Service type from the PretzelAI spec, defaulting to ClusterIP when unset."""
    return spec.get("serviceType") or ServiceType.CLUSTER_IP.value


def build_service(owner: dict[str, Any]) -> dict[str, Any]:
    """Build the desired Service for a PretzelAI.

    Routes port 80 to the workload's container port by label selector.
    """
    metadata = owner["metadata"]
    name = metadata["name"]
    spec: PretzelAISpec = owner.get("spec") or {}

    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": name,
            "namespace": metadata["namespace"],
            "labels": managed_labels(name),
        },
        "spec": {
            "selector": selector_labels(name),
            "ports": [{"port": SERVICE_PORT, "targetPort": SERVICE_TARGET_PORT}],
            "type": desired_service_type(spec),
        },
    }


def port_mappings(service: dict[str, Any]) -> list[tuple[Any, str, str]]:
    """Normalize the port list to (port, targetPort, protocol) tuples.

    Server-filled fields such as nodePort and a defaulted protocol are not drift.
    targetPort may come back as an int or a string.
    """
    return [
        (
            port.get("port"),
            str(port.get("targetPort", port.get("port"))),
            port.get("protocol") or DEFAULT_PROTOCOL,
        )
        for port in service.get("spec", {}).get("ports") or []
    ]


def service_fields_equal(desired: dict[str, Any], live: dict[str, Any]) -> bool:
    """Compare the port mapping list."""
    return port_mappings(desired) == port_mappings(live)


def apply_service(live: dict[str, Any], desired: dict[str, Any]) -> None:
    """Overwrite the live port list with the desired one."""
    live.setdefault("spec", {})["ports"] = [
        dict(port) for port in desired["spec"]["ports"]
    ]


EXPOSURE = Converger(
    kind=KIND_SERVICE,
    build=build_service,
    watched_fields_equal=service_fields_equal,
    apply=apply_service,
)
