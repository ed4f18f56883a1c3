"""Deployment (workload) management for PretzelAI resources."""

from typing import Any

import config
from constants import (
    CONTAINER_NAME,
    CONTAINER_PORT,
    DEFAULT_REPLICAS,
    IMAGE_PULL_POLICY,
    KIND_DEPLOYMENT,
)
from models import PretzelAISpec
from resources.converger import Converger
from utils import managed_labels, selector_labels


def desired_replicas(spec: PretzelAISpec) -> int:
    """Replica count from the PretzelAI spec, defaulting to 1 when unset."""
    replicas = spec.get("replicas")
    return DEFAULT_REPLICAS if replicas is None else replicas


def desired_image(spec: PretzelAISpec) -> str:
    """Container image from the PretzelAI spec, defaulting to the operator's image."""
    return spec.get("image") or config.default_image


def build_deployment(owner: dict[str, Any]) -> dict[str, Any]:
    """Build the desired Deployment for a PretzelAI.

    Args:
        owner: The PretzelAI object

    Returns:
        Deployment manifest named after the owner, in the owner's namespace
    """
    metadata = owner["metadata"]
    name = metadata["name"]
    spec: PretzelAISpec = owner.get("spec") or {}

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": metadata["namespace"],
            "labels": managed_labels(name),
        },
        "spec": {
            "replicas": desired_replicas(spec),
            "selector": {"matchLabels": selector_labels(name)},
            "template": {
                "metadata": {"labels": selector_labels(name)},
                "spec": {
                    "containers": [
                        {
                            "name": CONTAINER_NAME,
                            "image": desired_image(spec),
                            "imagePullPolicy": IMAGE_PULL_POLICY,
                            "ports": [{"containerPort": CONTAINER_PORT}],
                        }
                    ]
                },
            },
        },
    }


def _containers(deployment: dict[str, Any]) -> list[dict[str, Any]]:
    return (
        deployment.get("spec", {})
        .get("template", {})
        .get("spec", {})
        .get("containers")
        or []
    )


def _watched_fields(deployment: dict[str, Any]) -> tuple[int | None, str | None]:
    containers = _containers(deployment)
    image = containers[0].get("image") if containers else None
    return deployment.get("spec", {}).get("replicas"), image


def deployment_fields_equal(desired: dict[str, Any], live: dict[str, Any]) -> bool:
    """Compare replica count and the first container's image."""
    return _watched_fields(desired) == _watched_fields(live)


def apply_deployment(live: dict[str, Any], desired: dict[str, Any]) -> None:
    """Copy replica count and image from the desired Deployment onto the live one."""
    live_spec = live.setdefault("spec", {})
    live_spec["replicas"] = desired["spec"]["replicas"]

    containers = _containers(live)
    if not containers:
        pod_spec = live_spec.setdefault("template", {}).setdefault("spec", {})
        pod_spec["containers"] = _containers(desired)
        return
    containers[0]["image"] = _containers(desired)[0]["image"]


WORKLOAD = Converger(
    kind=KIND_DEPLOYMENT,
    build=build_deployment,
    watched_fields_equal=deployment_fields_equal,
    apply=apply_deployment,
)
