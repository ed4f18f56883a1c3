"""ConfigMap (configuration bundle) management for PretzelAI resources."""

from typing import Any

from constants import CONFIG_BUNDLE_DATA, KIND_CONFIGMAP
from resources.converger import Converger
from utils import managed_labels


def build_config_map(owner: dict[str, Any]) -> dict[str, Any] | None:
    """Build the desired ConfigMap, or None when no bundle is declared.

    The ConfigMap is named by spec.configMapName and lives in the
    owner's namespace. Its payload is a fixed placeholder.

    An existing ConfigMap of that name is adopted as is: its data is
    overwritten, but it gains neither the owner reference nor the labels.
    """
    metadata = owner["metadata"]
    config_map_name = (owner.get("spec") or {}).get("configMapName")
    if not config_map_name:
        return None

    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": config_map_name,
            "namespace": metadata["namespace"],
            "labels": managed_labels(metadata["name"]),
        },
        "data": dict(CONFIG_BUNDLE_DATA),
    }


def config_map_fields_equal(desired: dict[str, Any], live: dict[str, Any]) -> bool:
    """Compare the data payload."""
    return (desired.get("data") or {}) == (live.get("data") or {})


def apply_config_map(live: dict[str, Any], desired: dict[str, Any]) -> None:
    live["data"] = dict(desired["data"])


CONFIG_BUNDLE = Converger(
    kind=KIND_CONFIGMAP,
    build=build_config_map,
    watched_fields_equal=config_map_fields_equal,
    apply=apply_config_map,
)
