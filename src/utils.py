"""Utility functions for the PretzelAI operator."""

import copy
from typing import Any

from constants import (
    APP_LABEL,
    GROUP,
    INSTANCE_LABEL,
    KIND_PRETZELAI,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
)
from models import ObjectKey


def object_key(obj: dict[str, Any]) -> ObjectKey:
    """Return the (namespace, name) identity of an object."""
    metadata = obj.get("metadata", {})
    return ObjectKey(metadata.get("namespace", ""), metadata.get("name", ""))


def selector_labels(owner_name: str) -> dict[str, str]:
    """Labels linking pods of a PretzelAI to its Deployment and Service."""
    return {APP_LABEL: owner_name}


def managed_labels(owner_name: str) -> dict[str, str]:
    """Labels put on every object the operator owns.

    Example: 'demo' -> {'app': 'demo', 'app.kubernetes.io/instance': 'demo', ...}
    """
    return {
        **selector_labels(owner_name),
        INSTANCE_LABEL: owner_name,
        MANAGED_BY_LABEL: MANAGED_BY_VALUE,
    }


def has_finalizer(obj: dict[str, Any], finalizer: str) -> bool:
    """Check if an object carries the given finalizer."""
    return finalizer in (obj.get("metadata", {}).get("finalizers") or [])


def with_finalizer(obj: dict[str, Any], finalizer: str) -> dict[str, Any]:
    """Return a copy of the object with the finalizer appended."""
    updated = copy.deepcopy(obj)
    finalizers = updated.setdefault("metadata", {}).get("finalizers") or []
    if finalizer not in finalizers:
        finalizers = [*finalizers, finalizer]
    updated["metadata"]["finalizers"] = finalizers
    return updated


def without_finalizer(obj: dict[str, Any], finalizer: str) -> dict[str, Any]:
    """Return a copy of the object with every occurrence of the finalizer removed."""
    updated = copy.deepcopy(obj)
    finalizers = updated.setdefault("metadata", {}).get("finalizers") or []
    updated["metadata"]["finalizers"] = [f for f in finalizers if f != finalizer]
    return updated


def is_terminating(obj: dict[str, Any]) -> bool:
    """Check if an object has been marked for deletion."""
    return bool(obj.get("metadata", {}).get("deletionTimestamp"))


def controller_owner_name(metadata: dict[str, Any]) -> str | None:
    """Find the name of the PretzelAI controlling an owned object.

    Returns None when the object is not controlled by a PretzelAI.
    """
    for ref in metadata.get("ownerReferences") or []:
        api_group = ref.get("apiVersion", "").split("/")[0]
        if (
            ref.get("kind") == KIND_PRETZELAI
            and api_group == GROUP
            and ref.get("controller")
        ):
            return ref.get("name")
    return None
