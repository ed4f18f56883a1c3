"""Object store over the Kubernetes API.

The reconcile core only talks to an ``ObjectStore``: plain camelCase dicts
keyed by (kind, namespace, name), with optimistic concurrency carried by
``metadata.resourceVersion``. ``KubernetesStore`` is the production
implementation; tests substitute an in-memory fake.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from kubernetes.client import ApiException, AppsV1Api, CoreV1Api, CustomObjectsApi

from constants import (
    GROUP,
    KIND_CONFIGMAP,
    KIND_DEPLOYMENT,
    KIND_PRETZELAI,
    KIND_SERVICE,
    PLURAL,
    VERSION,
)
from metrics import STORE_API_CALLS
from models import ConflictError, ObjectStoreError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Key-value object store keyed by (kind, namespace, name)."""

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Return the object, or None if it does not exist."""
        ...

    def create(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Create the object and return it as stored."""
        ...

    def update(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the object; fails with ConflictError on a stale resourceVersion."""
        ...

    def update_status(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace only the status subresource of the object."""
        ...

    def list(
        self, kind: str, namespace: str, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        """List objects of a kind in a namespace."""
        ...


@dataclass(frozen=True)
class _KindOps:
    """API calls for one built-in kind."""

    read: Callable[..., Any]
    create: Callable[..., Any]
    replace: Callable[..., Any]
    list: Callable[..., Any]


def _translate(e: ApiException, operation: str, kind: str, name: str) -> ObjectStoreError:
    """Map a Kubernetes API error to the store's exception taxonomy."""
    message = f"{operation} {kind} {name} failed: {e.status} {e.reason}"
    if e.status == 409:
        return ConflictError(message)
    if e.status == 404:
        return ResourceNotFoundError(message)
    return ObjectStoreError(message)


class KubernetesStore:
    """ObjectStore backed by the official Kubernetes Python client."""

    def __init__(
        self,
        core_api: CoreV1Api,
        apps_api: AppsV1Api,
        custom_api: CustomObjectsApi,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            core_api: Client for Services and ConfigMaps
            apps_api: Client for Deployments
            custom_api: Client for PretzelAI objects
            request_timeout: Timeout in seconds applied to every API call
        """
        self._core_api = core_api
        self._apps_api = apps_api
        self._custom_api = custom_api
        self._request_timeout = request_timeout
        self._ops = {
            KIND_DEPLOYMENT: _KindOps(
                read=apps_api.read_namespaced_deployment,
                create=apps_api.create_namespaced_deployment,
                replace=apps_api.replace_namespaced_deployment,
                list=apps_api.list_namespaced_deployment,
            ),
            KIND_SERVICE: _KindOps(
                read=core_api.read_namespaced_service,
                create=core_api.create_namespaced_service,
                replace=core_api.replace_namespaced_service,
                list=core_api.list_namespaced_service,
            ),
            KIND_CONFIGMAP: _KindOps(
                read=core_api.read_namespaced_config_map,
                create=core_api.create_namespaced_config_map,
                replace=core_api.replace_namespaced_config_map,
                list=core_api.list_namespaced_config_map,
            ),
        }

    def _kwargs(self) -> dict[str, Any]:
        if self._request_timeout is None:
            return {}
        return {"_request_timeout": self._request_timeout}

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert a typed client model to the camelCase dict the API speaks."""
        if isinstance(obj, dict):
            return obj
        return self._core_api.api_client.sanitize_for_serialization(obj)

    def _kind_ops(self, kind: str) -> _KindOps:
        try:
            return self._ops[kind]
        except KeyError:
            raise ValueError(f"Unsupported kind: {kind}") from None

    def _call(
        self,
        operation: str,
        kind: str,
        name: str,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Invoke an API call, translating errors and counting the outcome."""
        try:
            result = fn(*args, **kwargs, **self._kwargs())
        except ApiException as e:
            STORE_API_CALLS.labels(kind=kind, operation=operation, status="error").inc()
            raise _translate(e, operation, kind, name) from e
        STORE_API_CALLS.labels(kind=kind, operation=operation, status="success").inc()
        return result

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        try:
            if kind == KIND_PRETZELAI:
                obj = self._call(
                    "get", kind, name,
                    self._custom_api.get_namespaced_custom_object,
                    GROUP, VERSION, namespace, PLURAL, name,
                )
            else:
                obj = self._call("get", kind, name, self._kind_ops(kind).read, name, namespace)
        except ResourceNotFoundError:
            logger.debug("%s %s/%s not found", kind, namespace, name)
            return None
        return self._to_dict(obj)

    def create(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        namespace = obj["metadata"]["namespace"]
        name = obj["metadata"]["name"]
        if kind == KIND_PRETZELAI:
            created = self._call(
                "create", kind, name,
                self._custom_api.create_namespaced_custom_object,
                GROUP, VERSION, namespace, PLURAL, obj,
            )
        else:
            created = self._call("create", kind, name, self._kind_ops(kind).create, namespace, obj)
        return self._to_dict(created)

    def update(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        namespace = obj["metadata"]["namespace"]
        name = obj["metadata"]["name"]
        if kind == KIND_PRETZELAI:
            updated = self._call(
                "update", kind, name,
                self._custom_api.replace_namespaced_custom_object,
                GROUP, VERSION, namespace, PLURAL, name, obj,
            )
        else:
            updated = self._call("update", kind, name, self._kind_ops(kind).replace, name, namespace, obj)
        return self._to_dict(updated)

    def update_status(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        if kind != KIND_PRETZELAI:
            raise ValueError(f"Status subresource writes are not supported for {kind}")
        namespace = obj["metadata"]["namespace"]
        name = obj["metadata"]["name"]
        updated = self._call(
            "update_status", kind, name,
            self._custom_api.replace_namespaced_custom_object_status,
            GROUP, VERSION, namespace, PLURAL, name, obj,
        )
        return self._to_dict(updated)

    def list(
        self, kind: str, namespace: str, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        selector = {"label_selector": label_selector} if label_selector else {}
        if kind == KIND_PRETZELAI:
            result = self._call(
                "list", kind, namespace,
                self._custom_api.list_namespaced_custom_object,
                GROUP, VERSION, namespace, PLURAL, **selector,
            )
            return list(result.get("items", []))
        result = self._call("list", kind, namespace, self._kind_ops(kind).list, namespace, **selector)
        return [self._to_dict(item) for item in result.items]
