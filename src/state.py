"""Shared operator state - thread-safe singleton for the Kubernetes object store."""

import threading
from collections import defaultdict
from dataclasses import dataclass, field

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config

import config
from models import ObjectKey
from store import KubernetesStore, ObjectStore


@dataclass
class OperatorState:
    """Thread-safe operator state container.

    This class provides thread-safe access to shared operator resources:
    - The object store over the Kubernetes API
    - One lock per PretzelAI identity, so passes for the same object
      never overlap

    Handlers should use the global `state` instance and pass the store
    into the reconcile core rather than creating their own clients.
    """

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _store: ObjectStore | None = field(default=None, repr=False)
    _k8s_configured: bool = field(default=False, repr=False)
    _identity_locks: defaultdict[ObjectKey, threading.Lock] = field(
        default_factory=lambda: defaultdict(threading.Lock), repr=False
    )

    def _ensure_k8s_config(self) -> None:
        """Ensure Kubernetes configuration is loaded (must hold lock)."""
        if not self._k8s_configured:
            try:
                k8s_config.load_incluster_config()
            except k8s_config.ConfigException:
                k8s_config.load_kube_config()
            self._k8s_configured = True

    def get_store(self) -> ObjectStore:
        """Get or create the object store (thread-safe)."""
        with self._lock:
            if self._store is None:
                self._ensure_k8s_config()
                self._store = KubernetesStore(
                    core_api=k8s_client.CoreV1Api(),
                    apps_api=k8s_client.AppsV1Api(),
                    custom_api=k8s_client.CustomObjectsApi(),
                    request_timeout=config.request_timeout,
                )
            return self._store

    def set_store(self, store: ObjectStore | None) -> None:
        """Replace the object store, e.g. with an in-memory one in tests."""
        with self._lock:
            self._store = store

    def identity_lock(self, key: ObjectKey) -> threading.Lock:
        """Get the lock serializing passes for one PretzelAI."""
        with self._lock:
            return self._identity_locks[key]

    def forget(self, key: ObjectKey) -> None:
        """Drop the lock of a PretzelAI that no longer exists."""
        with self._lock:
            self._identity_locks.pop(key, None)

    def close(self) -> None:
        """Release the object store."""
        with self._lock:
            self._store = None
            self._identity_locks.clear()


# Global operator state singleton
state = OperatorState()


def get_store() -> ObjectStore:
    """Get the shared object store."""
    return state.get_store()
