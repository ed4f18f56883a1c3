"""Shared fixtures: an in-memory object store and PretzelAI factories."""

import copy
import itertools
import uuid
from typing import Any, Callable

import pytest

from constants import API_VERSION, KIND_PRETZELAI
from models import ConflictError, ResourceNotFoundError
from state import state


class FakeStore:
    """In-memory ObjectStore with the API server behaviour the core relies on.

    - every write bumps metadata.resourceVersion, stale writes raise ConflictError
    - update() never touches status, update_status() touches nothing else
    - a terminating object whose finalizers become empty is deleted, and the
      deletion cascades to objects carrying an owner reference to it
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.writes: list[tuple[str, str, str]] = []
        self._versions = itertools.count(1)
        self._failures: list[tuple[str, str, Exception]] = []

    # -- test helpers ---------------------------------------------------------

    def put(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Seed an object without recording a write."""
        obj = copy.deepcopy(obj)
        metadata = obj.setdefault("metadata", {})
        metadata.setdefault("uid", str(uuid.uuid4()))
        metadata["resourceVersion"] = str(next(self._versions))
        self.objects[self._key(kind, obj)] = obj
        return copy.deepcopy(obj)

    def peek(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def mutate(
        self, kind: str, namespace: str, name: str, fn: Callable[[dict[str, Any]], None]
    ) -> None:
        """Change an object out-of-band, as another writer would."""
        obj = self.objects[(kind, namespace, name)]
        fn(obj)
        obj["metadata"]["resourceVersion"] = str(next(self._versions))
        self._collect_if_released(kind, obj)

    def mark_for_deletion(self, kind: str, namespace: str, name: str) -> None:
        """Request deletion: set deletionTimestamp, or delete if nothing blocks it."""
        self.mutate(
            kind,
            namespace,
            name,
            lambda obj: obj["metadata"].setdefault(
                "deletionTimestamp", "2025-01-01T00:00:00Z"
            ),
        )

    def fail_next(self, operation: str, kind: str, error: Exception) -> None:
        """Make the next matching call raise the given error."""
        self._failures.append((operation, kind, error))

    def kinds(self, kind: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(o) for (k, _, _), o in self.objects.items() if k == kind]

    def owned_writes(self) -> list[tuple[str, str, str]]:
        return [w for w in self.writes if w[1] != KIND_PRETZELAI]

    # -- ObjectStore ----------------------------------------------------------

    @staticmethod
    def _key(kind: str, obj: dict[str, Any]) -> tuple[str, str, str]:
        return kind, obj["metadata"]["namespace"], obj["metadata"]["name"]

    def _maybe_fail(self, operation: str, kind: str) -> None:
        for i, (op, k, error) in enumerate(self._failures):
            if op == operation and k == kind:
                del self._failures[i]
                raise error

    def _check_version(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        key = self._key(kind, obj)
        if key not in self.objects:
            raise ResourceNotFoundError(f"{kind} {key[1]}/{key[2]} not found")
        current = self.objects[key]
        if obj["metadata"].get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"{kind} {key[1]}/{key[2]} was modified")
        return current

    def _collect_if_released(self, kind: str, obj: dict[str, Any]) -> None:
        metadata = obj["metadata"]
        if metadata.get("deletionTimestamp") and not metadata.get("finalizers"):
            self._delete(kind, obj)

    def _delete(self, kind: str, obj: dict[str, Any]) -> None:
        self.objects.pop(self._key(kind, obj), None)
        uid = obj["metadata"]["uid"]
        for key, child in list(self.objects.items()):
            refs = child["metadata"].get("ownerReferences") or []
            if any(ref.get("uid") == uid for ref in refs):
                self._delete(key[0], child)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        self._maybe_fail("get", kind)
        return self.peek(kind, namespace, name)

    def create(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        self._maybe_fail("create", kind)
        if self._key(kind, obj) in self.objects:
            raise ConflictError(f"{kind} {obj['metadata']['name']} already exists")
        self.writes.append(("create", kind, obj["metadata"]["name"]))
        return self.put(kind, obj)

    def update(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        self._maybe_fail("update", kind)
        current = self._check_version(kind, obj)
        self.writes.append(("update", kind, obj["metadata"]["name"]))
        updated = copy.deepcopy(obj)
        updated.pop("status", None)
        if "status" in current:
            updated["status"] = copy.deepcopy(current["status"])
        updated["metadata"]["resourceVersion"] = str(next(self._versions))
        self.objects[self._key(kind, updated)] = updated
        self._collect_if_released(kind, updated)
        return copy.deepcopy(updated)

    def update_status(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        self._maybe_fail("update_status", kind)
        current = self._check_version(kind, obj)
        self.writes.append(("update_status", kind, obj["metadata"]["name"]))
        current["status"] = copy.deepcopy(obj.get("status") or {})
        current["metadata"]["resourceVersion"] = str(next(self._versions))
        return copy.deepcopy(current)

    def list(
        self, kind: str, namespace: str, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(obj)
            for (k, ns, _), obj in self.objects.items()
            if k == kind and ns == namespace
        ]


def make_pretzelai(
    name: str = "demo", namespace: str = "default", **spec: Any
) -> dict[str, Any]:
    """Build a PretzelAI object as the API server would return it."""
    return {
        "apiVersion": API_VERSION,
        "kind": KIND_PRETZELAI,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def pretzelai(store: FakeStore) -> dict[str, Any]:
    """A PretzelAI with every spec field set, seeded into the store."""
    return store.put(
        KIND_PRETZELAI,
        make_pretzelai(
            replicas=2,
            image="x:latest",
            configMapName="cfg",
            serviceType="ClusterIP",
        ),
    )


@pytest.fixture
def operator_store(store: FakeStore):
    """Install the fake store as the operator's shared store."""
    state.set_store(store)
    yield store
    state.close()
