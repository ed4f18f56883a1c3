"""Generic create-or-patch convergence for owned resources.

Each owned kind is described by three functions:

- ``build``: the desired representation, derived only from the owner's spec
  (``None`` when the resource is not wanted)
- ``watched_fields_equal``: compares only the fields this controller manages
- ``apply``: copies those fields from the desired object onto the live one

Comparing watched fields only keeps platform-managed fields (timestamps,
generated labels, defaulted values) from triggering updates, which would
otherwise cause a reconcile-update-reconcile cycle.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import kopf

from metrics import OWNED_RESOURCE_WRITES
from store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Converger:
    """Converges one owned resource kind towards its desired representation."""

    kind: str
    build: Callable[[dict[str, Any]], dict[str, Any] | None]
    watched_fields_equal: Callable[[dict[str, Any], dict[str, Any]], bool]
    apply: Callable[[dict[str, Any], dict[str, Any]], None]

    def desired(self, owner: dict[str, Any]) -> dict[str, Any] | None:
        """Build the desired representation stamped with an owner reference."""
        desired = self.build(owner)
        if desired is None:
            return None
        kopf.append_owner_reference(
            desired, owner=owner, controller=True, block_owner_deletion=True
        )
        return desired

    def converge(self, store: ObjectStore, owner: dict[str, Any]) -> dict[str, Any] | None:
        """Create or patch the owned resource so its watched fields match.

        Args:
            store: Object store
            owner: The PretzelAI object owning the resource

        Returns:
            The live (possibly created or updated) object, or None when
            the resource is not wanted
        """
        desired = self.desired(owner)
        if desired is None:
            return None

        namespace = desired["metadata"]["namespace"]
        name = desired["metadata"]["name"]

        live = store.get(self.kind, namespace, name)
        if live is None:
            logger.info(f"Creating {self.kind} {namespace}/{name}")
            created = store.create(self.kind, desired)
            OWNED_RESOURCE_WRITES.labels(kind=self.kind, operation="create").inc()
            return created

        if self.watched_fields_equal(desired, live):
            logger.debug(f"{self.kind} {namespace}/{name} is up to date")
            return live

        logger.info(f"Updating drifted {self.kind} {namespace}/{name}")
        self.apply(live, desired)
        updated = store.update(self.kind, live)
        OWNED_RESOURCE_WRITES.labels(kind=self.kind, operation="update").inc()
        return updated
