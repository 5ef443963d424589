"""Ownership index and garbage collection of renamed children."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .. import metrics
from ..builders.descriptor import Descriptor
from ..constants import KIND_SSANGINX, LABEL_MANAGED_BY, LABEL_OWNER_NAME, LABEL_SECRET_ROLE, OPERATOR_NAME
from .kinds import ChildSpec

logger = logging.getLogger(__name__)


def owner_label_selector(owner_name: str, secret_role: str | None = None) -> str:
    selector = f"{LABEL_MANAGED_BY}={OPERATOR_NAME},{LABEL_OWNER_NAME}={owner_name}"
    if secret_role:
        selector = f"{selector},{LABEL_SECRET_ROLE}={secret_role}"
    return selector


def is_controlled_by(obj: dict[str, Any], owner_name: str, owner_kind: str = KIND_SSANGINX) -> bool:
    """True when the controller owner reference points at ``owner_name``."""
    for ref in (obj.get("metadata") or {}).get("ownerReferences") or []:
        if ref.get("controller") and ref.get("kind") == owner_kind and ref.get("name") == owner_name:
            return True
    return False


def list_owned(spec: ChildSpec, namespace: str, owner_name: str) -> list[dict[str, Any]]:
    """Children in one slot controlled by the named descriptor.

    Rebuilt from the cluster on every call: the label selector narrows the
    list server side, the owner reference decides.
    """
    items = spec.kind.list(namespace, owner_label_selector(owner_name, spec.secret_role))
    return [item for item in items if is_controlled_by(item, owner_name)]


class GarbageCollector:
    """Delete owned children whose name the descriptor no longer asks for."""

    def __init__(self, specs: list[ChildSpec]):
        self.specs = specs

    def collect(
        self,
        descriptor: Descriptor,
        on_deleted: Callable[[str, str], None] | None = None,
    ) -> list[tuple[str, str]]:
        """Run one pass.

        Args:
            descriptor: Current descriptor
            on_deleted: Called with (kind, name) for every removed child

        Returns:
            (kind, name) pairs that were removed
        """
        deleted = []
        for spec in self.specs:
            desired_name = spec.desired_name(descriptor)
            for obj in list_owned(spec, descriptor.namespace, descriptor.name):
                name = obj["metadata"]["name"]
                if name == desired_name:
                    continue

                # 404 means a concurrent pass already removed it
                if spec.kind.delete(name, descriptor.namespace):
                    metrics.child_deleted_total.labels(child_kind=spec.kind.kind).inc()
                else:
                    logger.debug("%s %s/%s already deleted", spec.kind.kind, descriptor.namespace, name)

                deleted.append((spec.kind.kind, name))
                if on_deleted is not None:
                    on_deleted(spec.kind.kind, name)
        return deleted
