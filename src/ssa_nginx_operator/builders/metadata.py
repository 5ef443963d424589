"""Metadata shared by every child manifest."""

from __future__ import annotations

from typing import Any

from ..constants import LABEL_MANAGED_BY, LABEL_OWNER_NAME, LABEL_SECRET_ROLE, OPERATOR_NAME
from .descriptor import Descriptor


def create_owner_reference(descriptor: Descriptor) -> dict[str, Any]:
    """Controller owner reference pointing at the descriptor."""
    return {
        "apiVersion": descriptor.api_version,
        "kind": descriptor.kind,
        "name": descriptor.name,
        "uid": descriptor.uid,
        "blockOwnerDeletion": True,
        "controller": True,
    }


def create_child_labels(descriptor: Descriptor, secret_role: str | None = None) -> dict[str, str]:
    """Labels used by the ownership index to find children of a descriptor."""
    labels = {
        LABEL_MANAGED_BY: OPERATOR_NAME,
        LABEL_OWNER_NAME: descriptor.name,
    }
    if secret_role:
        labels[LABEL_SECRET_ROLE] = secret_role
    return labels


def create_child_metadata(
    descriptor: Descriptor,
    name: str,
    secret_role: str | None = None,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Object metadata for a child owned by the descriptor."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": descriptor.namespace,
        "labels": create_child_labels(descriptor, secret_role),
        "ownerReferences": [create_owner_reference(descriptor)],
    }
    if annotations:
        metadata["annotations"] = annotations
    return metadata
