"""Builder for the nginx Service."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import KIND_SERVICE, POD_LABELS
from .descriptor import Descriptor
from .metadata import create_child_metadata


def create_service_from_descriptor(descriptor: Descriptor) -> dict[str, Any]:
    """Create the Service apply manifest; selector defaults to the pod labels."""
    spec = copy.deepcopy(descriptor.service_spec)
    if not spec.get("selector"):
        spec["selector"] = dict(POD_LABELS)

    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": create_child_metadata(descriptor, descriptor.service_name),
        "spec": spec,
    }
