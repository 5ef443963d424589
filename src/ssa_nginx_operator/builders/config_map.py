"""Builder for the nginx ConfigMap."""

from __future__ import annotations

from typing import Any

from ..constants import INDEX_KEY_MARKER, KIND_CONFIG_MAP
from .descriptor import Descriptor
from .metadata import create_child_metadata


def create_config_map_from_descriptor(descriptor: Descriptor) -> dict[str, Any]:
    """Create the ConfigMap apply manifest.

    Args:
        descriptor: Parsed descriptor

    Returns:
        ConfigMap manifest
    """
    manifest: dict[str, Any] = {
        "apiVersion": "v1",
        "kind": KIND_CONFIG_MAP,
        "metadata": create_child_metadata(descriptor, descriptor.config_map_name),
    }
    if descriptor.config_map_data:
        manifest["data"] = dict(sorted(descriptor.config_map_data.items()))
    return manifest


def find_index_key(data: dict[str, str] | None) -> str | None:
    """Return the first key (sorted) that holds an HTML page, if any."""
    for key in sorted(data or {}):
        if INDEX_KEY_MARKER in key:
            return key
    return None
