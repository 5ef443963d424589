"""Extraction of the fields a field manager owns on a live object.

Server-side apply records ownership in ``metadata.managedFields`` as a
``FieldsV1`` trie:

- ``f:<name>`` selects a map field,
- ``k:<json>`` selects a list item whose fields equal the JSON object,
- ``v:<json>`` selects a list item equal to the JSON value,
- ``.`` marks the node itself as owned.

A node with no children other than ``.`` means the whole value is owned
(scalars, atomic lists, atomic maps).
"""

from __future__ import annotations

import copy
import json
from typing import Any

from ..constants import FIELD_MANAGER

APPLY_OPERATION = "Apply"


def find_managed_fields(obj: dict[str, Any], manager: str = FIELD_MANAGER) -> dict[str, Any] | None:
    """Return the FieldsV1 trie applied by ``manager``, if any."""
    for entry in (obj.get("metadata") or {}).get("managedFields") or []:
        if entry.get("manager") == manager and entry.get("operation") == APPLY_OPERATION:
            return entry.get("fieldsV1") or {}
    return None


def _is_leaf(fields: Any) -> bool:
    return not isinstance(fields, dict) or all(key == "." for key in fields)


def _item_matches(item: Any, keys: dict[str, Any]) -> bool:
    return isinstance(item, dict) and all(item.get(k) == v for k, v in keys.items())


def extract_fields(value: Any, fields: Any) -> Any:
    """Return the part of ``value`` selected by a FieldsV1 trie."""
    if _is_leaf(fields):
        return copy.deepcopy(value)

    if isinstance(value, dict):
        result = {}
        for key, sub in fields.items():
            if key.startswith("f:"):
                name = key[2:]
                if name in value:
                    result[name] = extract_fields(value[name], sub)
        return result

    if isinstance(value, list):
        selectors = []
        for key, sub in fields.items():
            if key.startswith("k:"):
                selectors.append(("k", json.loads(key[2:]), sub))
            elif key.startswith("v:"):
                selectors.append(("v", json.loads(key[2:]), sub))

        result = []
        for item in value:
            for selector, match, sub in selectors:
                if selector == "k" and _item_matches(item, match):
                    result.append(extract_fields(item, sub))
                    break
                if selector == "v" and item == match:
                    result.append(copy.deepcopy(item))
                    break
        return result

    return copy.deepcopy(value)


def extract_managed_view(
    obj: dict[str, Any],
    api_version: str,
    kind: str,
    manager: str = FIELD_MANAGER,
) -> dict[str, Any]:
    """Build the apply-configuration view of ``obj`` owned by ``manager``.

    The identity fields (apiVersion, kind, name, namespace) are always
    present, so an object the manager never applied yields a view holding
    nothing else.

    Args:
        obj: Live object as a dictionary
        api_version: apiVersion to report in the view
        kind: kind to report in the view
        manager: Field manager name

    Returns:
        Dictionary comparable with an apply manifest
    """
    fields = find_managed_fields(obj, manager)
    view = extract_fields(obj, fields) if fields else {}

    view.pop("status", None)
    view["apiVersion"] = api_version
    view["kind"] = kind

    live_meta = obj.get("metadata") or {}
    metadata = view.setdefault("metadata", {})
    metadata["name"] = live_meta.get("name")
    metadata["namespace"] = live_meta.get("namespace")
    return view
