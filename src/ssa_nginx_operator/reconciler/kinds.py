"""Typed access to each child resource kind.

Every child kind exposes the same capability set (read, list, apply,
delete) over one resource of the ``kubernetes`` client, so the engine can
iterate an ordered list of kinds instead of repeating the sequence per kind.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..builders.descriptor import Descriptor
from ..constants import (
    FIELD_MANAGER,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
    KIND_SECRET,
    KIND_SERVICE,
    SECRET_ROLE_CA,
    SECRET_ROLE_CLIENT,
)
from ..utils.errors import is_not_found
from ..utils.rate_limit import rate_limit_k8s

APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


class ChildKind:
    """Read/list/apply/delete for one namespaced resource.

    ``resource`` is the snake_case suffix used by the generated client
    methods, e.g. ``config_map`` for ``read_namespaced_config_map``.
    """

    def __init__(self, kind: str, api: Any, resource: str):
        self.kind = kind
        self.api = api
        self.resource = resource

    def __repr__(self) -> str:
        return f"ChildKind({self.kind})"

    def _call(self, operation: str, **kwargs: Any) -> Any:
        method = getattr(self.api, f"{operation}_namespaced_{self.resource}")
        label = f"{operation}_{self.resource}"
        start_time = time.time()
        try:
            result = rate_limit_k8s(method)(**kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=label, result="success").inc()
            return result
        except ApiException as e:
            result_label = "not_found" if is_not_found(e) else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=label, result=result_label).inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=label).observe(duration)

    def to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert a client model to its camelCase wire form."""
        if isinstance(obj, dict):
            return obj
        return self.api.api_client.sanitize_for_serialization(obj)

    def read(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Fetch an object; None when it does not exist."""
        try:
            return self.to_dict(self._call("read", name=name, namespace=namespace))
        except ApiException as e:
            if is_not_found(e):
                return None
            raise

    def list(self, namespace: str, label_selector: str | None = None) -> list[dict[str, Any]]:
        """List objects in a namespace, optionally filtered by labels."""
        response = self.to_dict(self._call("list", namespace=namespace, label_selector=label_selector))
        return response.get("items") or []

    def apply(self, manifest: dict[str, Any]) -> dict[str, Any]:
        """Server-side apply ``manifest``, taking ownership of conflicting fields."""
        metadata = manifest["metadata"]
        applied = self._call(
            "patch",
            name=metadata["name"],
            namespace=metadata["namespace"],
            body=manifest,
            field_manager=FIELD_MANAGER,
            force=True,
            _content_type=APPLY_PATCH_CONTENT_TYPE,
        )
        return self.to_dict(applied)

    def delete(self, name: str, namespace: str) -> bool:
        """Delete an object; False when it was already gone."""
        try:
            self._call("delete", name=name, namespace=namespace)
        except ApiException as e:
            if is_not_found(e):
                return False
            raise
        return True


class ChildKinds:
    """The set of kinds a descriptor owns, bound to API clients."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        apps_api: client.AppsV1Api,
        networking_api: client.NetworkingV1Api,
    ):
        self.config_map = ChildKind(KIND_CONFIG_MAP, core_api, "config_map")
        self.deployment = ChildKind(KIND_DEPLOYMENT, apps_api, "deployment")
        self.service = ChildKind(KIND_SERVICE, core_api, "service")
        self.ingress = ChildKind(KIND_INGRESS, networking_api, "ingress")
        self.secret = ChildKind(KIND_SECRET, core_api, "secret")


@dataclass(frozen=True)
class ChildSpec:
    """One owned child slot: its kind and the name the descriptor wants."""

    label: str
    kind: ChildKind
    desired_name: Callable[[Descriptor], str]
    secret_role: str | None = None


def create_child_specs(kinds: ChildKinds) -> list[ChildSpec]:
    """Child slots in reconcile order."""
    return [
        ChildSpec("configmap", kinds.config_map, lambda d: d.config_map_name),
        ChildSpec("deployment", kinds.deployment, lambda d: d.deployment_name),
        ChildSpec("service", kinds.service, lambda d: d.service_name),
        ChildSpec("ingress", kinds.ingress, lambda d: d.ingress_name),
        ChildSpec("ca-secret", kinds.secret, lambda d: d.ca_secret_name, SECRET_ROLE_CA),
        ChildSpec("client-secret", kinds.secret, lambda d: d.client_secret_name, SECRET_ROLE_CLIENT),
    ]
