"""Shared fixtures: an in-memory cluster that mimics server-side apply."""

from __future__ import annotations

import copy
import json
import uuid
from typing import Any
from unittest.mock import patch

import pytest
from kubernetes.client.exceptions import ApiException

from ssa_nginx_operator.constants import API_GROUP_VERSION, FIELD_MANAGER, KIND_SSANGINX


def build_fields(value: Any) -> dict[str, Any]:
    """FieldsV1 trie naming every field of an applied manifest.

    Lists of objects carrying ``name`` are keyed by it, other lists are atomic.
    """
    if isinstance(value, dict):
        return {f"f:{key}": build_fields(sub) for key, sub in value.items()}
    if isinstance(value, list) and value and all(isinstance(i, dict) and "name" in i for i in value):
        fields = {}
        for item in value:
            item_fields = build_fields(item)
            item_fields["."] = {}
            fields["k:" + json.dumps({"name": item["name"]})] = item_fields
        return fields
    return {}


class FakeCluster:
    """Namespaced objects keyed by (kind, namespace, name)."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.descriptors: dict[tuple[str, str], dict[str, Any]] = {}
        self.writes: list[tuple[str, str, str]] = []
        self.failures: dict[tuple[str, str], ApiException] = {}

    def _maybe_fail(self, op: str, kind: str) -> None:
        error = self.failures.get((op, kind))
        if error is not None:
            raise error

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def names(self, kind: str, namespace: str) -> list[str]:
        return sorted(n for (k, ns, n) in self.objects if k == kind and ns == namespace)

    def writes_since(self, mark: int) -> list[tuple[str, str, str]]:
        return self.writes[mark:]

    def add_descriptor(self, body: dict[str, Any]) -> dict[str, Any]:
        body = copy.deepcopy(body)
        meta = body.setdefault("metadata", {})
        meta.setdefault("uid", str(uuid.uuid4()))
        meta.setdefault("generation", 1)
        body.setdefault("apiVersion", API_GROUP_VERSION)
        body.setdefault("kind", KIND_SSANGINX)
        self.descriptors[(meta["namespace"], meta["name"])] = body
        return body

    def update_descriptor_spec(self, namespace: str, name: str, **changes: Any) -> None:
        body = self.descriptors[(namespace, name)]
        body["spec"].update(copy.deepcopy(changes))
        body["metadata"]["generation"] += 1

    def mark_observed(self, namespace: str, name: str) -> None:
        """Record the current generation in status, as a successful pass would."""
        body = self.descriptors[(namespace, name)]
        body.setdefault("status", {})["observedGeneration"] = body["metadata"]["generation"]

    def get_custom(self, namespace: str, name: str) -> dict[str, Any]:
        body = self.descriptors.get((namespace, name))
        if body is None:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(body)

    def read(self, kind: str, name: str, namespace: str) -> dict[str, Any]:
        self._maybe_fail("read", kind)
        obj = self.get(kind, namespace, name)
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        return obj

    def list(self, kind: str, namespace: str, label_selector: str | None = None) -> dict[str, Any]:
        self._maybe_fail("list", kind)
        wanted = dict(part.split("=", 1) for part in label_selector.split(",")) if label_selector else {}
        items = []
        for (k, ns, _), obj in sorted(self.objects.items()):
            if k != kind or ns != namespace:
                continue
            labels = obj["metadata"].get("labels") or {}
            if all(labels.get(key) == value for key, value in wanted.items()):
                items.append(copy.deepcopy(obj))
        return {"items": items}

    def patch(
        self,
        kind: str,
        name: str,
        namespace: str,
        body: dict[str, Any],
        field_manager: str,
        force: bool,
        _content_type: str,
    ) -> dict[str, Any]:
        """Server-side apply: the manifest becomes the manager's owned set."""
        self._maybe_fail("patch", kind)
        assert _content_type == "application/apply-patch+yaml"
        assert field_manager == FIELD_MANAGER and force is True

        existing = self.objects.get((kind, namespace, name))
        obj = copy.deepcopy(body)
        fields = build_fields({k: v for k, v in body.items() if k not in ("apiVersion", "kind")})

        metadata = obj["metadata"]
        metadata["uid"] = existing["metadata"]["uid"] if existing else str(uuid.uuid4())
        metadata["resourceVersion"] = str(len(self.writes) + 1)
        metadata["managedFields"] = [
            {
                "manager": field_manager,
                "operation": "Apply",
                "apiVersion": body["apiVersion"],
                "fieldsType": "FieldsV1",
                "fieldsV1": fields,
            }
        ]

        # Server defaulted fields nobody applied
        if kind == "Service":
            obj["spec"]["clusterIP"] = "10.96.0.10"
        elif kind == "Deployment":
            obj["spec"].setdefault("revisionHistoryLimit", 10)
            obj["status"] = {"replicas": obj["spec"].get("replicas", 1)}

        self.objects[(kind, namespace, name)] = obj
        self.writes.append(("apply", kind, name))
        return copy.deepcopy(obj)

    def delete(self, kind: str, name: str, namespace: str) -> dict[str, Any]:
        self._maybe_fail("delete", kind)
        if (kind, namespace, name) not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        del self.objects[(kind, namespace, name)]
        self.writes.append(("delete", kind, name))
        return {"status": "Success"}


class FakeApi:
    """Stands in for a typed API class, routing generated methods to the cluster."""

    OPERATIONS = ("read", "list", "patch", "delete")

    def __init__(self, cluster: FakeCluster, resources: dict[str, str]):
        self.cluster = cluster
        self.resources = resources

    def __getattr__(self, attr: str) -> Any:
        for op in self.OPERATIONS:
            prefix = f"{op}_namespaced_"
            if attr.startswith(prefix) and attr[len(prefix):] in self.resources:
                kind = self.resources[attr[len(prefix):]]
                method = getattr(self.cluster, op)

                def call(**kwargs: Any) -> Any:
                    return method(kind, **kwargs)

                call.__name__ = attr
                return call
        raise AttributeError(attr)


class FakeCustomObjectsApi:
    def __init__(self, cluster: FakeCluster):
        self.cluster = cluster

    def get_namespaced_custom_object(self, group: str, version: str, namespace: str, plural: str, name: str):
        return self.cluster.get_custom(namespace, name)


def make_descriptor_body(
    name: str = "test",
    namespace: str = "ns",
    config_map_name: str = "nginx",
    deployment_name: str = "nginx",
    service_name: str = "nginx",
    ingress_name: str = "nginx",
    host: str = "a.example.com",
    secure: bool = False,
    replicas: int = 3,
    config_map_data: dict[str, str] | None = None,
) -> dict[str, Any]:
    """SSANginx object shaped like one stored in the cluster."""
    if config_map_data is None:
        config_map_data = {
            "default.conf": "server {\n    listen 80;\n    location / {\n        root /usr/share/nginx/html;\n    }\n}\n",
            "index.html": "<html><body>hello</body></html>\n",
        }
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_SSANGINX,
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}", "generation": 1},
        "spec": {
            "configMapName": config_map_name,
            "configMapData": config_map_data,
            "deploymentName": deployment_name,
            "deploymentSpec": {
                "replicas": replicas,
                "strategy": {"type": "RollingUpdate"},
                "template": {
                    "spec": {
                        "containers": [
                            {"name": "nginx", "image": "nginx:latest", "ports": [{"containerPort": 80}]},
                        ],
                    },
                },
            },
            "serviceName": service_name,
            "serviceSpec": {
                "type": "ClusterIP",
                "ports": [{"protocol": "TCP", "port": 80, "targetPort": 80}],
            },
            "ingressName": ingress_name,
            "ingressSpec": {
                "rules": [
                    {
                        "host": host,
                        "http": {
                            "paths": [
                                {
                                    "path": "/",
                                    "pathType": "Prefix",
                                    "backend": {"service": {"name": service_name, "port": {"number": 80}}},
                                }
                            ]
                        },
                    }
                ],
            },
            "ingressSecureEnabled": secure,
        },
    }


@pytest.fixture(autouse=True)
def no_rate_limit_delay():
    """Keep the client-side throttle from slowing tests down."""
    with patch("ssa_nginx_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1_000_000.0):
        yield


@pytest.fixture
def mock_events():
    """Capture kopf events instead of posting them."""
    with patch("ssa_nginx_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def apis(cluster: FakeCluster) -> dict[str, Any]:
    return {
        "custom_api": FakeCustomObjectsApi(cluster),
        "core_api": FakeApi(cluster, {"config_map": "ConfigMap", "service": "Service", "secret": "Secret"}),
        "apps_api": FakeApi(cluster, {"deployment": "Deployment"}),
        "networking_api": FakeApi(cluster, {"ingress": "Ingress"}),
    }


@pytest.fixture
def reconciler(apis: dict[str, Any], mock_events):
    from ssa_nginx_operator.reconciler import Reconciler

    return Reconciler(**apis)
