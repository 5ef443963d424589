"""Parsing and validation of the SSANginx descriptor."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from ..constants import API_GROUP_VERSION, CA_SECRET_SUFFIX, CLIENT_SECRET_SUFFIX, KIND_SSANGINX


@dataclass(frozen=True)
class Descriptor:
    """Desired state read from an SSANginx object."""

    name: str
    namespace: str
    uid: str
    config_map_name: str
    deployment_name: str
    service_name: str
    ingress_name: str
    config_map_data: dict[str, str] = field(default_factory=dict)
    deployment_spec: dict[str, Any] = field(default_factory=dict)
    service_spec: dict[str, Any] = field(default_factory=dict)
    ingress_spec: dict[str, Any] = field(default_factory=dict)
    ingress_secure_enabled: bool = False
    api_version: str = API_GROUP_VERSION
    kind: str = KIND_SSANGINX
    generation: int = 0

    @property
    def host(self) -> str | None:
        """Host of the first ingress rule."""
        rules = self.ingress_spec.get("rules") or []
        if not rules:
            return None
        return rules[0].get("host")

    @property
    def ca_secret_name(self) -> str:
        """Secret holding the CA certificate and the server pair."""
        return f"{self.name}-{CA_SECRET_SUFFIX}"

    @property
    def client_secret_name(self) -> str:
        return f"{self.name}-{CLIENT_SECRET_SUFFIX}"


def create_descriptor_from_body(body: dict[str, Any]) -> Descriptor:
    """Create a Descriptor from an SSANginx object.

    Args:
        body: Full custom object as returned by the API

    Returns:
        Parsed descriptor; nested specs are deep copies
    """
    meta = body.get("metadata", {})
    spec = body.get("spec", {})
    return Descriptor(
        name=meta.get("name", ""),
        namespace=meta.get("namespace", "default"),
        uid=meta.get("uid", ""),
        generation=meta.get("generation", 0),
        api_version=body.get("apiVersion", API_GROUP_VERSION),
        kind=body.get("kind", KIND_SSANGINX),
        config_map_name=spec.get("configMapName", ""),
        config_map_data=dict(spec.get("configMapData") or {}),
        deployment_name=spec.get("deploymentName", ""),
        deployment_spec=copy.deepcopy(spec.get("deploymentSpec") or {}),
        service_name=spec.get("serviceName", ""),
        service_spec=copy.deepcopy(spec.get("serviceSpec") or {}),
        ingress_name=spec.get("ingressName", ""),
        ingress_spec=copy.deepcopy(spec.get("ingressSpec") or {}),
        ingress_secure_enabled=bool(spec.get("ingressSecureEnabled", False)),
    )


def _first_backend(descriptor: Descriptor) -> dict[str, Any]:
    rules = descriptor.ingress_spec.get("rules") or [{}]
    paths = (rules[0].get("http") or {}).get("paths") or [{}]
    return (paths[0].get("backend") or {}).get("service") or {}


def validate_descriptor(descriptor: Descriptor) -> list[str]:
    """Validate a descriptor before any child is written.

    Args:
        descriptor: Parsed descriptor

    Returns:
        List of error messages, empty when valid
    """
    errors = []

    for field_name, value in (
        ("configMapName", descriptor.config_map_name),
        ("deploymentName", descriptor.deployment_name),
        ("serviceName", descriptor.service_name),
        ("ingressName", descriptor.ingress_name),
    ):
        if not value:
            errors.append(f"spec.{field_name} is required")

    backend = _first_backend(descriptor)
    backend_path = "spec.ingressSpec.rules[0].http.paths[0].backend.service"
    if backend.get("name") != descriptor.service_name:
        errors.append(f"{backend_path}.name must match service name {descriptor.service_name!r}")

    ports = descriptor.service_spec.get("ports") or [{}]
    backend_port = (backend.get("port") or {}).get("number")
    if backend_port != ports[0].get("port"):
        errors.append(f"{backend_path}.port.number must match service port number {ports[0].get('port')!r}")

    if descriptor.ingress_secure_enabled and not descriptor.host:
        errors.append("spec.ingressSpec.rules[0].host is required when ingressSecureEnabled is true")

    return errors
