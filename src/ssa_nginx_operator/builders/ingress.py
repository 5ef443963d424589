"""Builder for the nginx Ingress."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import (
    ANNOTATION_AUTH_TLS_SECRET,
    ANNOTATION_AUTH_TLS_VERIFY_CLIENT,
    ANNOTATION_REWRITE_TARGET,
    DEFAULT_INGRESS_CLASS_NAME,
    KIND_INGRESS,
)
from .descriptor import Descriptor
from .metadata import create_child_metadata


def create_tls_annotations(namespace: str, ca_secret_name: str) -> dict[str, str]:
    """Annotations enabling client certificate verification on ingress-nginx."""
    return {
        ANNOTATION_REWRITE_TARGET: "/",
        ANNOTATION_AUTH_TLS_VERIFY_CLIENT: "on",
        ANNOTATION_AUTH_TLS_SECRET: f"{namespace}/{ca_secret_name}",
    }


def create_ingress_from_descriptor(descriptor: Descriptor) -> dict[str, Any]:
    """Create the Ingress apply manifest.

    With ``ingressSecureEnabled`` the route terminates TLS with the server
    certificate from the CA secret and requires client certificates.

    Args:
        descriptor: Parsed descriptor

    Returns:
        Ingress manifest
    """
    spec = copy.deepcopy(descriptor.ingress_spec)
    spec.setdefault("ingressClassName", DEFAULT_INGRESS_CLASS_NAME)

    annotations = None
    if descriptor.ingress_secure_enabled:
        annotations = create_tls_annotations(descriptor.namespace, descriptor.ca_secret_name)
        spec["tls"] = [{"hosts": [descriptor.host], "secretName": descriptor.ca_secret_name}]

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": KIND_INGRESS,
        "metadata": create_child_metadata(descriptor, descriptor.ingress_name, annotations=annotations),
        "spec": spec,
    }
