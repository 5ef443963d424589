"""Builders for the mutual TLS secrets."""

from __future__ import annotations

from typing import Any

from ..constants import (
    KIND_SECRET,
    SECRET_KEY_CA_CRT,
    SECRET_KEY_CLIENT_CRT,
    SECRET_KEY_CLIENT_KEY,
    SECRET_KEY_TLS_CRT,
    SECRET_KEY_TLS_KEY,
    SECRET_ROLE_CA,
    SECRET_ROLE_CLIENT,
)
from ..services.pki import CertificateBundle
from ..utils.secrets import encode_secret_data
from .descriptor import Descriptor
from .metadata import create_child_metadata


def _secret(descriptor: Descriptor, name: str, role: str, data: dict[str, bytes]) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SECRET,
        "metadata": create_child_metadata(descriptor, name, secret_role=role),
        "type": "Opaque",
        "data": encode_secret_data(data),
    }


def create_ca_secret(descriptor: Descriptor, bundle: CertificateBundle) -> dict[str, Any]:
    """Secret holding the server pair and the CA certificate.

    ingress-nginx reads ``tls.crt``/``tls.key`` for termination and
    ``ca.crt`` for client verification from the same secret.
    """
    return _secret(
        descriptor,
        descriptor.ca_secret_name,
        SECRET_ROLE_CA,
        {
            SECRET_KEY_TLS_CRT: bundle.server.certificate,
            SECRET_KEY_TLS_KEY: bundle.server.private_key,
            SECRET_KEY_CA_CRT: bundle.ca.certificate,
        },
    )


def create_client_secret(descriptor: Descriptor, bundle: CertificateBundle) -> dict[str, Any]:
    """Secret holding the client pair."""
    return _secret(
        descriptor,
        descriptor.client_secret_name,
        SECRET_ROLE_CLIENT,
        {
            SECRET_KEY_CLIENT_CRT: bundle.client.certificate,
            SECRET_KEY_CLIENT_KEY: bundle.client.private_key,
        },
    )
