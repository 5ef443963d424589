"""Desired-state builders: pure functions from a descriptor to child manifests."""

from .config_map import create_config_map_from_descriptor, find_index_key
from .deployment import create_deployment_from_descriptor
from .descriptor import Descriptor, create_descriptor_from_body, validate_descriptor
from .ingress import create_ingress_from_descriptor
from .metadata import create_owner_reference
from .secret import create_ca_secret, create_client_secret
from .service import create_service_from_descriptor

__all__ = [
    "Descriptor",
    "create_descriptor_from_body",
    "validate_descriptor",
    "create_owner_reference",
    "create_config_map_from_descriptor",
    "find_index_key",
    "create_deployment_from_descriptor",
    "create_service_from_descriptor",
    "create_ingress_from_descriptor",
    "create_ca_secret",
    "create_client_secret",
]
