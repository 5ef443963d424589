"""Certificate issuance for ingress mutual TLS."""

from .certificate import (
    CertificateAuthority,
    CertificateBundle,
    KeyPair,
    certificate_dns_names,
    issue_bundle,
)

__all__ = [
    "CertificateAuthority",
    "CertificateBundle",
    "KeyPair",
    "certificate_dns_names",
    "issue_bundle",
]
