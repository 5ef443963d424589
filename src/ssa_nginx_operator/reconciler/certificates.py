"""Lifecycle of the mutual TLS certificate secrets.

Each descriptor owns its own pair, ``<name>-ca-secret`` and
``<name>-cli-secret``. States:

- ``absent``: mutual TLS is on and the CA or client secret is missing, or
  exists without being controlled by the descriptor. A new chain is issued.
- ``stale``: both secrets exist but the server certificate was issued for a
  different host than the route now serves, or the deployed Ingress moved
  host during this pass. Both secrets are deleted and a whole new chain
  (new CA included) is issued.
- ``issued``: both secrets exist and the server certificate matches the
  route host. Nothing happens.

The host embedded in the issued server certificate is the source of truth,
so a pass that failed halfway through a rotation is finished by the next one.

The CA key exists only inside the ``CertificateAuthority`` created for one
issuance; it is never stored in the cluster or in process state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .. import metrics
from ..builders.descriptor import Descriptor
from ..builders.secret import create_ca_secret, create_client_secret
from ..constants import SECRET_KEY_TLS_CRT
from ..services.pki import CertificateBundle, certificate_dns_names, issue_bundle
from ..utils.secrets import decode_secret_data
from .kinds import ChildKind
from .ownership import is_controlled_by

STATE_DISABLED = "disabled"
STATE_ABSENT = "absent"
STATE_ISSUED = "issued"
STATE_STALE = "stale"


@dataclass(frozen=True)
class CertificateOutcome:
    """Result of a certificate sync step."""

    state: str
    applied: bool = False
    deleted: list[tuple[str, str]] = field(default_factory=list)
    host: str | None = None


def host_of(ingress: dict[str, Any] | None) -> str | None:
    """Host of the first rule of a live Ingress."""
    if not ingress:
        return None
    rules = (ingress.get("spec") or {}).get("rules") or []
    if not rules:
        return None
    return rules[0].get("host")


def host_changed(current_ingress: dict[str, Any] | None, descriptor: Descriptor) -> bool:
    """True when the deployed route serves a different host than desired."""
    current_host = host_of(current_ingress)
    return current_host is not None and current_host != descriptor.host


def secret_host(secret: dict[str, Any] | None) -> str | None:
    """Host in the SAN of the server certificate stored in a CA secret."""
    if secret is None:
        return None
    pem = decode_secret_data(secret).get(SECRET_KEY_TLS_CRT)
    if not pem:
        return None
    names = certificate_dns_names(pem)
    return names[0] if names else None


class SecretLifecycle:
    """Issue, keep or rotate the CA/server and client secrets."""

    def __init__(
        self,
        secrets: ChildKind,
        issue: Callable[[str], CertificateBundle] = issue_bundle,
    ):
        self.secrets = secrets
        self.issue = issue

    def _read_owned(self, name: str, descriptor: Descriptor) -> dict[str, Any] | None:
        secret = self.secrets.read(name, descriptor.namespace)
        if secret is None or not is_controlled_by(secret, descriptor.name):
            return None
        return secret

    def state(self, descriptor: Descriptor, stale: bool = False) -> str:
        if not descriptor.ingress_secure_enabled:
            return STATE_DISABLED
        ca_secret = self._read_owned(descriptor.ca_secret_name, descriptor)
        client_secret = self._read_owned(descriptor.client_secret_name, descriptor)
        if ca_secret is None or client_secret is None:
            return STATE_ABSENT
        if stale or secret_host(ca_secret) != descriptor.host:
            return STATE_STALE
        return STATE_ISSUED

    def sync(self, descriptor: Descriptor, stale: bool = False) -> CertificateOutcome:
        """Bring the secrets in line with the descriptor.

        Args:
            descriptor: Current descriptor
            stale: Whether the route host moved, checked before the new
                Ingress was applied

        Returns:
            Outcome with the resulting state and any deleted secrets
        """
        state = self.state(descriptor, stale)
        if state == STATE_DISABLED:
            return CertificateOutcome(state=state)
        if state == STATE_ISSUED:
            metrics.child_apply_total.labels(child_kind=self.secrets.kind, result="unchanged").inc()
            return CertificateOutcome(state=state, host=descriptor.host)

        deleted = []
        try:
            if state == STATE_STALE:
                for name in (descriptor.ca_secret_name, descriptor.client_secret_name):
                    if self.secrets.delete(name, descriptor.namespace):
                        metrics.child_deleted_total.labels(child_kind=self.secrets.kind).inc()
                    deleted.append((self.secrets.kind, name))

            bundle = self.issue(descriptor.host)
            self.secrets.apply(create_ca_secret(descriptor, bundle))
            self.secrets.apply(create_client_secret(descriptor, bundle))
        except Exception:
            metrics.child_apply_total.labels(child_kind=self.secrets.kind, result="failed").inc()
            raise

        metrics.child_apply_total.labels(child_kind=self.secrets.kind, result="applied").inc()
        metrics.certificates_issued_total.labels(
            reason="rotated" if state == STATE_STALE else "created"
        ).inc()
        return CertificateOutcome(state=state, applied=True, deleted=deleted, host=bundle.host)

    def issued_host(self, descriptor: Descriptor) -> str | None:
        """Host embedded in the server certificate of the descriptor's CA secret."""
        return secret_host(self.secrets.read(descriptor.ca_secret_name, descriptor.namespace))
