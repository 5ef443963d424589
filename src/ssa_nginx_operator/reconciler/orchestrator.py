"""One reconcile pass for an SSANginx descriptor."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..builders import (
    Descriptor,
    create_config_map_from_descriptor,
    create_deployment_from_descriptor,
    create_descriptor_from_body,
    create_ingress_from_descriptor,
    create_service_from_descriptor,
    find_index_key,
    validate_descriptor,
)
from ..constants import API_GROUP, API_VERSION, KIND_SSANGINX, OPERATOR_NAME, PLURAL_SSANGINX
from ..logging import log_resource_event
from ..services.pki import CertificateBundle, issue_bundle
from ..utils.conditions import is_new_generation
from ..utils.errors import is_not_found, sanitize_exception
from ..utils.events import (
    emit_certificates_issued,
    emit_child_applied,
    emit_child_deleted,
    emit_validate_succeeded,
)
from ..utils.rate_limit import rate_limit_k8s
from .apply import SKIPPED, SyncOutcome, apply_if_changed, sync_child
from .certificates import SecretLifecycle, host_changed
from .kinds import ChildKind, ChildKinds, create_child_specs
from .ownership import GarbageCollector

logger = logging.getLogger(__name__)


class InvalidDescriptorError(ValueError):
    """The descriptor failed validation; no child was written."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


@dataclass
class ReconcileResult:
    """What one pass did."""

    found: bool = True
    applied: dict[str, bool] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    deleted: list[tuple[str, str]] = field(default_factory=list)
    certificates_issued: bool = False
    tls_host: str | None = None

    @property
    def requeue(self) -> bool:
        """True when a step waited on a missing prerequisite."""
        return bool(self.skipped)

    @property
    def changed(self) -> bool:
        return any(self.applied.values()) or bool(self.deleted) or self.certificates_issued


class Reconciler:
    """Drive children of one descriptor toward its desired state.

    Steps run strictly in order: ConfigMap, Deployment, Service, Ingress,
    certificate secrets, then garbage collection of renamed children. Any
    API failure aborts the pass and propagates to the caller.
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        core_api: client.CoreV1Api,
        apps_api: client.AppsV1Api,
        networking_api: client.NetworkingV1Api,
        issue: Callable[[str], CertificateBundle] = issue_bundle,
    ):
        self.custom_api = custom_api
        self.kinds = ChildKinds(core_api, apps_api, networking_api)
        self.specs = create_child_specs(self.kinds)
        self.certificates = SecretLifecycle(self.kinds.secret, issue=issue)
        self.collector = GarbageCollector(self.specs)

    def fetch_descriptor(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Read the SSANginx object; None when it no longer exists."""
        try:
            return rate_limit_k8s(self.custom_api.get_namespaced_custom_object)(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_SSANGINX,
                name=name,
            )
        except ApiException as e:
            if is_not_found(e):
                return None
            raise

    def _log(
        self,
        descriptor: Descriptor,
        event: str,
        reason: str,
        message: str,
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            logger,
            controller=OPERATOR_NAME,
            resource_kind=KIND_SSANGINX,
            resource_name=descriptor.name,
            namespace=descriptor.namespace,
            uid=descriptor.uid,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def _log_failure(self, descriptor: Descriptor, kind: ChildKind, name: str, error: Exception) -> None:
        self._log(
            descriptor,
            "apply_failed",
            "ApplyFailed",
            f"Failed to apply {kind.kind} {name}",
            level=logging.ERROR,
            child_kind=kind.kind,
            child_name=name,
            error=sanitize_exception(error),
        )

    def _run_step(
        self,
        body: dict[str, Any],
        descriptor: Descriptor,
        result: ReconcileResult,
        label: str,
        kind: ChildKind,
        name: str,
        step: Callable[[], SyncOutcome],
    ) -> SyncOutcome:
        try:
            outcome = step()
        except Exception as e:
            self._log_failure(descriptor, kind, name, e)
            raise

        result.applied[label] = outcome.applied
        if outcome.skipped:
            result.skipped.append(label)
            metrics.child_apply_total.labels(child_kind=kind.kind, result="skipped").inc()
        if outcome.applied:
            emit_child_applied(body, kind.kind, name)
            self._log(descriptor, "applied", "Applied", f"{kind.kind} {name} applied", child_kind=kind.kind)
        return outcome

    def _sync_deployment(self, descriptor: Descriptor) -> SyncOutcome:
        # The index volume needs a key the live ConfigMap actually holds
        live_config_map = self.kinds.config_map.read(descriptor.config_map_name, descriptor.namespace) or {}
        index_key = find_index_key(live_config_map.get("data") or {})
        if index_key is None:
            self._log(
                descriptor,
                "skipped",
                "IndexKeyMissing",
                f"ConfigMap {descriptor.config_map_name} has no html key, Deployment "
                f"{descriptor.deployment_name} not applied",
                level=logging.WARNING,
            )
            return SKIPPED
        return sync_child(self.kinds.deployment, create_deployment_from_descriptor(descriptor, index_key))

    def _sync_certificates(
        self,
        body: dict[str, Any],
        descriptor: Descriptor,
        result: ReconcileResult,
        stale: bool,
    ) -> None:
        try:
            certificates = self.certificates.sync(descriptor, stale=stale)
        except Exception as e:
            self._log_failure(descriptor, self.kinds.secret, descriptor.ca_secret_name, e)
            raise

        for kind, child_name in certificates.deleted:
            emit_child_deleted(body, kind, child_name)
        result.deleted.extend(certificates.deleted)
        if certificates.applied:
            result.certificates_issued = True
            emit_certificates_issued(body, certificates.host)
            self._log(
                descriptor,
                "certificates_issued",
                "CertificatesIssued",
                f"Certificate chain issued for host {certificates.host}",
                state=certificates.state,
            )
        if descriptor.ingress_secure_enabled:
            result.tls_host = certificates.host

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Run one pass for the descriptor ``namespace/name``.

        Raises:
            InvalidDescriptorError: The descriptor failed validation
            ApiException: Any read, apply or delete failure
        """
        body = self.fetch_descriptor(namespace, name)
        if body is None:
            logger.info("SSANginx %s/%s not found, nothing to reconcile", namespace, name)
            return ReconcileResult(found=False)

        descriptor = create_descriptor_from_body(body)
        errors = validate_descriptor(descriptor)
        if errors:
            raise InvalidDescriptorError(errors)
        if is_new_generation(body):
            emit_validate_succeeded(body)

        return self.reconcile_descriptor(body, descriptor)

    def reconcile_descriptor(self, body: dict[str, Any], descriptor: Descriptor) -> ReconcileResult:
        """Run the ordered sync steps for an already validated descriptor."""
        result = ReconcileResult()
        kinds = self.kinds
        ns = descriptor.namespace

        self._run_step(
            body, descriptor, result, "configmap", kinds.config_map, descriptor.config_map_name,
            lambda: sync_child(kinds.config_map, create_config_map_from_descriptor(descriptor)),
        )

        self._run_step(
            body, descriptor, result, "deployment", kinds.deployment, descriptor.deployment_name,
            lambda: self._sync_deployment(descriptor),
        )

        self._run_step(
            body, descriptor, result, "service", kinds.service, descriptor.service_name,
            lambda: sync_child(kinds.service, create_service_from_descriptor(descriptor)),
        )

        # A route that moved host this pass also forces rotation
        current_ingress = kinds.ingress.read(descriptor.ingress_name, ns)
        stale = host_changed(current_ingress, descriptor)
        self._run_step(
            body, descriptor, result, "ingress", kinds.ingress, descriptor.ingress_name,
            lambda: apply_if_changed(kinds.ingress, create_ingress_from_descriptor(descriptor), current_ingress),
        )

        self._sync_certificates(body, descriptor, result, stale)

        if result.skipped:
            self._log(
                descriptor,
                "gc_skipped",
                "Requeue",
                "Garbage collection deferred until every step has been applied",
                skipped=result.skipped,
            )
            return result

        def on_deleted(kind: str, child_name: str) -> None:
            emit_child_deleted(body, kind, child_name)
            self._log(descriptor, "deleted", "Deleted", f"{kind} {child_name} deleted", child_kind=kind)

        result.deleted.extend(self.collector.collect(descriptor, on_deleted=on_deleted))
        return result
