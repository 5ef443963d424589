"""Handler for SSANginx CRD."""

from __future__ import annotations

import os
from typing import Any, Callable

import kopf

from ..constants import API_GROUP_VERSION, KIND_SSANGINX
from ..reconciler import InvalidDescriptorError, Reconciler, ReconcileResult
from ..utils.conditions import set_ready_condition
from ..utils.context import with_correlation_id
from .base import BaseHandler, RequeueRequested
from .shared import create_reconciler

RESYNC_INTERVAL_SECONDS = int(os.getenv("RESYNC_INTERVAL_SECONDS", "300"))


class SSANginxHandler(BaseHandler):
    """Handler for SSANginx resources."""

    def __init__(self, reconciler_factory: Callable[[], Reconciler] = create_reconciler):
        super().__init__(KIND_SSANGINX)
        self.reconciler_factory = reconciler_factory

    def reconcile(
        self,
        body: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> ReconcileResult:
        """Reconcile SSANginx resource."""
        namespace = meta.get("namespace", "default")
        name = meta.get("name", "unknown")
        generation = meta.get("generation", 0)

        try:
            result = self.reconciler_factory().reconcile(namespace, name)
        except InvalidDescriptorError as e:
            conditions = set_ready_condition(status.get("conditions", []), False, str(e), generation)
            patch.status.update({"conditions": conditions, "observedGeneration": generation})
            self.handle_validation_error(body, meta, e.errors)
        except Exception as e:
            self.handle_reconciliation_error(meta, status, patch, e)
            raise

        if not result.found:
            self.log_info(meta, "SSANginx disappeared before reconcile", reason="NotFound")
            return result

        if result.requeue:
            message = f"Waiting on prerequisites for: {', '.join(result.skipped)}"
            conditions = set_ready_condition(status.get("conditions", []), False, message, generation)
            patch.status.update({"conditions": conditions, "observedGeneration": generation})
            raise RequeueRequested(message)

        status_data = {}
        if result.tls_host:
            status_data["tlsHost"] = result.tls_host
        self.update_resource_status(patch, meta, status, "All children in sync", status_data)

        if result.changed:
            self.log_info(
                meta,
                "Reconciled SSANginx",
                event="reconciled",
                reason="Reconciled",
                applied=sorted(label for label, applied in result.applied.items() if applied),
                deleted=result.deleted,
                certificates_issued=result.certificates_issued,
            )
        return result


# Global handler instance
_handler = SSANginxHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_SSANGINX)
@kopf.on.update(API_GROUP_VERSION, KIND_SSANGINX)
@kopf.on.resume(API_GROUP_VERSION, KIND_SSANGINX)
@kopf.timer(API_GROUP_VERSION, KIND_SSANGINX, interval=RESYNC_INTERVAL_SECONDS)
def handle_ssanginx(
    body: kopf.Body,
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle SSANginx resource reconciliation."""
    with with_correlation_id():
        _handler.reconcile_with_metrics(body, meta, lambda: _handler.reconcile(body, meta, status, patch))


@kopf.on.delete(API_GROUP_VERSION, KIND_SSANGINX, optional=True)
def handle_ssanginx_delete(meta: dict[str, Any], **kwargs: Any) -> None:
    """Children go with their owner through Kubernetes garbage collection."""
    _handler.log_info(meta, "SSANginx deleted, children are removed by owner references", event="deleted", reason="Deleted")
