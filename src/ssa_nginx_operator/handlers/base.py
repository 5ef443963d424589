"""Base handler class with common functionality for CRD handlers."""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Callable

import kopf

from .. import metrics
from ..constants import OPERATOR_NAME
from ..logging import log_resource_event
from ..utils.conditions import is_new_generation, set_apply_failed_condition, set_ready_condition
from ..utils.errors import sanitize_dict, sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started, emit_validate_failed

REQUEUE_DELAY_SECONDS = int(os.getenv("REQUEUE_DELAY_SECONDS", "10"))


class RequeueRequested(Exception):
    """A pass finished early and should run again after a delay."""

    def __init__(self, message: str, delay: float = REQUEUE_DELAY_SECONDS):
        self.delay = delay
        super().__init__(message)


class BaseHandler:
    """Base class for CRD handlers with common functionality."""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "SSANginx")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=OPERATOR_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log, sanitized
        """
        log_data = sanitize_dict(kwargs)

        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__

        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def handle_validation_error(
        self,
        body: dict[str, Any],
        meta: dict[str, Any],
        errors: list[str],
    ) -> None:
        """Report validation errors and stop retrying.

        Raises:
            kopf.PermanentError: Always; the object must be edited to recover
        """
        error_msg = "Validation failed: " + "; ".join(errors)
        self.log_error(meta, error_msg, reason="ValidateFailed", errors=errors)
        emit_validate_failed(body, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="invalid").inc()
        raise kopf.PermanentError(error_msg)

    def handle_reconciliation_error(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: Exception,
    ) -> None:
        """Record a failed pass on the status.

        Args:
            meta: Kubernetes resource metadata
            status: Resource status
            patch: Kopf patch object
            error: Exception that occurred
        """
        message = f"Reconciliation failed: {sanitize_exception(error)}"
        conditions = status.get("conditions", [])
        generation = meta.get("generation", 0)
        conditions = set_apply_failed_condition(conditions, True, message, generation)
        conditions = set_ready_condition(conditions, False, message, generation)
        patch.status.update({
            "conditions": conditions,
            "observedGeneration": generation,
        })

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        meta: dict[str, Any],
        reconcile_fn: Callable[[], None],
    ) -> None:
        """Execute reconciliation with metrics and error handling.

        Args:
            body: Object events are attached to
            meta: Kubernetes resource metadata
            reconcile_fn: Function to execute for reconciliation

        Raises:
            kopf.TemporaryError: When the pass asked for a requeue
        """
        if is_new_generation(body):
            emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        except RequeueRequested as e:
            metrics.reconcile_total.labels(kind=self.kind, result="requeued").inc()
            self.log_warning(meta, str(e), event="requeue", reason="Requeue", delay=e.delay)
            raise kopf.TemporaryError(str(e), delay=e.delay) from e
        except kopf.PermanentError:
            raise
        except Exception as e:
            sanitized_error = sanitize_exception(e)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconcileFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

    def update_resource_status(
        self,
        patch: kopf.Patch,
        meta: dict[str, Any],
        status: dict[str, Any],
        message: str,
        status_data: dict[str, Any] | None = None,
    ) -> None:
        """Mark the resource ready and record the sync time.

        Args:
            patch: Kopf patch object
            meta: Kubernetes resource metadata
            status: Current resource status
            message: Ready condition message
            status_data: Additional status data to include
        """
        generation = meta.get("generation", 0)
        conditions = status.get("conditions", [])
        conditions = set_ready_condition(conditions, True, message, generation)
        conditions = set_apply_failed_condition(conditions, False, "All children applied", generation)
        patch.status.update({
            "conditions": conditions,
            "observedGeneration": generation,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
            **(status_data or {}),
        })
