"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_APPLIED,
    EVENT_REASON_CERTIFICATES_ISSUED,
    EVENT_REASON_DELETED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Object the event is attached to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_succeeded(body: dict[str, Any]) -> None:
    """Emit validation succeeded event."""
    emit_event(body, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(body: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_child_applied(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit child applied event."""
    emit_event(body, EVENT_REASON_APPLIED, f"{kind} {name} applied")


def emit_child_deleted(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit child deleted event."""
    emit_event(body, EVENT_REASON_DELETED, f"{kind} {name} deleted")


def emit_certificates_issued(body: dict[str, Any], host: str) -> None:
    """Emit certificate chain issued event."""
    emit_event(body, EVENT_REASON_CERTIFICATES_ISSUED, f"Certificate chain issued for host {host}")
