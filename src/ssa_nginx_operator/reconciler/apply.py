"""Diff a desired manifest against the live object and apply on drift."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .. import metrics
from .kinds import ChildKind
from .managed_fields import extract_managed_view


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one sync step."""

    applied: bool
    skipped: bool = False


SKIPPED = SyncOutcome(applied=False, skipped=True)


def needs_apply(current: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    """Return True when the fields we manage differ from ``desired``.

    Only fields recorded under our field manager are compared, so edits
    other writers make to fields we never set are not treated as drift.
    """
    if current is None:
        return True
    view = extract_managed_view(current, desired["apiVersion"], desired["kind"])
    return view != desired


def apply_if_changed(kind: ChildKind, desired: dict[str, Any], current: dict[str, Any] | None) -> SyncOutcome:
    """Apply ``desired`` unless ``current`` already matches it.

    Apply errors propagate unchanged.
    """
    if not needs_apply(current, desired):
        metrics.child_apply_total.labels(child_kind=kind.kind, result="unchanged").inc()
        return SyncOutcome(applied=False)

    try:
        kind.apply(desired)
    except Exception:
        metrics.child_apply_total.labels(child_kind=kind.kind, result="failed").inc()
        raise
    metrics.child_apply_total.labels(child_kind=kind.kind, result="applied").inc()
    return SyncOutcome(applied=True)


def sync_child(kind: ChildKind, desired: dict[str, Any]) -> SyncOutcome:
    """Fetch the live object for ``desired`` and apply it on drift."""
    metadata = desired["metadata"]
    current = kind.read(metadata["name"], metadata["namespace"])
    return apply_if_changed(kind, desired, current)
