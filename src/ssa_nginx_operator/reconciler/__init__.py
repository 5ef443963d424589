"""Reconcile engine: diff-and-apply, certificate lifecycle and garbage collection."""

from .apply import SyncOutcome, apply_if_changed, needs_apply, sync_child
from .certificates import SecretLifecycle
from .kinds import ChildKind, ChildKinds, ChildSpec, create_child_specs
from .managed_fields import extract_managed_view
from .orchestrator import InvalidDescriptorError, ReconcileResult, Reconciler
from .ownership import GarbageCollector, list_owned

__all__ = [
    "SyncOutcome",
    "apply_if_changed",
    "needs_apply",
    "sync_child",
    "SecretLifecycle",
    "ChildKind",
    "ChildKinds",
    "ChildSpec",
    "create_child_specs",
    "extract_managed_view",
    "InvalidDescriptorError",
    "ReconcileResult",
    "Reconciler",
    "GarbageCollector",
    "list_owned",
]
