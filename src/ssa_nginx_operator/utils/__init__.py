"""Utility functions for the SSA Nginx Operator."""

from .conditions import (
    is_new_generation,
    set_apply_failed_condition,
    set_ready_condition,
    update_condition,
)
from .context import (
    get_context_dict,
    get_correlation_id,
    set_correlation_id,
    with_correlation_id,
)
from .errors import is_not_found, sanitize_exception
from .events import emit_event
from .rate_limit import rate_limit_k8s
from .secrets import decode_secret_data, encode_secret_data

__all__ = [
    "is_new_generation",
    "update_condition",
    "set_ready_condition",
    "set_apply_failed_condition",
    "emit_event",
    "is_not_found",
    "sanitize_exception",
    "decode_secret_data",
    "encode_secret_data",
    "rate_limit_k8s",
    "set_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
