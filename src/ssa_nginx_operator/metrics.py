"""Prometheus metrics for the SSA Nginx Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "ssa_nginx_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "ssa_nginx_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "ssa_nginx_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Child resource metrics
child_apply_total = Counter(
    "ssa_nginx_operator_child_apply_total",
    "Outcome of child resource sync steps",
    ["child_kind", "result"],
)

child_deleted_total = Counter(
    "ssa_nginx_operator_child_deleted_total",
    "Total number of child resources deleted by the operator",
    ["child_kind"],
)

certificates_issued_total = Counter(
    "ssa_nginx_operator_certificates_issued_total",
    "Total number of certificate chains issued",
    ["reason"],
)

# API call metrics
api_call_total = Counter(
    "ssa_nginx_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "ssa_nginx_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "ssa_nginx_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
