"""Error helpers: Kubernetes status checks and message sanitization."""

import re
from typing import Any

from kubernetes.client.exceptions import ApiException

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----",
    r"-----BEGIN CERTIFICATE-----[\s\S]*?-----END CERTIFICATE-----",
    r"Bearer\s+[A-Za-z0-9\-\._~\+/]+=*",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "tls.key",
    "client.key",
    "private_key",
    "password",
    "token",
}


def is_not_found(error: Exception) -> bool:
    """Return True if the error is a Kubernetes 404."""
    return isinstance(error, ApiException) and error.status == 404


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{re.escape(field)}[\"']?[:\s]+[\"']?([^\s,;\)\"']+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    if isinstance(error, ApiException):
        error_msg = f"({error.status}) {error.reason}"
        if error.body:
            error_msg = f"{error_msg}: {error.body}"
    else:
        error_msg = str(error)
    return sanitize_error_message(error_msg)


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    if sensitive_keys is None:
        sensitive_keys = set()

    all_sensitive = SENSITIVE_FIELDS | sensitive_keys
    sanitized = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
