"""Utilities for Kubernetes secret payloads."""

from __future__ import annotations

import base64
import binascii
from typing import Any


def encode_secret_data(data: dict[str, str | bytes]) -> dict[str, str]:
    """Base64 encode secret values for the ``data`` field.

    Args:
        data: Plain secret values

    Returns:
        Dictionary of base64 encoded values, keys sorted
    """
    encoded = {}
    for key in sorted(data):
        value = data[key]
        if isinstance(value, str):
            value = value.encode("utf-8")
        encoded[key] = base64.b64encode(value).decode("utf-8")
    return encoded


def decode_secret_data(secret: dict[str, Any]) -> dict[str, str]:
    """Read all data from a secret manifest.

    Args:
        secret: Secret object as a dictionary

    Returns:
        Dictionary of decoded secret data
    """
    result = {}
    for key, value in (secret.get("data") or {}).items():
        if isinstance(value, str):
            try:
                result[key] = base64.b64decode(value, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                # Already decoded
                result[key] = value
        else:
            result[key] = value.decode("utf-8")
    return result
