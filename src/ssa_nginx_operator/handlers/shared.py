"""Shared utilities for handlers."""

from __future__ import annotations

import threading

from kubernetes import client, config

from ..reconciler import Reconciler

_config_lock = threading.Lock()
_config_loaded = False


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig.

    Only the first call loads; later calls return immediately.
    """
    global _config_loaded
    with _config_lock:
        if _config_loaded:
            return
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
        _config_loaded = True


def create_reconciler() -> Reconciler:
    """Build a Reconciler bound to fresh typed API clients."""
    load_kube_config()
    return Reconciler(
        custom_api=client.CustomObjectsApi(),
        core_api=client.CoreV1Api(),
        apps_api=client.AppsV1Api(),
        networking_api=client.NetworkingV1Api(),
    )
