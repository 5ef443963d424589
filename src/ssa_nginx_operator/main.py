"""Main entry point for the SSA Nginx Operator."""

from __future__ import annotations

import os
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from . import handlers  # noqa: F401
from .handlers.shared import load_kube_config


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()

    # Progress in annotations keeps kopf out of the status we patch
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Backoff between retries of failed API watches and patches
    settings.networking.error_backoffs = [1, 2, 4, 8, 16, 32, 60]

    load_kube_config()

    # Metrics and health check endpoints
    health.start_metrics_server(int(os.getenv("METRICS_PORT", "8080")))


def run() -> None:
    """Run the operator across all namespaces."""
    kopf.run(clusterwide=True)
