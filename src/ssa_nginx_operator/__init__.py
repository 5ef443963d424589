"""Kubernetes operator that runs nginx from SSANginx descriptors using server-side apply."""

__version__ = "0.1.0"
