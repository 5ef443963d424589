"""Services used by the reconciler."""
