"""HTTP middleware and pipeline counters."""

from jobplanner.middleware.metrics import setup_metrics

__all__ = ["setup_metrics"]
