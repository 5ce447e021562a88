"""Centralized Prometheus metrics.

Usage:
    from termshield.metrics.dictionary_metrics import dictionary_cache_lookups_total
"""

from termshield.metrics import dictionary_metrics

__all__ = ["dictionary_metrics"]
