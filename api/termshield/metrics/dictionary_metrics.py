"""Prometheus metrics for the dictionary cache and term mediation."""

from prometheus_client import Counter, Histogram

dictionary_cache_lookups_total = Counter(
    "dictionary_cache_lookups_total",
    "Dictionary cache lookups by result",
    ["result"],
)

dictionary_cache_builds_total = Counter(
    "dictionary_cache_builds_total",
    "Term index builds by outcome",
    ["outcome"],
)

dictionary_cache_build_duration_seconds = Histogram(
    "dictionary_cache_build_duration_seconds",
    "Duration of term index builds including the store read",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

dictionary_cache_invalidations_total = Counter(
    "dictionary_cache_invalidations_total",
    "Explicit dictionary cache invalidations",
)

dictionary_terms_matched_total = Counter(
    "dictionary_terms_matched_total",
    "Dictionary term occurrences found in outbound text",
)

dictionary_markers_lost_total = Counter(
    "dictionary_markers_lost_total",
    "Markers not found in translated text during unwrap",
)

dictionary_markers_resolved_total = Counter(
    "dictionary_markers_resolved_total",
    "Markers resolved during unwrap by replacement source",
    ["source"],
)

translation_requests_total = Counter(
    "dictionary_translation_requests_total",
    "Translation pipeline requests by outcome",
    ["outcome"],
)

translation_request_duration_seconds = Histogram(
    "dictionary_translation_request_duration_seconds",
    "Duration of translation pipeline requests",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, 120),
)
