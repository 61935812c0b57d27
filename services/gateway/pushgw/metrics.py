"""Prometheus metric definitions for the push gateway.

Single source of truth for all custom metrics.
"""

from prometheus_client import Counter

# --- Registry metrics ---

registry_events_total = Counter(
    "pushgw_registry_events_total",
    "Token registry mutations by kind",
    ["kind"],
)

tokens_evicted_total = Counter(
    "pushgw_tokens_evicted_total",
    "Tokens removed after the provider reported them unusable",
    ["reason"],
)

# --- Dispatch metrics ---

push_messages_total = Counter(
    "pushgw_push_messages_total",
    "Per-token push deliveries by send path and outcome",
    ["path", "outcome"],
)
