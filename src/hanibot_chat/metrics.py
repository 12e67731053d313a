"""Prometheus metrics, kept in a private registry."""

from prometheus_client import CollectorRegistry, Counter

CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total server errors", registry=CUSTOM_REGISTRY)
TURNS = Counter("turns_total", "Conversational turns persisted", registry=CUSTOM_REGISTRY)
KEYWORD_HITS = Counter("keyword_hits_total", "Turns answered by a keyword rule", registry=CUSTOM_REGISTRY)
ESCALATIONS = Counter("escalations_total", "Turns sent down the escalation chain", registry=CUSTOM_REGISTRY)
FALLBACKS = Counter("canned_replies_total", "Escalations answered with the canned reply", registry=CUSTOM_REGISTRY)
