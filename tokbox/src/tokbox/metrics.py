"""
Prometheus metrics for token issuance and control-plane calls.

The counters are registered on the default ``prometheus_client`` registry
when this module is imported.  The library never starts an exporter;
applications that want to scrape these call ``start_http_server`` (or mount
the registry in their web framework) themselves.

Metrics
-------

* ``tokbox_tokens_issued_total`` – tokens produced by bulk issuance.
* ``tokbox_token_failures_total`` – bulk issuance items that failed.
* ``tokbox_requests_total{endpoint=...,status=...}`` – control-plane
  requests by endpoint and HTTP status (``error`` when no response).
"""

from __future__ import annotations

from prometheus_client import Counter

TOKENS_ISSUED = Counter(
    "tokbox_tokens_issued",
    "Access tokens produced by bulk issuance",
)
TOKEN_FAILURES = Counter(
    "tokbox_token_failures",
    "Bulk issuance items that failed to sign",
)
REQUESTS = Counter(
    "tokbox_requests",
    "Control-plane requests by endpoint and status",
    labelnames=["endpoint", "status"],
)


def record_request(endpoint: str, status: object) -> None:
    REQUESTS.labels(endpoint=endpoint, status=str(status)).inc()
