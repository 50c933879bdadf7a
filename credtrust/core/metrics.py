"""Application metrics using the Prometheus client library.

All metrics are defined here, one inventory for the whole service.  The
modules that own a behavior import the metric and increment it at the
point of action.

The one metric worth alerting on is ISSUANCE_UNRECORDED: every increment
is a signed credential that the network produced but the database never
stored (see LifecycleCoordinator.approve).  Its log line carries the
payload so it can be reconciled by hand.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency by method and endpoint",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Credential lifecycle
# ---------------------------------------------------------------------------

CREDENTIAL_TRANSITIONS = Counter(
    "credtrust_credential_transitions_total",
    "Credential transition attempts by transition and outcome",
    ["transition", "outcome"],  # submit|approve|reject|unverify, ok|<error kind>
)

ISSUANCE_CALLS = Counter(
    "credtrust_issuance_calls_total",
    "Calls to the DID/VC network by operation and result",
    ["operation", "result"],  # create_did|issue|verify, ok|error
)

ISSUANCE_DURATION = Histogram(
    "credtrust_issuance_duration_seconds",
    "Latency of DID/VC network calls",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ISSUANCE_UNRECORDED = Counter(
    "credtrust_issuance_unrecorded_total",
    "Signed artifacts returned by the network but not persisted",
    ["artifact"],  # credential|did
)

# ---------------------------------------------------------------------------
# Cascade cleanup
# ---------------------------------------------------------------------------

CASCADE_ROWS = Counter(
    "credtrust_cascade_rows_total",
    "Rows deleted or reset by cascade operations",
    ["operation", "entity"],
)
