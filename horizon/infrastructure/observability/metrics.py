"""Prometheus metrics for sign-ups, bank links, transfers and provider health"""

from prometheus_client import Counter, Histogram

# Auth metrics
sign_up_counter = Counter(
    "horizon_sign_ups_total",
    "Sign-up attempts",
    ["outcome"],  # success | failure
)

sign_in_counter = Counter(
    "horizon_sign_ins_total",
    "Sign-in attempts",
    ["outcome"],
)

# Banking metrics
banks_linked_counter = Counter(
    "horizon_banks_linked_total",
    "Bank accounts linked through the aggregator",
)

transfer_counter = Counter(
    "horizon_transfers_total",
    "Transfers initiated through the processor",
    ["outcome"],
)

transactions_synced_histogram = Histogram(
    "horizon_transactions_synced",
    "Transactions returned per full sync",
    buckets=[0, 10, 50, 100, 250, 500, 1000, 5000],
)

# Provider metrics
upstream_failure_counter = Counter(
    "horizon_upstream_failures_total",
    "Failed calls to external providers",
    ["provider"],  # appwrite | plaid | dwolla
)

upstream_latency_histogram = Histogram(
    "horizon_upstream_latency_seconds",
    "External provider response time",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

dwolla_retry_counter = Counter(
    "horizon_dwolla_retries_total",
    "Dwolla requests retried after a transient failure",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_outcome(counter: Counter, success: bool) -> None:
    counter.labels(outcome="success" if success else "failure").inc()
