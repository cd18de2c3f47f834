"""Prometheus metrics for monitoring score distribution, loan lifecycle, and webhook performance"""

from prometheus_client import Counter, Histogram, Gauge

from credshield_gateway.domain.models import WEI, Tier

# Scoring metrics
score_counter = Counter(
    "credshield_score_computed_total",
    "Credit scores computed",
    ["tier"],  # Bronze | Silver | Gold | Platinum
)

score_histogram = Histogram(
    "credshield_score_value",
    "Distribution of composite credit scores",
    buckets=[300, 400, 500, 550, 600, 700, 800, 900],
)

chain_data_failures_counter = Counter(
    "chain_data_fetch_failures_total",
    "Failed chain-data API calls (scored against an empty snapshot)",
)

report_fallback_counter = Counter(
    "report_fallback_total",
    "Narrative reports replaced by the deterministic fallback",
)

# Lending metrics
loan_event_counter = Counter(
    "credshield_loan_events_total",
    "Loan lifecycle events",
    ["event"],  # created | repaid | completed | defaulted
)

collateral_event_counter = Counter(
    "credshield_collateral_events_total",
    "Collateral vault operations",
    ["event"],  # deposited | withdrawn | seized
)

pool_available_gauge = Gauge(
    "credshield_pool_available_units",
    "Lending pool liquidity available to borrowers, in whole units",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Ledger webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_score(score: int, tier: Tier) -> None:
    """Record a computed score for monitoring tier distribution"""
    score_counter.labels(tier=tier.label).inc()
    score_histogram.observe(score)


def record_pool_available(available_wei: int) -> None:
    pool_available_gauge.set(available_wei // WEI)
