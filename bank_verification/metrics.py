"""
Prometheus Metrics for the Bank Verification Service.

This module defines all metrics exposed at the /metrics endpoint.
Metrics are categorized into:

1. Business Metrics - For Operations/Support teams
   - Verification outcomes (verified, rejected, error)

2. Technical Metrics - For Engineering/SRE teams
   - Paystack latencies and failures, fan-out step failures, HTTP traffic
"""
from prometheus_client import Counter, Histogram, Info

# =============================================================================
# SERVICE INFO
# =============================================================================

SERVICE_INFO = Info(
    "bank_verification_service",
    "Service information"
)
SERVICE_INFO.info({
    "version": "0.1.0",
    "service": "bank-verification",
})

# =============================================================================
# BUSINESS METRICS
# =============================================================================

# Counter: Verification runs by outcome
VERIFICATION_TOTAL = Counter(
    "bank_verification_total",
    "Total bank account verification runs",
    ["outcome"]  # verified, rejected, error
)

# Histogram: Verification latency (end-to-end, including fan-out)
VERIFICATION_LATENCY = Histogram(
    "bank_verification_latency_seconds",
    "Time to run a bank account verification (end-to-end)",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# =============================================================================
# TECHNICAL METRICS
# =============================================================================

# Histogram: Paystack resolve latency
PAYSTACK_LATENCY = Histogram(
    "paystack_resolve_latency_seconds",
    "Time to resolve an account with the Paystack API",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Counter: Paystack call failures
PAYSTACK_FAILURES = Counter(
    "paystack_resolve_failures_total",
    "Total Paystack resolve calls that did not yield a JSON body",
    ["error_type"]  # timeout, connection_error, invalid_json, empty_body
)

# Counter: Paystack call successes (a JSON body came back, resolved or not)
PAYSTACK_SUCCESS = Counter(
    "paystack_resolve_success_total",
    "Total Paystack resolve calls that returned a JSON body"
)

# Counter: Best-effort fan-out failures
FANOUT_STEP_FAILURES = Counter(
    "fanout_step_failures_total",
    "Downstream update/notify/lookup steps that failed and were skipped",
    ["step"]
)

# =============================================================================
# HTTP METRICS (Standard)
# =============================================================================

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

HTTP_REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def record_verification(outcome: str, latency_seconds: float) -> None:
    """
    Record metrics for a single verification run.

    Args:
        outcome: "verified", "rejected" or "error"
        latency_seconds: Time taken for the whole run
    """
    VERIFICATION_TOTAL.labels(outcome=outcome).inc()
    VERIFICATION_LATENCY.observe(latency_seconds)


def record_paystack_call(success: bool, latency_seconds: float, error_type: str = None) -> None:
    """Record Paystack resolve call metrics."""
    PAYSTACK_LATENCY.observe(latency_seconds)

    if success:
        PAYSTACK_SUCCESS.inc()
    else:
        PAYSTACK_FAILURES.labels(error_type=error_type or "unknown").inc()


def record_fanout_failure(step: str) -> None:
    """Count a skipped fan-out step."""
    FANOUT_STEP_FAILURES.labels(step=step).inc()


def record_http_request(method: str, endpoint: str, status: int, latency_seconds: float = None) -> None:
    """Record standard HTTP request metrics."""
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status=status).inc()
    if latency_seconds is not None:
        HTTP_REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(latency_seconds)
