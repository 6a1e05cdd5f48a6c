"""
Prometheus metrics for the key management service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Key metrics
key_validations_total = Counter(
    "key_validations_total",
    "Total key validation attempts by outcome",
    ["outcome"],
)

keys_issued_total = Counter(
    "keys_issued_total",
    "Total keys issued",
    ["tier"],
)

keys_activated_total = Counter(
    "keys_activated_total",
    "Total keys bound to a device for the first time",
)

keys_expired_total = Counter(
    "keys_expired_total",
    "Total keys transitioned to expired",
    ["source"],
)

# Account metrics
accounts_registered_total = Counter(
    "accounts_registered_total",
    "Total accounts created",
    ["role"],
)

login_attempts_total = Counter(
    "login_attempts_total",
    "Total login attempts by outcome",
    ["outcome"],
)

# Rate limiting
rate_limited_total = Counter(
    "rate_limited_total",
    "Total requests refused by the rate limiter",
    ["scope"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
