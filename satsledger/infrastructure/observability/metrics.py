"""Prometheus metrics for deduction runs, balance clamping and price lookups"""

from prometheus_client import Counter, Histogram

# Deduction metrics
deduction_counter = Counter(
    "satsledger_deductions_total",
    "Monthly deductions applied",
    ["kind"],  # card | loan | installment
)

deduction_failure_counter = Counter(
    "satsledger_deduction_failures_total",
    "Entities whose deduction raised an error",
    ["kind"],
)

balance_clamp_counter = Counter(
    "satsledger_balance_clamped_total",
    "Deductions cut short by an account balance floor",
)

deduction_amount_counter = Counter(
    "satsledger_deducted_krw_total",
    "KRW deducted from linked accounts",
    ["kind"],
)

# Price API metrics
price_fetch_failures_counter = Counter(
    "price_fetch_failures_total",
    "Failed BTC price API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_deduction(kind: str, amount: int, clamped: bool = False) -> None:
    """Record one applied deduction"""
    deduction_counter.labels(kind=kind).inc()
    if amount > 0:
        deduction_amount_counter.labels(kind=kind).inc(amount)
    if clamped:
        balance_clamp_counter.inc()
