"""Prometheus metrics for invoice resolution volume, invoice statuses, and rejected input"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from card_invoices.domain.models import InvoiceBucket

# Engine usage
invoice_resolution_counter = Counter(
    "card_invoices_resolution_total",
    "Invoice engine calls served",
    ["operation"],  # resolve | current | group | best_purchase_day
)

invoice_status_counter = Counter(
    "card_invoices_status_total",
    "Invoices returned by status",
    ["status"],  # open | closed | overdue | paid | partial
)

purchases_per_request_histogram = Histogram(
    "card_invoices_purchases_per_request",
    "Purchases submitted per grouping request",
    buckets=[0, 10, 50, 100, 500, 1000, 5000, 10000],
)

invalid_argument_counter = Counter(
    "card_invoices_invalid_argument_total",
    "Requests rejected for invalid day, date, or amount",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_buckets(buckets: Iterable[InvoiceBucket]) -> None:
    """Count returned invoices by final status"""
    for bucket in buckets:
        invoice_status_counter.labels(status=bucket.status.value).inc()
