"""Prometheus metrics for the order book synchronizer."""

from prometheus_client import Counter, Histogram, start_http_server

# Text frames forwarded from the WebSocket to the consumer
WS_FRAMES_FORWARDED = Counter(
    "okx_book_ws_frames_forwarded_total",
    "Total WebSocket text frames forwarded to the consumer",
)

# REST snapshots successfully turned into a book
SNAPSHOTS_FETCHED = Counter(
    "okx_book_snapshots_fetched_total",
    "Total order book snapshots fetched over REST",
)

# Delta items applied to the book
UPDATES_APPLIED = Counter(
    "okx_book_updates_applied_total",
    "Total incremental updates applied to the book",
)

# Delta items rejected by the book
UPDATE_FAILURES = Counter(
    "okx_book_update_failures_total",
    "Total incremental updates that failed to apply",
    ["reason"],
)

# Books discarded and rebuilt from a fresh snapshot
RESNAPSHOTS = Counter(
    "okx_book_resnapshots_total",
    "Total times the book was discarded and re-snapshotted",
)

# Error events pushed by the exchange
EXCHANGE_ERRORS = Counter(
    "okx_book_exchange_error_events_total",
    "Total error events received on the stream",
)

# Time spent appending + re-sorting a single delta
UPDATE_LATENCY = Histogram(
    "okx_book_update_apply_seconds",
    "Time to apply one incremental update in seconds",
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)


def start_metrics_server(port: int) -> None:
    """Start the Prometheus metrics HTTP server."""
    start_http_server(port)
