from .aggregation import FETCH_PAGE_SIZE, AggregateResult, TransactionCountTracker, aggregate_counts
from .analytics import (
    AnalyticsReport,
    StatusSummary,
    build_analytics,
    monthly_trends,
    service_status_summaries,
    summarize_statuses,
)
from .normalizer import normalize_service, normalize_services, normalize_transactions
from .status import TransactionStatus, resolve_status

__all__ = [
    "FETCH_PAGE_SIZE",
    "AggregateResult",
    "AnalyticsReport",
    "StatusSummary",
    "TransactionCountTracker",
    "TransactionStatus",
    "aggregate_counts",
    "build_analytics",
    "monthly_trends",
    "normalize_service",
    "normalize_services",
    "normalize_transactions",
    "resolve_status",
    "service_status_summaries",
    "summarize_statuses",
]
