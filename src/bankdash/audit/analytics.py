"""
Status breakdowns and trends for the analytics view.

Statuses come from resolve_status, so analytics and the transaction table
always agree on what "success" means.
"""

import asyncio
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from bankdash.logging_config import get_logger

from .aggregation import TransactionFetcher, fetch_service_records, unique_service_ids
from .dates import authoritative_date, in_current_month, local_now
from .status import get_field, resolve_status

logger = get_logger("bankdash.audit.analytics")

MONTHLY_TREND_WINDOW = 6


def parse_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).replace(",", ""))
    except ValueError:
        return 0.0
    # "NaN" and "inf" parse but cannot be summed or sent as JSON
    return amount if math.isfinite(amount) else 0.0


@dataclass
class StatusSummary:
    total: int = 0
    pending: int = 0
    success: int = 0
    failed: int = 0
    unknown: int = 0
    total_amount: float = 0.0

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return round(self.success / self.total * 100, 2)

    def add(self, record: Any) -> None:
        status = resolve_status(record)
        self.total += 1
        setattr(self, status.value, getattr(self, status.value) + 1)
        self.total_amount += parse_amount(get_field(record, "amount"))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_amount"] = round(self.total_amount, 2)
        data["success_rate"] = self.success_rate
        return data



def summarize_statuses(
    records: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    current_month_only: bool = False,
) -> StatusSummary:
    current = now if now is not None else local_now()
    summary = StatusSummary()
    for record in records:
        if current_month_only and not in_current_month(record, current):
            continue
        summary.add(record)
    return summary


@dataclass
class MonthlyTrend:
    month: str
    label: str
    transactions: int = 0
    volume: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["volume"] = round(self.volume, 2)
        return data


def monthly_trends(
    records: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    window: Optional[int] = MONTHLY_TREND_WINDOW,
) -> List[MonthlyTrend]:
    """
    Transaction count and volume per calendar month ("YYYY-MM"), oldest first.

    Months come from the same authoritative date as the count pipeline.
    Records with an unparseable date are left out. Only the newest ``window``
    months are kept; pass ``window=None`` for all of them.
    """
    current = now if now is not None else local_now()
    by_month: Dict[str, MonthlyTrend] = {}
    for record in records:
        when = authoritative_date(record, current)
        if when is None:
            continue
        key = when.strftime("%Y-%m")
        trend = by_month.get(key)
        if trend is None:
            trend = by_month[key] = MonthlyTrend(month=key, label=when.strftime("%b"))
        trend.transactions += 1
        trend.volume += parse_amount(get_field(record, "amount"))

    trends = [by_month[key] for key in sorted(by_month)]
    if window is not None:
        trends = trends[-window:] if window > 0 else []
    return trends


async def fetch_all_records(
    service_ids: Iterable[Hashable],
    fetch: TransactionFetcher,
) -> Tuple[Dict[Hashable, List[Any]], Dict[Hashable, Exception]]:
    """
    Fetch every distinct service concurrently.

    Failing services map to an empty record list and an entry in the errors
    mapping; the others are unaffected.
    """
    ids = unique_service_ids(service_ids)

    async def _one(service_id: Any):
        try:
            return service_id, await fetch_service_records(service_id, fetch), None
        except Exception as e:
            logger.exception("Error fetching transactions for service %s: %s", service_id, e)
            return service_id, [], e

    records: Dict[Hashable, List[Any]] = {}
    errors: Dict[Hashable, Exception] = {}
    for service_id, service_records, error in await asyncio.gather(*(_one(sid) for sid in ids)):
        records[service_id] = service_records
        if error is not None:
            errors[service_id] = error
    return records, errors


@dataclass
class ServiceSummaries:
    summaries: Dict[Hashable, StatusSummary] = field(default_factory=dict)
    errors: Dict[Hashable, Exception] = field(default_factory=dict)


async def service_status_summaries(
    service_ids: Iterable[Hashable],
    fetch: TransactionFetcher,
    *,
    now: Optional[datetime] = None,
) -> ServiceSummaries:
    """
    Current-month status summary for each service, fetched concurrently.

    Failing services get an empty summary and an entry in ``errors``.
    """
    current = now if now is not None else local_now()
    records, errors = await fetch_all_records(service_ids, fetch)
    return ServiceSummaries(
        summaries={
            sid: summarize_statuses(rows, now=current, current_month_only=True) for sid, rows in records.items()
        },
        errors=errors,
    )


@dataclass
class ServiceAnalytics:
    all_time: StatusSummary = field(default_factory=StatusSummary)
    current_month: StatusSummary = field(default_factory=StatusSummary)


@dataclass
class AnalyticsReport:
    services: Dict[Hashable, ServiceAnalytics] = field(default_factory=dict)
    overall: StatusSummary = field(default_factory=StatusSummary)
    current_month: StatusSummary = field(default_factory=StatusSummary)
    trends: List[MonthlyTrend] = field(default_factory=list)
    errors: Dict[Hashable, Exception] = field(default_factory=dict)


async def build_analytics(
    service_ids: Iterable[Hashable],
    fetch: TransactionFetcher,
    *,
    now: Optional[datetime] = None,
    trend_window: Optional[int] = MONTHLY_TREND_WINDOW,
) -> AnalyticsReport:
    """
    Everything the analytics view shows, from one fetch per service:
    all-time and current-month breakdowns per service, the same two across
    all services, and monthly trends over the combined records.
    """
    current = now if now is not None else local_now()
    records, errors = await fetch_all_records(service_ids, fetch)

    report = AnalyticsReport(errors=errors)
    combined: List[Any] = []
    for service_id, rows in records.items():
        report.services[service_id] = ServiceAnalytics(
            all_time=summarize_statuses(rows, now=current),
            current_month=summarize_statuses(rows, now=current, current_month_only=True),
        )
        combined.extend(rows)

    report.overall = summarize_statuses(combined, now=current)
    report.current_month = summarize_statuses(combined, now=current, current_month_only=True)
    report.trends = monthly_trends(combined, now=current, window=trend_window)
    logger.info(
        "Analytics built for %d services: %d transactions, %d this month",
        len(report.services),
        report.overall.total,
        report.current_month.total,
    )
    return report
