"""
audit/aggregation.py

Current-month transaction counts per banking service.

One fetch per service runs concurrently on the event loop. Each service is
isolated: a failed fetch contributes a count of 0 and its exception is kept
in a side mapping, while every other service still gets counted. The result
is only returned once every fetch has settled.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from bankdash.logging_config import get_logger

from .dates import in_current_month, local_now
from .normalizer import normalize_transactions

logger = get_logger("bankdash.audit.aggregation")

# "Fetch everything in one page" instead of paginating. A service with more
# transactions than this is under-counted without any error.
FETCH_PAGE_SIZE = 10_000
FETCH_OFFSET = 0

TransactionFetcher = Callable[[Any, int, int], Awaitable[Any]]


@dataclass
class AggregateResult:
    counts: Dict[Hashable, int] = field(default_factory=dict)
    errors: Dict[Hashable, Exception] = field(default_factory=dict)
    invocation: Optional[int] = None

    def failed_summary(self) -> Optional[str]:
        if not self.errors:
            return None
        return f"{len(self.errors)} of {len(self.counts)} services failed to load"


def unique_service_ids(service_ids: Iterable[Hashable]) -> List[Hashable]:
    return list(dict.fromkeys(service_ids))


def count_current_month(records: Iterable[Any], now: datetime) -> int:
    return sum(1 for record in records if in_current_month(record, now))


async def fetch_service_records(service_id: Any, fetch: TransactionFetcher) -> List[Any]:
    """
    Fetch one page of FETCH_PAGE_SIZE records at offset 0 and normalize it.
    """
    raw = await fetch(service_id, FETCH_PAGE_SIZE, FETCH_OFFSET)
    return normalize_transactions(raw)


async def _count_service(
    service_id: Any,
    fetch: TransactionFetcher,
    now: datetime,
) -> Tuple[Any, int, Optional[Exception]]:
    try:
        records = await fetch_service_records(service_id, fetch)
        count = count_current_month(records, now)
    except Exception as e:
        logger.exception("Error fetching transactions for service %s: %s", service_id, e)
        return service_id, 0, e
    logger.info("Service %s: %d transactions in current month", service_id, count)
    return service_id, count, None


async def aggregate_counts(
    service_ids: Iterable[Hashable],
    fetch: TransactionFetcher,
    *,
    now: Optional[datetime] = None,
) -> AggregateResult:
    """
    Count current-month transactions for every service id.

    ``fetch(service_id, limit, offset)`` is awaited once per distinct id.
    ``now`` pins the clock (month boundary and the fetch-time fallback date).
    Never raises for per-service failures; see ``AggregateResult.errors``.
    """
    ids = unique_service_ids(service_ids)
    result = AggregateResult()
    if not ids:
        return result

    current = now if now is not None else local_now()
    logger.info("Fetching transaction counts for services: %s", ids)
    outcomes = await asyncio.gather(*(_count_service(sid, fetch, current) for sid in ids))

    for service_id, count, error in outcomes:
        result.counts[service_id] = count
        if error is not None:
            result.errors[service_id] = error

    logger.info("Final transaction counts: %s", result.counts)
    if result.errors:
        logger.warning("Transaction counts incomplete: %s", result.failed_summary())
    return result


class TransactionCountTracker:
    """
    Holds the authoritative count result across repeated refreshes.

    Every refresh is numbered. When a refresh settles it only replaces
    ``current`` if no newer refresh has already published, so an older
    in-flight refresh can never overwrite a newer one.
    """

    def __init__(
        self,
        fetch: TransactionFetcher,
        clock: Callable[[], datetime] = local_now,
    ):
        self._fetch = fetch
        self._clock = clock
        self._issued = 0
        self._published = 0
        self.current: Optional[AggregateResult] = None

    @property
    def latest_invocation(self) -> int:
        return self._issued

    @property
    def published_invocation(self) -> int:
        return self._published

    async def refresh(self, service_ids: Iterable[Hashable]) -> AggregateResult:
        """
        Run a new aggregation and return the current authoritative result.
        """
        self._issued += 1
        invocation = self._issued

        result = await aggregate_counts(service_ids, self._fetch, now=self._clock())
        result.invocation = invocation

        if invocation > self._published:
            self._published = invocation
            self.current = result
        else:
            logger.info(
                "Discarding stale count refresh #%d (current is #%d)",
                invocation,
                self._published,
            )
        return self.current
