import asyncio

from bankdash.audit.aggregation import (
    FETCH_PAGE_SIZE,
    AggregateResult,
    TransactionCountTracker,
    aggregate_counts,
)
from bankdash.audit.status import TransactionStatus, resolve_status
from helpers.records import NOW, make_record


def _fetcher(responses, calls=None):
    """Build a fetch(service_id, limit, offset) coroutine from a dict.

    Values that are exceptions are raised; anything else is returned as the
    raw response body.
    """

    async def fetch(service_id, limit, offset):
        if calls is not None:
            calls.append((service_id, limit, offset))
        await asyncio.sleep(0)
        value = responses[service_id]
        if isinstance(value, Exception):
            raise value
        return value

    return fetch


def test_end_to_end_partial_failure():
    record = make_record(transtype="AM", param4=None, responsecode="000", postingdate="2025-09-10 09:00:00")
    boom = RuntimeError("service 6 unreachable")
    fetch = _fetcher({"5": {"data": [record]}, "6": boom})

    result = asyncio.run(aggregate_counts(["5", "6"], fetch, now=NOW))

    assert result.counts == {"5": 1, "6": 0}
    assert result.errors == {"6": boom}
    assert result.failed_summary() == "1 of 2 services failed to load"
    assert resolve_status(record) is TransactionStatus.PENDING


def test_fetches_one_large_page_per_service():
    calls = []
    fetch = _fetcher({"5": [], "6": []}, calls)

    asyncio.run(aggregate_counts(["5", "6"], fetch, now=NOW))

    assert FETCH_PAGE_SIZE == 10_000
    assert sorted(calls) == [("5", 10_000, 0), ("6", 10_000, 0)]


def test_month_boundary():
    records = [
        make_record(postingdate="2025-08-31 00:00:00"),  # one day before month start
        make_record(postingdate="2025-09-01 00:00:00"),  # exactly month start
        make_record(postingdate="2025-09-14 18:30:00"),
    ]
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": records}), now=NOW))
    assert result.counts == {"5": 2}


def test_future_dated_records_are_counted():
    # only the lower bound is enforced
    records = [make_record(postingdate="2025-10-02 00:00:00"), make_record(postingdate="2027-01-01 00:00:00")]
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": records}), now=NOW))
    assert result.counts == {"5": 2}


def test_date_fallbacks():
    records = [
        make_record(postingdate=None, updatedat="2025-09-03 10:00:00"),
        make_record(postingdate=None, updatedat="2025-08-03 10:00:00"),
        make_record(postingdate=None, updatedat=None),  # dated at fetch time
    ]
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": {"results": records}}), now=NOW))
    assert result.counts == {"5": 2}


def test_counts_ignore_status_and_type():
    records = [
        make_record(transtype="CR"),
        make_record(param4="04"),
        make_record(param4="02", responsecode="001"),
    ]
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": {"transactions": records}}), now=NOW))
    assert result.counts == {"5": 3}


def test_malformed_payload_counts_zero_without_error():
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": {"unexpected": "shape"}}), now=NOW))
    assert result.counts == {"5": 0}
    assert result.errors == {}
    assert result.failed_summary() is None


def test_all_failures_still_return():
    fetch = _fetcher({"5": ValueError("bad"), "6": TimeoutError("slow")})
    result = asyncio.run(aggregate_counts(["5", "6"], fetch, now=NOW))
    assert result.counts == {"5": 0, "6": 0}
    assert set(result.errors) == {"5", "6"}


def test_empty_input_does_no_work():
    calls = []
    result = asyncio.run(aggregate_counts([], _fetcher({}, calls), now=NOW))
    assert result == AggregateResult()
    assert calls == []


def test_duplicate_ids_fetched_once():
    calls = []
    fetch = _fetcher({"5": [make_record()]}, calls)
    result = asyncio.run(aggregate_counts(["5", "5"], fetch, now=NOW))
    assert result.counts == {"5": 1}
    assert len(calls) == 1


def test_fetches_run_concurrently():
    started = []

    async def scenario():
        both_started = asyncio.Event()

        async def fetch(service_id, limit, offset):
            started.append(service_id)
            if len(started) == 2:
                both_started.set()
            # times out unless the other fetch is in flight at the same time
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return []

        return await aggregate_counts(["5", "6"], fetch, now=NOW)

    result = asyncio.run(scenario())
    assert result.errors == {}
    assert sorted(started) == ["5", "6"]


def test_tracker_older_refresh_settling_last_is_discarded():
    async def scenario():
        release_first = asyncio.Event()
        calls = 0

        async def fetch(service_id, limit, offset):
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_first.wait()
                return [make_record(), make_record()]
            return [make_record()]

        tracker = TransactionCountTracker(fetch, clock=lambda: NOW)
        first = asyncio.create_task(tracker.refresh(["5"]))
        await asyncio.sleep(0)

        second = await tracker.refresh(["5"])
        release_first.set()
        after_first = await first
        return tracker, second, after_first

    tracker, second, after_first = asyncio.run(scenario())

    assert second.invocation == 2
    assert second.counts == {"5": 1}
    assert after_first is second
    assert tracker.current.counts == {"5": 1}
    assert tracker.latest_invocation == 2
    assert tracker.published_invocation == 2


def test_tracker_newer_refresh_replaces_older():
    counts = iter([[make_record()], [make_record(), make_record(), make_record()]])

    async def fetch(service_id, limit, offset):
        return next(counts)

    async def scenario():
        tracker = TransactionCountTracker(fetch, clock=lambda: NOW)
        first = await tracker.refresh(["5"])
        assert first.counts == {"5": 1}
        second = await tracker.refresh(["5"])
        return tracker, second

    tracker, second = asyncio.run(scenario())
    assert second.invocation == 2
    assert tracker.current.counts == {"5": 3}


def test_payload_with_mixed_key_types_counts_zero_without_error():
    result = asyncio.run(aggregate_counts(["5"], _fetcher({"5": {1: "x", "a": "y"}}), now=NOW))
    assert result.counts == {"5": 0}
    assert result.errors == {}
