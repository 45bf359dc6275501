from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from bankdash.audit.aggregation import FETCH_PAGE_SIZE, aggregate_counts
from bankdash.audit.analytics import build_analytics, service_status_summaries, summarize_statuses
from bankdash.audit.dates import local_now
from bankdash.audit.normalizer import (
    normalize_service,
    normalize_services,
    normalize_transactions,
    response_total,
)
from bankdash.clients.bankdash_client import BackendError
from bankdash.logging_config import get_logger

from .deps import get_client, get_tracker
from .schemas import (
    AnalyticsOut,
    RefreshCountsIn,
    ServiceOut,
    StatusSummariesOut,
    StatusSummaryOut,
    TransactionCountsOut,
    TransactionListOut,
)
from .serializers import (
    serialize_analytics,
    serialize_counts,
    serialize_errors,
    serialize_service,
    serialize_summary,
    serialize_transaction,
)

logger = get_logger("bankdash.api.services")

router = APIRouter(tags=["services"])


def _bad_gateway(e: BackendError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"bankdash backend error: {e.status} {e.message}")


def _parse_service_ids(raw: str) -> List[str]:
    ids = [part.strip() for part in raw.split(",") if part.strip()]
    if not ids:
        raise HTTPException(status_code=400, detail="service_ids must list at least one id")
    return ids


async def _active_service_ids(client) -> List[str]:
    try:
        raw = await client.get_services()
    except BackendError as e:
        logger.error("Could not list services for transaction counts: %s", e)
        raise _bad_gateway(e)
    services = [serialize_service(s) for s in normalize_services(raw)]
    return [s["id"] for s in services if s["status"]]


@router.get("/services", response_model=List[ServiceOut])
async def list_services(client=Depends(get_client)):
    """
    All services, de-duplicated by id and case-insensitive name.
    """
    try:
        raw = await client.get_services()
    except BackendError as e:
        raise _bad_gateway(e)
    return [serialize_service(s) for s in normalize_services(raw)]


@router.get("/services/transaction-counts", response_model=TransactionCountsOut)
async def transaction_counts(
    service_ids: Optional[str] = Query(None, description="Comma-separated service ids; defaults to active services"),
    client=Depends(get_client),
):
    """
    Current-month transaction count per service.

    Services whose fetch fails report 0 and appear in ``errors``.
    """
    ids = _parse_service_ids(service_ids) if service_ids is not None else await _active_service_ids(client)
    result = await aggregate_counts(ids, client.get_transactions)
    return serialize_counts(result)


@router.post("/services/transaction-counts/refresh", response_model=TransactionCountsOut)
async def refresh_transaction_counts(payload: RefreshCountsIn, tracker=Depends(get_tracker)):
    """
    Re-run the count aggregation. The newest refresh always wins; a slower,
    older refresh that settles later does not replace it.
    """
    if not payload.service_ids:
        raise HTTPException(status_code=400, detail="service_ids must list at least one id")
    result = await tracker.refresh(payload.service_ids)
    return serialize_counts(result)


@router.get("/services/status-summaries", response_model=StatusSummariesOut)
async def status_summaries(
    service_ids: Optional[str] = Query(None, description="Comma-separated service ids; defaults to active services"),
    client=Depends(get_client),
):
    """
    Current-month status breakdown for several services at once.
    """
    ids = _parse_service_ids(service_ids) if service_ids is not None else await _active_service_ids(client)
    result = await service_status_summaries(ids, client.get_transactions)
    return {
        "summaries": {str(k): serialize_summary(k, s) for k, s in result.summaries.items()},
        "errors": serialize_errors(result.errors),
    }


@router.get("/services/analytics", response_model=AnalyticsOut)
async def analytics(
    service_ids: Optional[str] = Query(None, description="Comma-separated service ids; defaults to active services"),
    client=Depends(get_client),
):
    """
    All-time and current-month breakdowns per service and overall, plus
    monthly volume trends (newest six months).
    """
    ids = _parse_service_ids(service_ids) if service_ids is not None else await _active_service_ids(client)
    report = await build_analytics(ids, client.get_transactions)
    return serialize_analytics(report)


@router.get("/services/{service_id}", response_model=ServiceOut)
async def get_service(service_id: str, client=Depends(get_client)):
    try:
        raw = await client.get_service(service_id)
    except BackendError as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Service not found")
        raise _bad_gateway(e)
    service = normalize_service(raw)
    if service is None:
        logger.warning("No service data found in response for service_id=%s", service_id)
        raise HTTPException(status_code=404, detail="Service not found")
    return serialize_service(service)


@router.get("/services/{service_id}/transactions", response_model=TransactionListOut)
async def list_transactions(
    service_id: str,
    limit: int = Query(FETCH_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
    client=Depends(get_client),
):
    """
    Transactions for one service with audit status resolved per record.
    """
    logger.info("Fetching transactions for service_id=%s limit=%s offset=%s", service_id, limit, offset)
    try:
        raw = await client.get_transactions(service_id, limit, offset)
    except BackendError as e:
        raise _bad_gateway(e)

    records = normalize_transactions(raw)
    now = local_now()
    transactions: List[Any] = [serialize_transaction(r, now) for r in records if isinstance(r, dict)]
    return {
        "service_id": service_id,
        "total": response_total(raw, records),
        "transactions": transactions,
    }


@router.get("/services/{service_id}/status-summary", response_model=StatusSummaryOut)
async def status_summary(service_id: str, client=Depends(get_client)):
    """
    Current-month pending/success/failed/unknown breakdown for one service.
    """
    try:
        raw = await client.get_transactions(service_id, FETCH_PAGE_SIZE, 0)
    except BackendError as e:
        raise _bad_gateway(e)
    summary = summarize_statuses(normalize_transactions(raw), current_month_only=True)
    return serialize_summary(service_id, summary)
