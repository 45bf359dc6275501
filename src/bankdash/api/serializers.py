import json
from datetime import datetime
from typing import Any, Dict, Hashable, Mapping, Optional

from bankdash.audit.aggregation import AggregateResult
from bankdash.audit.analytics import AnalyticsReport, StatusSummary, parse_amount
from bankdash.audit.dates import local_now
from bankdash.audit.presentation import (
    branch,
    gateway_transaction_id,
    present_status,
    status_description,
    status_message,
)
from bankdash.audit.status import TransactionStatus, resolve_status
from bankdash.logging_config import get_logger

logger = get_logger("bankdash.api.serializers")

CREDIT_TRANSTYPES = ("MA", "CR")
ACTIVE_STATUS_VALUES = ("active", "true", "1", "yes")


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _first(record: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = record.get(name)
        if value:
            return _text(value)
    return None


def _parse_json_field(record: Mapping[str, Any], name: str) -> Dict[str, Any]:
    raw = record.get(name)
    if not raw:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to parse %s for transaction %s: %s", name, record.get("transactionid"), e)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def serialize_transaction(record: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Map a raw backend transaction record onto TransactionOut.

    ``status`` always comes from resolve_status; the backend's own
    transferstatus/statuscode strings are only passed through in
    response_body for reference.
    """
    status = resolve_status(record)
    presentation = present_status(status)
    transtype = _text(record.get("transtype"))

    callback = _parse_json_field(record, "callback")
    request_payload = _parse_json_field(record, "requestpayload")
    response_payload = _parse_json_field(record, "responsepayload")

    fetched_at = now or local_now()
    if record.get("narration"):
        description = _text(record.get("narration"))
    elif transtype:
        description = f"{transtype} Transaction"
    else:
        description = "Transaction"

    error_message = _text(record.get("exceptions")) or None
    if not error_message and status is TransactionStatus.FAILED:
        error_message = _text(record.get("responsemessage"))

    return {
        "id": _first(record, "transactionid", "reference") or "",
        "date": _first(record, "postingdate", "updatedat") or fetched_at.isoformat(),
        "amount": parse_amount(record.get("amount")),
        "status": status.value,
        "status_label": presentation.label,
        "status_severity": presentation.severity,
        "status_message": status_message(status, transtype),
        "reference": _first(record, "reference", "transactionid") or "",
        "description": description,
        "type": "credit" if transtype in CREDIT_TRANSTYPES else "debit",
        "sender": _first(record, "senderaccount", "sendertelephone"),
        "recipient": _first(record, "receiveraccount", "receivertelephone"),
        "account_number": _first(record, "senderaccount", "receiveraccount"),
        "phone_number": _first(record, "sendertelephone", "receivertelephone") or _text(request_payload.get("msisdn")),
        "gateway_transaction_id": gateway_transaction_id(record),
        "status_description": status_description(record),
        "branch": branch(record),
        "transtype": transtype,
        "param4": _text(record.get("param4")),
        "responsecode": _text(record.get("responsecode")),
        "responsemessage": _text(record.get("responsemessage")),
        "postingdate": _text(record.get("postingdate")),
        "updatedat": _text(record.get("updatedat")),
        "request_body": {
            "reference": record.get("reference"),
            "amount": record.get("amount"),
            "currency": record.get("currency"),
            "narration": record.get("narration"),
            "channel": record.get("channel"),
            "transtype": record.get("transtype"),
            **request_payload,
        },
        "response_body": {
            "statuscode": record.get("statuscode"),
            "responsecode": record.get("responsecode"),
            "responsemessage": record.get("responsemessage"),
            "transferstatus": record.get("transferstatus"),
            "confirmationcode": record.get("confirmationcode"),
            "confirmationmessage": record.get("confirmationmessage"),
            **response_payload,
            **callback,
        },
        "error_message": error_message,
    }


def _service_status(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ACTIVE_STATUS_VALUES
    return bool(value)


def serialize_service(service: Mapping[str, Any]) -> Dict[str, Any]:
    service_id = _text(service.get("id")) or _text(service.get("name")) or ""
    return {
        "id": service_id,
        "name": _text(service.get("name")) or f"Service {service_id}",
        "description": _text(service.get("description")),
        "logo_url": _text(service.get("logo_url")),
        "status": _service_status(service.get("status")),
        "created_at": _text(service.get("created_at")),
        "updated_at": _text(service.get("updated_at")),
    }


def serialize_counts(result: AggregateResult) -> Dict[str, Any]:
    return {
        "counts": {str(k): v for k, v in result.counts.items()},
        "errors": serialize_errors(result.errors),
        "failed_summary": result.failed_summary(),
        "invocation": result.invocation,
    }


def serialize_summary(service_id: Hashable, summary: StatusSummary) -> Dict[str, Any]:
    return {"service_id": str(service_id), **summary.to_dict()}


def serialize_errors(errors: Mapping[Hashable, Exception]) -> Dict[str, str]:
    return {str(k): str(e) or type(e).__name__ for k, e in errors.items()}


def serialize_analytics(report: AnalyticsReport) -> Dict[str, Any]:
    return {
        "services": [
            {
                "service_id": str(service_id),
                "all_time": stats.all_time.to_dict(),
                "current_month": stats.current_month.to_dict(),
            }
            for service_id, stats in report.services.items()
        ],
        "overall": report.overall.to_dict(),
        "current_month": report.current_month.to_dict(),
        "monthly_trends": [t.to_dict() for t in report.trends],
        "errors": serialize_errors(report.errors),
    }
