"""
audit/normalizer.py

The BankDash backend is not consistent about response envelopes. A listing
may come back as a bare JSON array or wrapped under "data", "transactions"
(or "services") or "results". These helpers unwrap whatever arrives and
degrade to an empty list instead of raising, so one malformed page never
takes down a whole dashboard view.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from bankdash.logging_config import get_logger

logger = get_logger("bankdash.audit.normalizer")

TRANSACTION_ENVELOPE_KEYS = ("data", "transactions", "results")
SERVICE_ENVELOPE_KEYS = ("data", "services", "results")


def _unwrap_list(raw: Any, keys: Sequence[str]) -> Optional[List[Any]]:
    if isinstance(raw, list):
        return list(raw)
    if isinstance(raw, Mapping):
        for key in keys:
            value = raw.get(key)
            if isinstance(value, list):
                return list(value)
    return None


def normalize_transactions(raw: Any) -> List[Any]:
    """
    Extract the transaction list from a raw backend response.

    Priority: data > transactions > results > bare list. Returns [] when
    nothing matches.
    """
    records = _unwrap_list(raw, TRANSACTION_ENVELOPE_KEYS)
    if records is None:
        logger.warning(
            "Unexpected transactions response shape: type=%s keys=%s",
            type(raw).__name__,
            [str(k) for k in raw] if isinstance(raw, Mapping) else None,
        )
        return []
    return records


def response_total(raw: Any, records: Sequence[Any]) -> int:
    """
    Total advertised by an envelope ("total" or "count"), else len(records).
    """
    if isinstance(raw, Mapping):
        for key in ("total", "count"):
            value = raw.get(key)
            if value:
                try:
                    return int(value)
                except (TypeError, ValueError):
                    continue
    return len(records)


def normalize_services(raw: Any) -> List[Dict[str, Any]]:
    """
    Extract the service list and drop duplicates.

    Two entries are duplicates when they share an id, or share a name
    ignoring case. The first occurrence is kept.
    """
    services = _unwrap_list(raw, SERVICE_ENVELOPE_KEYS)
    if services is None:
        logger.warning("Unexpected services response shape: type=%s", type(raw).__name__)
        return []

    unique: List[Dict[str, Any]] = []
    seen_ids = set()
    seen_names = set()
    for service in services:
        if not isinstance(service, Mapping):
            continue
        service_id = service.get("id")
        name = service.get("name")
        name_key = name.lower() if isinstance(name, str) and name else None
        if service_id is not None and str(service_id) in seen_ids:
            continue
        if name_key is not None and name_key in seen_names:
            continue
        if service_id is not None:
            seen_ids.add(str(service_id))
        if name_key is not None:
            seen_names.add(name_key)
        unique.append(dict(service))
    return unique


def normalize_service(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Unwrap a single service from {"data": {...}} or a bare object.
    """
    if not isinstance(raw, Mapping):
        return None
    data = raw.get("data")
    if isinstance(data, Mapping):
        return dict(data)
    if raw.get("id") is not None or raw.get("name"):
        return dict(raw)
    return None
