"""
audit/status.py

Transaction status resolution for account<->mobile transfer flows.

The status shown to auditors is derived on every read from three raw backend
fields (transtype, param4, responsecode). Whatever status string the backend
stamped on the record (transferstatus, statuscode, ...) is ignored.

Decision table, first match wins:

  transtype not AM/MA                      -> unknown
  param4 absent   and responsecode "000"   -> pending
  param4 == "04"  and responsecode "000"   -> success
  anything else                            -> failed
"""

from enum import Enum
from typing import Any, Mapping, Optional


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"


TRANSFER_TRANSTYPES = frozenset({"AM", "MA"})
ACCEPTED_RESPONSE_CODE = "000"
COMPLETED_PARAM4 = "04"


def get_field(transaction: Any, name: str) -> Optional[Any]:
    """
    Read a field from a raw record (mapping) or a model (attribute access).
    Missing fields read as None.
    """
    if transaction is None:
        return None
    if isinstance(transaction, Mapping):
        return transaction.get(name)
    return getattr(transaction, name, None)


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def resolve_status(transaction: Any) -> TransactionStatus:
    """
    Classify a transaction. Pure and total: never raises, never mutates.
    """
    transtype = get_field(transaction, "transtype")
    if not isinstance(transtype, str) or transtype not in TRANSFER_TRANSTYPES:
        return TransactionStatus.UNKNOWN

    param4 = get_field(transaction, "param4")
    responsecode = get_field(transaction, "responsecode")

    if _is_absent(param4) and responsecode == ACCEPTED_RESPONSE_CODE:
        return TransactionStatus.PENDING

    if param4 == COMPLETED_PARAM4 and responsecode == ACCEPTED_RESPONSE_CODE:
        return TransactionStatus.SUCCESS

    # fail closed: unrecognized AM/MA combinations are never assumed successful
    return TransactionStatus.FAILED
