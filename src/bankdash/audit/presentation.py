"""
Display helpers layered on top of resolve_status.

Nothing here makes a classification decision; these are plain lookups used
by the API serializers.
"""

from typing import Any, Dict, NamedTuple, Optional

from .status import TransactionStatus, get_field, resolve_status

NOT_AVAILABLE = "N/A"


class StatusPresentation(NamedTuple):
    label: str
    severity: str


STATUS_PRESENTATION: Dict[TransactionStatus, StatusPresentation] = {
    TransactionStatus.PENDING: StatusPresentation("Pending", "warning"),
    TransactionStatus.SUCCESS: StatusPresentation("Success", "positive"),
    TransactionStatus.FAILED: StatusPresentation("Failed", "negative"),
    TransactionStatus.UNKNOWN: StatusPresentation("Unknown", "neutral"),
}


def present_status(status: TransactionStatus) -> StatusPresentation:
    return STATUS_PRESENTATION[status]


def status_message(status: TransactionStatus, transtype: Optional[str] = None) -> str:
    """
    Human-readable sentence for a resolved status.
    """
    if status is TransactionStatus.SUCCESS:
        return "Transaction completed successfully"
    if status is TransactionStatus.PENDING:
        return "Transaction is being processed"
    if status is TransactionStatus.FAILED:
        return "Transaction failed"
    if transtype:
        return f"Status check not supported for {transtype} transactions"
    return "Status not applicable"


def _text_or_na(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def gateway_transaction_id(transaction: Any) -> str:
    # param3 carries the mobile-money gateway id for every flow
    return _text_or_na(get_field(transaction, "param3"))


def status_description(transaction: Any) -> str:
    """
    Pending records explain themselves in responsemessage; settled ones
    (success or failed) carry the final gateway message in param5.
    """
    status = resolve_status(transaction)
    if status is TransactionStatus.PENDING:
        return _text_or_na(get_field(transaction, "responsemessage"))
    if status in (TransactionStatus.SUCCESS, TransactionStatus.FAILED):
        return _text_or_na(get_field(transaction, "param5"))
    return NOT_AVAILABLE


def branch(transaction: Any) -> str:
    return _text_or_na(get_field(transaction, "param6"))
