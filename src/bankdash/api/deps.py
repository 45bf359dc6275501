from fastapi import Request

from bankdash.audit.aggregation import TransactionCountTracker
from bankdash.clients.bankdash_client import BankDashClient


def get_client(request: Request) -> BankDashClient:
    """
    Shared upstream client for FastAPI routes.
    """
    return request.app.state.client


def get_tracker(request: Request) -> TransactionCountTracker:
    return request.app.state.tracker
