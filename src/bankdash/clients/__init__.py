from .bankdash_client import BackendError, BankDashClient

__all__ = ["BackendError", "BankDashClient"]
