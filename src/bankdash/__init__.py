"""
BankDash audit service: transaction status resolution and per-service
transaction counts for the BankDash operations dashboard.
"""

__version__ = "1.0.0"
