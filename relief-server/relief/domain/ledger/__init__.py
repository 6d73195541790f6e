"""Ledger collaborator interfaces and the data they return."""

from .models import (
    AccountCredentials,
    AccountState,
    AccountThresholds,
    Balance,
    LedgerResponse,
    PaymentRecord,
)
from .repository import (
    AccountFunder,
    AccountStateProvider,
    LedgerSubmitter,
    PaymentHistoryProvider,
)

__all__ = [
    "AccountCredentials",
    "AccountFunder",
    "AccountState",
    "AccountStateProvider",
    "AccountThresholds",
    "Balance",
    "LedgerResponse",
    "LedgerSubmitter",
    "PaymentHistoryProvider",
    "PaymentRecord",
]
