"""Protocols for the external ledger collaborators."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import AccountState, LedgerResponse, PaymentRecord


class AccountStateProvider(Protocol):
    async def get_account(self, public_id: str) -> AccountState:
        """Raise ``AccountNotFound`` when the ledger has no such account."""
        ...


class LedgerSubmitter(Protocol):
    async def submit(self, envelope_xdr: str) -> LedgerResponse:
        """Return the ledger verdict; raise ``LedgerUnavailable`` on network failure."""
        ...


class AccountFunder(Protocol):
    async def fund(self, public_id: str) -> None:
        ...


class PaymentHistoryProvider(Protocol):
    async def list_payments(self, public_id: str, limit: int = 200) -> Sequence[PaymentRecord]:
        ...
