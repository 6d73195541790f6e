"""Domain models for data returned by the ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class Balance:
    asset_code: str
    asset_issuer: Optional[str]
    balance: Decimal


@dataclass(slots=True)
class AccountThresholds:
    low: int = 0
    medium: int = 0
    high: int = 0


@dataclass(slots=True)
class AccountState:
    account_id: str
    sequence: int
    balances: list[Balance] = field(default_factory=list)
    signers: dict[str, int] = field(default_factory=dict)
    thresholds: AccountThresholds = field(default_factory=AccountThresholds)


@dataclass(slots=True)
class LedgerResponse:
    success: bool
    result_code: Optional[str] = None
    transaction_hash: Optional[str] = None
    ledger: Optional[int] = None
    ledger_timestamp: Optional[datetime] = None


@dataclass(slots=True)
class PaymentRecord:
    id: str
    type: str
    created_at: datetime
    source: str
    destination: str
    amount: Decimal
    asset_code: str
    asset_issuer: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.asset_issuer is None


@dataclass(slots=True)
class AccountCredentials:
    public_key: str
    secret_key: str = field(repr=False)
