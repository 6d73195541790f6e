"""Domain models for aid distribution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from relief.domain.ledger.models import AccountCredentials
from relief.domain.submissions.models import SubmissionResult
from relief.domain.transactions.models import Envelope


@dataclass(frozen=True, slots=True)
class BeneficiaryPayment:
    public_key: str
    amount: Union[Decimal, str, int]


@dataclass(slots=True)
class BeneficiaryAccount:
    credentials: AccountCredentials
    starting_balance: Decimal
    submission: SubmissionResult


@dataclass(slots=True)
class OfflinePayment:
    envelope: Envelope
    xdr: str
