"""Domain models for conditional transfers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Union

from relief.domain.transactions.models import Envelope, ThresholdSignature

ESCROW_REQUIRED_WEIGHT = 2


@dataclass(slots=True)
class TimeLockedTransfer:
    envelope: Envelope
    xdr: str
    unlock_at: datetime


@dataclass(slots=True)
class EscrowAccount:
    public_key: str
    signers: list[str] = field(default_factory=list)
    required_weight: int = ESCROW_REQUIRED_WEIGHT


@dataclass(slots=True)
class EscrowRelease:
    """Unsigned release envelope; signers add signatures until ``threshold`` is met."""

    envelope: Envelope
    xdr: str
    threshold: ThresholdSignature


@dataclass(frozen=True, slots=True)
class TimeMilestone:
    id: str
    name: str
    beneficiary: str
    amount: Union[Decimal, str, int]
    unlock_at: datetime


@dataclass(frozen=True, slots=True)
class ApprovalMilestone:
    id: str
    name: str
    beneficiary: str
    approver: str
    amount: Union[Decimal, str, int]


Milestone = Union[TimeMilestone, ApprovalMilestone]


@dataclass(slots=True)
class TimeMilestoneResult:
    milestone_id: str
    name: str
    transfer: TimeLockedTransfer


@dataclass(slots=True)
class ApprovalMilestoneResult:
    milestone_id: str
    name: str
    escrow: EscrowAccount


MilestoneResult = Union[TimeMilestoneResult, ApprovalMilestoneResult]
