"""Result values produced by envelope submission."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from relief.domain.batches.models import ItemStatus


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    NETWORK_UNAVAILABLE = "network_unavailable"
    # Failed local validation; the ledger was never contacted.
    INVALID = "invalid"


class StopReason(str, Enum):
    COMPLETED = "completed"
    NETWORK_UNAVAILABLE = "network_unavailable"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class SubmissionResult:
    outcome: Outcome
    index: Optional[int] = None
    result_code: Optional[str] = None
    transaction_hash: Optional[str] = None
    ledger: Optional[int] = None
    ledger_timestamp: Optional[datetime] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.ACCEPTED


@dataclass(slots=True)
class BatchReport:
    """Outcome of one submission pass over a batch.

    ``statuses[i]`` is the status of item ``i`` after the pass; ``results``
    only covers the items attempted in this pass, in ascending index order.
    """

    batch_id: str
    results: list[SubmissionResult] = field(default_factory=list)
    statuses: list[ItemStatus] = field(default_factory=list)
    stop_reason: StopReason = StopReason.COMPLETED

    @property
    def stopped_early(self) -> bool:
        return self.stop_reason is not StopReason.COMPLETED

    @property
    def pending_count(self) -> int:
        return sum(1 for status in self.statuses if status.is_pending)
