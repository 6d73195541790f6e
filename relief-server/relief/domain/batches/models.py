"""Domain models for offline envelope batches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from relief.domain.transactions.models import Envelope, ThresholdSignature


class ItemState(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ItemStatus:
    state: ItemState
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "ItemStatus":
        return cls(ItemState.PENDING)

    @classmethod
    def submitted(cls) -> "ItemStatus":
        return cls(ItemState.SUBMITTED)

    @classmethod
    def failed(cls, reason: str) -> "ItemStatus":
        return cls(ItemState.FAILED, reason)

    @property
    def is_pending(self) -> bool:
        return self.state is ItemState.PENDING


@dataclass(slots=True)
class BatchItemRecord:
    """Persisted form of one batch item."""

    position: int
    envelope_xdr: str
    threshold: Optional[ThresholdSignature] = None
    state: ItemState = ItemState.PENDING
    reason: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class StoredBatch:
    batch_id: str
    items: list[BatchItemRecord] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class BatchItem:
    index: int
    envelope_xdr: str
    status: ItemStatus
    # None when the stored text no longer decodes; decode_error says why.
    envelope: Optional[Envelope] = None
    threshold: Optional[ThresholdSignature] = None
    decode_error: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class OfflineBatch:
    batch_id: str
    items: list[BatchItem] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def statuses(self) -> list[ItemStatus]:
        return [item.status for item in self.items]

    @property
    def pending_count(self) -> int:
        return sum(1 for item in self.items if item.status.is_pending)


def threshold_to_dict(threshold: Optional[ThresholdSignature]) -> Optional[dict[str, Any]]:
    if threshold is None:
        return None
    return {"required_weight": threshold.required_weight, "signers": dict(threshold.signers)}


def threshold_from_dict(data: Optional[dict[str, Any]]) -> Optional[ThresholdSignature]:
    if not data:
        return None
    return ThresholdSignature(
        required_weight=int(data["required_weight"]),
        signers={str(key): int(weight) for key, weight in data.get("signers", {}).items()},
    )
