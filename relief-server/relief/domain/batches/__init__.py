"""Offline envelope batches awaiting submission."""

from .exceptions import (
    BatchItemNotFound,
    BatchNotFound,
    BatchStoreError,
    InvalidBatchId,
    InvalidStatusTransition,
)
from .models import BatchItem, BatchItemRecord, ItemState, ItemStatus, OfflineBatch, StoredBatch
from .repository import OfflineBatchRepository
from .service import OfflineBatchStore

__all__ = [
    "BatchItem",
    "BatchItemNotFound",
    "BatchItemRecord",
    "BatchNotFound",
    "BatchStoreError",
    "InvalidBatchId",
    "InvalidStatusTransition",
    "ItemState",
    "ItemStatus",
    "OfflineBatch",
    "OfflineBatchRepository",
    "OfflineBatchStore",
    "StoredBatch",
]
