"""Repository protocol for offline batch persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import BatchItemRecord, ItemState, StoredBatch


class OfflineBatchRepository(Protocol):
    """Durable key-value storage keyed by batch identifier.

    Implementations must offer read-after-write consistency within one
    process. They provide no locking.
    """

    async def replace_batch(self, batch_id: str, items: Sequence[BatchItemRecord]) -> StoredBatch:
        ...

    async def load_batch(self, batch_id: str) -> StoredBatch | None:
        ...

    async def set_item_status(
        self,
        batch_id: str,
        position: int,
        *,
        state: ItemState,
        reason: str | None,
        updated_at: datetime,
    ) -> bool:
        ...

    async def delete_batch(self, batch_id: str) -> bool:
        ...

    async def list_batch_ids(self) -> Sequence[str]:
        ...
