"""SQLAlchemy implementation of the offline batch repository."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from relief.db.models import OfflineBatch as OfflineBatchModel
from relief.db.models import OfflineBatchItem as OfflineBatchItemModel
from relief.domain.batches.models import (
    BatchItemRecord,
    ItemState,
    StoredBatch,
    threshold_from_dict,
    threshold_to_dict,
)


class SqlOfflineBatchRepository:
    """Offline batch repository backed by SQLAlchemy models.

    Every write commits, so item statuses survive a crash between two
    submissions of the same pass.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def replace_batch(self, batch_id: str, items: Sequence[BatchItemRecord]) -> StoredBatch:
        await self._session.execute(
            delete(OfflineBatchItemModel)
            .where(OfflineBatchItemModel.batch_id == batch_id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(
            delete(OfflineBatchModel)
            .where(OfflineBatchModel.batch_id == batch_id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.flush()

        self._session.add(OfflineBatchModel(batch_id=batch_id))
        await self._session.flush()
        for record in items:
            threshold = threshold_to_dict(record.threshold)
            self._session.add(
                OfflineBatchItemModel(
                    batch_id=batch_id,
                    position=record.position,
                    envelope_xdr=record.envelope_xdr,
                    threshold=json.dumps(threshold) if threshold else None,
                    status=record.state.value,
                    reason=record.reason,
                    updated_at=record.updated_at,
                )
            )
        await self._session.commit()

        stored = await self.load_batch(batch_id)
        assert stored is not None  # just written
        return stored

    async def load_batch(self, batch_id: str) -> StoredBatch | None:
        stmt = (
            select(OfflineBatchModel)
            .where(OfflineBatchModel.batch_id == batch_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        if model is None:
            return None

        items_stmt = (
            select(OfflineBatchItemModel)
            .where(OfflineBatchItemModel.batch_id == batch_id)
            .order_by(OfflineBatchItemModel.position)
            .execution_options(populate_existing=True)
        )
        items_result = await self._session.execute(items_stmt)
        return StoredBatch(
            batch_id=model.batch_id,
            items=[self._to_record(item) for item in items_result.scalars().all()],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def set_item_status(
        self,
        batch_id: str,
        position: int,
        *,
        state: ItemState,
        reason: str | None,
        updated_at: datetime,
    ) -> bool:
        item_filter = (
            OfflineBatchItemModel.batch_id == batch_id,
            OfflineBatchItemModel.position == position,
        )
        found = await self._session.execute(select(OfflineBatchItemModel.id).where(*item_filter))
        if found.scalar_one_or_none() is None:
            return False

        await self._session.execute(
            update(OfflineBatchItemModel)
            .where(*item_filter)
            .values(status=state.value, reason=reason, updated_at=updated_at)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(
            update(OfflineBatchModel)
            .where(OfflineBatchModel.batch_id == batch_id)
            .values(updated_at=updated_at)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.commit()
        return True

    async def delete_batch(self, batch_id: str) -> bool:
        found = await self._session.execute(
            select(OfflineBatchModel.batch_id).where(OfflineBatchModel.batch_id == batch_id)
        )
        if found.scalar_one_or_none() is None:
            return False

        await self._session.execute(
            delete(OfflineBatchItemModel)
            .where(OfflineBatchItemModel.batch_id == batch_id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(
            delete(OfflineBatchModel)
            .where(OfflineBatchModel.batch_id == batch_id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.commit()
        return True

    async def list_batch_ids(self) -> Sequence[str]:
        stmt = select(OfflineBatchModel.batch_id).order_by(OfflineBatchModel.created_at, OfflineBatchModel.batch_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _to_record(model: OfflineBatchItemModel) -> BatchItemRecord:
        return BatchItemRecord(
            position=model.position,
            envelope_xdr=model.envelope_xdr,
            threshold=threshold_from_dict(json.loads(model.threshold)) if model.threshold else None,
            state=ItemState(model.status),
            reason=model.reason,
            updated_at=model.updated_at,
        )
