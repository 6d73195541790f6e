"""Offline batch store: durable, ordered envelope collections keyed by batch id."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from relief.domain.transactions.codec import EnvelopeCodec
from relief.domain.transactions.exceptions import MalformedEnvelope
from relief.domain.transactions.models import Envelope, ThresholdSignature
from relief.infrastructure.database.repositories.batch_repository import SqlOfflineBatchRepository

from .exceptions import (
    BatchItemNotFound,
    BatchNotFound,
    InvalidBatchId,
    InvalidStatusTransition,
)
from .models import (
    BatchItem,
    BatchItemRecord,
    ItemState,
    ItemStatus,
    OfflineBatch,
    StoredBatch,
)
from .repository import OfflineBatchRepository

logger = logging.getLogger(__name__)

_BATCH_ID = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]{0,99}")


@dataclass(slots=True)
class OfflineBatchStore:
    """Writing an existing batch id replaces the whole batch; nothing is merged.

    The store does no locking. Callers serialize submission passes over the
    same batch id.
    """

    repository: OfflineBatchRepository
    codec: EnvelopeCodec

    @classmethod
    def with_session(cls, session: AsyncSession, codec: EnvelopeCodec) -> "OfflineBatchStore":
        return cls(SqlOfflineBatchRepository(session), codec)

    async def put(self, batch_id: str, envelopes: Sequence[Envelope]) -> OfflineBatch:
        _ensure_batch_id(batch_id)
        records = [
            BatchItemRecord(
                position=index,
                envelope_xdr=self.codec.encode_envelope(envelope),
                threshold=envelope.intent.threshold,
            )
            for index, envelope in enumerate(envelopes)
        ]
        stored = await self.repository.replace_batch(batch_id, records)
        logger.info("离线批次 %s 已保存 %s 笔交易", batch_id, len(records))
        return self._to_domain(stored)

    async def put_encoded(
        self,
        batch_id: str,
        items: Sequence[tuple[str, Optional[ThresholdSignature]]],
    ) -> OfflineBatch:
        """Store envelopes given as XDR text; every item is decoded before anything is written."""
        _ensure_batch_id(batch_id)
        records = []
        for index, (xdr, threshold) in enumerate(items):
            try:
                self.codec.decode(xdr, threshold)
            except MalformedEnvelope as exc:
                raise MalformedEnvelope(f"第 {index} 笔交易无效: {exc}") from exc
            records.append(BatchItemRecord(position=index, envelope_xdr=xdr, threshold=threshold))
        stored = await self.repository.replace_batch(batch_id, records)
        logger.info("离线批次 %s 已保存 %s 笔交易", batch_id, len(records))
        return self._to_domain(stored)

    async def get(self, batch_id: str) -> OfflineBatch:
        stored = await self.repository.load_batch(batch_id)
        if stored is None:
            raise BatchNotFound(batch_id)
        return self._to_domain(stored)

    async def update_status(self, batch_id: str, index: int, status: ItemStatus) -> None:
        stored = await self.repository.load_batch(batch_id)
        if stored is None:
            raise BatchNotFound(batch_id)
        record = next((item for item in stored.items if item.position == index), None)
        if record is None:
            raise BatchItemNotFound(f"{batch_id}[{index}]")

        if record.state is not ItemState.PENDING:
            raise InvalidStatusTransition(
                f"{batch_id}[{index}] 已处于终态 {record.state.value}，不能改为 {status.state.value}"
            )
        if status.is_pending:
            return

        updated = await self.repository.set_item_status(
            batch_id,
            index,
            state=status.state,
            reason=status.reason,
            updated_at=datetime.now(timezone.utc),
        )
        if not updated:
            raise BatchItemNotFound(f"{batch_id}[{index}]")

    async def list_pending(self, batch_id: str) -> list[tuple[int, Envelope]]:
        batch = await self.get(batch_id)
        return [
            (item.index, item.envelope)
            for item in batch.items
            if item.status.is_pending and item.envelope is not None
        ]

    async def purge(self, batch_id: str) -> None:
        if not await self.repository.delete_batch(batch_id):
            raise BatchNotFound(batch_id)
        logger.info("离线批次 %s 已清除", batch_id)

    async def list_batches(self) -> list[str]:
        return list(await self.repository.list_batch_ids())

    def _to_domain(self, stored: StoredBatch) -> OfflineBatch:
        items = [self._to_item(record) for record in sorted(stored.items, key=lambda r: r.position)]
        return OfflineBatch(
            batch_id=stored.batch_id,
            items=items,
            created_at=stored.created_at,
            updated_at=stored.updated_at,
        )

    def _to_item(self, record: BatchItemRecord) -> BatchItem:
        envelope = None
        decode_error = None
        try:
            envelope = self.codec.decode_envelope(record.envelope_xdr, record.threshold)
        except MalformedEnvelope as exc:
            logger.warning("离线批次条目 %s 无法解析: %s", record.position, exc)
            decode_error = str(exc)
        return BatchItem(
            index=record.position,
            envelope_xdr=record.envelope_xdr,
            status=ItemStatus(record.state, record.reason),
            envelope=envelope,
            threshold=record.threshold,
            decode_error=decode_error,
            updated_at=record.updated_at,
        )


def _ensure_batch_id(batch_id: str) -> None:
    if not isinstance(batch_id, str) or not _BATCH_ID.fullmatch(batch_id):
        raise InvalidBatchId(f"批次 ID 无效: {batch_id!r}")
