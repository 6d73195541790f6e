"""JSON-file implementation of the offline batch repository.

One file per batch under the configured directory. Files are written to a
temporary sibling and moved into place, so a crash never leaves a
half-written batch behind.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from relief.domain.batches.models import (
    BatchItemRecord,
    ItemState,
    StoredBatch,
    threshold_from_dict,
    threshold_to_dict,
)

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class FileOfflineBatchRepository:
    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def replace_batch(self, batch_id: str, items: Sequence[BatchItemRecord]) -> StoredBatch:
        now = datetime.now(timezone.utc)
        stored = StoredBatch(batch_id=batch_id, items=list(items), created_at=now, updated_at=now)
        await asyncio.to_thread(self._write, stored)
        return stored

    async def load_batch(self, batch_id: str) -> StoredBatch | None:
        return await asyncio.to_thread(self._read, batch_id)

    async def set_item_status(
        self,
        batch_id: str,
        position: int,
        *,
        state: ItemState,
        reason: str | None,
        updated_at: datetime,
    ) -> bool:
        stored = await asyncio.to_thread(self._read, batch_id)
        if stored is None:
            return False
        record = next((item for item in stored.items if item.position == position), None)
        if record is None:
            return False
        record.state = state
        record.reason = reason
        record.updated_at = updated_at
        stored.updated_at = updated_at
        await asyncio.to_thread(self._write, stored)
        return True

    async def delete_batch(self, batch_id: str) -> bool:
        path = self._path(batch_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        return True

    async def list_batch_ids(self) -> Sequence[str]:
        if not self._directory.exists():
            return []
        return sorted(path.stem for path in self._directory.glob(f"*{_SUFFIX}"))

    def _path(self, batch_id: str) -> Path:
        return self._directory / f"{batch_id}{_SUFFIX}"

    def _read(self, batch_id: str) -> Optional[StoredBatch]:
        path = self._path(batch_id)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        return StoredBatch(
            batch_id=payload["batch_id"],
            items=[_record_from_dict(item) for item in payload.get("items", [])],
            created_at=_parse_time(payload.get("created_at")),
            updated_at=_parse_time(payload.get("updated_at")),
        )

    def _write(self, stored: StoredBatch) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        payload = {
            "batch_id": stored.batch_id,
            "created_at": _format_time(stored.created_at),
            "updated_at": _format_time(stored.updated_at),
            "items": [_record_to_dict(item) for item in stored.items],
        }
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{stored.batch_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path(stored.batch_id))
        except BaseException:
            # 写入失败时清理临时文件
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("离线批次文件已写入: %s", self._path(stored.batch_id))


def _record_to_dict(record: BatchItemRecord) -> dict[str, Any]:
    return {
        "position": record.position,
        "envelope_xdr": record.envelope_xdr,
        "threshold": threshold_to_dict(record.threshold),
        "status": record.state.value,
        "reason": record.reason,
        "updated_at": _format_time(record.updated_at),
    }


def _record_from_dict(data: dict[str, Any]) -> BatchItemRecord:
    return BatchItemRecord(
        position=int(data["position"]),
        envelope_xdr=data["envelope_xdr"],
        threshold=threshold_from_dict(data.get("threshold")),
        state=ItemState(data.get("status", ItemState.PENDING.value)),
        reason=data.get("reason"),
        updated_at=_parse_time(data.get("updated_at")),
    )


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
