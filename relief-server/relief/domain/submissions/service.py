"""Submission of signed envelopes to the ledger, singly or as offline batches."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from relief.domain.batches.models import ItemStatus
from relief.domain.batches.service import OfflineBatchStore
from relief.domain.ledger.repository import LedgerSubmitter
from relief.domain.transactions.codec import EnvelopeCodec
from relief.domain.transactions.constraints import ConstraintPolicy
from relief.domain.transactions.exceptions import (
    LedgerUnavailable,
    MalformedEnvelope,
    TransactionRejected,
    ValidationError,
)
from relief.domain.transactions.models import Envelope, ThresholdSignature

from .models import BatchReport, Outcome, StopReason, SubmissionResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubmissionOrchestrator:
    """Checks signatures locally, then hands envelopes to the ledger.

    Batch passes are strictly sequential: later items in a batch may depend
    on the sequence numbers consumed by earlier ones.
    """

    ledger: LedgerSubmitter
    codec: EnvelopeCodec
    policy: ConstraintPolicy
    store: Optional[OfflineBatchStore] = None
    clock: Callable[[], float] = field(default=time.monotonic)

    async def submit_one(self, envelope: Envelope, index: Optional[int] = None) -> SubmissionResult:
        """Submit a single envelope.

        Raises ``InsufficientSignatures`` before the ledger is contacted when
        the envelope does not carry enough signer weight.
        """
        tx_hash = self.codec.transaction_hash(envelope.intent)
        self.policy.ensure_authorized(envelope.intent, envelope.signatures, tx_hash)

        xdr = self.codec.encode_envelope(envelope)
        try:
            response = await self.ledger.submit(xdr)
        except LedgerUnavailable as exc:
            logger.warning("账本网络不可用，交易 %s 未提交: %s", tx_hash.hex(), exc)
            return SubmissionResult(
                outcome=Outcome.NETWORK_UNAVAILABLE,
                index=index,
                transaction_hash=tx_hash.hex(),
                reason=str(exc),
            )

        if response.success:
            logger.info("交易已被账本接受: %s (ledger=%s)", response.transaction_hash, response.ledger)
            outcome = Outcome.ACCEPTED
        else:
            logger.info("交易被账本拒绝: %s (%s)", tx_hash.hex(), response.result_code)
            outcome = Outcome.REJECTED
        return SubmissionResult(
            outcome=outcome,
            index=index,
            result_code=response.result_code,
            transaction_hash=response.transaction_hash or tx_hash.hex(),
            ledger=response.ledger,
            ledger_timestamp=response.ledger_timestamp,
        )

    async def submit_online(self, envelope: Envelope) -> SubmissionResult:
        """Submit and require acceptance; for flows that cannot continue otherwise."""
        result = await self.submit_one(envelope)
        if result.outcome is Outcome.NETWORK_UNAVAILABLE:
            raise LedgerUnavailable(result.reason or "账本服务不可达")
        if result.outcome is Outcome.REJECTED:
            raise TransactionRejected(result.result_code, result.transaction_hash)
        return result

    async def submit_encoded(
        self,
        xdr: str,
        threshold: Optional[ThresholdSignature] = None,
    ) -> SubmissionResult:
        return await self.submit_one(self.codec.decode_envelope(xdr, threshold))

    async def submit_batch(
        self,
        batch_id: str,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> BatchReport:
        """Submit every pending item of a stored batch in insertion order.

        ``deadline`` is a value of ``clock`` (monotonic seconds by default).
        Cancellation and the deadline are checked between items; items not
        attempted stay pending. A network outage stops the pass at the
        current item, which also stays pending.
        """
        if self.store is None:
            raise RuntimeError("SubmissionOrchestrator has no batch store configured")

        batch = await self.store.get(batch_id)
        report = BatchReport(batch_id=batch_id, statuses=list(batch.statuses))
        logger.info("开始提交离线批次 %s，待提交 %s 笔", batch_id, batch.pending_count)

        for position, item in enumerate(batch.items):
            if not item.status.is_pending:
                continue
            if self._should_stop(cancel, deadline):
                logger.info("离线批次 %s 在第 %s 笔前被取消", batch_id, item.index)
                report.stop_reason = StopReason.CANCELLED
                break

            result = await self._attempt(item.index, item.envelope, item.decode_error)
            report.results.append(result)

            if result.outcome is Outcome.NETWORK_UNAVAILABLE:
                logger.warning("离线批次 %s 在第 %s 笔时网络不可用，停止提交", batch_id, item.index)
                report.stop_reason = StopReason.NETWORK_UNAVAILABLE
                break

            if result.outcome is Outcome.ACCEPTED:
                status = ItemStatus.submitted()
            else:
                status = ItemStatus.failed(result.result_code or result.reason or result.outcome.value)
            await self.store.update_status(batch_id, item.index, status)
            report.statuses[position] = status

        logger.info(
            "离线批次 %s 提交结束: %s，尝试 %s 笔，剩余待提交 %s 笔",
            batch_id,
            report.stop_reason.value,
            len(report.results),
            report.pending_count,
        )
        return report

    async def _attempt(
        self,
        index: int,
        envelope: Optional[Envelope],
        decode_error: Optional[str],
    ) -> SubmissionResult:
        if envelope is None:
            return SubmissionResult(
                outcome=Outcome.INVALID,
                index=index,
                reason=decode_error or "无法解析交易信封",
            )
        try:
            return await self.submit_one(envelope, index=index)
        except (ValidationError, MalformedEnvelope) as exc:
            logger.info("离线批次第 %s 笔未通过本地校验: %s", index, exc)
            return SubmissionResult(outcome=Outcome.INVALID, index=index, reason=str(exc))

    def _should_stop(self, cancel: Optional[asyncio.Event], deadline: Optional[float]) -> bool:
        if cancel is not None and cancel.is_set():
            return True
        return deadline is not None and self.clock() >= deadline
