"""Conversion of domain values into response schemas."""

from relief.domain.batches import OfflineBatch
from relief.domain.submissions import BatchReport, SubmissionResult
from relief.domain.transactions import EnvelopeCodec
from relief.schemas import (
    BatchItemResponse,
    BatchReportResponse,
    BatchResponse,
    ItemStatusResponse,
    SubmissionResponse,
    ThresholdSchema,
)


def submission_to_schema(result: SubmissionResult) -> SubmissionResponse:
    return SubmissionResponse(
        index=result.index,
        outcome=result.outcome.value,
        result_code=result.result_code,
        transaction_hash=result.transaction_hash,
        ledger=result.ledger,
        ledger_timestamp=result.ledger_timestamp,
        reason=result.reason,
    )


def batch_to_schema(batch: OfflineBatch, codec: EnvelopeCodec) -> BatchResponse:
    items = []
    for item in batch.items:
        tx_hash = codec.transaction_hash(item.envelope.intent).hex() if item.envelope is not None else None
        items.append(
            BatchItemResponse(
                index=item.index,
                status=item.status.state.value,
                reason=item.status.reason,
                xdr=item.envelope_xdr,
                transaction_hash=tx_hash,
                threshold=ThresholdSchema.from_domain(item.threshold),
                decode_error=item.decode_error,
                updated_at=item.updated_at,
            )
        )
    return BatchResponse(
        batch_id=batch.batch_id,
        pending=batch.pending_count,
        items=items,
        created_at=batch.created_at,
        updated_at=batch.updated_at,
    )


def report_to_schema(report: BatchReport) -> BatchReportResponse:
    return BatchReportResponse(
        batch_id=report.batch_id,
        stop_reason=report.stop_reason.value,
        stopped_early=report.stopped_early,
        results=[submission_to_schema(result) for result in report.results],
        statuses=[ItemStatusResponse(status=item.state.value, reason=item.reason) for item in report.statuses],
    )
