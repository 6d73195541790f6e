"""Offline transaction and batch endpoints."""

from fastapi import APIRouter, Depends, Response, status

from relief.core.container import ApplicationContainer
from relief.domain.batches import OfflineBatchStore
from relief.domain.distributions import BeneficiaryPayment, DistributionService
from relief.domain.submissions import SubmissionOrchestrator
from relief.interfaces.http.deps import (
    get_app_container,
    get_batch_store,
    get_distribution_service,
    get_orchestrator,
    ledger_errors,
)
from relief.interfaces.http.presenters import batch_to_schema, report_to_schema, submission_to_schema
from relief.schemas import (
    BatchListResponse,
    BatchPrepare,
    BatchReportResponse,
    BatchResponse,
    BatchSubmit,
    BatchUpload,
    EnvelopeResponse,
    EnvelopeSubmit,
    OfflinePaymentCreate,
    SubmissionResponse,
)

router = APIRouter()


@router.post("/transactions/generate", response_model=EnvelopeResponse, summary="生成离线签名支付")
async def generate_offline_payment(
    payload: OfflinePaymentCreate,
    service: DistributionService = Depends(get_distribution_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        sender = container.credentials.resolve(payload.sender)
        payment = await service.generate_offline_payment(sender, payload.recipient, payload.amount)
    return EnvelopeResponse(
        xdr=payment.xdr,
        transaction_hash=container.codec.transaction_hash(payment.envelope.intent).hex(),
    )


@router.post("/transactions/submit", response_model=SubmissionResponse, summary="提交离线交易")
async def submit_offline_transaction(
    payload: EnvelopeSubmit,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    container: ApplicationContainer = Depends(get_app_container),
):
    threshold = payload.threshold.to_domain() if payload.threshold else None
    with ledger_errors():
        envelope = container.codec.decode_envelope(payload.xdr, threshold)
        result = await orchestrator.submit_online(envelope)
    return submission_to_schema(result)


@router.get("/batches", response_model=BatchListResponse, summary="列出离线批次")
async def list_batches(store: OfflineBatchStore = Depends(get_batch_store)):
    return BatchListResponse(batches=await store.list_batches())


@router.put("/batches/{batch_id}", response_model=BatchResponse, summary="保存离线批次")
async def upload_batch(
    batch_id: str,
    payload: BatchUpload,
    store: OfflineBatchStore = Depends(get_batch_store),
    container: ApplicationContainer = Depends(get_app_container),
):
    items = [
        (item.xdr, item.threshold.to_domain() if item.threshold else None)
        for item in payload.envelopes
    ]
    with ledger_errors():
        batch = await store.put_encoded(batch_id, items)
    return batch_to_schema(batch, container.codec)


@router.post(
    "/batches/{batch_id}/prepare",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="生成并保存离线支付批次",
)
async def prepare_batch(
    batch_id: str,
    payload: BatchPrepare,
    store: OfflineBatchStore = Depends(get_batch_store),
    service: DistributionService = Depends(get_distribution_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    payments = [BeneficiaryPayment(public_key=item.public_key, amount=item.amount) for item in payload.payments]
    with ledger_errors():
        sender = container.credentials.resolve(payload.sender)
        batch = await service.prepare_offline_batch(store, batch_id, sender, payments)
    return batch_to_schema(batch, container.codec)


@router.get("/batches/{batch_id}", response_model=BatchResponse, summary="查询离线批次")
async def get_batch(
    batch_id: str,
    store: OfflineBatchStore = Depends(get_batch_store),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        batch = await store.get(batch_id)
    return batch_to_schema(batch, container.codec)


@router.post("/batches/{batch_id}/submit", response_model=BatchReportResponse, summary="提交离线批次")
async def submit_batch(
    batch_id: str,
    payload: BatchSubmit | None = None,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
):
    deadline = None
    if payload is not None and payload.timeout_seconds is not None:
        deadline = orchestrator.clock() + payload.timeout_seconds
    with ledger_errors():
        report = await orchestrator.submit_batch(batch_id, deadline=deadline)
    return report_to_schema(report)


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT, summary="删除离线批次")
async def purge_batch(batch_id: str, store: OfflineBatchStore = Depends(get_batch_store)):
    with ledger_errors():
        await store.purge(batch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
