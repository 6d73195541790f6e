"""Conditional transfer endpoints: time locks, escrow and milestones."""

from fastapi import APIRouter, Depends, status

from relief.core.container import ApplicationContainer
from relief.domain.conditional import (
    ApprovalMilestone,
    ApprovalMilestoneResult,
    ConditionalTransferService,
    TimeMilestone,
)
from relief.interfaces.http.deps import get_app_container, get_conditional_service, ledger_errors
from relief.schemas import (
    ApprovalMilestoneSchema,
    EscrowCreate,
    EscrowReleaseCreate,
    EscrowReleaseResponse,
    EscrowResponse,
    MilestoneResponse,
    MilestonesCreate,
    ThresholdSchema,
    TimeLockedCreate,
    TimeLockedResponse,
)

router = APIRouter()


@router.post("/time-locked", response_model=TimeLockedResponse, summary="创建定时解锁转账")
async def create_time_locked_transfer(
    payload: TimeLockedCreate,
    service: ConditionalTransferService = Depends(get_conditional_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        sender = container.credentials.resolve(payload.sender)
        transfer = await service.create_time_locked_transfer(sender, payload.recipient, payload.amount, payload.unlock_at)
    return TimeLockedResponse(
        xdr=transfer.xdr,
        transaction_hash=container.codec.transaction_hash(transfer.envelope.intent).hex(),
        unlock_at=transfer.unlock_at,
    )


@router.post(
    "/escrows",
    response_model=EscrowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="创建多签托管账户",
)
async def create_escrow(
    payload: EscrowCreate,
    service: ConditionalTransferService = Depends(get_conditional_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        ngo = container.credentials.resolve(payload.ngo)
        escrow = await service.create_escrow(ngo, payload.beneficiary, payload.approver, payload.amount)
    return EscrowResponse(
        escrow_account=escrow.public_key,
        signers=escrow.signers,
        required_weight=escrow.required_weight,
    )


@router.post("/escrows/{escrow_account}/release", response_model=EscrowReleaseResponse, summary="生成托管放款交易")
async def create_escrow_release(
    escrow_account: str,
    payload: EscrowReleaseCreate,
    service: ConditionalTransferService = Depends(get_conditional_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        release = await service.create_escrow_release(
            escrow_account,
            payload.beneficiary,
            payload.amount,
            timeout=payload.timeout,
        )
    return EscrowReleaseResponse(
        xdr=release.xdr,
        transaction_hash=container.codec.transaction_hash(release.envelope.intent).hex(),
        threshold=ThresholdSchema.from_domain(release.threshold),
    )


@router.post("/milestones", response_model=list[MilestoneResponse], summary="创建里程碑付款")
async def create_milestones(
    payload: MilestonesCreate,
    service: ConditionalTransferService = Depends(get_conditional_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    milestones = []
    for item in payload.milestones:
        if isinstance(item, ApprovalMilestoneSchema):
            milestones.append(
                ApprovalMilestone(
                    id=item.id,
                    name=item.name,
                    beneficiary=item.beneficiary,
                    approver=item.approver,
                    amount=item.amount,
                )
            )
        else:
            milestones.append(
                TimeMilestone(
                    id=item.id,
                    name=item.name,
                    beneficiary=item.beneficiary,
                    amount=item.amount,
                    unlock_at=item.unlock_at,
                )
            )

    with ledger_errors():
        ngo = container.credentials.resolve(payload.ngo)
        results = await service.create_milestones(ngo, milestones)

    response = []
    for result in results:
        if isinstance(result, ApprovalMilestoneResult):
            response.append(
                MilestoneResponse(
                    milestone_id=result.milestone_id,
                    name=result.name,
                    type="approval",
                    escrow_account=result.escrow.public_key,
                    signers=result.escrow.signers,
                    required_weight=result.escrow.required_weight,
                )
            )
        else:
            response.append(
                MilestoneResponse(
                    milestone_id=result.milestone_id,
                    name=result.name,
                    type="time",
                    xdr=result.transfer.xdr,
                    unlock_at=result.transfer.unlock_at,
                )
            )
    return response
