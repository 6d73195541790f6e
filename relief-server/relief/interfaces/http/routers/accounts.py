"""Account endpoints: NGO and beneficiary provisioning, account lookup."""

from fastapi import APIRouter, Depends, status

from relief.core.container import ApplicationContainer
from relief.domain.distributions import DistributionService
from relief.interfaces.http.deps import get_app_container, get_distribution_service, ledger_errors
from relief.schemas import (
    AccountCredentialsResponse,
    AccountStateResponse,
    BalanceResponse,
    BeneficiaryCreate,
    BeneficiaryResponse,
)

router = APIRouter()


@router.post(
    "/ngo",
    response_model=AccountCredentialsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="创建并激活 NGO 账户",
)
async def create_ngo_account(service: DistributionService = Depends(get_distribution_service)):
    with ledger_errors():
        credentials = await service.create_ngo_account()
    return AccountCredentialsResponse(public_key=credentials.public_key, secret_key=credentials.secret_key)


@router.post(
    "/beneficiaries",
    response_model=BeneficiaryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="创建受益人账户",
)
async def create_beneficiary(
    payload: BeneficiaryCreate,
    service: DistributionService = Depends(get_distribution_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    with ledger_errors():
        ngo = container.credentials.resolve(payload.ngo)
        account = await service.create_beneficiary(ngo, payload.initial_balance)
    return BeneficiaryResponse(
        public_key=account.credentials.public_key,
        secret_key=account.credentials.secret_key,
        starting_balance=account.starting_balance,
        transaction_hash=account.submission.transaction_hash,
    )


@router.get("/{public_key}", response_model=AccountStateResponse, summary="查询账户状态")
async def get_account(public_key: str, container: ApplicationContainer = Depends(get_app_container)):
    with ledger_errors():
        state = await container.ledger.get_account(public_key)
    return AccountStateResponse(
        account_id=state.account_id,
        sequence=state.sequence,
        balances=[BalanceResponse.model_validate(balance) for balance in state.balances],
        signers=state.signers,
        low_threshold=state.thresholds.low,
        med_threshold=state.thresholds.medium,
        high_threshold=state.thresholds.high,
    )
