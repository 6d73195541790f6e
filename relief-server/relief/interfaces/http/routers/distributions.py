"""Online aid distribution endpoint."""

from fastapi import APIRouter, Depends

from relief.core.container import ApplicationContainer
from relief.domain.distributions import BeneficiaryPayment, DistributionService
from relief.domain.transactions import Asset
from relief.interfaces.http.deps import get_app_container, get_distribution_service, ledger_errors
from relief.interfaces.http.presenters import submission_to_schema
from relief.schemas import DistributionCreate, SubmissionResponse

router = APIRouter()


@router.post("/", response_model=SubmissionResponse, summary="向受益人批量发放资金")
async def distribute(
    payload: DistributionCreate,
    service: DistributionService = Depends(get_distribution_service),
    container: ApplicationContainer = Depends(get_app_container),
):
    beneficiaries = [BeneficiaryPayment(public_key=item.public_key, amount=item.amount) for item in payload.beneficiaries]
    with ledger_errors():
        ngo = container.credentials.resolve(payload.ngo)
        result = await service.distribute(ngo, beneficiaries, Asset(payload.asset_code, payload.asset_issuer))
    return submission_to_schema(result)
