"""Impact reporting endpoint."""

from fastapi import APIRouter, Depends

from relief.domain.reports import ImpactReportService
from relief.interfaces.http.deps import get_report_service, ledger_errors
from relief.schemas import ImpactReportRequest, ImpactReportResponse

router = APIRouter()


@router.post("/impact", response_model=ImpactReportResponse, summary="生成资金发放影响报告")
async def impact_report(
    payload: ImpactReportRequest,
    service: ImpactReportService = Depends(get_report_service),
):
    with ledger_errors():
        report = await service.generate(payload.ngo_public_key, payload.start, payload.end)
    return ImpactReportResponse.model_validate(report)
