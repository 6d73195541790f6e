"""Pydantic schemas used across the project."""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from relief.domain.transactions.models import ThresholdSignature


class ThresholdSchema(BaseModel):
    required_weight: int = Field(..., description="所需签名权重")
    signers: dict[str, int] = Field(..., description="签名者公钥到权重的映射")

    def to_domain(self) -> ThresholdSignature:
        return ThresholdSignature(required_weight=self.required_weight, signers=dict(self.signers))

    @classmethod
    def from_domain(cls, threshold: Optional[ThresholdSignature]) -> Optional["ThresholdSchema"]:
        if threshold is None:
            return None
        return cls(required_weight=threshold.required_weight, signers=dict(threshold.signers))


class AccountCredentialsResponse(BaseModel):
    public_key: str
    secret_key: str


class BeneficiaryCreate(BaseModel):
    ngo: str = Field(..., description="NGO 签名凭据名称或私钥")
    initial_balance: Decimal = Decimal("5")


class BeneficiaryResponse(AccountCredentialsResponse):
    starting_balance: Decimal
    transaction_hash: Optional[str] = None


class BalanceResponse(BaseModel):
    asset_code: str
    asset_issuer: Optional[str] = None
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class AccountStateResponse(BaseModel):
    account_id: str
    sequence: int
    balances: list[BalanceResponse] = Field(default_factory=list)
    signers: dict[str, int] = Field(default_factory=dict)
    low_threshold: int = 0
    med_threshold: int = 0
    high_threshold: int = 0


class BeneficiaryPaymentSchema(BaseModel):
    public_key: str
    amount: Decimal


class DistributionCreate(BaseModel):
    ngo: str = Field(..., description="NGO 签名凭据名称或私钥")
    beneficiaries: list[BeneficiaryPaymentSchema] = Field(..., min_length=1)
    asset_code: str = "XLM"
    asset_issuer: Optional[str] = None


class SubmissionResponse(BaseModel):
    index: Optional[int] = None
    outcome: str
    result_code: Optional[str] = None
    transaction_hash: Optional[str] = None
    ledger: Optional[int] = None
    ledger_timestamp: Optional[datetime] = None
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OfflinePaymentCreate(BaseModel):
    sender: str = Field(..., description="付款方签名凭据名称或私钥")
    recipient: str
    amount: Decimal


class EnvelopeResponse(BaseModel):
    xdr: str
    transaction_hash: str


class EnvelopeSubmit(BaseModel):
    xdr: str = Field(..., min_length=1)
    threshold: Optional[ThresholdSchema] = None


class EnvelopeSign(EnvelopeSubmit):
    signer: str = Field(..., description="签名凭据名称或私钥")


class SignedEnvelopeResponse(BaseModel):
    xdr: str
    signature_count: int


class BatchUpload(BaseModel):
    envelopes: list[EnvelopeSubmit] = Field(default_factory=list)


class BatchPrepare(BaseModel):
    sender: str = Field(..., description="付款方签名凭据名称或私钥")
    payments: list[BeneficiaryPaymentSchema] = Field(..., min_length=1)


class BatchItemResponse(BaseModel):
    index: int
    status: str
    reason: Optional[str] = None
    xdr: str
    transaction_hash: Optional[str] = None
    threshold: Optional[ThresholdSchema] = None
    decode_error: Optional[str] = None
    updated_at: Optional[datetime] = None


class BatchResponse(BaseModel):
    batch_id: str
    pending: int
    items: list[BatchItemResponse]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BatchListResponse(BaseModel):
    batches: list[str]


class BatchSubmit(BaseModel):
    timeout_seconds: Optional[float] = Field(default=None, gt=0, description="本次提交的最长时长（秒）")


class ItemStatusResponse(BaseModel):
    status: str
    reason: Optional[str] = None


class BatchReportResponse(BaseModel):
    batch_id: str
    stop_reason: str
    stopped_early: bool
    results: list[SubmissionResponse]
    statuses: list[ItemStatusResponse]


class TimeLockedCreate(BaseModel):
    sender: str = Field(..., description="付款方签名凭据名称或私钥")
    recipient: str
    amount: Decimal
    unlock_at: datetime


class TimeLockedResponse(EnvelopeResponse):
    unlock_at: datetime


class EscrowCreate(BaseModel):
    ngo: str = Field(..., description="NGO 签名凭据名称或私钥")
    beneficiary: str
    approver: str
    amount: Decimal


class EscrowResponse(BaseModel):
    escrow_account: str
    signers: list[str]
    required_weight: int


class EscrowReleaseCreate(BaseModel):
    beneficiary: str
    amount: Decimal
    timeout: Optional[int] = Field(default=None, ge=0, description="有效期（秒），0 表示不过期")


class EscrowReleaseResponse(EnvelopeResponse):
    threshold: ThresholdSchema


class TimeMilestoneSchema(BaseModel):
    type: Literal["time"]
    id: str
    name: str
    beneficiary: str
    amount: Decimal
    unlock_at: datetime


class ApprovalMilestoneSchema(BaseModel):
    type: Literal["approval"]
    id: str
    name: str
    beneficiary: str
    approver: str
    amount: Decimal


MilestoneSchema = Annotated[
    Union[TimeMilestoneSchema, ApprovalMilestoneSchema],
    Field(discriminator="type"),
]


class MilestonesCreate(BaseModel):
    ngo: str = Field(..., description="NGO 签名凭据名称或私钥")
    milestones: list[MilestoneSchema] = Field(..., min_length=1)


class MilestoneResponse(BaseModel):
    milestone_id: str
    name: str
    type: Literal["time", "approval"]
    xdr: Optional[str] = None
    unlock_at: Optional[datetime] = None
    escrow_account: Optional[str] = None
    signers: Optional[list[str]] = None
    required_weight: Optional[int] = None


class ImpactReportRequest(BaseModel):
    ngo_public_key: str
    start: datetime
    end: datetime


class DailyDistributionResponse(BaseModel):
    date: date
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class ImpactReportResponse(BaseModel):
    organization_id: str
    period_start: datetime
    period_end: datetime
    total_distributed: Decimal
    total_beneficiaries: int
    average_per_beneficiary: Decimal
    timeline: list[DailyDistributionResponse]
    generated_at: datetime

    model_config = ConfigDict(from_attributes=True)
