"""Domain models for ledger transaction intents and envelopes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional, Union

from .exceptions import InvalidAmount

NATIVE_ASSET_CODE = "XLM"
AMOUNT_PRECISION = 7
STROOPS_PER_UNIT = Decimal(10) ** AMOUNT_PRECISION
MAX_STROOPS = 2**63 - 1


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    network_passphrase: str
    base_fee: int = 100
    default_timeout: int = 30


@dataclass(frozen=True, slots=True)
class Asset:
    code: str = NATIVE_ASSET_CODE
    issuer: Optional[str] = None

    @classmethod
    def native(cls) -> "Asset":
        return cls()

    @property
    def is_native(self) -> bool:
        return self.issuer is None


@dataclass(frozen=True, slots=True)
class PaymentOperation:
    destination: str
    amount: Decimal
    asset: Asset = Asset()


@dataclass(frozen=True, slots=True)
class CreateAccountOperation:
    destination: str
    starting_balance: Decimal


@dataclass(frozen=True, slots=True)
class SetOptionsOperation:
    master_weight: Optional[int] = None
    low_threshold: Optional[int] = None
    med_threshold: Optional[int] = None
    high_threshold: Optional[int] = None
    signer_key: Optional[str] = None
    signer_weight: Optional[int] = None


Operation = Union[PaymentOperation, CreateAccountOperation, SetOptionsOperation]


@dataclass(frozen=True, slots=True)
class NoConstraint:
    pass


@dataclass(frozen=True, slots=True)
class TimeBound:
    min_time: int
    # None means the transaction never expires.
    max_time: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ThresholdSignature:
    required_weight: int
    signers: Mapping[str, int] = field(default_factory=dict)

    @property
    def total_weight(self) -> int:
        return sum(self.signers.values())


Constraint = Union[NoConstraint, TimeBound, ThresholdSignature]


@dataclass(frozen=True, slots=True)
class TransactionIntent:
    source: str
    sequence: int
    operations: tuple[Operation, ...]
    constraint: Constraint = NoConstraint()
    fee_per_op: int = 100
    valid_until: Optional[int] = None
    # Unsigned envelope text of a decoded transaction. Encoding and hashing
    # reuse it verbatim so memos, muxed sources and exact fees survive.
    wire_xdr: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def total_fee(self) -> int:
        return self.fee_per_op * len(self.operations)

    @property
    def threshold(self) -> Optional[ThresholdSignature]:
        if isinstance(self.constraint, ThresholdSignature):
            return self.constraint
        return None

    def with_constraint(self, constraint: Constraint) -> "TransactionIntent":
        if isinstance(constraint, TimeBound):
            # Time bounds are part of the transaction bytes.
            return replace(self, constraint=constraint, wire_xdr=None)
        return replace(self, constraint=constraint)


@dataclass(frozen=True, slots=True)
class Signature:
    hint: bytes
    signature: bytes = field(repr=False)


@dataclass(frozen=True, slots=True)
class Envelope:
    intent: TransactionIntent
    signatures: tuple[Signature, ...] = ()

    def with_signature(self, signature: Signature) -> "Envelope":
        if signature in self.signatures:
            return self
        return replace(self, signatures=self.signatures + (signature,))


def parse_amount(value: object) -> Decimal:
    """Coerce ``value`` into a ledger amount.

    Amounts must be positive, carry at most seven decimal places and fit
    the ledger's signed 64-bit stroop representation.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"金额格式无效: {value!r}")
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidAmount(f"金额格式无效: {value!r}") from exc

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"金额必须大于 0: {value!r}")
    if amount.normalize().as_tuple().exponent < -AMOUNT_PRECISION:
        raise InvalidAmount(f"金额最多保留 {AMOUNT_PRECISION} 位小数: {value!r}")
    if amount * STROOPS_PER_UNIT > MAX_STROOPS:
        raise InvalidAmount(f"金额超出账本可表示范围: {value!r}")
    return amount
