"""Time-bound and multi-signature rules applied to transaction intents."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Iterable, Mapping, Optional

from stellar_sdk import Keypair, StrKey
from stellar_sdk.exceptions import BadSignatureError

from .exceptions import (
    InsufficientSignatures,
    InvalidAccount,
    InvalidTimeBound,
    UnreachableThreshold,
    ValidationError,
)
from .models import (
    NoConstraint,
    Signature,
    ThresholdSignature,
    TimeBound,
    TransactionIntent,
)

logger = logging.getLogger(__name__)

MAX_SIGNER_WEIGHT = 255


class ConstraintPolicy:
    """Pure rules over intents; never submits anything."""

    def __init__(self, skew_tolerance: int = 0, clock: Callable[[], float] = time.time) -> None:
        self._skew_tolerance = skew_tolerance
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def apply_time_bound(
        self,
        intent: TransactionIntent,
        min_time: int,
        max_time: Optional[int] = None,
    ) -> TransactionIntent:
        if intent.threshold is not None:
            raise ValidationError("门限签名交易不能再附加时间约束")
        if min_time < self.now() - self._skew_tolerance:
            raise InvalidTimeBound(f"最早生效时间已过去: {min_time}")
        if max_time is not None and max_time < min_time:
            raise InvalidTimeBound(f"截止时间 {max_time} 早于生效时间 {min_time}")
        # A time bound replaces the expiry window; both map onto the same ledger field.
        return replace(
            intent,
            constraint=TimeBound(min_time=min_time, max_time=max_time),
            valid_until=None,
            wire_xdr=None,
        )

    def apply_threshold(
        self,
        intent: TransactionIntent,
        signer_weights: Mapping[str, int],
        required_weight: int,
    ) -> TransactionIntent:
        if isinstance(intent.constraint, TimeBound):
            raise ValidationError("带时间约束的交易不能再附加门限签名")
        weights = dict(signer_weights)
        if required_weight <= 0:
            raise UnreachableThreshold(f"所需权重必须大于 0: {required_weight}")
        for key, weight in weights.items():
            if not StrKey.is_valid_ed25519_public_key(key):
                raise InvalidAccount(f"签名者公钥无效: {key}")
            if not 0 < weight <= MAX_SIGNER_WEIGHT:
                raise UnreachableThreshold(f"签名者 {key} 的权重无效: {weight}")
        total = sum(weights.values())
        if required_weight > total:
            raise UnreachableThreshold(f"所需权重 {required_weight} 超过签名者权重之和 {total}")
        return intent.with_constraint(ThresholdSignature(required_weight=required_weight, signers=weights))

    def signer_requirements(self, intent: TransactionIntent) -> tuple[dict[str, int], int]:
        """Return the signer weights and the weight an envelope must reach."""
        constraint = intent.constraint
        if isinstance(constraint, ThresholdSignature):
            return dict(constraint.signers), constraint.required_weight
        if isinstance(constraint, (NoConstraint, TimeBound)):
            return {intent.source: 1}, 1
        raise TypeError(f"unsupported constraint: {constraint!r}")

    def accumulated_weight(
        self,
        intent: TransactionIntent,
        signatures: Iterable[Signature],
        tx_hash: bytes,
    ) -> int:
        signers, _ = self.signer_requirements(intent)
        signatures = tuple(signatures)
        weight = 0
        for public_key, signer_weight in signers.items():
            if has_valid_signature(public_key, signatures, tx_hash):
                weight += signer_weight
        return weight

    def ensure_authorized(
        self,
        intent: TransactionIntent,
        signatures: Iterable[Signature],
        tx_hash: bytes,
    ) -> int:
        _, required = self.signer_requirements(intent)
        weight = self.accumulated_weight(intent, signatures, tx_hash)
        if weight < required:
            logger.info("交易签名权重不足: %s/%s", weight, required)
            raise InsufficientSignatures(f"签名权重不足: {weight}/{required}")
        return weight


def has_valid_signature(public_key: str, signatures: tuple[Signature, ...], tx_hash: bytes) -> bool:
    keypair = Keypair.from_public_key(public_key)
    hint = keypair.signature_hint()
    for item in signatures:
        if item.hint != hint:
            continue
        try:
            keypair.verify(tx_hash, item.signature)
        except BadSignatureError:
            continue
        return True
    return False
