"""Envelope signing endpoint."""

from fastapi import APIRouter, Depends

from relief.core.container import ApplicationContainer
from relief.interfaces.http.deps import get_app_container, ledger_errors
from relief.schemas import EnvelopeSign, SignedEnvelopeResponse

router = APIRouter()


@router.post("/sign", response_model=SignedEnvelopeResponse, summary="为交易信封追加签名")
async def sign_envelope(payload: EnvelopeSign, container: ApplicationContainer = Depends(get_app_container)):
    threshold = payload.threshold.to_domain() if payload.threshold else None
    with ledger_errors():
        signer = container.credentials.resolve(payload.signer)
        envelope = container.codec.decode_envelope(payload.xdr, threshold)
        signed = container.builder.sign(envelope, signer)
    return SignedEnvelopeResponse(
        xdr=container.codec.encode_envelope(signed),
        signature_count=len(signed.signatures),
    )
