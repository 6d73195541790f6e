import base64
from decimal import Decimal

import pytest
from stellar_sdk import (
    Account,
    MuxedAccount,
    Payment,
    Preconditions,
    SetOptions,
    Signer,
    TimeBounds,
    Transaction,
    TransactionBuilder,
    TransactionEnvelope,
)
from stellar_sdk import Asset as LedgerAsset

from relief.domain.transactions import (
    Asset,
    CreateAccountOperation,
    Envelope,
    InvalidTimeBound,
    MalformedEnvelope,
    NoConstraint,
    PaymentOperation,
    SetOptionsOperation,
    ThresholdSignature,
    TimeBound,
    TransactionIntent,
)

from conftest import NOW, TESTNET, keypair


def _intent(source, destination, **kwargs):
    return TransactionIntent(
        source=source.public_key,
        sequence=1001,
        operations=(PaymentOperation(destination=destination.public_key, amount=Decimal("10")),),
        **kwargs,
    )


def test_round_trip_without_constraint(codec, ngo, beneficiary):
    intent = _intent(ngo, beneficiary)

    decoded, signatures = codec.decode(codec.encode(intent))

    assert decoded == intent
    assert signatures == ()


def test_round_trip_keeps_expiry_window(codec, ngo, beneficiary):
    intent = _intent(ngo, beneficiary, valid_until=NOW + 30)

    decoded, _ = codec.decode(codec.encode(intent))

    assert decoded.valid_until == NOW + 30
    assert decoded.constraint == NoConstraint()


@pytest.mark.parametrize("max_time", [None, NOW + 86400 + 3600])
def test_round_trip_time_bound(codec, ngo, beneficiary, max_time):
    intent = _intent(ngo, beneficiary, constraint=TimeBound(min_time=NOW + 86400, max_time=max_time))

    decoded, _ = codec.decode(codec.encode(intent))

    assert decoded == intent


def test_round_trip_with_signatures(codec, builder, ngo, beneficiary):
    envelope = builder.sign(_intent(ngo, beneficiary), ngo)

    decoded = codec.decode_envelope(codec.encode_envelope(envelope))

    assert decoded == envelope
    assert len(decoded.signatures[0].hint) == 4
    assert len(decoded.signatures[0].signature) == 64


def test_threshold_is_reattached_on_decode(codec, ngo, beneficiary, approver):
    threshold = ThresholdSignature(required_weight=2, signers={ngo.public_key: 1, approver.public_key: 1})
    intent = _intent(ngo, beneficiary, constraint=threshold, valid_until=NOW + 30)

    xdr = codec.encode(intent)
    without, _ = codec.decode(xdr)
    with_threshold, _ = codec.decode(xdr, threshold)

    assert without.constraint == NoConstraint()
    assert with_threshold == intent


def test_threshold_cannot_be_attached_to_time_bound(codec, ngo, beneficiary):
    intent = _intent(ngo, beneficiary, constraint=TimeBound(min_time=NOW + 10))
    threshold = ThresholdSignature(required_weight=1, signers={ngo.public_key: 1})

    with pytest.raises(MalformedEnvelope):
        codec.decode(codec.encode(intent), threshold)


def test_encoding_is_the_standard_ledger_envelope(codec, builder, ngo, beneficiary):
    intent = _intent(ngo, beneficiary)
    reference = codec.to_ledger_envelope(intent)
    reference.sign(ngo)

    ours = codec.encode_envelope(builder.sign(intent, ngo))

    assert ours == reference.to_xdr()
    parsed = TransactionEnvelope.from_xdr(ours, TESTNET)
    assert parsed.transaction.fee == 100
    assert parsed.transaction.sequence == 1001


def test_all_supported_operations_round_trip(codec, ngo, beneficiary, approver):
    issuer = keypair(9)
    intent = TransactionIntent(
        source=ngo.public_key,
        sequence=7,
        operations=(
            CreateAccountOperation(destination=beneficiary.public_key, starting_balance=Decimal("5")),
            PaymentOperation(
                destination=beneficiary.public_key,
                amount=Decimal("1.2500000"),
                asset=Asset(code="FOOD", issuer=issuer.public_key),
            ),
            SetOptionsOperation(master_weight=0, low_threshold=2, med_threshold=2, high_threshold=2),
            SetOptionsOperation(signer_key=approver.public_key, signer_weight=1),
        ),
        fee_per_op=200,
    )

    decoded, _ = codec.decode(codec.encode(intent))

    assert decoded == intent
    assert decoded.total_fee == 800


@pytest.mark.parametrize(
    "text",
    [
        "",
        "not base64 at all!",
        base64.b64encode(b"\x00\x00\x00\x02garbage").decode(),
    ],
)
def test_undecodable_text_is_malformed(codec, text):
    with pytest.raises(MalformedEnvelope):
        codec.decode(text)


def test_truncated_envelope_is_malformed(codec, ngo, beneficiary):
    raw = base64.b64decode(codec.encode(_intent(ngo, beneficiary)))
    truncated = base64.b64encode(raw[: len(raw) // 2]).decode()

    with pytest.raises(MalformedEnvelope):
        codec.decode(truncated)


def test_transaction_hash_depends_on_network(network, codec, ngo, beneficiary):
    from relief.domain.transactions import EnvelopeCodec, NetworkConfig

    intent = _intent(ngo, beneficiary)
    other = EnvelopeCodec(NetworkConfig(network_passphrase="Public Global Stellar Network ; September 2015"))

    assert codec.transaction_hash(intent) != other.transaction_hash(intent)
    assert len(codec.transaction_hash(intent)) == 32


def test_envelope_with_signature_is_immutable(codec, builder, ngo, beneficiary):
    original = Envelope(intent=_intent(ngo, beneficiary))

    signed = builder.sign(original, ngo)

    assert original.signatures == ()
    assert len(signed.signatures) == 1


def test_inverted_time_bound_is_rejected(codec, ngo, beneficiary):
    intent = _intent(ngo, beneficiary, constraint=TimeBound(min_time=NOW + 86400, max_time=NOW + 3600))

    with pytest.raises(InvalidTimeBound):
        codec.encode(intent)


def test_envelope_without_expiry_carries_infinite_bounds(codec, ngo, beneficiary):
    parsed = TransactionEnvelope.from_xdr(codec.encode(_intent(ngo, beneficiary)), TESTNET)

    bounds = parsed.transaction.preconditions.time_bounds
    assert (bounds.min_time, bounds.max_time) == (0, 0)


def _external_envelope(ngo, beneficiary, memo=None):
    builder = TransactionBuilder(
        source_account=Account(ngo.public_key, 100),
        network_passphrase=TESTNET,
        base_fee=100,
    )
    builder.append_payment_op(destination=beneficiary.public_key, asset=LedgerAsset.native(), amount="10")
    builder.add_time_bounds(0, 0)
    if memo is not None:
        builder.add_text_memo(memo)
    envelope = builder.build()
    envelope.sign(ngo)
    return envelope


@pytest.mark.parametrize("memo", [None, "aid-42"])
def test_externally_built_envelope_is_preserved(codec, builder, ngo, beneficiary, approver, memo):
    external = _external_envelope(ngo, beneficiary, memo)
    xdr = external.to_xdr()

    decoded = codec.decode_envelope(xdr)

    assert codec.encode_envelope(decoded) == xdr
    assert codec.transaction_hash(decoded.intent) == external.hash()
    cosigned = TransactionEnvelope.from_xdr(codec.encode_envelope(builder.sign(decoded, approver)), TESTNET)
    assert cosigned.hash() == external.hash()
    assert len(cosigned.signatures) == 2


def test_muxed_source_and_uneven_fee_are_preserved(codec, ngo, beneficiary, approver):
    transaction = Transaction(
        source=MuxedAccount(ngo.public_key, 42),
        sequence=5,
        fee=301,
        operations=[
            Payment(destination=beneficiary.public_key, asset=LedgerAsset.native(), amount="1"),
            Payment(destination=approver.public_key, asset=LedgerAsset.native(), amount="2"),
        ],
        preconditions=Preconditions(time_bounds=TimeBounds(0, 0)),
        v1=True,
    )
    xdr = TransactionEnvelope(transaction, TESTNET).to_xdr()

    intent, _ = codec.decode(xdr)

    assert intent.source == ngo.public_key
    assert codec.encode(intent) == xdr
    assert TransactionEnvelope.from_xdr(codec.encode(intent), TESTNET).transaction.fee == 301


def test_non_account_signer_is_malformed(codec, ngo):
    transaction = Transaction(
        source=ngo.public_key,
        sequence=5,
        fee=100,
        operations=[SetOptions(signer=Signer.pre_auth_tx(bytes(32), 1))],
        preconditions=Preconditions(time_bounds=TimeBounds(0, 0)),
        v1=True,
    )

    with pytest.raises(MalformedEnvelope):
        codec.decode(TransactionEnvelope(transaction, TESTNET).to_xdr())


def test_new_time_bound_replaces_decoded_bytes(codec, ngo, beneficiary):
    decoded, _ = codec.decode(_external_envelope(ngo, beneficiary, "aid-42").to_xdr())

    locked = decoded.with_constraint(TimeBound(min_time=NOW + 60))
    parsed = TransactionEnvelope.from_xdr(codec.encode(locked), TESTNET)

    assert parsed.transaction.preconditions.time_bounds.min_time == NOW + 60
