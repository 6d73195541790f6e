import asyncio
from decimal import Decimal

import httpx
import pytest

from relief.domain.transactions import AccountNotFound, LedgerError, LedgerUnavailable
from relief.infrastructure.ledger import HorizonClient

from conftest import keypair

HORIZON = "https://horizon.test"
FRIENDBOT = "https://friendbot.test"


def _client(handler):
    transport = httpx.MockTransport(handler)
    return HorizonClient(
        HORIZON,
        friendbot_url=FRIENDBOT,
        client=httpx.AsyncClient(transport=transport),
    )


def _run(client, call):
    async def scenario():
        try:
            return await call(client)
        finally:
            await client._client.aclose()

    return asyncio.run(scenario())


def test_get_account_parses_state(ngo, beneficiary):
    def handler(request):
        assert request.url.path == f"/accounts/{ngo.public_key}"
        return httpx.Response(
            200,
            json={
                "account_id": ngo.public_key,
                "sequence": "4294967297",
                "balances": [
                    {"asset_type": "credit_alphanum4", "asset_code": "FOOD", "asset_issuer": beneficiary.public_key, "balance": "3.0000000"},
                    {"asset_type": "native", "balance": "9999.9999900"},
                ],
                "signers": [{"key": ngo.public_key, "weight": 1, "type": "ed25519_public_key"}],
                "thresholds": {"low_threshold": 0, "med_threshold": 2, "high_threshold": 2},
            },
        )

    state = _run(_client(handler), lambda c: c.get_account(ngo.public_key))

    assert state.account_id == ngo.public_key
    assert state.sequence == 4294967297
    assert state.balances[1].asset_code == "XLM"
    assert state.balances[1].balance == Decimal("9999.9999900")
    assert state.balances[0].asset_issuer == beneficiary.public_key
    assert state.signers == {ngo.public_key: 1}
    assert state.thresholds.medium == 2


def test_unknown_account_raises_not_found(ngo):
    client = _client(lambda request: httpx.Response(404, json={"title": "Resource Missing"}))

    with pytest.raises(AccountNotFound):
        _run(client, lambda c: c.get_account(ngo.public_key))


def test_submit_success():
    seen = {}

    def handler(request):
        seen["body"] = request.content.decode()
        return httpx.Response(
            200,
            json={"hash": "ab" * 32, "ledger": 123, "successful": True, "created_at": "2026-10-19T08:00:00Z"},
        )

    response = _run(_client(handler), lambda c: c.submit("AAAA+/=="))

    assert response.success
    assert response.result_code == "tx_success"
    assert response.transaction_hash == "ab" * 32
    assert response.ledger == 123
    assert response.ledger_timestamp.year == 2026
    assert seen["body"] == "tx=AAAA%2B%2F%3D%3D"


def test_submit_rejection_carries_result_codes():
    def handler(request):
        return httpx.Response(
            400,
            json={
                "title": "Transaction Failed",
                "extras": {
                    "hash": "cd" * 32,
                    "result_codes": {"transaction": "tx_failed", "operations": ["op_success", "op_underfunded"]},
                },
            },
        )

    response = _run(_client(handler), lambda c: c.submit("AAAA"))

    assert not response.success
    assert response.result_code == "tx_failed: op_underfunded"
    assert response.transaction_hash == "cd" * 32


def test_submit_rejection_without_operation_codes():
    def handler(request):
        return httpx.Response(400, json={"extras": {"result_codes": {"transaction": "tx_bad_seq"}}})

    response = _run(_client(handler), lambda c: c.submit("AAAA"))

    assert response.result_code == "tx_bad_seq"


@pytest.mark.parametrize("status", [429, 500, 503, 504])
def test_overload_and_server_errors_are_unavailable(status):
    client = _client(lambda request: httpx.Response(status, text="busy"))

    with pytest.raises(LedgerUnavailable):
        _run(client, lambda c: c.submit("AAAA"))


def test_transport_error_is_unavailable(ngo):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LedgerUnavailable):
        _run(_client(handler), lambda c: c.submit("AAAA"))
    with pytest.raises(LedgerUnavailable):
        _run(_client(handler), lambda c: c.get_account(ngo.public_key))


def test_fund_calls_friendbot(ngo):
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"successful": True})

    _run(_client(handler), lambda c: c.fund(ngo.public_key))

    assert seen["url"].host == "friendbot.test"
    assert seen["url"].params["addr"] == ngo.public_key


def test_fund_failure_raises_ledger_error(ngo):
    client = _client(lambda request: httpx.Response(400, json={"detail": "already funded"}))

    with pytest.raises(LedgerError):
        _run(client, lambda c: c.fund(ngo.public_key))


def test_list_payments_parses_payments_and_account_creation(ngo, beneficiary):
    other = keypair(12)

    def handler(request):
        assert request.url.params["order"] == "desc"
        assert request.url.params["limit"] == "50"
        return httpx.Response(
            200,
            json={
                "_embedded": {
                    "records": [
                        {
                            "id": "1",
                            "type": "payment",
                            "created_at": "2026-10-18T10:00:00Z",
                            "from": ngo.public_key,
                            "to": beneficiary.public_key,
                            "amount": "10.0000000",
                            "asset_type": "native",
                        },
                        {
                            "id": "2",
                            "type": "create_account",
                            "created_at": "2026-10-17T10:00:00Z",
                            "funder": ngo.public_key,
                            "account": other.public_key,
                            "starting_balance": "5.0000000",
                        },
                        {"id": "3", "type": "set_options", "created_at": "2026-10-16T10:00:00Z"},
                    ]
                }
            },
        )

    records = _run(_client(handler), lambda c: c.list_payments(ngo.public_key, limit=50))

    assert [record.type for record in records] == ["payment", "create_account"]
    assert records[0].is_native
    assert records[0].amount == Decimal("10")
    assert records[1].destination == other.public_key
