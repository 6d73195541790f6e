"""Horizon REST client implementing the ledger collaborator protocols."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx

from relief.domain.ledger.models import (
    AccountState,
    AccountThresholds,
    Balance,
    LedgerResponse,
    PaymentRecord,
)
from relief.domain.transactions.exceptions import AccountNotFound, LedgerError, LedgerUnavailable
from relief.domain.transactions.models import NATIVE_ASSET_CODE

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429}


class HorizonClient:
    """Account state, submission, funding and payment history over Horizon.

    Ledger rejections come back as ``LedgerResponse(success=False)``. Only
    failures where the transaction may never have reached the ledger raise
    ``LedgerUnavailable``.
    """

    def __init__(
        self,
        horizon_url: str,
        *,
        friendbot_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._horizon_url = horizon_url.rstrip("/")
        self._friendbot_url = friendbot_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_account(self, public_id: str) -> AccountState:
        response = await self._request("GET", f"{self._horizon_url}/accounts/{public_id}")
        if response.status_code == 404:
            raise AccountNotFound(f"账户不存在: {public_id}")
        self._raise_for_unavailable(response)
        if response.is_error:
            raise LedgerError(f"查询账户失败 ({response.status_code}): {public_id}")

        data = response.json()
        thresholds = data.get("thresholds", {})
        return AccountState(
            account_id=data["account_id"] if "account_id" in data else data["id"],
            sequence=int(data["sequence"]),
            balances=[_parse_balance(item) for item in data.get("balances", [])],
            signers={item["key"]: int(item["weight"]) for item in data.get("signers", [])},
            thresholds=AccountThresholds(
                low=int(thresholds.get("low_threshold", 0)),
                medium=int(thresholds.get("med_threshold", 0)),
                high=int(thresholds.get("high_threshold", 0)),
            ),
        )

    async def submit(self, envelope_xdr: str) -> LedgerResponse:
        response = await self._request(
            "POST",
            f"{self._horizon_url}/transactions",
            data={"tx": envelope_xdr},
        )
        self._raise_for_unavailable(response)

        data = _json_or_empty(response)
        if response.is_success:
            return LedgerResponse(
                success=bool(data.get("successful", True)),
                result_code="tx_success",
                transaction_hash=data.get("hash"),
                ledger=data.get("ledger"),
                ledger_timestamp=_parse_time(data.get("created_at")),
            )

        extras = data.get("extras") or {}
        result_code = _format_result_codes(extras.get("result_codes")) or data.get("title") or str(response.status_code)
        return LedgerResponse(
            success=False,
            result_code=result_code,
            transaction_hash=extras.get("hash"),
        )

    async def fund(self, public_id: str) -> None:
        if not self._friendbot_url:
            raise LedgerError("未配置测试网资助服务地址")
        response = await self._request("GET", self._friendbot_url, params={"addr": public_id})
        self._raise_for_unavailable(response)
        if response.is_error:
            raise LedgerError(f"账户资助失败 ({response.status_code}): {public_id}")
        logger.info("账户已通过测试网资助服务激活: %s", public_id)

    async def list_payments(self, public_id: str, limit: int = 200) -> list[PaymentRecord]:
        response = await self._request(
            "GET",
            f"{self._horizon_url}/accounts/{public_id}/payments",
            params={"limit": limit, "order": "desc"},
        )
        if response.status_code == 404:
            raise AccountNotFound(f"账户不存在: {public_id}")
        self._raise_for_unavailable(response)
        if response.is_error:
            raise LedgerError(f"查询支付记录失败 ({response.status_code}): {public_id}")

        records = response.json().get("_embedded", {}).get("records", [])
        return [record for record in (_parse_payment(item) for item in records) if record is not None]

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("请求账本服务失败 %s %s: %s", method, url, exc)
            raise LedgerUnavailable(f"账本服务不可达: {exc}") from exc

    @staticmethod
    def _raise_for_unavailable(response: httpx.Response) -> None:
        if response.status_code in _RETRYABLE_STATUS or response.is_server_error:
            logger.warning("账本服务暂不可用: HTTP %s", response.status_code)
            raise LedgerUnavailable(f"账本服务暂不可用: HTTP {response.status_code}")


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _format_result_codes(codes: Optional[dict[str, Any]]) -> Optional[str]:
    if not codes:
        return None
    transaction = codes.get("transaction")
    operations = [code for code in codes.get("operations") or [] if code != "op_success"]
    if transaction and operations:
        return f"{transaction}: {', '.join(operations)}"
    return transaction or ", ".join(operations) or None


def _parse_balance(item: dict[str, Any]) -> Balance:
    if item.get("asset_type") == "native":
        return Balance(asset_code=NATIVE_ASSET_CODE, asset_issuer=None, balance=Decimal(item["balance"]))
    return Balance(
        asset_code=item.get("asset_code", ""),
        asset_issuer=item.get("asset_issuer"),
        balance=Decimal(item["balance"]),
    )


def _parse_payment(item: dict[str, Any]) -> Optional[PaymentRecord]:
    kind = item.get("type")
    if kind == "payment":
        native = item.get("asset_type") == "native"
        return PaymentRecord(
            id=str(item["id"]),
            type=kind,
            created_at=_parse_time(item["created_at"]),
            source=item["from"],
            destination=item["to"],
            amount=Decimal(item["amount"]),
            asset_code=NATIVE_ASSET_CODE if native else item.get("asset_code", ""),
            asset_issuer=None if native else item.get("asset_issuer"),
        )
    if kind == "create_account":
        return PaymentRecord(
            id=str(item["id"]),
            type=kind,
            created_at=_parse_time(item["created_at"]),
            source=item["funder"],
            destination=item["account"],
            amount=Decimal(item["starting_balance"]),
            asset_code=NATIVE_ASSET_CODE,
        )
    return None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
