from fastapi import APIRouter

from relief.interfaces.http.routers import accounts, conditional, distributions, offline, reports, transactions


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(accounts.router, prefix="/accounts", tags=["账户"])
    router.include_router(distributions.router, prefix="/distributions", tags=["资金发放"])
    router.include_router(offline.router, prefix="/offline", tags=["离线交易"])
    router.include_router(conditional.router, prefix="/conditional", tags=["条件转账"])
    router.include_router(transactions.router, prefix="/transactions", tags=["交易签名"])
    router.include_router(reports.router, prefix="/reports", tags=["报告"])
    return router


__all__ = [
    "create_api_router",
]
