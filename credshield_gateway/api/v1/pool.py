"""Lending pool endpoints - /v1/pool"""

from fastapi import APIRouter, Depends

from credshield_gateway.api.dependencies import get_pool_service
from credshield_gateway.api.v1.schemas import PoolStatsResponse, PoolTransferRequest, PoolTransferResponse
from credshield_gateway.services.pool import PoolService

router = APIRouter()


@router.post("/pool/deposits", response_model=PoolTransferResponse, status_code=201)
def deposit(request_body: PoolTransferRequest, service: PoolService = Depends(get_pool_service)):
    pool, balance = service.deposit(request_body.lender, request_body.amount_wei)
    return PoolTransferResponse(lender=request_body.lender, balance_wei=balance, pool=PoolStatsResponse.from_domain(pool))


@router.post("/pool/withdrawals", response_model=PoolTransferResponse)
def withdraw(request_body: PoolTransferRequest, service: PoolService = Depends(get_pool_service)):
    """Withdraw lender funds, bounded by the lender's balance and free liquidity"""
    pool, balance = service.withdraw(request_body.lender, request_body.amount_wei)
    return PoolTransferResponse(lender=request_body.lender, balance_wei=balance, pool=PoolStatsResponse.from_domain(pool))


@router.get("/pool/stats", response_model=PoolStatsResponse)
def pool_stats(service: PoolService = Depends(get_pool_service)):
    return PoolStatsResponse.from_domain(service.stats())
