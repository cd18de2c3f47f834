"""Collateral vault endpoints - /v1/collateral"""

from fastapi import APIRouter, BackgroundTasks, Depends

from credshield_gateway.api.dependencies import (
    get_collateral_service,
    get_ledger_client,
    path_address,
    require_admin,
)
from credshield_gateway.api.v1.schemas import (
    CollateralDepositRequest,
    CollateralResponse,
    CollateralSchema,
    ReserveFundRequest,
    ReserveResponse,
    WithdrawResponse,
)
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.services.collateral import CollateralService

router = APIRouter()


@router.post("/collateral", response_model=CollateralSchema, status_code=201)
def deposit_collateral(
    request_body: CollateralDepositRequest,
    background_tasks: BackgroundTasks,
    service: CollateralService = Depends(get_collateral_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    position = service.deposit(request_body.owner, request_body.amount_wei, request_body.loan_id)
    background_tasks.add_task(ledger_client.persist_collateral_op, "deposit", position.owner, position.amount, position.loan_id)
    return CollateralSchema.from_domain(position)


@router.post("/collateral/reserve", response_model=ReserveResponse, dependencies=[Depends(require_admin)])
def fund_reserve(
    request_body: ReserveFundRequest,
    service: CollateralService = Depends(get_collateral_service),
):
    """Top up the reserve that pays collateral yield"""
    return ReserveResponse.from_domain(service.fund_reserve(request_body.amount_wei))


@router.get("/collateral/reserve", response_model=ReserveResponse)
def get_reserve(service: CollateralService = Depends(get_collateral_service)):
    return ReserveResponse.from_domain(service.reserve())


@router.get("/collateral/{address}", response_model=CollateralResponse)
def get_collateral(
    address: str = Depends(path_address),
    service: CollateralService = Depends(get_collateral_service),
):
    """Latest position with the yield accrued to now"""
    position, accrued = service.get_position(address)
    return CollateralResponse(position=CollateralSchema.from_domain(position), accrued_yield_wei=accrued)


@router.post("/collateral/{address}/withdraw", response_model=WithdrawResponse)
def withdraw_collateral(
    background_tasks: BackgroundTasks,
    address: str = Depends(path_address),
    service: CollateralService = Depends(get_collateral_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Release amount + yield once the backing loan is repaid"""
    withdrawal = service.withdraw(address)
    background_tasks.add_task(
        ledger_client.persist_collateral_op, "withdraw", address, withdrawal.payout, withdrawal.position.loan_id
    )
    return WithdrawResponse(
        position=CollateralSchema.from_domain(withdrawal.position),
        payout_wei=withdrawal.payout,
        yield_paid_wei=withdrawal.yield_paid,
    )
