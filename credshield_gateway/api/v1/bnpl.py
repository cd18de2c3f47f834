"""Buy-now-pay-later endpoints - /v1/bnpl"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from credshield_gateway.api.dependencies import get_checkout_service, get_ledger_client
from credshield_gateway.api.v1.schemas import (
    ADDRESS_PATTERN,
    BnplStatsResponse,
    CheckoutRequest,
    CheckoutResponse,
    CollateralSchema,
    LoanSchema,
    PurchaseListResponse,
    PurchaseSchema,
)
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.services.checkout import CheckoutService

router = APIRouter()


@router.post("/bnpl/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    request_body: CheckoutRequest,
    background_tasks: BackgroundTasks,
    service: CheckoutService = Depends(get_checkout_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Finance a merchant purchase with an installment loan.

    Repaying the loan through /v1/loans/{loan_id}/repay advances the purchase.
    """
    result = service.checkout(
        request_body.buyer,
        request_body.merchant,
        request_body.item_name,
        request_body.price_wei,
        request_body.installments,
    )
    if result.collateral is not None:
        background_tasks.add_task(
            ledger_client.persist_collateral_op, "deposit", result.loan.borrower, result.collateral.amount, result.loan.id
        )
    return CheckoutResponse(
        purchase=PurchaseSchema.from_domain(result.purchase),
        loan=LoanSchema.from_domain(result.loan),
        collateral=CollateralSchema.from_domain(result.collateral) if result.collateral is not None else None,
    )


@router.get("/bnpl/purchases", response_model=PurchaseListResponse)
def list_purchases(
    buyer: Optional[str] = Query(None, pattern=ADDRESS_PATTERN),
    merchant: Optional[str] = Query(None, pattern=ADDRESS_PATTERN),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Purchases of one buyer or one merchant, newest first"""
    if (buyer is None) == (merchant is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of buyer or merchant")
    purchases = service.list_for_buyer(buyer) if buyer is not None else service.list_for_merchant(merchant)
    return PurchaseListResponse(purchases=[PurchaseSchema.from_domain(p) for p in purchases])


@router.get("/bnpl/purchases/{purchase_id}", response_model=PurchaseSchema)
def get_purchase(purchase_id: int, service: CheckoutService = Depends(get_checkout_service)):
    return PurchaseSchema.from_domain(service.get_purchase(purchase_id))


@router.get("/bnpl/stats", response_model=BnplStatsResponse)
def bnpl_stats(service: CheckoutService = Depends(get_checkout_service)):
    volume, count = service.stats()
    return BnplStatsResponse(total_volume_wei=volume, purchase_count=count)
