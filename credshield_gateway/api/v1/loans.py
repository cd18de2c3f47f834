"""Installment loan endpoints - /v1/loans"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from credshield_gateway.api.dependencies import get_ledger_client, get_lending_service, require_admin
from credshield_gateway.api.v1.schemas import (
    ADDRESS_PATTERN,
    CollateralSchema,
    DefaultResponse,
    InstallmentSchema,
    LoanCreateResponse,
    LoanDetailResponse,
    LoanListResponse,
    LoanRequest,
    LoanSchema,
    PurchaseSchema,
    RepayRequest,
    RepayResponse,
)
from credshield_gateway.domain.installments import generate_installment_schedule
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.services.lending import LendingService

router = APIRouter()


@router.post("/loans", response_model=LoanCreateResponse, status_code=201)
def create_loan(
    request_body: LoanRequest,
    background_tasks: BackgroundTasks,
    service: LendingService = Depends(get_lending_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Open an installment loan against the borrower's tier terms.

    Required collateral (principal x tier ratio) is locked in the same
    transaction as the loan.
    """
    loan, position = service.create_loan(request_body.borrower, request_body.amount_wei, request_body.installments)

    if position is not None:
        background_tasks.add_task(ledger_client.persist_collateral_op, "deposit", loan.borrower, position.amount, loan.id)

    return LoanCreateResponse(
        loan=LoanSchema.from_domain(loan),
        collateral=CollateralSchema.from_domain(position) if position is not None else None,
        schedule=[
            InstallmentSchema.from_domain(i)
            for i in generate_installment_schedule(loan, service.config.installment_interval_days)
        ],
    )


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    borrower: str = Query(..., pattern=ADDRESS_PATTERN, description="Borrower address"),
    service: LendingService = Depends(get_lending_service),
):
    """All loans of a borrower, newest first"""
    loans = service.list_loans(borrower)
    return LoanListResponse(borrower=borrower.lower(), loans=[LoanSchema.from_domain(loan) for loan in loans])


@router.get("/loans/{loan_id}", response_model=LoanDetailResponse)
def get_loan(loan_id: int, service: LendingService = Depends(get_lending_service)):
    """Loan state with its repayment schedule"""
    loan = service.get_loan(loan_id)
    schedule = service.schedule(loan_id)
    return LoanDetailResponse(
        loan=LoanSchema.from_domain(loan),
        schedule=[InstallmentSchema.from_domain(i) for i in schedule],
    )


@router.post("/loans/{loan_id}/repay", response_model=RepayResponse)
def repay_installment(
    loan_id: int,
    request_body: RepayRequest,
    background_tasks: BackgroundTasks,
    service: LendingService = Depends(get_lending_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Pay the next installment; only the borrower may pay"""
    repayment = service.repay_installment(loan_id, request_body.caller)

    if repayment.completed:
        background_tasks.add_task(
            ledger_client.persist_loan_outcome,
            repayment.loan.borrower,
            True,
            repayment.loan.total_amount,
            repayment.loan.id,
        )

    return RepayResponse(
        loan=LoanSchema.from_domain(repayment.loan),
        amount_paid_wei=repayment.amount_paid,
        principal_paid_wei=repayment.principal_paid,
        completed=repayment.completed,
        purchase=PurchaseSchema.from_domain(repayment.purchase) if repayment.purchase is not None else None,
        score=repayment.profile.score if repayment.profile is not None else None,
    )


@router.post("/loans/{loan_id}/default", response_model=DefaultResponse, dependencies=[Depends(require_admin)])
def mark_default(
    loan_id: int,
    background_tasks: BackgroundTasks,
    service: LendingService = Depends(get_lending_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Administrative default: seize collateral and record a failed outcome"""
    default = service.mark_default(loan_id)
    loan = default.loan

    background_tasks.add_task(ledger_client.persist_loan_outcome, loan.borrower, False, loan.total_amount, loan.id)
    if default.seized_amount:
        background_tasks.add_task(ledger_client.persist_collateral_op, "seize", loan.borrower, default.seized_amount, loan.id)

    return DefaultResponse(
        loan=LoanSchema.from_domain(loan),
        principal_written_off_wei=default.principal_written_off,
        seized_wei=default.seized_amount,
        score=default.profile.score,
    )
