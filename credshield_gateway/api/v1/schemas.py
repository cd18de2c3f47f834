"""Pydantic schemas for API request/response validation.

Wei amounts are accepted as integers or numeric strings and always returned
as decimal strings; JSON numbers lose precision above 2^53.
"""

from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, PlainSerializer, StringConstraints

from credshield_gateway.domain.models import (
    CollateralPosition,
    CreditHistory,
    CreditProfile,
    DimensionScore,
    Loan,
    PoolState,
    Purchase,
    ScheduledInstallment,
    VaultReserve,
)
from credshield_gateway.utils.date_utils import to_iso

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"

Address = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, pattern=ADDRESS_PATTERN)]
Wei = Annotated[int, PlainSerializer(lambda v: str(v), return_type=str)]


# Requests


class ScoreRequest(BaseModel):
    """Request body for POST /v1/credit/score"""

    address: Address


class BatchScoreRequest(BaseModel):
    addresses: List[Address] = Field(..., min_length=1)


class SetScoreRequest(BaseModel):
    """Manual score override; range is checked by the domain (300-900)"""

    score: int
    report_fingerprint: Optional[str] = None


class OutcomeRequest(BaseModel):
    success: bool
    amount_wei: int = Field(..., ge=0)


class LoanRequest(BaseModel):
    """Request body for POST /v1/loans"""

    borrower: Address
    amount_wei: int = Field(..., gt=0, description="Principal, 10^18-scaled")
    installments: int = Field(..., description="Number of installments (2-12)")


class RepayRequest(BaseModel):
    caller: Address


class CollateralDepositRequest(BaseModel):
    owner: Address
    amount_wei: int = Field(..., gt=0)
    loan_id: Optional[int] = None


class ReserveFundRequest(BaseModel):
    amount_wei: int = Field(..., gt=0)


class PoolTransferRequest(BaseModel):
    lender: Address
    amount_wei: int = Field(..., gt=0)


class CheckoutRequest(BaseModel):
    """Request body for POST /v1/bnpl/checkout"""

    buyer: Address
    merchant: Address
    item_name: str = Field(..., min_length=1, max_length=200)
    price_wei: int = Field(..., gt=0)
    installments: int = Field(..., description="Number of installments (2-6)")


# Responses


class DimensionSchema(BaseModel):
    name: str
    score: int
    max_score: int
    weight_bps: int
    details: str

    @classmethod
    def from_domain(cls, d: DimensionScore) -> "DimensionSchema":
        return cls(name=d.name, score=d.score, max_score=d.max_score, weight_bps=d.weight_bps, details=d.details)


class ProfileSchema(BaseModel):
    address: str
    score: int
    tier: int
    tier_name: str
    collateral_ratio_bps: int
    credit_limit: int
    credit_limit_wei: Wei
    interest_rate_bps: int
    loans_completed: int
    loans_failed: int
    total_borrowed_wei: Wei
    total_repaid_wei: Wei
    report_fingerprint: str
    last_updated: int

    @classmethod
    def from_domain(cls, p: CreditProfile) -> "ProfileSchema":
        return cls(
            address=p.address,
            score=p.score,
            tier=int(p.tier),
            tier_name=p.tier.label,
            collateral_ratio_bps=p.collateral_ratio_bps,
            credit_limit=p.credit_limit,
            credit_limit_wei=p.credit_limit_wei,
            interest_rate_bps=p.interest_rate_bps,
            loans_completed=p.loans_completed,
            loans_failed=p.loans_failed,
            total_borrowed_wei=p.total_borrowed,
            total_repaid_wei=p.total_repaid,
            report_fingerprint=p.report_fingerprint,
            last_updated=p.last_updated,
        )


class HistorySchema(BaseModel):
    score: int
    tier: int
    loans_completed: int
    loans_failed: int
    total_borrowed_wei: Wei
    total_repaid_wei: Wei
    current_streak: int
    longest_streak: int
    first_credit_date: int
    last_updated: int

    @classmethod
    def from_domain(cls, h: CreditHistory) -> "HistorySchema":
        return cls(
            score=h.score,
            tier=int(h.tier),
            loans_completed=h.loans_completed,
            loans_failed=h.loans_failed,
            total_borrowed_wei=h.total_borrowed,
            total_repaid_wei=h.total_repaid,
            current_streak=h.current_streak,
            longest_streak=h.longest_streak,
            first_credit_date=h.first_credit_date,
            last_updated=h.last_updated,
        )


class ScoreResponse(BaseModel):
    """Response for POST /v1/credit/score"""

    address: str
    score: int
    tier: int
    tier_name: str
    collateral_ratio_bps: int
    credit_limit: int
    interest_rate_bps: int
    dimensions: List[DimensionSchema]
    report: str
    report_fingerprint: str
    data_source: str
    report_source: str


class BatchItem(BaseModel):
    address: str
    result: Optional[ScoreResponse] = None
    error: Optional[str] = None


class BatchScoreResponse(BaseModel):
    results: List[BatchItem]


class CreditProfileResponse(BaseModel):
    """Response for GET /v1/credit/{address} and score mutations"""

    profile: ProfileSchema
    history: Optional[HistorySchema] = None


class LoanSchema(BaseModel):
    id: int
    borrower: str
    status: str
    principal_wei: Wei
    total_amount_wei: Wei
    remaining_amount_wei: Wei
    collateral_amount_wei: Wei
    installment_amount_wei: Wei
    installments_paid: int
    total_installments: int
    next_due_date: int
    interest_rate_bps: int
    created_at: int
    active: bool
    defaulted: bool

    @classmethod
    def from_domain(cls, loan: Loan) -> "LoanSchema":
        return cls(
            id=loan.id,
            borrower=loan.borrower,
            status=loan.status.value,
            principal_wei=loan.principal,
            total_amount_wei=loan.total_amount,
            remaining_amount_wei=loan.remaining_amount,
            collateral_amount_wei=loan.collateral_amount,
            installment_amount_wei=loan.installment_amount,
            installments_paid=loan.installments_paid,
            total_installments=loan.total_installments,
            next_due_date=loan.next_due_date,
            interest_rate_bps=loan.interest_rate_bps,
            created_at=loan.created_at,
            active=loan.active,
            defaulted=loan.defaulted,
        )


class InstallmentSchema(BaseModel):
    """Single installment in a repayment schedule"""

    number: int
    due_date: int
    due_at: str
    amount_wei: Wei
    status: str

    @classmethod
    def from_domain(cls, inst: ScheduledInstallment) -> "InstallmentSchema":
        return cls(
            number=inst.number,
            due_date=inst.due_date,
            due_at=to_iso(inst.due_date),
            amount_wei=inst.amount,
            status=inst.status,
        )


class CollateralSchema(BaseModel):
    owner: str
    amount_wei: Wei
    yield_earned_wei: Wei
    deposit_timestamp: int
    loan_id: Optional[int] = None
    active: bool

    @classmethod
    def from_domain(cls, p: CollateralPosition) -> "CollateralSchema":
        return cls(
            owner=p.owner,
            amount_wei=p.amount,
            yield_earned_wei=p.yield_earned,
            deposit_timestamp=p.deposit_timestamp,
            loan_id=p.loan_id,
            active=p.active,
        )


class PurchaseSchema(BaseModel):
    id: int
    buyer: str
    merchant: str
    item_name: str
    total_price_wei: Wei
    installment_amount_wei: Wei
    paid_amount_wei: Wei
    installments_paid: int
    total_installments: int
    loan_id: int
    created_at: int
    completed: bool

    @classmethod
    def from_domain(cls, p: Purchase) -> "PurchaseSchema":
        return cls(
            id=p.id,
            buyer=p.buyer,
            merchant=p.merchant,
            item_name=p.item_name,
            total_price_wei=p.total_price,
            installment_amount_wei=p.installment_amount,
            paid_amount_wei=p.paid_amount,
            installments_paid=p.installments_paid,
            total_installments=p.total_installments,
            loan_id=p.loan_id,
            created_at=p.created_at,
            completed=p.completed,
        )


class LoanCreateResponse(BaseModel):
    """Response for POST /v1/loans"""

    loan: LoanSchema
    collateral: Optional[CollateralSchema] = None
    schedule: List[InstallmentSchema]


class LoanDetailResponse(BaseModel):
    loan: LoanSchema
    schedule: List[InstallmentSchema]


class LoanListResponse(BaseModel):
    borrower: str
    loans: List[LoanSchema]


class RepayResponse(BaseModel):
    loan: LoanSchema
    amount_paid_wei: Wei
    principal_paid_wei: Wei
    completed: bool
    purchase: Optional[PurchaseSchema] = None
    score: Optional[int] = None  # set when this payment completed the loan


class DefaultResponse(BaseModel):
    loan: LoanSchema
    principal_written_off_wei: Wei
    seized_wei: Wei
    score: int


class CollateralResponse(BaseModel):
    position: CollateralSchema
    accrued_yield_wei: Wei


class WithdrawResponse(BaseModel):
    position: CollateralSchema
    payout_wei: Wei
    yield_paid_wei: Wei


class ReserveResponse(BaseModel):
    total_collateral_wei: Wei
    yield_reserve_wei: Wei

    @classmethod
    def from_domain(cls, r: VaultReserve) -> "ReserveResponse":
        return cls(total_collateral_wei=r.total_collateral, yield_reserve_wei=r.yield_reserve)


class PoolStatsResponse(BaseModel):
    total_deposits_wei: Wei
    total_borrowed_wei: Wei
    total_interest_earned_wei: Wei
    total_seized_wei: Wei
    total_written_off_wei: Wei
    available_wei: Wei
    utilization_bps: int
    loans_issued: int
    loans_repaid: int
    loans_defaulted: int

    @classmethod
    def from_domain(cls, pool: PoolState) -> "PoolStatsResponse":
        return cls(
            total_deposits_wei=pool.total_deposits,
            total_borrowed_wei=pool.total_borrowed,
            total_interest_earned_wei=pool.total_interest_earned,
            total_seized_wei=pool.total_seized,
            total_written_off_wei=pool.total_written_off,
            available_wei=pool.available,
            utilization_bps=pool.utilization_bps,
            loans_issued=pool.loans_issued,
            loans_repaid=pool.loans_repaid,
            loans_defaulted=pool.loans_defaulted,
        )


class PoolTransferResponse(BaseModel):
    lender: str
    balance_wei: Wei
    pool: PoolStatsResponse


class CheckoutResponse(BaseModel):
    """Response for POST /v1/bnpl/checkout"""

    purchase: PurchaseSchema
    loan: LoanSchema
    collateral: Optional[CollateralSchema] = None


class PurchaseListResponse(BaseModel):
    purchases: List[PurchaseSchema]


class BnplStatsResponse(BaseModel):
    total_volume_wei: Wei
    purchase_count: int
