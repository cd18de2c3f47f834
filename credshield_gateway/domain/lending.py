"""Loan lifecycle state machine.

Requested -> Active -> Completed | Defaulted

Functions here mutate the Loan they are given and never touch storage;
callers hold the per-borrower lock and persist the result.
"""

from typing import Optional

from credshield_gateway.domain.exceptions import (
    ActiveLoanExists,
    CreditLimitExceeded,
    InvalidLoanRequest,
    LoanNotActive,
    NotBorrower,
)
from credshield_gateway.domain.installments import calculate_loan_terms, installment_due
from credshield_gateway.domain.models import BPS_DENOMINATOR, Loan, PoolState, TierTerms
from credshield_gateway.domain.pool import check_liquidity
from credshield_gateway.utils.date_utils import add_days


def required_collateral(principal: int, collateral_ratio_bps: int) -> int:
    return principal * collateral_ratio_bps // BPS_DENOMINATOR


def validate_loan_request(principal: int, num_installments: int, min_installments: int, max_installments: int) -> None:
    if principal <= 0:
        raise InvalidLoanRequest(f"Loan amount must be positive, got {principal}")
    if not min_installments <= num_installments <= max_installments:
        raise InvalidLoanRequest(
            f"Installments must be {min_installments}-{max_installments}, got {num_installments}"
        )


def open_loan(
    borrower: str,
    principal: int,
    num_installments: int,
    terms: TierTerms,
    pool: PoolState,
    active_loan: Optional[Loan],
    now: int,
    interval_days: int = 30,
) -> Loan:
    """
    Create an Active loan after enforcing, in order:
    1. no existing active loan for the borrower
    2. principal within the tier credit limit
    3. pool liquidity covers the principal
    """
    if active_loan is not None:
        raise ActiveLoanExists(borrower, active_loan.id)
    if principal > terms.credit_limit_wei:
        raise CreditLimitExceeded(principal, terms.credit_limit_wei)
    check_liquidity(pool, principal)

    total_amount, installment_amount = calculate_loan_terms(principal, num_installments, terms.interest_rate_bps)

    return Loan(
        borrower=borrower,
        principal=principal,
        total_amount=total_amount,
        remaining_amount=total_amount,
        collateral_amount=required_collateral(principal, terms.collateral_ratio_bps),
        installment_amount=installment_amount,
        installments_paid=0,
        total_installments=num_installments,
        next_due_date=add_days(now, interval_days),
        interest_rate_bps=terms.interest_rate_bps,
        created_at=now,
    )


def repay_installment(loan: Loan, caller: str, interval_days: int = 30) -> int:
    """
    Apply one installment payment. Returns the amount collected.

    The loan completes (active=False) once remaining_amount reaches 0.
    """
    if not loan.active:
        raise LoanNotActive(loan.id)
    if caller.lower() != loan.borrower.lower():
        raise NotBorrower(loan.id, caller)

    amount = installment_due(loan)
    loan.remaining_amount -= amount
    loan.installments_paid += 1

    if loan.remaining_amount <= 0:
        loan.remaining_amount = 0
        loan.active = False
    else:
        loan.next_due_date = add_days(loan.next_due_date, interval_days)

    return amount


def mark_default(loan: Loan) -> None:
    """Administrative Active -> Defaulted transition"""
    if not loan.active:
        raise LoanNotActive(loan.id)
    loan.active = False
    loan.defaulted = True


def outstanding_principal(loan: Loan, remaining_amount: int) -> int:
    """Principal share of a remaining balance, proportional to total owed"""
    if loan.total_amount <= 0:
        return 0
    return remaining_amount * loan.principal // loan.total_amount
