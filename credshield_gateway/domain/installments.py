"""Installment math and repayment schedules for loans"""

from typing import List, Tuple

from credshield_gateway.domain.models import BPS_DENOMINATOR, Loan, ScheduledInstallment
from credshield_gateway.utils.date_utils import add_days


def calculate_loan_terms(principal: int, num_installments: int, interest_rate_bps: int) -> Tuple[int, int]:
    """
    Compute total owed and the regular installment amount.

    total = principal + principal * rate_bps / 10000 (integer division)
    installment = total // num_installments

    Last installment absorbs rounding remainder (≤ num_installments-1 wei drift),
    see `installment_due`.

    Example:
        900 at 400 bps over 3 → total 936, installment 312
        1000 at 400 bps over 3 → total 1040, installments [346, 346, 348]
    """
    total_amount = principal + principal * interest_rate_bps // BPS_DENOMINATOR
    return total_amount, total_amount // num_installments


def installment_due(loan: Loan) -> int:
    """Amount collected by the next repayment; the final one settles the residue"""
    if loan.installments_paid >= loan.total_installments - 1:
        return loan.remaining_amount
    return min(loan.installment_amount, loan.remaining_amount)


def final_installment_amount(total_amount: int, num_installments: int) -> int:
    base = total_amount // num_installments
    return base + total_amount % num_installments


def generate_installment_schedule(loan: Loan, interval_days: int = 30) -> List[ScheduledInstallment]:
    """
    Build the full schedule for a loan, marking each entry paid / due / upcoming.

    Due dates fall every `interval_days` after creation.
    """
    schedule = []
    final_amount = final_installment_amount(loan.total_amount, loan.total_installments)

    for i in range(loan.total_installments):
        if i < loan.installments_paid:
            status = "paid"
        elif loan.defaulted:
            status = "defaulted"
        elif i == loan.installments_paid:
            status = "due"
        else:
            status = "upcoming"

        amount = final_amount if i == loan.total_installments - 1 else loan.installment_amount
        schedule.append(
            ScheduledInstallment(
                number=i + 1,
                due_date=add_days(loan.created_at, (i + 1) * interval_days),
                amount=amount,
                status=status,
            )
        )

    return schedule
