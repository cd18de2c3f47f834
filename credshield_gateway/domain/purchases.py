"""BNPL purchases tracked alongside the loan that funds them"""

from credshield_gateway.domain.exceptions import InvalidLoanRequest, PurchaseCompleted
from credshield_gateway.domain.models import Purchase


def open_purchase(
    buyer: str,
    merchant: str,
    item_name: str,
    total_price: int,
    num_installments: int,
    loan_id: int,
    now: int,
) -> Purchase:
    if not item_name.strip():
        raise InvalidLoanRequest("Item name required")
    return Purchase(
        buyer=buyer,
        merchant=merchant,
        item_name=item_name.strip(),
        total_price=total_price,
        installment_amount=total_price // num_installments,
        total_installments=num_installments,
        loan_id=loan_id,
        created_at=now,
    )


def record_installment_paid(purchase: Purchase) -> None:
    """Advance the purchase by one installment; the last one settles the residue"""
    if purchase.completed:
        raise PurchaseCompleted(purchase.id)

    purchase.installments_paid += 1
    if purchase.installments_paid >= purchase.total_installments:
        purchase.paid_amount = purchase.total_price
        purchase.completed = True
    else:
        purchase.paid_amount += purchase.installment_amount
