"""Lending pool accounting.

available = deposits + interest earned + seized collateral
            - outstanding principal - written-off principal
"""

from credshield_gateway.domain.exceptions import (
    InsufficientLenderBalance,
    InsufficientLiquidity,
    InvalidAmount,
)
from credshield_gateway.domain.models import PoolState


def check_liquidity(pool: PoolState, amount: int) -> None:
    if pool.available < amount:
        raise InsufficientLiquidity(amount, pool.available)


def deposit(pool: PoolState, lender_balance: int, amount: int) -> int:
    """Add lender funds; returns the lender's new balance"""
    if amount <= 0:
        raise InvalidAmount(f"Deposit must be positive, got {amount}")
    pool.total_deposits += amount
    return lender_balance + amount


def withdraw(pool: PoolState, lender: str, lender_balance: int, amount: int) -> int:
    """Remove lender funds, bounded by their balance and free liquidity"""
    if amount <= 0:
        raise InvalidAmount(f"Withdrawal must be positive, got {amount}")
    if amount > lender_balance:
        raise InsufficientLenderBalance(lender, amount, lender_balance)
    check_liquidity(pool, amount)
    pool.total_deposits -= amount
    return lender_balance - amount


def record_disbursement(pool: PoolState, principal: int) -> None:
    pool.total_borrowed += principal
    pool.loans_issued += 1


def record_repayment(pool: PoolState, amount_paid: int, principal_paid: int, completed: bool) -> None:
    pool.total_borrowed -= principal_paid
    pool.total_interest_earned += amount_paid - principal_paid
    if completed:
        pool.loans_repaid += 1


def record_default(pool: PoolState, principal_outstanding: int, seized_amount: int) -> None:
    pool.total_borrowed -= principal_outstanding
    pool.total_written_off += principal_outstanding
    pool.total_seized += seized_amount
    pool.loans_defaulted += 1
