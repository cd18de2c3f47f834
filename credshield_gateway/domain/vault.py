"""Collateral vault - lock, accrue simple yield, release or seize.

Yield is simple and non-compounding:
    yield = amount * daily_rate_bps * whole_days_elapsed / 10000
"""

from typing import Optional, Tuple

from credshield_gateway.domain.exceptions import (
    AlreadyHasCollateral,
    CollateralLocked,
    InsufficientYieldReserve,
    InvalidAmount,
    NoActiveCollateral,
)
from credshield_gateway.domain.models import BPS_DENOMINATOR, CollateralPosition, VaultReserve
from credshield_gateway.utils.date_utils import whole_days_between


def _require_active(owner: str, position: Optional[CollateralPosition]) -> CollateralPosition:
    if position is None or not position.active:
        raise NoActiveCollateral(owner)
    return position


def open_position(
    owner: str,
    amount: int,
    loan_id: Optional[int],
    existing: Optional[CollateralPosition],
    reserve: VaultReserve,
    now: int,
) -> CollateralPosition:
    if existing is not None and existing.active:
        raise AlreadyHasCollateral(owner)
    if amount <= 0:
        raise InvalidAmount(f"Collateral must be positive, got {amount}")

    reserve.total_collateral += amount
    return CollateralPosition(owner=owner, amount=amount, deposit_timestamp=now, loan_id=loan_id)


def calculate_yield(position: Optional[CollateralPosition], now: int, daily_rate_bps: int) -> int:
    if position is None or not position.active:
        return 0
    days = whole_days_between(position.deposit_timestamp, now)
    return position.amount * daily_rate_bps * days // BPS_DENOMINATOR


def release_position(
    owner: str,
    position: Optional[CollateralPosition],
    reserve: VaultReserve,
    now: int,
    daily_rate_bps: int,
    loan_active: bool = False,
) -> Tuple[int, int]:
    """
    Pay out amount + yield and deactivate the position.

    The yield portion is drawn from the vault reserve. Returns (payout, yield).
    """
    position = _require_active(owner, position)
    if loan_active:
        raise CollateralLocked(owner, position.loan_id)

    accrued = calculate_yield(position, now, daily_rate_bps)
    if accrued > reserve.yield_reserve:
        raise InsufficientYieldReserve(accrued, reserve.yield_reserve)

    reserve.yield_reserve -= accrued
    reserve.total_collateral -= position.amount
    position.yield_earned = accrued
    position.active = False
    return position.amount + accrued, accrued


def seize_position(owner: str, position: Optional[CollateralPosition], reserve: VaultReserve) -> int:
    """Forfeit the locked amount (not yield) to the pool; returns the amount"""
    position = _require_active(owner, position)
    reserve.total_collateral -= position.amount
    position.active = False
    return position.amount


def fund_reserve(reserve: VaultReserve, amount: int) -> None:
    if amount <= 0:
        raise InvalidAmount(f"Reserve funding must be positive, got {amount}")
    reserve.yield_reserve += amount
