"""Unit tests for lending pool accounting"""

import pytest

from credshield_gateway.domain.exceptions import InsufficientLenderBalance, InsufficientLiquidity, InvalidAmount
from credshield_gateway.domain.models import WEI, PoolState
from credshield_gateway.domain.pool import (
    deposit,
    record_default,
    record_disbursement,
    record_repayment,
    withdraw,
)

LENDER = "0x" + "cd" * 20


def test_deposit_and_withdraw():
    pool = PoolState()
    balance = deposit(pool, 0, 100 * WEI)
    balance = withdraw(pool, LENDER, balance, 40 * WEI)

    assert balance == 60 * WEI
    assert pool.total_deposits == 60 * WEI
    assert pool.available == 60 * WEI


def test_non_positive_amounts_rejected():
    with pytest.raises(InvalidAmount):
        deposit(PoolState(), 0, 0)
    with pytest.raises(InvalidAmount):
        withdraw(PoolState(), LENDER, 10, -1)


def test_withdraw_bounded_by_lender_balance():
    pool = PoolState(total_deposits=100 * WEI)

    with pytest.raises(InsufficientLenderBalance):
        withdraw(pool, LENDER, 10 * WEI, 11 * WEI)


def test_withdraw_bounded_by_free_liquidity():
    pool = PoolState(total_deposits=100 * WEI)
    record_disbursement(pool, 80 * WEI)

    with pytest.raises(InsufficientLiquidity):
        withdraw(pool, LENDER, 100 * WEI, 21 * WEI)
    assert pool.utilization_bps == 8_000


def test_full_repayment_cycle_earns_interest():
    pool = PoolState(total_deposits=1_000 * WEI)
    record_disbursement(pool, 500 * WEI)
    record_repayment(pool, 260 * WEI, 250 * WEI, completed=False)
    record_repayment(pool, 260 * WEI, 250 * WEI, completed=True)

    assert pool.total_borrowed == 0
    assert pool.total_interest_earned == 20 * WEI
    assert pool.available == 1_020 * WEI
    assert (pool.loans_issued, pool.loans_repaid) == (1, 1)


def test_default_writes_off_and_adds_seized_collateral():
    pool = PoolState(total_deposits=1_000 * WEI)
    record_disbursement(pool, 500 * WEI)
    record_default(pool, 500 * WEI, 625 * WEI)

    assert pool.total_borrowed == 0
    assert pool.total_written_off == 500 * WEI
    assert pool.total_seized == 625 * WEI
    assert pool.available == 1_125 * WEI
    assert pool.loans_defaulted == 1
