"""Collateral vault orchestration"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from credshield_gateway.config import Settings, settings
from credshield_gateway.domain.exceptions import LoanNotActive, LoanNotFound, NoActiveCollateral, NotBorrower
from credshield_gateway.domain.models import CollateralPosition, VaultReserve
from credshield_gateway.domain.repositories import LedgerStore
from credshield_gateway.domain.snapshot import normalize_address
from credshield_gateway.domain.vault import calculate_yield, fund_reserve, open_position, release_position
from credshield_gateway.infrastructure.observability.logging import log_collateral_event
from credshield_gateway.infrastructure.observability.metrics import collateral_event_counter
from credshield_gateway.services.locks import VAULT_KEY, KeyedLock, atomic, ledger_locks
from credshield_gateway.utils.date_utils import utc_now_ts


@dataclass(frozen=True)
class Withdrawal:
    position: CollateralPosition
    payout: int
    yield_paid: int


class CollateralService:
    def __init__(
        self,
        store: LedgerStore,
        locks: KeyedLock = ledger_locks,
        clock: Callable[[], int] = utc_now_ts,
        config: Settings = settings,
    ):
        self.store = store
        self.locks = locks
        self.clock = clock
        self.config = config

    def deposit(self, owner: str, amount: int, loan_id: Optional[int] = None) -> CollateralPosition:
        """Lock collateral, optionally against one of the owner's active loans"""
        owner = normalize_address(owner)

        with self.locks.hold(owner, VAULT_KEY), atomic(self.store):
            if loan_id is not None:
                loan = self.store.loans.get_loan(loan_id)
                if loan is None:
                    raise LoanNotFound(loan_id)
                if loan.borrower != owner:
                    raise NotBorrower(loan_id, owner)
                if not loan.active:
                    raise LoanNotActive(loan_id)

            reserve = self.store.collateral.get_reserve(for_update=True)
            position = open_position(
                owner, amount, loan_id, self.store.collateral.get_position(owner), reserve, self.clock()
            )
            self.store.collateral.save_position(position)
            self.store.collateral.save_reserve(reserve)

        collateral_event_counter.labels(event="deposited").inc()
        log_collateral_event("deposited", owner, amount, loan_id)
        return position

    def get_position(self, owner: str) -> Tuple[CollateralPosition, int]:
        """Latest position for the owner with yield accrued so far"""
        owner = normalize_address(owner)
        position = self.store.collateral.get_position(owner)
        if position is None:
            raise NoActiveCollateral(owner)
        return position, calculate_yield(position, self.clock(), self.config.collateral_daily_yield_bps)

    def withdraw(self, owner: str) -> Withdrawal:
        """Release amount + yield once the backing loan is no longer active"""
        owner = normalize_address(owner)

        with self.locks.hold(owner, VAULT_KEY), atomic(self.store):
            position = self.store.collateral.get_position(owner)
            loan_active = False
            if position is not None and position.loan_id is not None:
                loan = self.store.loans.get_loan(position.loan_id)
                loan_active = loan is not None and loan.active

            reserve = self.store.collateral.get_reserve(for_update=True)
            payout, accrued = release_position(
                owner,
                position,
                reserve,
                self.clock(),
                self.config.collateral_daily_yield_bps,
                loan_active=loan_active,
            )
            self.store.collateral.save_position(position)
            self.store.collateral.save_reserve(reserve)

        collateral_event_counter.labels(event="withdrawn").inc()
        log_collateral_event("withdrawn", owner, payout, position.loan_id)
        return Withdrawal(position=position, payout=payout, yield_paid=accrued)

    def fund_reserve(self, amount: int) -> VaultReserve:
        with self.locks.hold(VAULT_KEY), atomic(self.store):
            reserve = self.store.collateral.get_reserve(for_update=True)
            fund_reserve(reserve, amount)
            self.store.collateral.save_reserve(reserve)
        return reserve

    def reserve(self) -> VaultReserve:
        return self.store.collateral.get_reserve()
