"""Loan lifecycle orchestration over the ledger store.

Every write runs under the borrower lock plus the pool (and vault) lock so
the liquidity check, loan write and collateral deposit commit together.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from credshield_gateway.config import Settings, settings
from credshield_gateway.domain.exceptions import LoanNotFound
from credshield_gateway.domain.installments import generate_installment_schedule
from credshield_gateway.domain.lending import (
    mark_default,
    open_loan,
    outstanding_principal,
    repay_installment,
    validate_loan_request,
)
from credshield_gateway.domain.models import (
    CollateralPosition,
    CreditHistory,
    CreditProfile,
    Loan,
    Purchase,
    ScheduledInstallment,
)
from credshield_gateway.domain.pool import record_default, record_disbursement, record_repayment
from credshield_gateway.domain.purchases import record_installment_paid
from credshield_gateway.domain.repositories import LedgerStore
from credshield_gateway.domain.snapshot import normalize_address
from credshield_gateway.domain.vault import open_position, seize_position
from credshield_gateway.infrastructure.observability.logging import log_collateral_event, log_loan_event
from credshield_gateway.infrastructure.observability.metrics import (
    collateral_event_counter,
    loan_event_counter,
    record_pool_available,
)
from credshield_gateway.services.credit import apply_outcome, terms_for
from credshield_gateway.services.locks import POOL_KEY, VAULT_KEY, KeyedLock, atomic, ledger_locks
from credshield_gateway.utils.date_utils import utc_now_ts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repayment:
    loan: Loan
    amount_paid: int
    principal_paid: int
    purchase: Optional[Purchase] = None
    profile: Optional[CreditProfile] = None  # set only when this payment completed the loan
    history: Optional[CreditHistory] = None

    @property
    def completed(self) -> bool:
        return not self.loan.active


@dataclass(frozen=True)
class Default:
    loan: Loan
    principal_written_off: int
    seized_amount: int
    profile: CreditProfile
    history: CreditHistory


class LendingService:
    """Creates, repays and defaults installment loans"""

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

    def open_locked(
        self, borrower: str, principal: int, num_installments: int, now: int
    ) -> Tuple[Loan, Optional[CollateralPosition]]:
        """
        Open a loan and lock its collateral without committing.

        Caller holds the borrower, pool and vault locks inside one transaction.
        """
        terms = terms_for(self.store, borrower)
        pool = self.store.pool.get_pool(for_update=True)
        loan = open_loan(
            borrower,
            principal,
            num_installments,
            terms,
            pool,
            self.store.loans.get_active_loan(borrower),
            now,
            interval_days=self.config.installment_interval_days,
        )
        self.store.loans.save_loan(loan)

        position = None
        if loan.collateral_amount > 0:
            reserve = self.store.collateral.get_reserve(for_update=True)
            position = open_position(
                borrower,
                loan.collateral_amount,
                loan.id,
                self.store.collateral.get_position(borrower),
                reserve,
                now,
            )
            self.store.collateral.save_position(position)
            self.store.collateral.save_reserve(reserve)

        record_disbursement(pool, principal)
        self.store.pool.save_pool(pool)
        return loan, position

    def create_loan(
        self, borrower: str, principal: int, num_installments: int
    ) -> Tuple[Loan, Optional[CollateralPosition]]:
        validate_loan_request(
            principal, num_installments, self.config.min_installments, self.config.max_installments
        )
        borrower = normalize_address(borrower)

        with self.locks.hold(borrower, POOL_KEY, VAULT_KEY), atomic(self.store):
            loan, position = self.open_locked(borrower, principal, num_installments, self.clock())

        loan_event_counter.labels(event="created").inc()
        log_loan_event("created", loan.id, borrower, principal)
        if position is not None:
            collateral_event_counter.labels(event="deposited").inc()
            log_collateral_event("deposited", borrower, position.amount, loan.id)
        return loan, position

    def get_loan(self, loan_id: int) -> Loan:
        loan = self.store.loans.get_loan(loan_id)
        if loan is None:
            raise LoanNotFound(loan_id)
        return loan

    def list_loans(self, borrower: str) -> List[Loan]:
        return self.store.loans.list_loans(normalize_address(borrower))

    def schedule(self, loan_id: int) -> List[ScheduledInstallment]:
        return generate_installment_schedule(self.get_loan(loan_id), self.config.installment_interval_days)

    def repay_installment(self, loan_id: int, caller: str) -> Repayment:
        """
        Collect one installment from the borrower.

        The principal share returns to the pool, the rest is booked as
        interest. The payment that completes the loan records the single
        successful outcome in the credit history.
        """
        borrower = self.get_loan(loan_id).borrower
        caller = normalize_address(caller)

        with self.locks.hold(borrower, POOL_KEY), atomic(self.store):
            loan = self.get_loan(loan_id)
            principal_before = outstanding_principal(loan, loan.remaining_amount)
            amount = repay_installment(loan, caller, self.config.installment_interval_days)
            principal_paid = principal_before - outstanding_principal(loan, loan.remaining_amount)
            self.store.loans.save_loan(loan)

            pool = self.store.pool.get_pool(for_update=True)
            record_repayment(pool, amount, principal_paid, completed=not loan.active)
            self.store.pool.save_pool(pool)

            purchase = self.store.purchases.get_purchase_for_loan(loan.id)
            if purchase is not None and not purchase.completed:
                record_installment_paid(purchase)
                self.store.purchases.save_purchase(purchase)

            profile = history = None
            if not loan.active:
                profile, history = apply_outcome(
                    self.store, loan.borrower, True, loan.total_amount, self.clock(), self.config
                )

        loan_event_counter.labels(event="repaid").inc()
        log_loan_event("repaid", loan.id, loan.borrower, amount)
        if not loan.active:
            loan_event_counter.labels(event="completed").inc()
            log_loan_event("completed", loan.id, loan.borrower, loan.total_amount)
        record_pool_available(pool.available)

        return Repayment(
            loan=loan,
            amount_paid=amount,
            principal_paid=principal_paid,
            purchase=purchase,
            profile=profile,
            history=history,
        )

    def mark_default(self, loan_id: int) -> Default:
        """
        Administrative default: write off the outstanding principal, seize
        the loan's collateral into the pool and record a failed outcome.
        """
        borrower = self.get_loan(loan_id).borrower

        with self.locks.hold(borrower, POOL_KEY, VAULT_KEY), atomic(self.store):
            loan = self.get_loan(loan_id)
            mark_default(loan)
            written_off = outstanding_principal(loan, loan.remaining_amount)
            self.store.loans.save_loan(loan)

            seized = 0
            position = self.store.collateral.get_position(borrower)
            if position is not None and position.active and position.loan_id == loan.id:
                reserve = self.store.collateral.get_reserve(for_update=True)
                seized = seize_position(borrower, position, reserve)
                self.store.collateral.save_position(position)
                self.store.collateral.save_reserve(reserve)

            pool = self.store.pool.get_pool(for_update=True)
            record_default(pool, written_off, seized)
            self.store.pool.save_pool(pool)

            profile, history = apply_outcome(
                self.store, borrower, False, loan.total_amount, self.clock(), self.config
            )

        loan_event_counter.labels(event="defaulted").inc()
        log_loan_event("defaulted", loan.id, borrower, written_off)
        if seized:
            collateral_event_counter.labels(event="seized").inc()
            log_collateral_event("seized", borrower, seized, loan.id)
        record_pool_available(pool.available)

        return Default(
            loan=loan,
            principal_written_off=written_off,
            seized_amount=seized,
            profile=profile,
            history=history,
        )
