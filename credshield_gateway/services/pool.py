"""Lending pool deposits and withdrawals"""

import logging
from typing import Tuple

from credshield_gateway.domain.models import PoolState
from credshield_gateway.domain.pool import deposit, withdraw
from credshield_gateway.domain.repositories import LedgerStore
from credshield_gateway.domain.snapshot import normalize_address
from credshield_gateway.infrastructure.observability.metrics import record_pool_available
from credshield_gateway.services.locks import POOL_KEY, KeyedLock, atomic, ledger_locks

logger = logging.getLogger(__name__)


class PoolService:
    def __init__(self, store: LedgerStore, locks: KeyedLock = ledger_locks):
        self.store = store
        self.locks = locks

    def deposit(self, lender: str, amount: int) -> Tuple[PoolState, int]:
        """Returns the pool after the deposit and the lender's new balance"""
        lender = normalize_address(lender)
        with self.locks.hold(lender, POOL_KEY), atomic(self.store):
            pool = self.store.pool.get_pool(for_update=True)
            balance = deposit(pool, self.store.pool.get_lender_balance(lender), amount)
            self.store.pool.save_pool(pool)
            self.store.pool.save_lender_balance(lender, balance)

        logger.info("Pool deposit", extra={"address": lender, "amount_wei": str(amount)})
        record_pool_available(pool.available)
        return pool, balance

    def withdraw(self, lender: str, amount: int) -> Tuple[PoolState, int]:
        lender = normalize_address(lender)
        with self.locks.hold(lender, POOL_KEY), atomic(self.store):
            pool = self.store.pool.get_pool(for_update=True)
            balance = withdraw(pool, lender, self.store.pool.get_lender_balance(lender), amount)
            self.store.pool.save_pool(pool)
            self.store.pool.save_lender_balance(lender, balance)

        logger.info("Pool withdrawal", extra={"address": lender, "amount_wei": str(amount)})
        record_pool_available(pool.available)
        return pool, balance

    def stats(self) -> PoolState:
        return self.store.pool.get_pool()

    def lender_balance(self, lender: str) -> int:
        return self.store.pool.get_lender_balance(normalize_address(lender))
