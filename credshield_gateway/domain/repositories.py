"""Persistence contracts consumed by the service layer.

Implementations live in infrastructure/database; tests may supply their own.
`for_update=True` asks the store to lock the row until commit/rollback.
"""

from typing import List, Optional, Protocol, Tuple

from credshield_gateway.domain.models import (
    CollateralPosition,
    CreditHistory,
    CreditProfile,
    Loan,
    PoolState,
    Purchase,
    VaultReserve,
)


class ProfileRepository(Protocol):
    def get_profile(self, address: str) -> Optional[CreditProfile]: ...

    def save_profile(self, profile: CreditProfile) -> CreditProfile: ...

    def get_history(self, address: str) -> Optional[CreditHistory]: ...

    def save_history(self, history: CreditHistory) -> CreditHistory: ...


class LoanRepository(Protocol):
    def get_loan(self, loan_id: int) -> Optional[Loan]: ...

    def get_active_loan(self, borrower: str) -> Optional[Loan]: ...

    def list_loans(self, borrower: str) -> List[Loan]: ...

    def save_loan(self, loan: Loan) -> Loan:
        """Insert or update; assigns `id` on first save"""
        ...


class CollateralRepository(Protocol):
    def get_position(self, owner: str) -> Optional[CollateralPosition]:
        """Most recent position for the owner, active or not"""
        ...

    def save_position(self, position: CollateralPosition) -> CollateralPosition: ...

    def get_reserve(self, for_update: bool = False) -> VaultReserve: ...

    def save_reserve(self, reserve: VaultReserve) -> None: ...


class PoolRepository(Protocol):
    def get_pool(self, for_update: bool = False) -> PoolState: ...

    def save_pool(self, pool: PoolState) -> None: ...

    def get_lender_balance(self, lender: str) -> int: ...

    def save_lender_balance(self, lender: str, balance: int) -> None: ...


class PurchaseRepository(Protocol):
    def get_purchase(self, purchase_id: int) -> Optional[Purchase]: ...

    def get_purchase_for_loan(self, loan_id: int) -> Optional[Purchase]: ...

    def list_by_buyer(self, buyer: str) -> List[Purchase]: ...

    def list_by_merchant(self, merchant: str) -> List[Purchase]: ...

    def save_purchase(self, purchase: Purchase) -> Purchase: ...

    def stats(self) -> Tuple[int, int]:
        """(total purchase volume, purchase count)"""
        ...


class LedgerStore(Protocol):
    """All repositories sharing one transaction"""

    profiles: ProfileRepository
    loans: LoanRepository
    collateral: CollateralRepository
    pool: PoolRepository
    purchases: PurchaseRepository

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
