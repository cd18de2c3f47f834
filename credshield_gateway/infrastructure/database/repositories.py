"""Data access layer for credit ledger entities.

Repositories translate between ORM rows and domain dataclasses. They flush
but never commit; SqlAlchemyLedgerStore owns the transaction.
"""

from dataclasses import fields
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from credshield_gateway.domain.exceptions import ActiveLoanExists, AlreadyHasCollateral
from credshield_gateway.domain.models import (
    CollateralPosition,
    CreditHistory,
    CreditProfile,
    Loan,
    PoolState,
    Purchase,
    Tier,
    VaultReserve,
)
from credshield_gateway.infrastructure.database.models import (
    SINGLETON_ID,
    CollateralPositionRecord,
    CreditHistoryRecord,
    CreditProfileRecord,
    LenderDepositRecord,
    LendingPoolRecord,
    LoanRecord,
    PurchaseRecord,
    VaultReserveRecord,
)


def _to_domain(row, cls):
    return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})


def _copy_into(entity, row) -> None:
    for f in fields(entity):
        if f.name != "id":
            value = getattr(entity, f.name)
            setattr(row, f.name, int(value) if isinstance(value, Tier) else value)


class ProfileRepository:
    """Repository for credit profiles and histories"""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, address: str) -> Optional[CreditProfile]:
        row = self.db.get(CreditProfileRecord, address)
        if row is None:
            return None
        profile = _to_domain(row, CreditProfile)
        profile.tier = Tier(row.tier)
        return profile

    def save_profile(self, profile: CreditProfile) -> CreditProfile:
        row = self.db.get(CreditProfileRecord, profile.address)
        if row is None:
            row = CreditProfileRecord(address=profile.address)
            self.db.add(row)
        _copy_into(profile, row)
        self.db.flush()
        return profile

    def get_history(self, address: str) -> Optional[CreditHistory]:
        row = self.db.get(CreditHistoryRecord, address)
        if row is None:
            return None
        history = _to_domain(row, CreditHistory)
        history.tier = Tier(row.tier)
        return history

    def save_history(self, history: CreditHistory) -> CreditHistory:
        row = self.db.get(CreditHistoryRecord, history.address)
        if row is None:
            row = CreditHistoryRecord(address=history.address)
            self.db.add(row)
        _copy_into(history, row)
        self.db.flush()
        return history


class LoanRepository:
    """Repository for installment loans"""

    def __init__(self, db: Session):
        self.db = db

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        row = self.db.get(LoanRecord, loan_id)
        return _to_domain(row, Loan) if row is not None else None

    def get_active_loan(self, borrower: str) -> Optional[Loan]:
        row = (
            self.db.query(LoanRecord)
            .filter(LoanRecord.borrower == borrower, LoanRecord.active.is_(True))
            .first()
        )
        return _to_domain(row, Loan) if row is not None else None

    def list_loans(self, borrower: str) -> List[Loan]:
        rows = (
            self.db.query(LoanRecord)
            .filter(LoanRecord.borrower == borrower)
            .order_by(LoanRecord.id.desc())
            .all()
        )
        return [_to_domain(row, Loan) for row in rows]

    def save_loan(self, loan: Loan) -> Loan:
        """Insert or update; a second active loan trips the partial unique index"""
        row = self.db.get(LoanRecord, loan.id) if loan.id is not None else None
        if row is None:
            row = LoanRecord()
            self.db.add(row)
        _copy_into(loan, row)
        try:
            self.db.flush()  # Get ID without committing
        except IntegrityError as exc:
            raise ActiveLoanExists(loan.borrower) from exc
        loan.id = row.id
        return loan


class CollateralRepository:
    """Repository for collateral positions and the vault reserve row"""

    def __init__(self, db: Session):
        self.db = db

    def get_position(self, owner: str) -> Optional[CollateralPosition]:
        row = (
            self.db.query(CollateralPositionRecord)
            .filter(CollateralPositionRecord.owner == owner)
            .order_by(CollateralPositionRecord.id.desc())
            .first()
        )
        return _to_domain(row, CollateralPosition) if row is not None else None

    def save_position(self, position: CollateralPosition) -> CollateralPosition:
        row = self.db.get(CollateralPositionRecord, position.id) if position.id is not None else None
        if row is None:
            row = CollateralPositionRecord()
            self.db.add(row)
        _copy_into(position, row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise AlreadyHasCollateral(position.owner) from exc
        position.id = row.id
        return position

    def _reserve_row(self, for_update: bool) -> VaultReserveRecord:
        query = self.db.query(VaultReserveRecord).filter(VaultReserveRecord.id == SINGLETON_ID)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            row = VaultReserveRecord(id=SINGLETON_ID, total_collateral=0, yield_reserve=0)
            self.db.add(row)
            self.db.flush()
        return row

    def get_reserve(self, for_update: bool = False) -> VaultReserve:
        return _to_domain(self._reserve_row(for_update), VaultReserve)

    def save_reserve(self, reserve: VaultReserve) -> None:
        _copy_into(reserve, self._reserve_row(for_update=False))
        self.db.flush()


class PoolRepository:
    """Repository for the lending pool row and lender balances"""

    def __init__(self, db: Session):
        self.db = db

    def _pool_row(self, for_update: bool) -> LendingPoolRecord:
        query = self.db.query(LendingPoolRecord).filter(LendingPoolRecord.id == SINGLETON_ID)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            row = LendingPoolRecord(id=SINGLETON_ID, **{f.name: 0 for f in fields(PoolState)})
            self.db.add(row)
            self.db.flush()
        return row

    def get_pool(self, for_update: bool = False) -> PoolState:
        return _to_domain(self._pool_row(for_update), PoolState)

    def save_pool(self, pool: PoolState) -> None:
        _copy_into(pool, self._pool_row(for_update=False))
        self.db.flush()

    def get_lender_balance(self, lender: str) -> int:
        row = self.db.get(LenderDepositRecord, lender)
        return row.balance if row is not None else 0

    def save_lender_balance(self, lender: str, balance: int) -> None:
        row = self.db.get(LenderDepositRecord, lender)
        if row is None:
            row = LenderDepositRecord(lender=lender)
            self.db.add(row)
        row.balance = balance
        self.db.flush()


class PurchaseRepository:
    """Repository for BNPL purchases"""

    def __init__(self, db: Session):
        self.db = db

    def get_purchase(self, purchase_id: int) -> Optional[Purchase]:
        row = self.db.get(PurchaseRecord, purchase_id)
        return _to_domain(row, Purchase) if row is not None else None

    def get_purchase_for_loan(self, loan_id: int) -> Optional[Purchase]:
        row = self.db.query(PurchaseRecord).filter(PurchaseRecord.loan_id == loan_id).first()
        return _to_domain(row, Purchase) if row is not None else None

    def list_by_buyer(self, buyer: str) -> List[Purchase]:
        rows = (
            self.db.query(PurchaseRecord)
            .filter(PurchaseRecord.buyer == buyer)
            .order_by(PurchaseRecord.id.desc())
            .all()
        )
        return [_to_domain(row, Purchase) for row in rows]

    def list_by_merchant(self, merchant: str) -> List[Purchase]:
        rows = (
            self.db.query(PurchaseRecord)
            .filter(PurchaseRecord.merchant == merchant)
            .order_by(PurchaseRecord.id.desc())
            .all()
        )
        return [_to_domain(row, Purchase) for row in rows]

    def save_purchase(self, purchase: Purchase) -> Purchase:
        row = self.db.get(PurchaseRecord, purchase.id) if purchase.id is not None else None
        if row is None:
            row = PurchaseRecord()
            self.db.add(row)
        _copy_into(purchase, row)
        self.db.flush()
        purchase.id = row.id
        return purchase

    def stats(self) -> Tuple[int, int]:
        # Amounts are stored as strings, so volume is summed in Python
        prices = [price for (price,) in self.db.query(PurchaseRecord.total_price).all()]
        return sum(prices), len(prices)


class SqlAlchemyLedgerStore:
    """All repositories bound to one Session; commit/rollback span every write"""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.loans = LoanRepository(db)
        self.collateral = CollateralRepository(db)
        self.pool = PoolRepository(db)
        self.purchases = PurchaseRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
