"""SQLAlchemy ORM models for the credit ledger.

Column names mirror the domain dataclass fields so repositories can copy
values across by name.
"""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, true
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

SINGLETON_ID = 1


class WeiAmount(TypeDecorator):
    """Arbitrary-precision integer stored as a decimal string (10^18-scaled amounts overflow BIGINT)"""

    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(int(value))

    def process_result_value(self, value, dialect):
        return None if value is None else int(value)


class CreditProfileRecord(Base):
    """Current score and tier terms per address"""

    __tablename__ = "credit_profile"

    address = Column(Text, primary_key=True)
    score = Column(Integer, nullable=False)
    tier = Column(Integer, nullable=False)
    collateral_ratio_bps = Column(Integer, nullable=False)
    credit_limit = Column(Integer, nullable=False)
    interest_rate_bps = Column(Integer, nullable=False)
    loans_completed = Column(Integer, nullable=False, default=0)
    loans_failed = Column(Integer, nullable=False, default=0)
    total_borrowed = Column(WeiAmount, nullable=False, default=0)
    total_repaid = Column(WeiAmount, nullable=False, default=0)
    report_fingerprint = Column(Text, nullable=False, default="")
    last_updated = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CreditHistoryRecord(Base):
    """Repayment track record with streaks"""

    __tablename__ = "credit_history"

    address = Column(Text, primary_key=True)
    score = Column(Integer, nullable=False)
    tier = Column(Integer, nullable=False)
    loans_completed = Column(Integer, nullable=False, default=0)
    loans_failed = Column(Integer, nullable=False, default=0)
    total_borrowed = Column(WeiAmount, nullable=False, default=0)
    total_repaid = Column(WeiAmount, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    first_credit_date = Column(BigInteger, nullable=False)
    last_updated = Column(BigInteger, nullable=False)


class LoanRecord(Base):
    """Installment loan"""

    __tablename__ = "loan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    borrower = Column(Text, nullable=False, index=True)
    principal = Column(WeiAmount, nullable=False)
    total_amount = Column(WeiAmount, nullable=False)
    remaining_amount = Column(WeiAmount, nullable=False)
    collateral_amount = Column(WeiAmount, nullable=False)
    installment_amount = Column(WeiAmount, nullable=False)
    installments_paid = Column(Integer, nullable=False, default=0)
    total_installments = Column(Integer, nullable=False)
    next_due_date = Column(BigInteger, nullable=False)
    interest_rate_bps = Column(Integer, nullable=False)
    created_at = Column(BigInteger, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    defaulted = Column(Boolean, nullable=False, default=False)

    # At most one active loan per borrower, enforced across processes
    __table_args__ = (
        Index(
            "uq_loan_active_borrower",
            "borrower",
            unique=True,
            postgresql_where=active == true(),
            sqlite_where=active == true(),
        ),
    )


class CollateralPositionRecord(Base):
    """Collateral locked against a loan"""

    __tablename__ = "collateral_position"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner = Column(Text, nullable=False, index=True)
    amount = Column(WeiAmount, nullable=False)
    yield_earned = Column(WeiAmount, nullable=False, default=0)
    deposit_timestamp = Column(BigInteger, nullable=False)
    loan_id = Column(Integer, ForeignKey("loan.id"), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index(
            "uq_collateral_active_owner",
            "owner",
            unique=True,
            postgresql_where=active == true(),
            sqlite_where=active == true(),
        ),
    )


class VaultReserveRecord(Base):
    """Single-row vault aggregates"""

    __tablename__ = "vault_reserve"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    total_collateral = Column(WeiAmount, nullable=False, default=0)
    yield_reserve = Column(WeiAmount, nullable=False, default=0)


class LendingPoolRecord(Base):
    """Single-row pool aggregates"""

    __tablename__ = "lending_pool"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    total_deposits = Column(WeiAmount, nullable=False, default=0)
    total_borrowed = Column(WeiAmount, nullable=False, default=0)
    total_interest_earned = Column(WeiAmount, nullable=False, default=0)
    total_seized = Column(WeiAmount, nullable=False, default=0)
    total_written_off = Column(WeiAmount, nullable=False, default=0)
    loans_issued = Column(Integer, nullable=False, default=0)
    loans_repaid = Column(Integer, nullable=False, default=0)
    loans_defaulted = Column(Integer, nullable=False, default=0)


class LenderDepositRecord(Base):
    __tablename__ = "lender_deposit"

    lender = Column(Text, primary_key=True)
    balance = Column(WeiAmount, nullable=False, default=0)


class PurchaseRecord(Base):
    """BNPL purchase backed by a loan"""

    __tablename__ = "bnpl_purchase"

    id = Column(Integer, primary_key=True, autoincrement=True)
    buyer = Column(Text, nullable=False, index=True)
    merchant = Column(Text, nullable=False, index=True)
    item_name = Column(Text, nullable=False)
    total_price = Column(WeiAmount, nullable=False)
    installment_amount = Column(WeiAmount, nullable=False)
    total_installments = Column(Integer, nullable=False)
    loan_id = Column(Integer, ForeignKey("loan.id"), nullable=False, unique=True)
    created_at = Column(BigInteger, nullable=False)
    paid_amount = Column(WeiAmount, nullable=False, default=0)
    installments_paid = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
