"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

WEI = 10**18  # fixed-point scale for currency amounts
BPS_DENOMINATOR = 10_000
SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class ExternalTransaction:
    """Top-level transaction sent by or to the scored address"""

    block: int
    timestamp: int
    from_address: str
    to_address: str
    value_wei: int
    gas_used: int
    succeeded: bool
    function_name: str  # selector or decoded name, "" for plain transfers
    contract_address: str = ""
    tx_hash: str = ""

    @property
    def is_contract_call(self) -> bool:
        return bool(self.to_address and self.function_name)


@dataclass(frozen=True)
class TokenTransfer:
    """ERC-20 / NFT transfer touching the scored address"""

    timestamp: int
    from_address: str
    to_address: str
    value: int
    token_symbol: str
    token_decimals: int
    token_contract: str
    tx_hash: str = ""


@dataclass(frozen=True)
class InternalTransaction:
    """Value transfer emitted by a contract during execution"""

    block: int
    timestamp: int
    from_address: str
    to_address: str
    value_wei: int
    succeeded: bool = True
    tx_hash: str = ""


@dataclass(frozen=True)
class ActivitySnapshot:
    """Normalized, immutable bundle of on-chain activity for one scoring run.

    `as_of` is the unix timestamp treated as "now" by every time-based
    heuristic, so rescoring the same snapshot is reproducible.
    """

    address: str
    balance_wei: int
    transactions: Tuple[ExternalTransaction, ...]
    token_transfers: Tuple[TokenTransfer, ...]
    internal_transactions: Tuple[InternalTransaction, ...]
    as_of: int

    @property
    def is_empty(self) -> bool:
        return not (self.transactions or self.token_transfers or self.internal_transactions)


@dataclass(frozen=True)
class DimensionScore:
    """Bounded sub-score for one scoring dimension with its rationale"""

    name: str
    score: int
    max_score: int
    weight_bps: int
    details: str

    def __post_init__(self) -> None:
        if not 0 <= self.score <= self.max_score:
            raise ValueError(f"{self.name} score {self.score} outside [0, {self.max_score}]")


class Tier(IntEnum):
    BRONZE = 0
    SILVER = 1
    GOLD = 2
    PLATINUM = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class TierTerms:
    """Lending terms attached to a tier"""

    tier: Tier
    min_score: int
    max_score: int
    collateral_ratio_bps: int
    credit_limit: int  # whole currency units
    interest_rate_bps: int

    @property
    def credit_limit_wei(self) -> int:
        return self.credit_limit * WEI


@dataclass(frozen=True)
class ScoreResult:
    """Output of a scoring pass"""

    address: str
    score: int
    terms: TierTerms
    dimensions: Tuple[DimensionScore, ...]

    @property
    def tier(self) -> Tier:
        return self.terms.tier

    @property
    def raw_total(self) -> int:
        return sum(d.score for d in self.dimensions)


@dataclass
class CreditProfile:
    """Stored creditworthiness of an address, mutated by loan outcomes"""

    address: str
    score: int
    tier: Tier
    collateral_ratio_bps: int
    credit_limit: int
    interest_rate_bps: int
    loans_completed: int = 0
    loans_failed: int = 0
    total_borrowed: int = 0
    total_repaid: int = 0
    report_fingerprint: str = ""
    last_updated: int = 0

    @property
    def credit_limit_wei(self) -> int:
        return self.credit_limit * WEI


@dataclass
class CreditHistory:
    """Long-lived repayment record with streak tracking"""

    address: str
    score: int
    tier: Tier
    loans_completed: int = 0
    loans_failed: int = 0
    total_borrowed: int = 0
    total_repaid: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    first_credit_date: int = 0
    last_updated: int = 0


class LoanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


@dataclass
class Loan:
    """Installment loan; amounts are wei-scaled integers"""

    borrower: str
    principal: int
    total_amount: int
    remaining_amount: int
    collateral_amount: int
    installment_amount: int
    installments_paid: int
    total_installments: int
    next_due_date: int
    interest_rate_bps: int
    created_at: int
    active: bool = True
    defaulted: bool = False
    id: Optional[int] = None

    @property
    def status(self) -> LoanStatus:
        if self.defaulted:
            return LoanStatus.DEFAULTED
        if self.active:
            return LoanStatus.ACTIVE
        return LoanStatus.COMPLETED


@dataclass(frozen=True)
class ScheduledInstallment:
    """Single payment in a repayment schedule"""

    number: int
    due_date: int
    amount: int
    status: str  # paid | due | upcoming | defaulted


@dataclass
class CollateralPosition:
    owner: str
    amount: int
    deposit_timestamp: int
    loan_id: Optional[int] = None
    yield_earned: int = 0
    active: bool = True
    id: Optional[int] = None


@dataclass
class VaultReserve:
    """Aggregate vault balances: locked collateral and yield funding"""

    total_collateral: int = 0
    yield_reserve: int = 0


@dataclass
class PoolState:
    """Aggregate lending pool accounting, all wei-scaled"""

    total_deposits: int = 0
    total_borrowed: int = 0  # outstanding principal
    total_interest_earned: int = 0
    total_seized: int = 0
    total_written_off: int = 0
    loans_issued: int = 0
    loans_repaid: int = 0
    loans_defaulted: int = 0

    @property
    def available(self) -> int:
        return (
            self.total_deposits
            + self.total_interest_earned
            + self.total_seized
            - self.total_borrowed
            - self.total_written_off
        )

    @property
    def utilization_bps(self) -> int:
        if self.total_deposits <= 0:
            return 0
        return self.total_borrowed * BPS_DENOMINATOR // self.total_deposits


@dataclass
class Purchase:
    """BNPL purchase backed by a loan"""

    buyer: str
    merchant: str
    item_name: str
    total_price: int
    installment_amount: int
    total_installments: int
    loan_id: int
    created_at: int
    paid_amount: int = 0
    installments_paid: int = 0
    completed: bool = False
    id: Optional[int] = None
