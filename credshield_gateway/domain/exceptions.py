"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class DataUnavailable(DomainException):
    """Chain-data provider failed or returned malformed activity"""

    def __init__(self, address: str, reason: str):
        super().__init__(f"Activity data unavailable for {address}: {reason}")
        self.address = address
        self.reason = reason


class ReportGenerationError(DomainException):
    """Narrative report provider failed"""

    pass


class LedgerDeliveryError(DomainException):
    """External ledger rejected or never acknowledged an event"""

    pass


class InvalidScoreRange(DomainException):
    """Manually set score falls outside 300-900"""

    def __init__(self, score: int):
        super().__init__(f"Score must be 300-900, got {score}")
        self.score = score


class Unauthorized(DomainException):
    """Caller is not allowed to run a privileged operation"""

    pass


class ProfileNotFound(DomainException):
    """Address has never been scored"""

    def __init__(self, address: str):
        super().__init__(f"No credit profile for {address}")
        self.address = address


class InvalidAmount(DomainException):
    """Amount is zero, negative or otherwise unusable"""

    pass


class InvalidLoanRequest(InvalidAmount):
    """Loan parameters are malformed (amount, installment count)"""

    pass


class InsufficientLiquidity(DomainException):
    """Pool cannot fund the requested amount"""

    def __init__(self, requested: int, available: int):
        super().__init__(f"Insufficient pool liquidity: requested {requested}, available {available}")
        self.requested = requested
        self.available = available


class ActiveLoanExists(DomainException):
    """Borrower already has an active loan"""

    def __init__(self, borrower: str, loan_id: int | None = None):
        super().__init__(f"{borrower} already has active loan {loan_id}")
        self.borrower = borrower
        self.loan_id = loan_id


class CreditLimitExceeded(DomainException):
    """Requested principal is above the tier credit limit"""

    def __init__(self, requested: int, limit: int):
        super().__init__(f"Requested {requested} exceeds credit limit {limit}")
        self.requested = requested
        self.limit = limit


class LoanNotFound(DomainException):
    def __init__(self, loan_id: int):
        super().__init__(f"Loan {loan_id} not found")
        self.loan_id = loan_id


class LoanNotActive(DomainException):
    def __init__(self, loan_id: int):
        super().__init__(f"Loan {loan_id} is not active")
        self.loan_id = loan_id


class NotBorrower(DomainException):
    def __init__(self, loan_id: int, caller: str):
        super().__init__(f"{caller} is not the borrower of loan {loan_id}")
        self.loan_id = loan_id
        self.caller = caller


class AlreadyHasCollateral(DomainException):
    def __init__(self, owner: str):
        super().__init__(f"{owner} already has an active collateral position")
        self.owner = owner


class NoActiveCollateral(DomainException):
    def __init__(self, owner: str):
        super().__init__(f"{owner} has no active collateral position")
        self.owner = owner


class CollateralLocked(DomainException):
    """Collateral backs a loan that is still active"""

    def __init__(self, owner: str, loan_id: int):
        super().__init__(f"Collateral of {owner} is locked by active loan {loan_id}")
        self.owner = owner
        self.loan_id = loan_id


class InsufficientYieldReserve(DomainException):
    """Vault reserve cannot cover accrued yield on withdrawal"""

    def __init__(self, required: int, available: int):
        super().__init__(f"Yield reserve short: required {required}, available {available}")
        self.required = required
        self.available = available


class InsufficientLenderBalance(DomainException):
    def __init__(self, lender: str, requested: int, balance: int):
        super().__init__(f"{lender} requested {requested} but has {balance} deposited")
        self.lender = lender
        self.requested = requested
        self.balance = balance


class PurchaseNotFound(DomainException):
    def __init__(self, purchase_id: int):
        super().__init__(f"Purchase {purchase_id} not found")
        self.purchase_id = purchase_id


class PurchaseCompleted(DomainException):
    def __init__(self, purchase_id: int):
        super().__init__(f"Purchase {purchase_id} already completed")
        self.purchase_id = purchase_id


class BatchTooLarge(DomainException):
    def __init__(self, count: int, limit: int):
        super().__init__(f"Batch of {count} addresses exceeds limit of {limit}")
        self.count = count
        self.limit = limit
