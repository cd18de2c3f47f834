"""BNPL checkout: a merchant purchase financed by an installment loan"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from credshield_gateway.config import Settings, settings
from credshield_gateway.domain.exceptions import PurchaseNotFound
from credshield_gateway.domain.lending import validate_loan_request
from credshield_gateway.domain.models import CollateralPosition, Loan, Purchase
from credshield_gateway.domain.purchases import open_purchase
from credshield_gateway.domain.repositories import LedgerStore
from credshield_gateway.domain.snapshot import normalize_address
from credshield_gateway.infrastructure.observability.logging import log_loan_event
from credshield_gateway.infrastructure.observability.metrics import loan_event_counter
from credshield_gateway.services.lending import LendingService
from credshield_gateway.services.locks import POOL_KEY, VAULT_KEY, atomic
from credshield_gateway.utils.date_utils import utc_now_ts


@dataclass(frozen=True)
class Checkout:
    purchase: Purchase
    loan: Loan
    collateral: Optional[CollateralPosition]


class CheckoutService:
    def __init__(
        self,
        store: LedgerStore,
        lending: Optional[LendingService] = None,
        clock: Callable[[], int] = utc_now_ts,
        config: Settings = settings,
    ):
        self.store = store
        self.lending = lending or LendingService(store, clock=clock, config=config)
        self.clock = clock
        self.config = config

    def checkout(
        self, buyer: str, merchant: str, item_name: str, total_price: int, num_installments: int
    ) -> Checkout:
        """Open the financing loan and the purchase record in one transaction"""
        validate_loan_request(
            total_price,
            num_installments,
            self.config.bnpl_min_installments,
            self.config.bnpl_max_installments,
        )
        buyer = normalize_address(buyer)
        merchant = normalize_address(merchant)
        now = self.clock()

        with self.lending.locks.hold(buyer, POOL_KEY, VAULT_KEY), atomic(self.store):
            loan, position = self.lending.open_locked(buyer, total_price, num_installments, now)
            purchase = open_purchase(buyer, merchant, item_name, total_price, num_installments, loan.id, now)
            self.store.purchases.save_purchase(purchase)

        loan_event_counter.labels(event="created").inc()
        log_loan_event("created", loan.id, buyer, total_price)
        return Checkout(purchase=purchase, loan=loan, collateral=position)

    def get_purchase(self, purchase_id: int) -> Purchase:
        purchase = self.store.purchases.get_purchase(purchase_id)
        if purchase is None:
            raise PurchaseNotFound(purchase_id)
        return purchase

    def list_for_buyer(self, buyer: str) -> List[Purchase]:
        return self.store.purchases.list_by_buyer(normalize_address(buyer))

    def list_for_merchant(self, merchant: str) -> List[Purchase]:
        return self.store.purchases.list_by_merchant(normalize_address(merchant))

    def stats(self) -> Tuple[int, int]:
        """(total volume, purchase count)"""
        return self.store.purchases.stats()
