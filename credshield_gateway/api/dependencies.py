"""Dependency injection for FastAPI endpoints"""

import hmac

from fastapi import Depends, Header, Path, Request
from sqlalchemy.orm import Session

from credshield_gateway.api.v1.schemas import ADDRESS_PATTERN
from credshield_gateway.config import settings
from credshield_gateway.domain.exceptions import Unauthorized
from credshield_gateway.infrastructure.clients.chain_data import ChainDataClient
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.infrastructure.clients.report import ReportClient
from credshield_gateway.infrastructure.database.repositories import SqlAlchemyLedgerStore
from credshield_gateway.infrastructure.database.session import get_db
from credshield_gateway.services.checkout import CheckoutService
from credshield_gateway.services.collateral import CollateralService
from credshield_gateway.services.credit import CreditService
from credshield_gateway.services.lending import LendingService
from credshield_gateway.services.pool import PoolService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_chain_data_client() -> ChainDataClient:
    """Provide chain-data API client instance"""
    return ChainDataClient()


def get_report_client() -> ReportClient:
    """Provide narrative report client instance"""
    return ReportClient()


def get_ledger_client() -> LedgerClient:
    """Provide Ledger webhook client instance"""
    return LedgerClient()


def get_store(db: Session = Depends(get_db)) -> SqlAlchemyLedgerStore:
    return SqlAlchemyLedgerStore(db)


def get_credit_service(
    store: SqlAlchemyLedgerStore = Depends(get_store),
    chain_data: ChainDataClient = Depends(get_chain_data_client),
    reporter: ReportClient = Depends(get_report_client),
) -> CreditService:
    return CreditService(store, activity_source=chain_data, reporter=reporter)


def get_lending_service(store: SqlAlchemyLedgerStore = Depends(get_store)) -> LendingService:
    return LendingService(store)


def get_collateral_service(store: SqlAlchemyLedgerStore = Depends(get_store)) -> CollateralService:
    return CollateralService(store)


def get_pool_service(store: SqlAlchemyLedgerStore = Depends(get_store)) -> PoolService:
    return PoolService(store)


def get_checkout_service(store: SqlAlchemyLedgerStore = Depends(get_store)) -> CheckoutService:
    return CheckoutService(store)


def require_admin(x_admin_key: str | None = Header(None, alias="X-Admin-Key")) -> None:
    """Privileged endpoints require the configured admin key"""
    if not x_admin_key or not hmac.compare_digest(x_admin_key.encode(), settings.admin_api_key.encode()):
        raise Unauthorized("Admin key required")


def path_address(address: str = Path(..., pattern=ADDRESS_PATTERN)) -> str:
    return address.lower()
