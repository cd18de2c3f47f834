"""Ledger webhook client with exponential backoff retry logic.

Amounts cross this boundary as integers scaled by 10^18 (sent as decimal
strings to survive JSON number precision), addresses as 0x-prefixed
lowercase hex, rates and ratios in basis points.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from credshield_gateway.config import settings
from credshield_gateway.domain.exceptions import LedgerDeliveryError
from credshield_gateway.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram

logger = logging.getLogger(__name__)


class LedgerClient:
    """Client for sending webhook events to the external ledger"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.ledger_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.transport = transport

    async def persist_score(self, address: str, score: int, report_fingerprint: str) -> None:
        await self.send_event(
            {
                "event": "SCORE_SET",
                "address": address,
                "score": score,
                "report_fingerprint": report_fingerprint,
            }
        )

    async def persist_loan_outcome(self, address: str, success: bool, amount_wei: int, loan_id: Optional[int] = None) -> None:
        await self.send_event(
            {
                "event": "LOAN_OUTCOME",
                "address": address,
                "loan_id": loan_id,
                "success": success,
                "amount_wei": str(amount_wei),
            }
        )

    async def persist_collateral_op(
        self, operation: str, owner: str, amount_wei: int, loan_id: Optional[int] = None
    ) -> None:
        await self.send_event(
            {
                "event": "COLLATERAL_OP",
                "operation": operation,  # deposit | withdraw | seize
                "address": owner,
                "loan_id": loan_id,
                "amount_wei": str(amount_wei),
            }
        )

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Send an event to the ledger with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s, 16s (base * 2^attempt)
        - Retries on 5xx/4xx errors and network failures
        - Tracks latency histogram and failure counter

        Raises:
            LedgerDeliveryError: After the final failed attempt
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=10.0,
                        )
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.error(
                            f"Ledger delivery failed after {attempt} attempts: {e}",
                            extra={"step": "ledger_delivery", "event": payload.get("event")},
                        )
                        raise LedgerDeliveryError(f"{payload.get('event')} not delivered: {e}") from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
