"""Narrative credit report client for an OpenAI-compatible chat completions API"""

from typing import Sequence

import httpx

from credshield_gateway.config import settings
from credshield_gateway.domain.exceptions import ReportGenerationError
from credshield_gateway.domain.models import WEI, ActivitySnapshot, DimensionScore, Tier

MAX_TOKENS = 500


def build_prompt(
    address: str,
    score: int,
    tier: Tier,
    dimensions: Sequence[DimensionScore],
    snapshot: ActivitySnapshot,
) -> str:
    balance = f"{snapshot.balance_wei // WEI}.{(snapshot.balance_wei % WEI) * 10_000 // WEI:04d}"
    token_count = len({t.token_symbol for t in snapshot.token_transfers})
    breakdown = "\n".join(
        f"- {d.name}: {d.score}/{d.max_score} (weight: {d.weight_bps // 100}%) - {d.details}" for d in dimensions
    )
    return (
        "You are a credit analyst. Generate a concise, professional credit report for an on-chain wallet.\n\n"
        f"Wallet: {address}\n"
        f"CredScore: {score}/900\n"
        f"Tier: {tier.label}\n"
        f"Native balance: {balance}\n"
        f"Total transactions: {len(snapshot.transactions)}\n"
        f"Unique tokens: {token_count}\n\n"
        f"Dimension breakdown:\n{breakdown}\n\n"
        "Write a 3-4 paragraph credit analysis that opens with the overall assessment, highlights the "
        "strongest dimensions, notes areas for improvement, and concludes with a lending recommendation "
        "for the tier. Reference actual numbers. Keep it under 250 words."
    )


class ReportClient:
    """Client for the narrative report model"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.report_api_base
        self.api_key = api_key if api_key is not None else settings.report_api_key
        self.model = model or settings.report_model
        self.timeout = timeout or settings.report_timeout_seconds
        self.transport = transport

    async def generate_report(
        self,
        address: str,
        score: int,
        tier: Tier,
        dimensions: Sequence[DimensionScore],
        snapshot: ActivitySnapshot,
    ) -> str:
        """
        Ask the model for a narrative report.

        Raises:
            ReportGenerationError: When no API key is configured, on HTTP
                errors or timeouts, or when the reply has no content
        """
        if not self.api_key:
            raise ReportGenerationError("Report API key not configured")

        payload = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": build_prompt(address, score, tier, dimensions, snapshot)}],
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
            except httpx.TimeoutException as e:
                raise ReportGenerationError(f"Report API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ReportGenerationError(f"Report API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ReportGenerationError(f"Report API request failed: {e}") from e
            except (KeyError, IndexError, TypeError, ValueError) as e:
                raise ReportGenerationError(f"Invalid report response: {e}") from e

        if not content or not str(content).strip():
            raise ReportGenerationError("Report API returned empty content")
        return str(content).strip()
