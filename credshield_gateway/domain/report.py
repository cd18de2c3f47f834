"""Deterministic credit report text and its fingerprint"""

import hashlib
from typing import Sequence

from credshield_gateway.domain.models import WEI, ActivitySnapshot, DimensionScore, Tier


def _short(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}" if len(address) > 10 else address


def _strongest(dimensions: Sequence[DimensionScore]) -> DimensionScore:
    # Cross-multiplied ratio comparison; first dimension wins ties
    best = dimensions[0]
    for d in dimensions[1:]:
        if d.score * best.max_score > best.score * d.max_score:
            best = d
    return best


def _weakest(dimensions: Sequence[DimensionScore]) -> DimensionScore:
    worst = dimensions[0]
    for d in dimensions[1:]:
        if d.score * worst.max_score < worst.score * d.max_score:
            worst = d
    return worst


def build_fallback_report(
    address: str,
    score: int,
    tier: Tier,
    dimensions: Sequence[DimensionScore],
    snapshot: ActivitySnapshot,
) -> str:
    """Plain-text analysis built only from dimension data and snapshot counts"""
    balance = f"{snapshot.balance_wei // WEI}.{(snapshot.balance_wei % WEI) * 10_000 // WEI:04d}"
    lines = [
        f"CredShield Credit Analysis - {tier.label} Tier",
        "",
        (
            f"Wallet {_short(address)} has achieved a CredScore of {score}/900, placing it in the "
            f"{tier.label} tier. This score is based on analysis of {len(snapshot.transactions)} "
            f"on-chain transactions and a current balance of {balance}."
        ),
    ]

    if dimensions:
        strongest = _strongest(dimensions)
        weakest = _weakest(dimensions)
        lines += [
            "",
            (
                f"The strongest dimension is {strongest.name} ({strongest.score}/{strongest.max_score}): "
                f"{strongest.details}."
            ),
            "",
            (
                f"The primary area for improvement is {weakest.name} ({weakest.score}/{weakest.max_score}). "
                "Increasing activity in this area would raise the CredScore and unlock better lending terms."
            ),
            "",
            "Score breakdown:",
        ]
        lines += [f"- {d.name}: {d.score}/{d.max_score}" for d in dimensions]

    lines += [
        "",
        (
            f"Based on the {tier.label} tier classification, this wallet qualifies for credit with the "
            "corresponding collateral requirement, credit limit and interest rate."
        ),
    ]
    return "\n".join(lines)


def report_fingerprint(report: str) -> str:
    """0x-prefixed SHA-256 of the report text, stored alongside the score"""
    return "0x" + hashlib.sha256(report.encode("utf-8")).hexdigest()
