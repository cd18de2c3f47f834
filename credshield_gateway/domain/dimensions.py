"""Dimension scorers - six independent heuristics over an ActivitySnapshot.

Every scorer is a pure function of (snapshot, registry). All arithmetic is
integer: a component worth `points` at a `target` value scores
floor(value / target * points), capped at `points`.

Maxima sum to 900:
- Wallet Maturity       180  (20%)
- DeFi Experience       225  (25%)
- Transaction Quality   180  (20%)
- Asset Health          135  (15%)
- Repayment History     135  (15%)
- Social Verification    45   (5%)
"""

from collections import Counter
from typing import Callable, Dict, List, Tuple

from credshield_gateway.domain.models import WEI, ActivitySnapshot, DimensionScore
from credshield_gateway.domain.protocols import ProtocolCategory, ProtocolRegistry
from credshield_gateway.utils.date_utils import SECONDS_PER_MONTH, calendar_month

DimensionScorer = Callable[[ActivitySnapshot, ProtocolRegistry], DimensionScore]

WALLET_MATURITY = "Wallet Maturity"
DEFI_EXPERIENCE = "DeFi Experience"
TRANSACTION_QUALITY = "Transaction Quality"
ASSET_HEALTH = "Asset Health"
REPAYMENT_HISTORY = "Repayment History"
SOCIAL_VERIFICATION = "Social Verification"

# name -> (max score, weight in bps)
DIMENSION_LIMITS: Dict[str, Tuple[int, int]] = {
    WALLET_MATURITY: (180, 2000),
    DEFI_EXPERIENCE: (225, 2500),
    TRANSACTION_QUALITY: (180, 2000),
    ASSET_HEALTH: (135, 1500),
    REPAYMENT_HISTORY: (135, 1500),
    SOCIAL_VERIFICATION: (45, 500),
}

GOVERNANCE_VOCABULARY = ("vote", "delegate", "propose")
BRIDGE_VOCABULARY = ("bridge", "relay", "swap")
RECURRING_PARTNER_MIN_TRANSFERS = 3


def _scaled_points(value: int, target: int, points: int) -> int:
    """min(points, floor(value / target * points)); non-positive inputs score 0"""
    if value <= 0 or target <= 0:
        return 0
    return min(points, value * points // target)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _result(name: str, raw: int, details: List[str]) -> DimensionScore:
    max_score, weight_bps = DIMENSION_LIMITS[name]
    return DimensionScore(
        name=name,
        score=_clamp(raw, 0, max_score),
        max_score=max_score,
        weight_bps=weight_bps,
        details="; ".join(details),
    )


def _percent(part: int, whole: int) -> int:
    return part * 100 // whole if whole > 0 else 0


def _format_native(balance_wei: int) -> str:
    return f"{balance_wei // WEI}.{(balance_wei % WEI) * 10_000 // WEI:04d}"


def score_wallet_maturity(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """Age of the wallet, month-over-month consistency, and raw volume"""
    if not snapshot.transactions:
        return _result(WALLET_MATURITY, 0, ["No transaction history found."])

    details = []
    timestamps = [tx.timestamp for tx in snapshot.transactions]
    age_seconds = max(0, snapshot.as_of - min(timestamps))

    # Age: full 60 points at 24 months
    age_score = _scaled_points(age_seconds, 24 * SECONDS_PER_MONTH, 60)
    details.append(f"Wallet age: {age_seconds // SECONDS_PER_MONTH} months ({age_score}/60)")

    # Consistency: distinct active calendar months / max(1, age in months)
    active_months = len({calendar_month(ts) for ts in timestamps})
    consistency_score = _scaled_points(
        active_months * SECONDS_PER_MONTH, max(SECONDS_PER_MONTH, age_seconds), 60
    )
    total_months = max(1, age_seconds // SECONDS_PER_MONTH)
    details.append(f"Active {active_months}/{total_months} months ({consistency_score}/60)")

    # Volume: full 60 points at 200 transactions
    tx_count = len(snapshot.transactions)
    volume_score = _scaled_points(tx_count, 200, 60)
    details.append(f"{tx_count} transactions ({volume_score}/60)")

    return _result(WALLET_MATURITY, age_score + consistency_score + volume_score, details)


def score_defi_experience(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """Breadth and depth of known-protocol usage plus category bonuses"""
    details = []
    destinations = [tx.to_address for tx in snapshot.transactions] + [
        itx.to_address for itx in snapshot.internal_transactions
    ]
    interactions = Counter(to for to in destinations if registry.is_known(to))

    unique_protocols = len(interactions)
    protocol_score = _scaled_points(unique_protocols, 5, 75)
    names = ", ".join(registry.name_of(addr) for addr in list(interactions)[:5]) or "none"
    details.append(f"{unique_protocols} DeFi protocols used: {names} ({protocol_score}/75)")

    total_interactions = sum(interactions.values())
    interaction_score = _scaled_points(total_interactions, 50, 75)
    details.append(f"{total_interactions} total DeFi interactions ({interaction_score}/75)")

    diversity_score = 0
    bonuses = (
        (ProtocolCategory.LENDING, "Lending activity detected (+25)"),
        (ProtocolCategory.DEX, "LP/DEX activity detected (+25)"),
        (ProtocolCategory.STAKING, "Staking activity detected (+25)"),
    )
    for category, label in bonuses:
        if any(registry.has_category(addr, category) for addr in interactions):
            diversity_score += 25
            details.append(label)

    return _result(DEFI_EXPERIENCE, protocol_score + interaction_score + diversity_score, details)


def score_transaction_quality(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """Success rate, audited-protocol share, and contract diversity"""
    if not snapshot.transactions:
        return _result(TRANSACTION_QUALITY, 0, ["No transactions."])

    details = []
    total = len(snapshot.transactions)
    succeeded = sum(1 for tx in snapshot.transactions if tx.succeeded)
    success_score = _scaled_points(succeeded, total, 60)
    details.append(f"{_percent(succeeded, total)}% success rate ({success_score}/60)")

    contract_calls = [tx for tx in snapshot.transactions if tx.is_contract_call]
    audited = sum(1 for tx in contract_calls if registry.is_audited(tx.to_address))
    audited_score = _scaled_points(audited, len(contract_calls), 60)
    details.append(
        f"{_percent(audited, len(contract_calls))}% interactions with audited protocols ({audited_score}/60)"
    )

    unique_contracts = len({tx.to_address for tx in contract_calls})
    diversity_score = _scaled_points(unique_contracts, 20, 60)
    details.append(f"{unique_contracts} unique contracts interacted with ({diversity_score}/60)")

    return _result(TRANSACTION_QUALITY, success_score + audited_score + diversity_score, details)


def score_asset_health(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """Native balance, token diversity, stablecoin and blue-chip exposure"""
    details = []

    balance_score = _scaled_points(snapshot.balance_wei, 5 * WEI, 45)
    details.append(f"{_format_native(snapshot.balance_wei)} native balance ({balance_score}/45)")

    token_contracts = {t.token_contract for t in snapshot.token_transfers if t.token_contract}
    diversity_score = _scaled_points(len(token_contracts), 10, 45)
    details.append(f"{len(token_contracts)} unique tokens held/transferred ({diversity_score}/45)")

    blue_chips = {c for c in token_contracts if registry.is_blue_chip(c)}
    quality_score = 0
    if any(registry.is_stablecoin(c) for c in token_contracts):
        quality_score += 20
        details.append("Stablecoin holdings detected (+20)")
    if len(blue_chips) >= 2:
        quality_score += 15
        details.append("Blue-chip diversification (+15)")
    if len(blue_chips) >= 4:
        quality_score += 10
        details.append("Excellent diversification (+10)")

    return _result(ASSET_HEALTH, balance_score + diversity_score + quality_score, details)


def score_repayment_history(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """Proxy signals: lending-protocol usage and recurring payment partners"""
    details = []

    lending_txs = sum(
        1 for tx in snapshot.transactions if registry.has_category(tx.to_address, ProtocolCategory.LENDING)
    )
    lending_score = _scaled_points(lending_txs, 20, 67)
    if lending_txs:
        details.append(f"{lending_txs} lending protocol interactions ({lending_score}/67)")
    else:
        details.append("No lending protocol history found (0/67)")

    outflows = Counter(
        tx.to_address
        for tx in snapshot.transactions
        if tx.from_address == snapshot.address and tx.to_address
    )
    recurring = sum(1 for count in outflows.values() if count >= RECURRING_PARTNER_MIN_TRANSFERS)
    partner_score = _scaled_points(recurring, 5, 68)
    details.append(f"{recurring} recurring transaction partners ({partner_score}/68)")

    return _result(REPAYMENT_HISTORY, lending_score + partner_score, details)


def _matches(function_name: str, vocabulary: Tuple[str, ...]) -> bool:
    lowered = function_name.lower()
    return any(word in lowered for word in vocabulary)


def score_social_verification(snapshot: ActivitySnapshot, registry: ProtocolRegistry) -> DimensionScore:
    """NFT/domain ownership, governance participation, cross-chain activity"""
    details = []
    raw = 0

    if any(t.token_decimals == 0 for t in snapshot.token_transfers):
        raw += 15
        details.append("NFT/domain activity detected (+15)")
    if any(_matches(tx.function_name, GOVERNANCE_VOCABULARY) for tx in snapshot.transactions):
        raw += 15
        details.append("Governance participation detected (+15)")
    if any(_matches(tx.function_name, BRIDGE_VOCABULARY) for tx in snapshot.transactions):
        raw += 15
        details.append("Cross-chain/bridge activity detected (+15)")

    if raw == 0:
        details.append("No social verification signals found")

    return _result(SOCIAL_VERIFICATION, raw, details)


DIMENSION_SCORERS: Tuple[DimensionScorer, ...] = (
    score_wallet_maturity,
    score_defi_experience,
    score_transaction_quality,
    score_asset_health,
    score_repayment_history,
    score_social_verification,
)
