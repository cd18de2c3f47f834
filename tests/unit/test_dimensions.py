"""Unit tests for the six dimension scorers"""

from credshield_gateway.domain.dimensions import (
    DIMENSION_LIMITS,
    DIMENSION_SCORERS,
    score_asset_health,
    score_defi_experience,
    score_repayment_history,
    score_social_verification,
    score_transaction_quality,
    score_wallet_maturity,
)
from credshield_gateway.domain.models import SECONDS_PER_DAY, WEI
from credshield_gateway.domain.protocols import default_registry

NOW = 1_700_000_000
PANCAKE_V2 = "0x10ed43c718714eb63d5aa57b78b54704e256024e"
VENUS_VBNB = "0xa07c5b74c9b40447a954e1466938b865b6bbea36"
ALPACA = "0xa625ab01b08ce023b2a342dbb12a16f2c8489a8f"
BNB_STAKING = "0x0000000000000000000000000000000000002001"
STARGATE = "0x4a364f8c717caad9a442737eb7b8a55cc6cf18d8"
THENA = "0xd4ae6eca985340dd434d38f470accce4dc78d109"
USDT = "0x55d398326f99059ff775485246999027b3197955"
WBNB = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
ETH = "0x2170ed0880ac9a755fd29b2688956bd959f933f8"
BTCB = "0x7130d2a12b9bcbfae4f2634d864a1ee1ce3ead9c"


def test_maxima_sum_to_900_and_weights_to_one():
    assert sum(limit for limit, _ in DIMENSION_LIMITS.values()) == 900
    assert sum(weight for _, weight in DIMENSION_LIMITS.values()) == 10_000


def test_every_scorer_stays_within_bounds(veteran_snapshot, empty_activity):
    for snapshot in (veteran_snapshot, empty_activity):
        for scorer in DIMENSION_SCORERS:
            result = scorer(snapshot, default_registry)
            assert 0 <= result.score <= result.max_score


# Wallet Maturity


def test_wallet_maturity_no_history(empty_activity):
    result = score_wallet_maturity(empty_activity, default_registry)

    assert result.score == 0
    assert result.details == "No transaction history found."


def test_wallet_maturity_single_old_transaction(snapshot_factory, tx_factory):
    """24-month-old wallet: full age points, 1 of 24 months active, negligible volume"""
    snapshot = snapshot_factory([tx_factory(PANCAKE_V2, NOW - 720 * SECONDS_PER_DAY)])

    result = score_wallet_maturity(snapshot, default_registry)

    # age 60 + consistency floor(1/24 * 60) = 2 + volume floor(1/200 * 60) = 0
    assert result.score == 62
    assert "Wallet age: 24 months (60/60)" in result.details


def test_wallet_maturity_veteran(veteran_snapshot):
    result = score_wallet_maturity(veteran_snapshot, default_registry)

    assert 170 <= result.score <= 180
    assert "240 transactions (60/60)" in result.details


# DeFi Experience


def test_defi_experience_full_marks(snapshot_factory, tx_factory):
    protocols = [PANCAKE_V2, VENUS_VBNB, ALPACA, BNB_STAKING, STARGATE]
    txs = [tx_factory(protocols[i % 5], function_name="call()") for i in range(50)]

    result = score_defi_experience(snapshot_factory(txs), default_registry)

    assert result.score == 225
    assert "Lending activity detected (+25)" in result.details
    assert "LP/DEX activity detected (+25)" in result.details
    assert "Staking activity detected (+25)" in result.details


def test_defi_experience_single_dex_interaction(snapshot_factory, tx_factory):
    result = score_defi_experience(snapshot_factory([tx_factory(THENA, function_name="swap()")]), default_registry)

    # 1/5 protocols -> 15, 1/50 interactions -> 1, DEX bonus 25
    assert result.score == 41


def test_defi_experience_ignores_unknown_contracts(snapshot_factory, tx_factory):
    txs = [tx_factory("0x" + "12" * 20, function_name="doSomething()") for _ in range(10)]

    result = score_defi_experience(snapshot_factory(txs), default_registry)

    assert result.score == 0


# Transaction Quality


def test_transaction_quality_no_transactions(empty_activity):
    result = score_transaction_quality(empty_activity, default_registry)

    assert result.score == 0
    assert result.details == "No transactions."


def test_transaction_quality_mixed_success(snapshot_factory, tx_factory):
    txs = [tx_factory(PANCAKE_V2, function_name="swap()") for _ in range(3)]
    txs.append(tx_factory(PANCAKE_V2, function_name="swap()", succeeded=False))

    result = score_transaction_quality(snapshot_factory(txs), default_registry)

    # success 3/4 -> 45, audited 4/4 -> 60, 1/20 unique contracts -> 3
    assert result.score == 108
    assert "75% success rate (45/60)" in result.details


def test_transaction_quality_unaudited_share(snapshot_factory, tx_factory):
    txs = [
        tx_factory(PANCAKE_V2, function_name="swap()"),
        tx_factory(THENA, function_name="swap()"),
        tx_factory("0x" + "34" * 20),  # plain transfer, not a contract call
    ]

    result = score_transaction_quality(snapshot_factory(txs), default_registry)

    # success 60, audited 1/2 -> 30, 2/20 contracts -> 6
    assert result.score == 96


# Asset Health


def test_asset_health_balance_only(snapshot_factory):
    assert score_asset_health(snapshot_factory(balance_wei=5 * WEI), default_registry).score == 45
    assert score_asset_health(snapshot_factory(balance_wei=5 * WEI // 2), default_registry).score == 22
    assert score_asset_health(snapshot_factory(balance_wei=0), default_registry).score == 0


def test_asset_health_token_bonuses(snapshot_factory, transfer_factory):
    transfers = [
        transfer_factory(USDT, "USDT"),
        transfer_factory(WBNB, "WBNB"),
        transfer_factory(ETH, "ETH"),
        transfer_factory(BTCB, "BTCB"),
    ]

    result = score_asset_health(snapshot_factory(token_transfers=transfers), default_registry)

    # diversity 4/10 -> 18, stablecoin +20, blue chips >=2 +15, >=4 +10
    assert result.score == 63
    assert "Excellent diversification (+10)" in result.details


def test_asset_health_two_blue_chips_without_stablecoin(snapshot_factory, transfer_factory):
    transfers = [transfer_factory(WBNB, "WBNB"), transfer_factory(ETH, "ETH")]

    result = score_asset_health(snapshot_factory(token_transfers=transfers), default_registry)

    # diversity 2/10 -> 9, blue chips +15
    assert result.score == 24


# Repayment History


def test_repayment_history_lending_and_recurring_partner(snapshot_factory, tx_factory):
    txs = [tx_factory(VENUS_VBNB, function_name="repayBorrow(uint256)") for _ in range(20)]

    result = score_repayment_history(snapshot_factory(txs), default_registry)

    # lending 20/20 -> 67, one recurring partner -> floor(1/5 * 68) = 13
    assert result.score == 80


def test_repayment_history_caps_at_max(snapshot_factory, tx_factory):
    txs = [tx_factory(VENUS_VBNB, function_name="repayBorrow(uint256)") for _ in range(20)]
    for partner in range(5):
        txs += [tx_factory("0x" + f"{partner + 1:040x}") for _ in range(3)]

    result = score_repayment_history(snapshot_factory(txs), default_registry)

    assert result.score == 135


def test_repayment_history_ignores_incoming_transfers(snapshot_factory, tx_factory):
    partner = "0x" + "56" * 20
    txs = [tx_factory("0x" + "ab" * 20, sender=partner) for _ in range(5)]

    result = score_repayment_history(snapshot_factory(txs), default_registry)

    assert result.score == 0
    assert "No lending protocol history found (0/67)" in result.details


# Social Verification


def test_social_verification_all_signals(snapshot_factory, tx_factory, transfer_factory):
    snapshot = snapshot_factory(
        [
            tx_factory(PANCAKE_V2, function_name="castVote(uint256,uint8)"),
            tx_factory(STARGATE, function_name="bridgeTokens(address,uint256)"),
        ],
        [transfer_factory("0x" + "99" * 20, "SPACEID", decimals=0)],
    )

    assert score_social_verification(snapshot, default_registry).score == 45


def test_social_verification_swap_counts_as_cross_chain(snapshot_factory, tx_factory):
    snapshot = snapshot_factory([tx_factory(PANCAKE_V2, function_name="swapExactETHForTokens(uint256)")])

    result = score_social_verification(snapshot, default_registry)

    assert result.score == 15
    assert "Cross-chain/bridge activity detected (+15)" in result.details


def test_social_verification_no_signals(empty_activity):
    result = score_social_verification(empty_activity, default_registry)

    assert result.score == 0
    assert result.details == "No social verification signals found"
