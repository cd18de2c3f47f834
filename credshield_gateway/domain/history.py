"""Credit history ledger - stored profiles, loan outcomes and streaks.

Loan outcomes adjust the stored score by fixed deltas; the dimension
scorers are never re-run here.
"""

from credshield_gateway.domain.models import CreditHistory, CreditProfile
from credshield_gateway.domain.tiers import MAX_SCORE, MIN_SCORE, classify_tier, validate_score


def new_profile(address: str, score: int, report_fingerprint: str, now: int) -> CreditProfile:
    terms = classify_tier(score)
    return CreditProfile(
        address=address,
        score=score,
        tier=terms.tier,
        collateral_ratio_bps=terms.collateral_ratio_bps,
        credit_limit=terms.credit_limit,
        interest_rate_bps=terms.interest_rate_bps,
        report_fingerprint=report_fingerprint,
        last_updated=now,
    )


def _rescore(profile: CreditProfile, score: int, now: int) -> None:
    terms = classify_tier(score)
    profile.score = score
    profile.tier = terms.tier
    profile.collateral_ratio_bps = terms.collateral_ratio_bps
    profile.credit_limit = terms.credit_limit
    profile.interest_rate_bps = terms.interest_rate_bps
    profile.last_updated = now


def set_profile_score(profile: CreditProfile, score: int, report_fingerprint: str, now: int) -> int:
    """Overwrite the score and tier terms; returns the previous score"""
    validate_score(score)
    previous = profile.score
    _rescore(profile, score, now)
    profile.report_fingerprint = report_fingerprint
    return previous


def adjusted_score(score: int, success: bool, boost: int = 15, penalty: int = 100) -> int:
    """+boost capped at 900 on success, -penalty floored at 300 on failure"""
    if success:
        return min(MAX_SCORE, score + boost)
    return max(MIN_SCORE, score - penalty)


def apply_outcome_to_profile(
    profile: CreditProfile,
    success: bool,
    amount: int,
    now: int,
    boost: int = 15,
    penalty: int = 100,
) -> None:
    _rescore(profile, adjusted_score(profile.score, success, boost, penalty), now)
    if success:
        profile.loans_completed += 1
        profile.total_repaid += amount
    else:
        profile.loans_failed += 1
        profile.total_borrowed += amount


def open_history(address: str, score: int, now: int) -> CreditHistory:
    return CreditHistory(
        address=address,
        score=score,
        tier=classify_tier(score).tier,
        first_credit_date=now,
        last_updated=now,
    )


def apply_outcome_to_history(history: CreditHistory, score: int, success: bool, amount: int, now: int) -> None:
    """
    Record an outcome and update streaks.

    The current streak resets on failure; the longest streak never decreases.
    """
    history.score = score
    history.tier = classify_tier(score).tier
    if success:
        history.loans_completed += 1
        history.total_repaid += amount
        history.current_streak += 1
        history.longest_streak = max(history.longest_streak, history.current_streak)
    else:
        history.loans_failed += 1
        history.total_borrowed += amount
        history.current_streak = 0
    history.last_updated = now
