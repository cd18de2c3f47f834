"""Credit scoring orchestration and the credit history ledger.

score_wallet: fetch snapshot -> compute score -> narrative report -> persist
profile. The network collaborators are optional; without them scoring runs
on an empty snapshot and the deterministic fallback report.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from credshield_gateway.config import Settings, settings
from credshield_gateway.domain.exceptions import (
    BatchTooLarge,
    DataUnavailable,
    DomainException,
    ProfileNotFound,
    ReportGenerationError,
)
from credshield_gateway.domain.history import (
    apply_outcome_to_history,
    apply_outcome_to_profile,
    new_profile,
    open_history,
    set_profile_score,
)
from credshield_gateway.domain.models import (
    ActivitySnapshot,
    CreditHistory,
    CreditProfile,
    DimensionScore,
    ScoreResult,
    Tier,
    TierTerms,
)
from credshield_gateway.domain.protocols import ProtocolRegistry, default_registry
from credshield_gateway.domain.report import build_fallback_report, report_fingerprint
from credshield_gateway.domain.repositories import LedgerStore
from credshield_gateway.domain.scoring import compute_score
from credshield_gateway.domain.snapshot import empty_snapshot, normalize_address
from credshield_gateway.domain.tiers import DEFAULT_TERMS, MIN_SCORE, classify_tier, validate_score
from credshield_gateway.infrastructure.observability.metrics import (
    chain_data_failures_counter,
    record_score,
    report_fallback_counter,
)
from credshield_gateway.services.locks import KeyedLock, atomic, ledger_locks
from credshield_gateway.utils.date_utils import utc_now_ts

logger = logging.getLogger(__name__)


class ActivitySource(Protocol):
    async def fetch_snapshot(self, address: str, as_of: int) -> ActivitySnapshot: ...


class NarrativeReporter(Protocol):
    async def generate_report(
        self,
        address: str,
        score: int,
        tier: Tier,
        dimensions: Sequence[DimensionScore],
        snapshot: ActivitySnapshot,
    ) -> str: ...


@dataclass(frozen=True)
class ScoredWallet:
    result: ScoreResult
    profile: CreditProfile
    history: CreditHistory
    report: str
    data_source: str  # live | empty
    report_source: str  # model | fallback


@dataclass(frozen=True)
class BatchEntry:
    address: str
    scored: Optional[ScoredWallet] = None
    error: Optional[str] = None


def terms_for(store: LedgerStore, address: str) -> TierTerms:
    """Lending terms for an address; unscored addresses get Bronze terms"""
    profile = store.profiles.get_profile(address)
    if profile is None:
        return DEFAULT_TERMS
    return classify_tier(profile.score)


def apply_outcome(
    store: LedgerStore,
    address: str,
    success: bool,
    amount: int,
    now: int,
    config: Settings = settings,
) -> Tuple[CreditProfile, CreditHistory]:
    """
    Apply a loan outcome to the profile and history without committing.

    Callers hold the borrower lock and own the transaction. An address that
    was never scored starts from a floor-score profile.
    """
    profile = store.profiles.get_profile(address)
    if profile is None:
        profile = new_profile(address, MIN_SCORE, "", now)
    apply_outcome_to_profile(
        profile,
        success,
        amount,
        now,
        boost=config.success_score_boost,
        penalty=config.failure_score_penalty,
    )

    history = store.profiles.get_history(address)
    if history is None:
        history = open_history(address, profile.score, now)
    apply_outcome_to_history(history, profile.score, success, amount, now)

    store.profiles.save_profile(profile)
    store.profiles.save_history(history)
    return profile, history


class CreditService:
    """Scores wallets and maintains their credit profiles"""

    def __init__(
        self,
        store: LedgerStore,
        activity_source: Optional[ActivitySource] = None,
        reporter: Optional[NarrativeReporter] = None,
        locks: KeyedLock = ledger_locks,
        clock: Callable[[], int] = utc_now_ts,
        config: Settings = settings,
        registry: ProtocolRegistry = default_registry,
    ):
        self.store = store
        self.activity_source = activity_source
        self.reporter = reporter
        self.locks = locks
        self.clock = clock
        self.config = config
        self.registry = registry

    async def load_snapshot(self, address: str, as_of: int) -> Tuple[ActivitySnapshot, str]:
        """Fetch activity; provider failure degrades to an empty snapshot"""
        if self.activity_source is None:
            return empty_snapshot(address, as_of), "empty"
        try:
            return await self.activity_source.fetch_snapshot(address, as_of), "live"
        except DataUnavailable as e:
            chain_data_failures_counter.inc()
            logger.warning(
                "Chain data unavailable, scoring empty snapshot",
                extra={"address": address, "reason": e.reason},
            )
            return empty_snapshot(address, as_of), "empty"

    async def write_report(self, result: ScoreResult, snapshot: ActivitySnapshot) -> Tuple[str, str]:
        if self.reporter is not None:
            try:
                report = await self.reporter.generate_report(
                    result.address, result.score, result.tier, result.dimensions, snapshot
                )
                return report, "model"
            except ReportGenerationError as e:
                logger.warning(f"Report generation failed: {e}", extra={"address": result.address})

        report_fallback_counter.inc()
        report = build_fallback_report(result.address, result.score, result.tier, result.dimensions, snapshot)
        return report, "fallback"

    async def score_wallet(self, address: str) -> ScoredWallet:
        address = normalize_address(address)
        snapshot, data_source = await self.load_snapshot(address, self.clock())

        result = compute_score(snapshot, self.registry)
        report, report_source = await self.write_report(result, snapshot)
        profile, history = self.set_score(address, result.score, report_fingerprint(report))

        record_score(result.score, result.tier)
        return ScoredWallet(
            result=result,
            profile=profile,
            history=history,
            report=report,
            data_source=data_source,
            report_source=report_source,
        )

    async def score_batch(self, addresses: Sequence[str]) -> List[BatchEntry]:
        """Score each address in turn; one address failing does not stop the rest"""
        if len(addresses) > self.config.max_batch_addresses:
            raise BatchTooLarge(len(addresses), self.config.max_batch_addresses)

        entries = []
        for address in addresses:
            try:
                entries.append(BatchEntry(address=address, scored=await self.score_wallet(address)))
            except DomainException as e:
                logger.warning(f"Batch scoring failed: {e}", extra={"address": address})
                entries.append(BatchEntry(address=address, error=str(e)))
        return entries

    def set_score(
        self, address: str, score: int, fingerprint: Optional[str] = None
    ) -> Tuple[CreditProfile, CreditHistory]:
        """
        Create or overwrite a profile's score and tier terms.

        The first score for an address also opens its credit history.
        A None fingerprint keeps the stored one.
        """
        validate_score(score)
        address = normalize_address(address)
        now = self.clock()

        with self.locks.hold(address), atomic(self.store):
            profile = self.store.profiles.get_profile(address)
            if profile is None:
                profile = new_profile(address, score, fingerprint or "", now)
            else:
                keep = profile.report_fingerprint if fingerprint is None else fingerprint
                set_profile_score(profile, score, keep, now)

            history = self.store.profiles.get_history(address)
            if history is None:
                history = open_history(address, score, now)
            else:
                history.score = score
                history.tier = profile.tier
                history.last_updated = now

            self.store.profiles.save_profile(profile)
            self.store.profiles.save_history(history)

        return profile, history

    def record_outcome(self, address: str, success: bool, amount: int) -> Tuple[CreditProfile, CreditHistory]:
        address = normalize_address(address)
        with self.locks.hold(address), atomic(self.store):
            return apply_outcome(self.store, address, success, amount, self.clock(), self.config)

    def get_profile(self, address: str) -> Tuple[CreditProfile, Optional[CreditHistory]]:
        address = normalize_address(address)
        profile = self.store.profiles.get_profile(address)
        if profile is None:
            raise ProfileNotFound(address)
        return profile, self.store.profiles.get_history(address)

    def interest_rate_bps(self, address: str) -> int:
        return terms_for(self.store, normalize_address(address)).interest_rate_bps
