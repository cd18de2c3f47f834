"""Credit scoring endpoints - /v1/credit"""

import time

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from credshield_gateway.api.dependencies import (
    get_credit_service,
    get_ledger_client,
    get_request_id,
    path_address,
    require_admin,
)
from credshield_gateway.api.v1.schemas import (
    BatchItem,
    BatchScoreRequest,
    BatchScoreResponse,
    CreditProfileResponse,
    DimensionSchema,
    HistorySchema,
    OutcomeRequest,
    ProfileSchema,
    ScoreRequest,
    ScoreResponse,
    SetScoreRequest,
)
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.infrastructure.observability.logging import log_score_computed
from credshield_gateway.services.credit import CreditService, ScoredWallet

router = APIRouter()


def _score_response(scored: ScoredWallet) -> ScoreResponse:
    result = scored.result
    return ScoreResponse(
        address=result.address,
        score=result.score,
        tier=int(result.tier),
        tier_name=result.tier.label,
        collateral_ratio_bps=result.terms.collateral_ratio_bps,
        credit_limit=result.terms.credit_limit,
        interest_rate_bps=result.terms.interest_rate_bps,
        dimensions=[DimensionSchema.from_domain(d) for d in result.dimensions],
        report=scored.report,
        report_fingerprint=scored.profile.report_fingerprint,
        data_source=scored.data_source,
        report_source=scored.report_source,
    )


def _profile_response(profile, history) -> CreditProfileResponse:
    return CreditProfileResponse(
        profile=ProfileSchema.from_domain(profile),
        history=HistorySchema.from_domain(history) if history is not None else None,
    )


@router.post("/credit/score", response_model=ScoreResponse)
async def score_wallet(
    request_body: ScoreRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    service: CreditService = Depends(get_credit_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Score a wallet from its on-chain activity.

    Flow:
    1. Fetch activity snapshot (empty snapshot if the provider is down)
    2. Run the six dimension scorers and classify the tier
    3. Generate narrative report (deterministic fallback on failure)
    4. Persist profile with the report fingerprint
    5. Send async webhook to ledger
    """
    start_time = time.time()
    scored = await service.score_wallet(request_body.address)

    background_tasks.add_task(
        ledger_client.persist_score,
        scored.profile.address,
        scored.profile.score,
        scored.profile.report_fingerprint,
    )

    duration_ms = (time.time() - start_time) * 1000
    log_score_computed(
        get_request_id(request),
        scored.profile.address,
        scored.result.score,
        scored.result.tier.label,
        scored.data_source,
        scored.report_source,
        duration_ms,
    )
    return _score_response(scored)


@router.post("/credit/score/batch", response_model=BatchScoreResponse)
async def score_batch(
    request_body: BatchScoreRequest,
    background_tasks: BackgroundTasks,
    service: CreditService = Depends(get_credit_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    entries = await service.score_batch(request_body.addresses)

    results = []
    for entry in entries:
        if entry.scored is None:
            results.append(BatchItem(address=entry.address, error=entry.error))
            continue
        profile = entry.scored.profile
        background_tasks.add_task(ledger_client.persist_score, profile.address, profile.score, profile.report_fingerprint)
        results.append(BatchItem(address=entry.address, result=_score_response(entry.scored)))

    return BatchScoreResponse(results=results)


@router.get("/credit/{address}", response_model=CreditProfileResponse)
def get_credit_profile(
    address: str = Depends(path_address),
    service: CreditService = Depends(get_credit_service),
):
    """Stored profile and credit history of a scored address"""
    profile, history = service.get_profile(address)
    return _profile_response(profile, history)


@router.put("/credit/{address}/score", response_model=CreditProfileResponse, dependencies=[Depends(require_admin)])
def set_score(
    request_body: SetScoreRequest,
    background_tasks: BackgroundTasks,
    address: str = Depends(path_address),
    service: CreditService = Depends(get_credit_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Administrative score override (300-900)"""
    profile, history = service.set_score(address, request_body.score, request_body.report_fingerprint)
    background_tasks.add_task(ledger_client.persist_score, profile.address, profile.score, profile.report_fingerprint)
    return _profile_response(profile, history)


@router.post("/credit/{address}/outcome", response_model=CreditProfileResponse, dependencies=[Depends(require_admin)])
def record_outcome(
    request_body: OutcomeRequest,
    background_tasks: BackgroundTasks,
    address: str = Depends(path_address),
    service: CreditService = Depends(get_credit_service),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """Apply a loan outcome (+15 on success, -100 on failure) to the stored score"""
    profile, history = service.record_outcome(address, request_body.success, request_body.amount_wei)
    background_tasks.add_task(
        ledger_client.persist_loan_outcome, profile.address, request_body.success, request_body.amount_wei
    )
    return _profile_response(profile, history)
