"""Unit tests for the HTTP clients, using httpx.MockTransport"""

import json

import httpx
import pytest

from credshield_gateway.domain.exceptions import DataUnavailable, LedgerDeliveryError, ReportGenerationError
from credshield_gateway.domain.models import Tier
from credshield_gateway.domain.scoring import compute_score
from credshield_gateway.infrastructure.clients.chain_data import ChainDataClient
from credshield_gateway.infrastructure.clients.ledger import LedgerClient
from credshield_gateway.infrastructure.clients.report import ReportClient, build_prompt

WALLET = "0x" + "ab" * 20
NOW = 1_700_000_000

TX = {
    "hash": "0x01",
    "blockNumber": "10",
    "timeStamp": str(NOW - 86_400),
    "from": WALLET,
    "to": "0x10ED43C718714EB63D5AA57B78B54704E256024E",
    "value": "0",
    "gasUsed": "120000",
    "isError": "0",
    "functionName": "swapExactETHForTokens(uint256,address[],address,uint256)",
}


def _explorer(results):
    """Explorer stub answering per action; results maps action -> JSON body"""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        body = results[request.url.params["action"]]
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return handler, seen


def _ok(result):
    return {"status": "1", "message": "OK", "result": result}


async def test_fetch_snapshot_builds_normalized_snapshot():
    handler, seen = _explorer(
        {
            "balance": _ok("2000000000000000000"),
            "txlist": _ok([TX]),
            "tokentx": {"status": "0", "message": "No transactions found", "result": []},
            "txlistinternal": {"status": "0", "message": "No transactions found", "result": "No transactions found"},
        }
    )
    client = ChainDataClient(base_url="http://explorer", api_key="k", transport=httpx.MockTransport(handler))

    snapshot = await client.fetch_snapshot(WALLET.upper().replace("0X", "0x"), NOW)

    assert snapshot.address == WALLET
    assert snapshot.balance_wei == 2 * 10**18
    assert snapshot.transactions[0].to_address == TX["to"].lower()
    assert snapshot.token_transfers == ()
    assert snapshot.as_of == NOW
    assert {p["action"] for p in seen} == {"balance", "txlist", "tokentx", "txlistinternal"}
    assert all(p["apikey"] == "k" and p["module"] == "account" for p in seen)
    assert next(p for p in seen if p["action"] == "txlist")["sort"] == "asc"


async def test_fetch_snapshot_http_error():
    handler, _ = _explorer({action: httpx.Response(502) for action in ("balance", "txlist", "tokentx", "txlistinternal")})
    client = ChainDataClient(base_url="http://explorer", transport=httpx.MockTransport(handler))

    with pytest.raises(DataUnavailable, match="HTTP 502"):
        await client.fetch_snapshot(WALLET, NOW)


async def test_fetch_snapshot_rate_limited_list():
    handler, _ = _explorer(
        {
            "balance": _ok("0"),
            "txlist": {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"},
            "tokentx": _ok([]),
            "txlistinternal": _ok([]),
        }
    )
    client = ChainDataClient(base_url="http://explorer", transport=httpx.MockTransport(handler))

    with pytest.raises(DataUnavailable, match="txlist failed"):
        await client.fetch_snapshot(WALLET, NOW)


async def test_fetch_snapshot_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = ChainDataClient(base_url="http://explorer", timeout=1.0, transport=httpx.MockTransport(handler))

    with pytest.raises(DataUnavailable, match="timeout"):
        await client.fetch_snapshot(WALLET, NOW)


async def test_fetch_snapshot_invalid_json():
    def handler(request):
        return httpx.Response(200, content=b"<html>")

    client = ChainDataClient(base_url="http://explorer", transport=httpx.MockTransport(handler))

    with pytest.raises(DataUnavailable, match="invalid JSON"):
        await client.fetch_snapshot(WALLET, NOW)


@pytest.mark.parametrize("body", [[], None, "OK", 42])
async def test_fetch_snapshot_non_object_body(body):
    def handler(request):
        return httpx.Response(200, json=body)

    client = ChainDataClient(base_url="http://explorer", transport=httpx.MockTransport(handler))

    with pytest.raises(DataUnavailable, match="non-object body"):
        await client.fetch_snapshot(WALLET, NOW)


# Report client


async def test_generate_report(empty_activity):
    captured = {}

    def handler(request):
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Solid wallet.  "}}]})

    result = compute_score(empty_activity)
    client = ReportClient(base_url="http://model", api_key="secret", model="m", transport=httpx.MockTransport(handler))

    report = await client.generate_report(WALLET, 300, Tier.BRONZE, result.dimensions, empty_activity)

    assert report == "Solid wallet."
    assert captured["auth"] == "Bearer secret"
    assert captured["body"]["model"] == "m"
    assert captured["body"]["max_tokens"] == 500
    assert "CredScore: 300/900" in captured["body"]["messages"][0]["content"]


async def test_report_requires_api_key(empty_activity):
    with pytest.raises(ReportGenerationError, match="not configured"):
        await ReportClient(api_key="").generate_report(WALLET, 300, Tier.BRONZE, (), empty_activity)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]}),
    ],
)
async def test_report_failures(empty_activity, response):
    client = ReportClient(base_url="http://model", api_key="k", transport=httpx.MockTransport(lambda r: response))

    with pytest.raises(ReportGenerationError):
        await client.generate_report(WALLET, 300, Tier.BRONZE, (), empty_activity)


def test_prompt_lists_dimensions(veteran_snapshot):
    result = compute_score(veteran_snapshot)

    prompt = build_prompt(WALLET, result.score, result.tier, result.dimensions, veteran_snapshot)

    assert "Tier: Platinum" in prompt
    assert "Native balance: 10.0000" in prompt
    assert "- Wallet Maturity:" in prompt
    assert "(weight: 25%)" in prompt


# Ledger client


async def test_ledger_retries_then_succeeds():
    attempts = []

    def handler(request):
        attempts.append(json.loads(request.content))
        return httpx.Response(503 if len(attempts) < 3 else 200)

    client = LedgerClient(webhook_url="http://ledger/events", max_retries=5, backoff_base=0, transport=httpx.MockTransport(handler))

    await client.persist_loan_outcome(WALLET, True, 10**24, loan_id=4)

    assert len(attempts) == 3
    assert attempts[0] == {
        "event": "LOAN_OUTCOME",
        "address": WALLET,
        "loan_id": 4,
        "success": True,
        "amount_wei": "1000000000000000000000000",
    }


async def test_ledger_gives_up_after_max_retries():
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(500)

    client = LedgerClient(webhook_url="http://ledger/events", max_retries=3, backoff_base=0, transport=httpx.MockTransport(handler))

    with pytest.raises(LedgerDeliveryError, match="SCORE_SET"):
        await client.persist_score(WALLET, 720, "0xfeed")
    assert len(attempts) == 3


async def test_ledger_collateral_event():
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(202)

    client = LedgerClient(webhook_url="http://ledger/events", max_retries=1, backoff_base=0, transport=httpx.MockTransport(handler))

    await client.persist_collateral_op("seize", WALLET, 5, loan_id=2)

    assert sent == [{"event": "COLLATERAL_OP", "operation": "seize", "address": WALLET, "loan_id": 2, "amount_wei": "5"}]
