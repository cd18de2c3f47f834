"""Mock Etherscan-style chain-data API serving deterministic wallet personas.

Run with: uvicorn mock.chain_data_server.main:app --port 8001
"""

import time

from fastapi import FastAPI, HTTPException

app = FastAPI(title="Mock Chain Data Server", version="1.0.0")

DAY = 86_400
WEI = 10**18

VETERAN = "0x1000000000000000000000000000000000000001"
NEWCOMER = "0x2000000000000000000000000000000000000002"
OUTAGE = "0x3000000000000000000000000000000000000003"

# (protocol address, function name)
VETERAN_CALLS = [
    ("0x10ed43c718714eb63d5aa57b78b54704e256024e", "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)"),
    ("0xfd36e2c2a6789db23113685031d7f16329158384", "enterMarkets(address[])"),
    ("0xa07c5b74c9b40447a954e1466938b865b6bbea36", "mint()"),
    ("0xa625ab01b08ce023b2a342dbb12a16f2c8489a8f", "repay(uint256)"),
    ("0x0000000000000000000000000000000000002001", "delegate(address,uint256)"),
    ("0x4a364f8c717caad9a442737eb7b8a55cc6cf18d8", "swapETH(uint16,address,bytes,uint256,uint256)"),
]

VETERAN_TOKENS = [
    ("0x55d398326f99059ff775485246999027b3197955", "USDT", 18),
    ("0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d", "USDC", 18),
    ("0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c", "WBNB", 18),
    ("0x2170ed0880ac9a755fd29b2688956bd959f933f8", "ETH", 18),
    ("0x7130d2a12b9bcbfae4f2634d864a1ee1ce3ead9c", "BTCB", 18),
    ("0x9999999999999999999999999999999999999999", "SPACEID", 0),
]


def _tx(address: str, i: int, ts: int, to: str, function_name: str) -> dict:
    return {
        "blockNumber": str(20_000_000 + i),
        "timeStamp": str(ts),
        "hash": f"0x{i:064x}",
        "from": address,
        "to": to,
        "value": str(WEI // 100),
        "gasUsed": "120000",
        "isError": "0",
        "functionName": function_name,
        "contractAddress": "",
    }


def _veteran(now: int) -> dict:
    # 240 transactions, one every ~4.5 days over three years
    txs = []
    for i in range(240):
        to, fn = VETERAN_CALLS[i % len(VETERAN_CALLS)]
        txs.append(_tx(VETERAN, i, now - (1_080 - i * 4) * DAY, to, fn))
    transfers = [
        {
            "timeStamp": str(now - (900 - i * 30) * DAY),
            "hash": f"0x{10_000 + i:064x}",
            "from": "0x10ed43c718714eb63d5aa57b78b54704e256024e",
            "to": VETERAN,
            "value": "1" if decimals == 0 else str(50 * WEI),
            "tokenSymbol": symbol,
            "tokenDecimal": str(decimals),
            "contractAddress": contract,
        }
        for i, (contract, symbol, decimals) in enumerate(VETERAN_TOKENS)
    ]
    return {"balance": str(10 * WEI), "txlist": txs, "tokentx": transfers, "txlistinternal": []}


def _newcomer(now: int) -> dict:
    txs = [
        _tx(NEWCOMER, i, now - (20 - i * 5) * DAY, "0x4444444444444444444444444444444444444444", "")
        for i in range(3)
    ]
    return {"balance": str(WEI // 10), "txlist": txs, "tokentx": [], "txlistinternal": []}


PERSONAS = {VETERAN: _veteran, NEWCOMER: _newcomer}


@app.get("/health")
def health(): return {"status": "ok"}


@app.get("/api")
def account_api(module: str, action: str, address: str):
    address = address.lower()
    if address == OUTAGE:
        raise HTTPException(status_code=502, detail="upstream explorer unavailable")
    if module != "account":
        return {"status": "0", "message": "NOTOK", "result": "Invalid module"}

    builder = PERSONAS.get(address)
    data = builder(int(time.time())) if builder else {"balance": "0", "txlist": [], "tokentx": [], "txlistinternal": []}

    if action == "balance":
        return {"status": "1", "message": "OK", "result": data["balance"]}
    if action not in ("txlist", "tokentx", "txlistinternal"):
        return {"status": "0", "message": "NOTOK", "result": "Invalid action"}
    records = data[action]
    if not records:
        return {"status": "0", "message": "No transactions found", "result": []}
    return {"status": "1", "message": "OK", "result": records}
