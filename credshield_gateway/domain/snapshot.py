"""ActivitySnapshot builder - normalizes raw explorer records.

Raw records follow the explorer "account" API shape (string-typed fields:
timeStamp, isError, tokenDecimal, ...). Malformed numbers become 0 so a
bad record can lower a score but never crash a scoring pass.
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from credshield_gateway.domain.models import (
    ActivitySnapshot,
    ExternalTransaction,
    InternalTransaction,
    TokenTransfer,
)

RawRecord = Dict[str, Any]
DEFAULT_TOKEN_DECIMALS = 18


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError:
        return default


def _timestamp(value: Any, as_of: Optional[int]) -> int:
    ts = max(0, _to_int(value))
    return ts if as_of is None else min(ts, as_of)


def _addr(value: Any) -> str:
    return str(value or "").strip().lower()


def normalize_address(address: str) -> str:
    return _addr(address)


def _dedupe(records: Iterable[RawRecord], key_fields: Tuple[str, ...]) -> List[RawRecord]:
    seen: Set[Tuple[str, ...]] = set()
    unique = []
    for record in records:
        key = tuple(str(record.get(f, "")).lower() for f in key_fields)
        # Records without a hash cannot be matched reliably; keep them all
        if key[0] and key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def parse_transaction(raw: RawRecord, as_of: Optional[int] = None) -> ExternalTransaction:
    return ExternalTransaction(
        block=_to_int(raw.get("blockNumber")),
        timestamp=_timestamp(raw.get("timeStamp"), as_of),
        from_address=_addr(raw.get("from")),
        to_address=_addr(raw.get("to")),
        value_wei=_to_int(raw.get("value")),
        gas_used=_to_int(raw.get("gasUsed")),
        succeeded=str(raw.get("isError", "0")) != "1",
        function_name=str(raw.get("functionName") or ""),
        contract_address=_addr(raw.get("contractAddress")),
        tx_hash=str(raw.get("hash") or ""),
    )


def parse_token_transfer(raw: RawRecord, as_of: Optional[int] = None) -> TokenTransfer:
    return TokenTransfer(
        timestamp=_timestamp(raw.get("timeStamp"), as_of),
        from_address=_addr(raw.get("from")),
        to_address=_addr(raw.get("to")),
        value=_to_int(raw.get("value")),
        token_symbol=str(raw.get("tokenSymbol") or ""),
        token_decimals=_to_int(raw.get("tokenDecimal"), DEFAULT_TOKEN_DECIMALS),
        token_contract=_addr(raw.get("contractAddress")),
        tx_hash=str(raw.get("hash") or ""),
    )


def parse_internal_transaction(raw: RawRecord, as_of: Optional[int] = None) -> InternalTransaction:
    return InternalTransaction(
        block=_to_int(raw.get("blockNumber")),
        timestamp=_timestamp(raw.get("timeStamp"), as_of),
        from_address=_addr(raw.get("from")),
        to_address=_addr(raw.get("to")),
        value_wei=_to_int(raw.get("value")),
        succeeded=str(raw.get("isError", "0")) != "1",
        tx_hash=str(raw.get("hash") or ""),
    )


def build_snapshot(
    address: str,
    balance_wei: Any,
    transactions: Iterable[RawRecord],
    token_transfers: Iterable[RawRecord],
    internal_transactions: Iterable[RawRecord],
    as_of: int,
) -> ActivitySnapshot:
    """
    Normalize raw explorer records into an immutable snapshot.

    - Addresses lowercased
    - Timestamps clamped to [0, as_of]
    - Duplicate records (same hash and endpoints) dropped
    - Each sequence ordered by (timestamp, block)
    """
    txs = [
        parse_transaction(r, as_of)
        for r in _dedupe(transactions, ("hash", "from", "to"))
    ]
    transfers = [
        parse_token_transfer(r, as_of)
        for r in _dedupe(token_transfers, ("hash", "from", "to", "contractAddress", "value"))
    ]
    internals = [
        parse_internal_transaction(r, as_of)
        for r in _dedupe(internal_transactions, ("hash", "from", "to", "value"))
    ]

    return ActivitySnapshot(
        address=normalize_address(address),
        balance_wei=max(0, _to_int(balance_wei)),
        transactions=tuple(sorted(txs, key=lambda t: (t.timestamp, t.block))),
        token_transfers=tuple(sorted(transfers, key=lambda t: t.timestamp)),
        internal_transactions=tuple(sorted(internals, key=lambda t: (t.timestamp, t.block))),
        as_of=as_of,
    )


def empty_snapshot(address: str, as_of: int, balance_wei: Optional[int] = None) -> ActivitySnapshot:
    """Zeroed snapshot used when the chain-data provider is unavailable"""
    return ActivitySnapshot(
        address=normalize_address(address),
        balance_wei=balance_wei or 0,
        transactions=(),
        token_transfers=(),
        internal_transactions=(),
        as_of=as_of,
    )
