"""Known-protocol reference tables used by the dimension scorers.

Tables are immutable address -> metadata mappings keyed by lowercase
address. Scorers only depend on `ProtocolRegistry.classify` and the
membership helpers, so a registry for another chain can be swapped in.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional


class ProtocolCategory(str, Enum):
    LENDING = "lending"
    DEX = "dex"
    STAKING = "staking"
    BRIDGE = "bridge"
    STABLESWAP = "stableswap"


@dataclass(frozen=True)
class ProtocolInfo:
    name: str
    category: ProtocolCategory
    audited: bool = True
    # MasterChef-style contracts are both a DEX farm and a staking venue
    extra_categories: FrozenSet[ProtocolCategory] = frozenset()

    @property
    def categories(self) -> FrozenSet[ProtocolCategory]:
        return frozenset({self.category}) | self.extra_categories


class ProtocolRegistry:
    """Read-only lookups over protocol and token tables"""

    def __init__(
        self,
        protocols: Mapping[str, ProtocolInfo],
        stablecoins: Mapping[str, str],
        blue_chip_tokens: Mapping[str, str],
        extra_audited: Iterable[str] = (),
    ):
        self._protocols = MappingProxyType({a.lower(): p for a, p in protocols.items()})
        self._stablecoins = MappingProxyType({a.lower(): s for a, s in stablecoins.items()})
        self._blue_chips = MappingProxyType({a.lower(): s for a, s in blue_chip_tokens.items()})
        self._audited = frozenset(
            {a for a, p in self._protocols.items() if p.audited} | {a.lower() for a in extra_audited}
        )

    def lookup(self, address: str) -> Optional[ProtocolInfo]:
        if not address:
            return None
        return self._protocols.get(address.lower())

    def classify(self, address: str) -> Optional[ProtocolCategory]:
        info = self.lookup(address)
        return info.category if info else None

    def has_category(self, address: str, category: ProtocolCategory) -> bool:
        info = self.lookup(address)
        return info is not None and category in info.categories

    def is_known(self, address: str) -> bool:
        return self.lookup(address) is not None

    def is_audited(self, address: str) -> bool:
        return bool(address) and address.lower() in self._audited

    def is_stablecoin(self, token_contract: str) -> bool:
        return bool(token_contract) and token_contract.lower() in self._stablecoins

    def is_blue_chip(self, token_contract: str) -> bool:
        return bool(token_contract) and token_contract.lower() in self._blue_chips

    def name_of(self, address: str) -> str:
        info = self.lookup(address)
        return info.name if info else address


# BNB Smart Chain mainnet
BSC_PROTOCOLS = {
    "0x10ed43c718714eb63d5aa57b78b54704e256024e": ProtocolInfo("PancakeSwap Router V2", ProtocolCategory.DEX),
    "0x13f4ea83d0bd40e75c8222255bc855a974568dd4": ProtocolInfo("PancakeSwap Router V3", ProtocolCategory.DEX),
    "0x556b9306565093c855aea9c3e43b7bcdd55a8f40": ProtocolInfo(
        "PancakeSwap MasterChef",
        ProtocolCategory.STAKING,
        audited=False,
        extra_categories=frozenset({ProtocolCategory.DEX}),
    ),
    "0xfd36e2c2a6789db23113685031d7f16329158384": ProtocolInfo("Venus Comptroller", ProtocolCategory.LENDING),
    "0xa07c5b74c9b40447a954e1466938b865b6bbea36": ProtocolInfo("Venus vBNB", ProtocolCategory.LENDING),
    "0xeca88125a5adbe82614ffc12d0db554e2e2867c8": ProtocolInfo("Venus vUSDC", ProtocolCategory.LENDING),
    "0xfd5840cd36d94d7229439859c0112a4185bc0255": ProtocolInfo("Venus vUSDT", ProtocolCategory.LENDING),
    "0xa625ab01b08ce023b2a342dbb12a16f2c8489a8f": ProtocolInfo("Alpaca Finance", ProtocolCategory.LENDING),
    "0x3a6d8ca21d1cf76f653a67577fa0d27453350dd8": ProtocolInfo("Biswap Router", ProtocolCategory.DEX),
    "0xd4ae6eca985340dd434d38f470accce4dc78d109": ProtocolInfo("Thena Router", ProtocolCategory.DEX, audited=False),
    "0x19609b03c976cca288fbdae5c21d4290e9a4add7": ProtocolInfo(
        "Wombat Exchange", ProtocolCategory.STABLESWAP, audited=False
    ),
    "0x4a364f8c717caad9a442737eb7b8a55cc6cf18d8": ProtocolInfo("Stargate Router", ProtocolCategory.BRIDGE),
    "0x0000000000000000000000000000000000002001": ProtocolInfo("BNB Staking", ProtocolCategory.STAKING),
    "0x6807dc923806fe8fd134338eabfb4bc76a1b6219": ProtocolInfo("Aave Pool BSC", ProtocolCategory.LENDING),
}

BSC_STABLECOINS = {
    "0x55d398326f99059ff775485246999027b3197955": "USDT",
    "0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d": "USDC",
    "0xe9e7cea3dedca5984780bafc599bd69add087d56": "BUSD",
    "0x1af3f329e8be154074d8769d1ffa4ee058b1dbc3": "DAI",
}

BSC_BLUE_CHIP_TOKENS = {
    "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c": "WBNB",
    "0x2170ed0880ac9a755fd29b2688956bd959f933f8": "ETH",
    "0x7130d2a12b9bcbfae4f2634d864a1ee1ce3ead9c": "BTCB",
    **BSC_STABLECOINS,
}

default_registry = ProtocolRegistry(BSC_PROTOCOLS, BSC_STABLECOINS, BSC_BLUE_CHIP_TOKENS)
