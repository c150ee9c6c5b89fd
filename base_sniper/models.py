"""
Models - Snapshots and results passed between the sniper components
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: str = "Unknown"
    symbol: str = "???"
    decimals: int = 18
    total_supply: int = 0

    # Operator wallet balance, only set by user-scoped lookups
    balance: Optional[int] = None

    # Names of the fields that fell back to a default
    defaulted: Tuple[str, ...] = ()

    @property
    def circulating_supply(self) -> float:
        return self.total_supply / (10 ** self.decimals)

    @property
    def balance_units(self) -> float:
        if self.balance is None:
            return 0.0
        return self.balance / (10 ** self.decimals)


@dataclass
class PairInfo:
    pair_address: str
    token0: TokenInfo
    token1: TokenInfo
    reserve0: int
    reserve1: int
    liquidity_eth: float
    version: int = 2
    token0_verified: Optional[bool] = None
    token1_verified: Optional[bool] = None


@dataclass
class BigBuyData:
    sender: str
    eth_amount: float
    token_info: Optional[TokenInfo]
    router_name: str
    tx_hash: str


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    status: int
    gas_used: int = 0
    block_number: int = 0


@dataclass(frozen=True)
class RouterCandidate:
    name: str
    address: str


@dataclass
class SwapResult:
    tx_hash: str
    token_info: TokenInfo
    router_name: str
    amount_in: int
    amount_out_quoted: int = 0
    fee_on_transfer: bool = False
    gas_used: int = 0
    block_number: int = 0


@dataclass(frozen=True)
class HopPath:
    token_address: str
    pool_fee: Optional[int] = None
    router: Optional[str] = None


@dataclass
class MultiHopSwapConfig:
    input_token: str
    output_token: str
    path: List[HopPath]
    amount_in: int
    amount_out_min: int
    slippage_percent: float = 5
    deadline: Optional[int] = None

    @property
    def full_path(self) -> List[str]:
        return [self.input_token] + [hop.token_address for hop in self.path]


@dataclass
class MultiHopSwapResult(SwapResult):
    path: List[str] = field(default_factory=list)
    intermediate_amounts: List[int] = field(default_factory=list)
    used_universal_router: bool = False
