"""
Pair Analyzer - Token snapshots plus WETH-side liquidity for a new pair
"""

import asyncio
from typing import Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import V2_PAIR_ABI
from base_sniper.models import PairInfo, TokenInfo


def compute_liquidity_eth(token0: TokenInfo, token1: TokenInfo, reserve0: int, reserve1: int,
                          weth_address: str) -> float:
    weth = weth_address.lower()
    if token0.address.lower() == weth:
        return float(Web3.from_wei(reserve0, 'ether'))
    if token1.address.lower() == weth:
        return float(Web3.from_wei(reserve1, 'ether'))
    return 0.0


class PairAnalyzer:
    def __init__(self, client, inspector, weth_address: str):
        self.client = client
        self.inspector = inspector
        self.weth_address = weth_address

    async def analyze_pair(self, pair_address: str, token0_address: str, token1_address: str,
                           version: int = 2) -> Optional[PairInfo]:
        try:
            token0, token1 = await asyncio.gather(
                self.inspector.get_token_info(token0_address),
                self.inspector.get_token_info(token1_address),
            )
            if token0 is None or token1 is None:
                print(f"{Fore.YELLOW}[Analyzer] Token lookup failed for pair {pair_address}{Style.RESET_ALL}")
                return None

            reserve0, reserve1 = 0, 0
            if version == 2:
                pair = self.client.contract(pair_address, V2_PAIR_ABI)
                reserves = await self.client.call(pair.functions.getReserves())
                reserve0, reserve1 = int(reserves[0]), int(reserves[1])

            return PairInfo(
                pair_address=Web3.to_checksum_address(pair_address),
                token0=token0,
                token1=token1,
                reserve0=reserve0,
                reserve1=reserve1,
                liquidity_eth=compute_liquidity_eth(token0, token1, reserve0, reserve1, self.weth_address),
                version=version,
            )

        except Exception as e:
            print(f"{Fore.RED}[Analyzer] Error analyzing pair {pair_address}: {e}{Style.RESET_ALL}")
            return None
