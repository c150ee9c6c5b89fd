"""
Multi-Hop Router - Route through a common base token when there is no usable direct pair
"""

import time
from decimal import Decimal
from typing import Dict, List, Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import ERC20_ABI, ROUTER_ABI
from base_sniper.models import HopPath, MultiHopSwapConfig, MultiHopSwapResult


class MultiHopRouter:
    def __init__(self, config: dict, client, inspector, universal_router):
        self.client = client
        self.inspector = inspector
        self.universal_router = universal_router

        contracts = config['contracts']
        self.weth_address = Web3.to_checksum_address(contracts['weth'])
        self.quote_router_address = Web3.to_checksum_address(contracts['uniswap_v2_router'])

        multi_hop = config['multi_hop']
        self.enabled = multi_hop.get('enabled', True)
        self.use_universal_router = multi_hop.get('use_universal_router', True)
        self.dust_threshold = int(multi_hop.get('dust_threshold_wei', 10 ** 15))
        # Insertion order is the tie-break order
        self.base_tokens: Dict[str, str] = {
            symbol: Web3.to_checksum_address(address)
            for symbol, address in multi_hop['base_tokens'].items()
        }

        self.gas_limit = config['trading'].get('multi_hop_gas_limit', 400000)
        self.deadline_seconds = config['trading'].get('deadline_seconds', 600)

    @property
    def quote_router(self):
        return self.client.contract(self.quote_router_address, ROUTER_ABI)

    async def _amounts_out(self, amount_in: int, path: List[str]) -> Optional[List[int]]:
        try:
            amounts = await self.client.call(self.quote_router.functions.getAmountsOut(amount_in, path))
            return [int(a) for a in amounts]
        except Exception:
            return None

    async def find_best_multi_hop_path(self, token_in: str, token_out: str,
                                       amount_in: int) -> Optional[List[HopPath]]:
        token_in = Web3.to_checksum_address(token_in)
        token_out = Web3.to_checksum_address(token_out)

        direct = await self._amounts_out(amount_in, [token_in, token_out])
        if direct is not None and direct[-1] > self.dust_threshold:
            print(f"{Fore.CYAN}[MultiHop] Direct path available ({direct[-1]}){Style.RESET_ALL}")
            return [HopPath(token_out)]

        endpoints = {token_in.lower(), token_out.lower()}
        best_base = None
        best_output = 0

        for symbol, base in self.base_tokens.items():
            if base.lower() in endpoints:
                continue

            first = await self._amounts_out(amount_in, [token_in, base])
            if first is None:
                continue
            second = await self._amounts_out(first[-1], [base, token_out])
            if second is None:
                continue

            output = second[-1]
            print(f"{Fore.WHITE}[MultiHop] via {symbol}: {output}{Style.RESET_ALL}")
            if output > best_output:
                best_output = output
                best_base = base

        if best_base is None:
            print(f"{Fore.YELLOW}[MultiHop] No route found {token_in} -> {token_out}{Style.RESET_ALL}")
            return None

        return [HopPath(best_base), HopPath(token_out)]

    async def get_multi_hop_quote(self, token_in: str, token_out: str, amount_in: int) -> Optional[dict]:
        path = await self.find_best_multi_hop_path(token_in, token_out, amount_in)
        if path is None:
            return None

        full_path = [Web3.to_checksum_address(token_in)] + [hop.token_address for hop in path]
        amounts = await self._amounts_out(amount_in, full_path)
        if amounts is None:
            return None

        return {
            'output_amount': amounts[-1],
            'intermediate_amounts': amounts[1:-1],
            'path': full_path,
        }

    async def is_multi_hop_beneficial(self, token_in: str, token_out: str, amount_in: int) -> bool:
        direct = await self._amounts_out(amount_in, [Web3.to_checksum_address(token_in),
                                                     Web3.to_checksum_address(token_out)])
        direct_output = direct[-1] if direct else 0

        quote = await self.get_multi_hop_quote(token_in, token_out, amount_in)
        if quote is None:
            return False
        return direct_output == 0 or quote['output_amount'] > direct_output

    async def execute_multi_hop_swap(self, swap: MultiHopSwapConfig) -> Optional[MultiHopSwapResult]:
        account = self.client.require_account()
        full_path = [Web3.to_checksum_address(a) for a in swap.full_path]
        input_is_weth = full_path[0].lower() == self.weth_address.lower()
        output_is_weth = full_path[-1].lower() == self.weth_address.lower()

        if self.use_universal_router and len(full_path) == 2 and (input_is_weth or output_is_weth):
            if input_is_weth:
                result = await self.universal_router.buy(full_path[1], swap.amount_in, swap.amount_out_min)
            else:
                result = await self.universal_router.sell(full_path[0], swap.amount_in, swap.amount_out_min)
            if result is None:
                return None
            return MultiHopSwapResult(
                tx_hash=result.tx_hash,
                token_info=result.token_info,
                router_name=result.router_name,
                amount_in=swap.amount_in,
                gas_used=result.gas_used,
                block_number=result.block_number,
                path=full_path,
                used_universal_router=True,
            )

        deadline = swap.deadline or int(time.time()) + self.deadline_seconds
        router = self.quote_router
        try:
            if input_is_weth:
                receipt = await self.client.send_transaction(
                    router.functions.swapExactETHForTokens(swap.amount_out_min, full_path, account.address, deadline),
                    value=swap.amount_in,
                    gas=self.gas_limit,
                )
            else:
                token = self.client.contract(full_path[0], ERC20_ABI)
                await self.client.send_transaction(
                    token.functions.approve(self.quote_router_address, swap.amount_in), gas=100000
                )
                receipt = await self.client.send_transaction(
                    router.functions.swapExactTokensForTokens(
                        swap.amount_in, swap.amount_out_min, full_path, account.address, deadline
                    ),
                    gas=self.gas_limit,
                )
        except Exception as e:
            print(f"{Fore.RED}[MultiHop] Swap failed: {e}{Style.RESET_ALL}")
            return None

        print(f"{Fore.GREEN}[MultiHop] ✓ Swapped via {' -> '.join(full_path)}: {receipt.tx_hash}{Style.RESET_ALL}")
        return MultiHopSwapResult(
            tx_hash=receipt.tx_hash,
            token_info=await self.inspector.get_post_trade_info(full_path[-1]),
            router_name="Uniswap V2",
            amount_in=swap.amount_in,
            gas_used=receipt.gas_used,
            block_number=receipt.block_number,
            path=full_path,
        )

    async def smart_buy_with_multi_hop(self, token_address: str, eth_amount: float,
                                       slippage_percent: float = 5) -> Optional[MultiHopSwapResult]:
        """Buy with ETH over the best direct or 2-hop route"""
        self.client.require_account()
        amount_in = Web3.to_wei(Decimal(str(eth_amount)), 'ether')

        path = await self.find_best_multi_hop_path(self.weth_address, token_address, amount_in)
        if path is None:
            return None

        swap = MultiHopSwapConfig(
            input_token=self.weth_address,
            output_token=Web3.to_checksum_address(token_address),
            path=path,
            amount_in=amount_in,
            amount_out_min=1,
            slippage_percent=slippage_percent,
        )

        amounts = await self._amounts_out(amount_in, swap.full_path)
        if amounts is not None:
            swap.amount_out_min = max(1, int(amounts[-1] * (100 - slippage_percent) / 100))

        result = await self.execute_multi_hop_swap(swap)
        if result is not None and amounts is not None:
            result.amount_out_quoted = amounts[-1]
            result.intermediate_amounts = amounts[1:-1]
        return result
