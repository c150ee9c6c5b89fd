"""
Swap Executor - Buy/sell through an ordered router list with fee-on-transfer fallback
"""

import time
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import ERC20_ABI, ROUTER_ABI, V2_FACTORY_ABI
from base_sniper.models import RouterCandidate, SwapResult, TokenInfo


# Buy path tolerance is fixed at 5%
BUY_MIN_OUT_PERCENT = 95


def router_candidates(contracts: dict) -> List[RouterCandidate]:
    return [
        RouterCandidate("Aerodrome", contracts['aerodrome_router']),
        RouterCandidate("Uniswap V2", contracts['uniswap_v2_router']),
    ]


class SwapExecutor:
    def __init__(self, config: dict, client, inspector, routers: Optional[List[RouterCandidate]] = None):
        self.config = config
        self.client = client
        self.inspector = inspector
        self.weth_address = Web3.to_checksum_address(config['contracts']['weth'])
        self.routers = routers if routers is not None else router_candidates(config['contracts'])

        trading = config['trading']
        self.gas_limit = trading.get('gas_limit', 300000)
        self.fot_gas_limit = trading.get('fee_on_transfer_gas_limit', 500000)
        self.deadline_seconds = trading.get('deadline_seconds', 600)
        self.default_slippage = trading.get('slippage_percent', 5)

    def deadline(self) -> int:
        return int(time.time()) + self.deadline_seconds

    async def _pair_exists(self, router, candidate: RouterCandidate, token_address: str) -> bool:
        try:
            factory_address = await self.client.call(router.functions.factory())
            factory = self.client.contract(factory_address, V2_FACTORY_ABI)
            pair_address = await self.client.call(factory.functions.getPair(self.weth_address, token_address))
        except Exception as e:
            print(f"{Fore.RED}[Swap] Error checking pool on {candidate.name}: {e}{Style.RESET_ALL}")
            return False

        if int(pair_address, 16) == 0:
            print(f"{Fore.YELLOW}[Swap] No WETH pool for {token_address} on {candidate.name}{Style.RESET_ALL}")
            return False

        print(f"{Fore.CYAN}[Swap] Found pool {pair_address} on {candidate.name}{Style.RESET_ALL}")
        return True

    async def _quote(self, router, candidate: RouterCandidate, amount_in: int, path: list) -> Optional[int]:
        try:
            amounts = await self.client.call(router.functions.getAmountsOut(amount_in, path))
            return int(amounts[-1])
        except Exception as e:
            print(f"{Fore.YELLOW}[Swap] No liquidity on {candidate.name}: {e}{Style.RESET_ALL}")
            return None

    async def buy_token_with_eth(self, token_address: str, eth_amount: float) -> Optional[SwapResult]:
        """
        Buy a token with ETH, trying each router in order.
        Raises MissingPrivateKeyError when no wallet is configured.
        """
        account = self.client.require_account()

        token_address = Web3.to_checksum_address(token_address)
        amount_in = Web3.to_wei(Decimal(str(eth_amount)), 'ether')
        path = [self.weth_address, token_address]

        for candidate in self.routers:
            print(f"{Fore.CYAN}[Swap] Trying {candidate.name} router...{Style.RESET_ALL}")
            router = self.client.contract(candidate.address, ROUTER_ABI)

            if not await self._pair_exists(router, candidate, token_address):
                continue

            amount_out = await self._quote(router, candidate, amount_in, path)
            if amount_out is None:
                continue

            min_out = amount_out * BUY_MIN_OUT_PERCENT // 100
            fee_on_transfer = False

            try:
                receipt = await self.client.send_transaction(
                    router.functions.swapExactETHForTokens(min_out, path, account.address, self.deadline()),
                    value=amount_in,
                    gas=self.gas_limit,
                )
            except Exception as e:
                print(f"{Fore.YELLOW}[Swap] Standard swap failed on {candidate.name}: {e}{Style.RESET_ALL}")
                print(f"{Fore.CYAN}[Swap] Retrying with fee-on-transfer support...{Style.RESET_ALL}")
                try:
                    receipt = await self.client.send_transaction(
                        router.functions.swapExactETHForTokensSupportingFeeOnTransferTokens(
                            0, path, account.address, self.deadline()
                        ),
                        value=amount_in,
                        gas=self.fot_gas_limit,
                    )
                    fee_on_transfer = True
                except Exception as fallback_error:
                    print(f"{Fore.RED}[Swap] Fee-on-transfer swap failed on {candidate.name}: "
                          f"{fallback_error}{Style.RESET_ALL}")
                    continue

            print(f"{Fore.GREEN}[Swap] ✓ Bought via {candidate.name}: {receipt.tx_hash}{Style.RESET_ALL}")
            return SwapResult(
                tx_hash=receipt.tx_hash,
                token_info=await self.inspector.get_post_trade_info(token_address),
                router_name=candidate.name,
                amount_in=amount_in,
                amount_out_quoted=amount_out,
                fee_on_transfer=fee_on_transfer,
                gas_used=receipt.gas_used,
                block_number=receipt.block_number,
            )

        print(f"{Fore.RED}[Swap] All routers failed for {token_address}{Style.RESET_ALL}")
        return None

    def parse_token_amount(self, token_amount: str, token_info: TokenInfo) -> int:
        if token_amount.strip().lower() == "max":
            return token_info.balance or 0
        try:
            units = Decimal(token_amount)
        except InvalidOperation:
            raise ValueError(f"Invalid token amount: {token_amount}")
        return int(units * (Decimal(10) ** token_info.decimals))

    async def sell_token_for_eth(self, token_address: str, token_amount: str,
                                 slippage_percent: Optional[float] = None) -> Optional[SwapResult]:
        """
        Sell tokens for ETH; token_amount is in token units or "max" for the whole balance.
        Raises MissingPrivateKeyError when no wallet is configured.
        """
        account = self.client.require_account()
        slippage = self.default_slippage if slippage_percent is None else slippage_percent

        token_address = Web3.to_checksum_address(token_address)
        token_info = await self.inspector.get_user_token_info(token_address)
        amount_in = self.parse_token_amount(token_amount, token_info)

        if amount_in <= 0:
            print(f"{Fore.YELLOW}[Swap] Nothing to sell for {token_info.symbol}{Style.RESET_ALL}")
            return None

        token = self.client.contract(token_address, ERC20_ABI)
        path = [token_address, self.weth_address]

        for candidate in self.routers:
            print(f"{Fore.CYAN}[Swap] Trying {candidate.name} router for sell...{Style.RESET_ALL}")
            router = self.client.contract(candidate.address, ROUTER_ABI)

            if not await self._pair_exists(router, candidate, token_address):
                continue

            amount_out = await self._quote(router, candidate, amount_in, path)
            if amount_out is None:
                continue

            min_out = int(amount_out * (100 - slippage) / 100)

            try:
                await self.client.send_transaction(
                    token.functions.approve(Web3.to_checksum_address(candidate.address), amount_in),
                    gas=100000,
                )
            except Exception as e:
                print(f"{Fore.RED}[Swap] Approval failed on {candidate.name}: {e}{Style.RESET_ALL}")
                continue

            fee_on_transfer = False
            try:
                receipt = await self.client.send_transaction(
                    router.functions.swapExactTokensForETH(
                        amount_in, min_out, path, account.address, self.deadline()
                    ),
                    gas=self.gas_limit,
                )
            except Exception as e:
                print(f"{Fore.YELLOW}[Swap] Standard sell failed on {candidate.name}: {e}{Style.RESET_ALL}")
                try:
                    receipt = await self.client.send_transaction(
                        router.functions.swapExactTokensForETHSupportingFeeOnTransferTokens(
                            amount_in, 0, path, account.address, self.deadline()
                        ),
                        gas=self.fot_gas_limit,
                    )
                    fee_on_transfer = True
                except Exception as fallback_error:
                    print(f"{Fore.RED}[Swap] Fee-on-transfer sell failed on {candidate.name}: "
                          f"{fallback_error}{Style.RESET_ALL}")
                    continue

            print(f"{Fore.GREEN}[Swap] ✓ Sold {token_info.symbol} via {candidate.name}: "
                  f"{receipt.tx_hash}{Style.RESET_ALL}")
            return SwapResult(
                tx_hash=receipt.tx_hash,
                token_info=await self.inspector.get_post_trade_info(token_address),
                router_name=candidate.name,
                amount_in=amount_in,
                amount_out_quoted=amount_out,
                fee_on_transfer=fee_on_transfer,
                gas_used=receipt.gas_used,
                block_number=receipt.block_number,
            )

        print(f"{Fore.RED}[Swap] All routers failed selling {token_address}{Style.RESET_ALL}")
        return None
