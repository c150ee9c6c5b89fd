"""
Universal Router - Command byte-string encoding and execution for V2 swaps
"""

import time
from typing import List, Optional, Tuple
from eth_abi import encode
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import ERC20_ABI, UNIVERSAL_ROUTER_ABI
from base_sniper.models import SwapResult


# Command ids
V2_SWAP_EXACT_IN = 0x08
WRAP_ETH = 0x0b
UNWRAP_WETH = 0x0c

# Recipient placeholders understood by the router
MSG_SENDER = "0x0000000000000000000000000000000000000001"
ADDRESS_THIS = "0x0000000000000000000000000000000000000002"


def encode_wrap_eth(recipient: str, amount_min: int) -> bytes:
    return encode(["address", "uint256"], [recipient, amount_min])


def encode_unwrap_weth(recipient: str, amount_min: int) -> bytes:
    return encode(["address", "uint256"], [recipient, amount_min])


def encode_v2_swap_exact_in(recipient: str, amount_in: int, amount_out_min: int,
                            path: List[str], payer_is_user: bool) -> bytes:
    return encode(
        ["address", "uint256", "uint256", "address[]", "bool"],
        [recipient, amount_in, amount_out_min, path, payer_is_user],
    )


def build_buy_commands(weth: str, token: str, amount_in: int,
                       amount_out_min: int) -> Tuple[bytes, List[bytes]]:
    """ETH -> token: wrap into the router, then swap out to the caller"""
    commands = bytes([WRAP_ETH, V2_SWAP_EXACT_IN])
    inputs = [
        encode_wrap_eth(ADDRESS_THIS, amount_in),
        encode_v2_swap_exact_in(MSG_SENDER, amount_in, amount_out_min, [weth, token], False),
    ]
    return commands, inputs


def build_sell_commands(weth: str, token: str, amount_in: int,
                        amount_out_min: int) -> Tuple[bytes, List[bytes]]:
    """token -> ETH: swap into the router, then unwrap to the caller"""
    commands = bytes([V2_SWAP_EXACT_IN, UNWRAP_WETH])
    inputs = [
        encode_v2_swap_exact_in(ADDRESS_THIS, amount_in, amount_out_min, [token, weth], True),
        encode_unwrap_weth(MSG_SENDER, amount_out_min),
    ]
    return commands, inputs


class UniversalRouterSwap:
    def __init__(self, config: dict, client, inspector):
        self.client = client
        self.inspector = inspector
        self.router_address = Web3.to_checksum_address(config['contracts']['universal_router'])
        self.weth_address = Web3.to_checksum_address(config['contracts']['weth'])
        self.enabled = config['multi_hop'].get('use_universal_router', True)
        self.deadline_seconds = config['trading'].get('deadline_seconds', 600)

    def deadline(self) -> int:
        return int(time.time()) + self.deadline_seconds

    async def buy(self, token_address: str, amount_in: int, amount_out_min: int = 1,
                  gas: int = 300000) -> Optional[SwapResult]:
        self.client.require_account()
        token_address = Web3.to_checksum_address(token_address)
        commands, inputs = build_buy_commands(self.weth_address, token_address, amount_in, amount_out_min)

        print(f"{Fore.CYAN}[UniversalRouter] Buy {token_address} commands=0x{commands.hex()}{Style.RESET_ALL}")
        router = self.client.contract(self.router_address, UNIVERSAL_ROUTER_ABI)
        try:
            receipt = await self.client.send_transaction(
                router.functions.execute(commands, inputs, self.deadline()),
                value=amount_in,
                gas=gas,
            )
        except Exception as e:
            print(f"{Fore.RED}[UniversalRouter] Buy failed: {e}{Style.RESET_ALL}")
            return None

        return SwapResult(
            tx_hash=receipt.tx_hash,
            token_info=await self.inspector.get_post_trade_info(token_address),
            router_name="Universal Router",
            amount_in=amount_in,
            gas_used=receipt.gas_used,
            block_number=receipt.block_number,
        )

    async def sell(self, token_address: str, amount_in: int, amount_out_min: int = 1,
                   gas: int = 500000) -> Optional[SwapResult]:
        account = self.client.require_account()
        token_address = Web3.to_checksum_address(token_address)
        token = self.client.contract(token_address, ERC20_ABI)

        try:
            allowance = await self.client.call(token.functions.allowance(account.address, self.router_address))
            if allowance < amount_in:
                print(f"{Fore.CYAN}[UniversalRouter] Approving router...{Style.RESET_ALL}")
                await self.client.send_transaction(token.functions.approve(self.router_address, amount_in),
                                                   gas=100000)

            commands, inputs = build_sell_commands(self.weth_address, token_address, amount_in, amount_out_min)
            router = self.client.contract(self.router_address, UNIVERSAL_ROUTER_ABI)
            receipt = await self.client.send_transaction(
                router.functions.execute(commands, inputs, self.deadline()),
                gas=gas,
            )
        except Exception as e:
            print(f"{Fore.RED}[UniversalRouter] Sell failed: {e}{Style.RESET_ALL}")
            return None

        return SwapResult(
            tx_hash=receipt.tx_hash,
            token_info=await self.inspector.get_post_trade_info(token_address),
            router_name="Universal Router",
            amount_in=amount_in,
            gas_used=receipt.gas_used,
            block_number=receipt.block_number,
        )
