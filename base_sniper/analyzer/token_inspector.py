"""
Token Inspector - Read ERC20 metadata with per-field fallbacks
"""

import asyncio
from typing import Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import ERC20_ABI
from base_sniper.models import TokenInfo


# field -> (contract function, fallback)
TOKEN_FIELDS = {
    'name': ('name', "Unknown"),
    'symbol': ('symbol', "???"),
    'decimals': ('decimals', 18),
    'total_supply': ('totalSupply', 0),
}


class TokenInspector:
    def __init__(self, client):
        self.client = client

    async def _read_field(self, contract, function_name: str, default):
        try:
            value = await self.client.call(getattr(contract.functions, function_name)())
            return value, False
        except Exception:
            return default, True

    async def _read_metadata(self, address: str) -> TokenInfo:
        checksum = Web3.to_checksum_address(address)
        contract = self.client.contract(checksum, ERC20_ABI)

        results = await asyncio.gather(*[
            self._read_field(contract, fn_name, default)
            for fn_name, default in TOKEN_FIELDS.values()
        ])

        values = {}
        defaulted = []
        for field_name, (value, fell_back) in zip(TOKEN_FIELDS, results):
            values[field_name] = value
            if fell_back:
                defaulted.append(field_name)

        if defaulted:
            print(f"{Fore.YELLOW}[Inspector] {checksum}: defaulted {', '.join(defaulted)}{Style.RESET_ALL}")

        return TokenInfo(
            address=checksum,
            name=values['name'],
            symbol=values['symbol'],
            decimals=int(values['decimals']),
            total_supply=int(values['total_supply']),
            defaulted=tuple(defaulted),
        )

    async def get_token_info(self, address: str) -> Optional[TokenInfo]:
        """Token metadata, or None if the address can't be inspected at all"""
        try:
            return await self._read_metadata(address)
        except Exception as e:
            print(f"{Fore.RED}[Inspector] Failed to inspect {address}: {e}{Style.RESET_ALL}")
            return None

    async def get_user_token_info(self, address: str) -> TokenInfo:
        """
        Token metadata plus the operator wallet's balance.
        Raises if there is no wallet or the balance can't be read.
        """
        account = self.client.require_account()
        info = await self._read_metadata(address)
        contract = self.client.contract(info.address, ERC20_ABI)
        balance = await self.client.call(contract.functions.balanceOf(account.address))
        return TokenInfo(
            address=info.address,
            name=info.name,
            symbol=info.symbol,
            decimals=info.decimals,
            total_supply=info.total_supply,
            balance=int(balance),
            defaulted=info.defaulted,
        )

    async def get_post_trade_info(self, address: str) -> TokenInfo:
        """Fresh snapshot after a confirmed swap; metadata only if the balance read fails"""
        try:
            return await self.get_user_token_info(address)
        except Exception as e:
            print(f"{Fore.YELLOW}[Inspector] Balance refresh failed for {address}: {e}{Style.RESET_ALL}")
            info = await self.get_token_info(address)
            return info or TokenInfo(address=address)
