"""
Contract Verification - Explorer source-code lookup with a per-address cache
"""

import aiohttp
from typing import Dict, Optional
from colorama import Fore, Style


class ContractVerifier:
    def __init__(self, verification_config: dict, chain_id: int = 8453):
        self.api_url = verification_config.get('etherscan_api_url', 'https://api.etherscan.io/v2/api')
        self.api_key = verification_config.get('etherscan_api_key', '')
        self.chain_id = chain_id
        self.cache: Dict[str, bool] = {}

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def fetch_source(self, address: str) -> dict:
        params = {
            "chainid": str(self.chain_id),
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self.api_key,
        }
        async with aiohttp.ClientSession() as session:
            async with session.get(self.api_url, params=params, timeout=aiohttp.ClientTimeout(total=10)) as response:
                return await response.json()

    async def is_verified(self, address: str) -> Optional[bool]:
        """True/False from the explorer, None when unknown (no key, lookup error)"""
        if not self.enabled:
            return None

        key = address.lower()
        if key in self.cache:
            return self.cache[key]

        try:
            data = await self.fetch_source(address)
        except Exception as e:
            # Not cached, a later call retries
            print(f"{Fore.RED}[Verify] Lookup failed for {address}: {e}{Style.RESET_ALL}")
            return None

        result = data.get('result')
        if data.get('status') != '1' or not isinstance(result, list) or not result:
            verified = False
        else:
            item = result[0]
            verified = bool(item.get('SourceCode')) and item.get('ABI') != 'Contract source code not verified'

        self.cache[key] = verified
        return verified
