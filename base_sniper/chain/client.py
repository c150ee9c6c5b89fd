"""
Chain Client - Web3 wrapper shared by every component (reads, logs, signed sends)
"""

import asyncio
from typing import Optional
from web3 import Web3
from eth_account import Account
from colorama import Fore, Style

from base_sniper.config import PLACEHOLDER_PRIVATE_KEY
from base_sniper.models import TransactionReceipt


class MissingPrivateKeyError(Exception):
    """Raised when a swap is requested without an operator key"""


class TransactionFailedError(Exception):
    def __init__(self, receipt: TransactionReceipt):
        super().__init__(f"Transaction {receipt.tx_hash} reverted (status={receipt.status})")
        self.receipt = receipt


class ChainClient:
    def __init__(self, config: dict, w3: Optional[Web3] = None):
        self.config = config
        self.w3 = w3 or Web3(Web3.HTTPProvider(config['network']['rpc_url']))
        self.chain_id = config['network'].get('chain_id', 8453)
        self.receipt_timeout = config['trading'].get('receipt_timeout_seconds', 120)

        private_key = config['wallet'].get('private_key')
        if private_key and private_key != PLACEHOLDER_PRIVATE_KEY:
            self.account = Account.from_key(private_key)
        else:
            self.account = None
            print(f"{Fore.YELLOW}[Chain] No private key configured - swaps disabled{Style.RESET_ALL}")

        # Nonce lookup and broadcast must not interleave between two swaps
        self._send_lock = asyncio.Lock()

    @property
    def address(self) -> Optional[str]:
        return self.account.address if self.account else None

    def require_account(self):
        if self.account is None:
            raise MissingPrivateKeyError("Wallet private key not configured")
        return self.account

    def contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def call(self, bound_function):
        """Run a read-only contract call off the event loop"""
        return await asyncio.to_thread(bound_function.call)

    async def block_number(self) -> int:
        return await asyncio.to_thread(lambda: self.w3.eth.block_number)

    async def get_block(self, block_number: int, full_transactions: bool = True):
        return await asyncio.to_thread(self.w3.eth.get_block, block_number, full_transactions)

    async def get_logs(self, params: dict) -> list:
        return await asyncio.to_thread(self.w3.eth.get_logs, params)

    async def get_balance(self, address: str) -> int:
        return await asyncio.to_thread(self.w3.eth.get_balance, Web3.to_checksum_address(address))

    async def send_transaction(self, bound_function, value: int = 0, gas: int = 300000) -> TransactionReceipt:
        """Build, sign, broadcast and wait for a contract call; raises on revert"""
        account = self.require_account()

        async with self._send_lock:
            tx_hash = await asyncio.to_thread(self._sign_and_send, bound_function, account, value, gas)

        print(f"{Fore.CYAN}[Chain] Sent {Web3.to_hex(tx_hash)} - waiting for receipt...{Style.RESET_ALL}")
        raw = await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt, tx_hash, self.receipt_timeout
        )

        receipt = TransactionReceipt(
            tx_hash=Web3.to_hex(raw['transactionHash']),
            status=raw['status'],
            gas_used=raw.get('gasUsed', 0),
            block_number=raw.get('blockNumber', 0),
        )
        if receipt.status != 1:
            raise TransactionFailedError(receipt)
        return receipt

    def _sign_and_send(self, bound_function, account, value: int, gas: int):
        tx = bound_function.build_transaction({
            'from': account.address,
            'value': value,
            'gas': gas,
            'gasPrice': self.w3.eth.gas_price,
            'nonce': self.w3.eth.get_transaction_count(account.address, 'pending'),
            'chainId': self.chain_id,
        })
        signed = account.sign_transaction(tx)
        return self.w3.eth.send_raw_transaction(signed.raw_transaction)
