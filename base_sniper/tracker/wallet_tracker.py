"""
Wallet Tracker - Alert on activity of operator-watched wallets
"""

from typing import List, Optional, Tuple
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.subscriptions import BlockSubscription


WALLETS_STATE_KEY = "wallet_addresses"
SUBSCRIPTION_NAME = "wallet-activity"
DEDUP_KIND = "wallet"

# Common DEX router methods
SWAP_METHODS = {
    '0x7ff36ab5': 'swapExactETHForTokens',
    '0x38ed1739': 'swapExactTokensForTokens',
    '0x18cbafe5': 'swapExactTokensForETH',
    '0xfb3bdb41': 'swapETHForExactTokens',
    '0x5c11d795': 'swapExactTokensForTokensSupportingFeeOnTransferTokens',
    '0x791ac947': 'swapExactTokensForETHSupportingFeeOnTransferTokens',
    '0xb6f9de95': 'swapExactETHForTokensSupportingFeeOnTransferTokens',
    '0x3593564c': 'execute',
}


def decode_transaction(tx) -> Tuple[str, str]:
    """Classify a transaction as BUY / SELL / SWAP / TRANSFER / CONTRACT INTERACTION"""
    raw_input = tx.get('input')
    input_data = Web3.to_hex(raw_input) if raw_input else '0x'
    method_id = input_data[:10] if len(input_data) >= 10 else ''
    value_eth = Web3.from_wei(tx.get('value', 0), 'ether')

    if method_id in SWAP_METHODS:
        method_name = SWAP_METHODS[method_id]
        if 'ETHFor' in method_name:
            return "BUY", f"💰 Amount: {value_eth:.4f} ETH"
        elif 'ForETH' in method_name:
            return "SELL", f"🔄 {method_name}"
        else:
            return "SWAP", f"🔄 {method_name}"

    elif tx.get('value', 0) > 0:
        return "TRANSFER", f"💸 Amount: {value_eth:.4f} ETH"

    to = tx.get('to') or 'contract creation'
    return "CONTRACT INTERACTION", f"📝 To: `{to}`"


class WalletTracker:
    def __init__(self, config: dict, client, session, state, alerts):
        self.client = client
        self.session = session
        self.state = state
        self.alerts = alerts
        self.explorer_url = config['network']['explorer_url']
        self.poll_interval = config['network'].get('poll_interval_seconds', 2)

    def wallets(self) -> List[str]:
        return self.state.get(WALLETS_STATE_KEY, [])

    def watched(self) -> set:
        own = (self.client.address or '').lower()
        return {w.lower() for w in self.wallets()} - {own}

    async def attach(self):
        if not self.wallets():
            return
        self.session.registry.subscribe(
            SUBSCRIPTION_NAME, BlockSubscription(self.client, self.scan_block_for_wallets, self.poll_interval)
        )
        print(f"{Fore.GREEN}[Tracker] Monitoring {len(self.wallets())} wallets...{Style.RESET_ALL}")

    async def add_wallet(self, address: str) -> bool:
        if not Web3.is_address(address):
            raise ValueError(f"Invalid wallet address: {address}")
        address = Web3.to_checksum_address(address)
        wallets = self.wallets()
        if address.lower() in {w.lower() for w in wallets}:
            return False

        wallets.append(address)
        self.state.set(WALLETS_STATE_KEY, wallets)
        print(f"{Fore.GREEN}[Tracker] Added wallet: {address}{Style.RESET_ALL}")

        if self.session.running and SUBSCRIPTION_NAME not in self.session.registry:
            await self.attach()
        return True

    async def remove_wallet(self, address: str) -> bool:
        wallets = self.wallets()
        remaining = [w for w in wallets if w.lower() != address.lower()]
        if len(remaining) == len(wallets):
            return False

        self.state.set(WALLETS_STATE_KEY, remaining)
        print(f"{Fore.YELLOW}[Tracker] Removed wallet: {address}{Style.RESET_ALL}")

        if not remaining:
            self.session.registry.unsubscribe(SUBSCRIPTION_NAME)
        return True

    async def scan_block_for_wallets(self, block_number: int):
        """Scan block for transactions touching watched wallets"""
        watched = self.watched()
        if not watched:
            return

        block = await self.client.get_block(block_number, True)
        for tx in block['transactions']:
            sender = (tx.get('from') or '').lower()
            receiver = (tx.get('to') or '').lower()

            if sender in watched:
                await self.process_wallet_tx(tx, tx['from'], "OUT")
            elif receiver in watched:
                await self.process_wallet_tx(tx, tx['to'], "IN")

    async def process_wallet_tx(self, tx, wallet: str, direction: str) -> Optional[dict]:
        tx_hash = Web3.to_hex(tx['hash'])
        if not self.session.mark_transaction(DEDUP_KIND, tx_hash):
            return None

        tx_type, details = decode_transaction(tx)
        arrow = "📤" if direction == "OUT" else "📥"

        message = (
            f"👀 *WALLET ACTIVITY*\n\n"
            f"👤 Wallet: `{wallet}`\n"
            f"{arrow} Direction: {direction}\n"
            f"📊 Action: {tx_type}\n"
            f"{details}\n\n"
            f"🔗 [TX]({self.explorer_url}/tx/{tx_hash})"
        )

        print(f"{Fore.MAGENTA}[Tracker] {wallet[:10]}...: {tx_type} ({direction}){Style.RESET_ALL}")
        await self.alerts.send(message)

        return {
            'wallet': wallet,
            'direction': direction,
            'type': tx_type,
            'tx_hash': tx_hash,
        }
