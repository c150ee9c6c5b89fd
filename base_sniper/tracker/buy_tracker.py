"""
Big Buy Tracker - Spot large ETH buys sent through the known routers
"""

from typing import Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import ETH_BUY_METHODS, ROUTER_ABI
from base_sniper.chain.subscriptions import BlockSubscription
from base_sniper.models import BigBuyData, RouterCandidate
from base_sniper.trader.swap_executor import router_candidates


DEDUP_KIND = "big-buy"


class BigBuyTracker:
    def __init__(self, config: dict, client, session, inspector, alerts):
        self.client = client
        self.session = session
        self.inspector = inspector
        self.alerts = alerts

        self.weth_address = config['contracts']['weth'].lower()
        self.routers = {c.address.lower(): c for c in router_candidates(config['contracts'])}
        self.enabled = config['monitoring'].get('big_buys_enabled', True)
        self.threshold_eth = float(config['monitoring'].get('big_buy_threshold_eth', 1.0))
        self.poll_interval = config['network'].get('poll_interval_seconds', 2)

    async def attach(self):
        if not self.enabled:
            return
        self.session.registry.subscribe(
            "big-buys", BlockSubscription(self.client, self.scan_block, self.poll_interval)
        )
        print(f"{Fore.GREEN}[BigBuys] Watching router buys >= {self.threshold_eth} ETH{Style.RESET_ALL}")

    async def scan_block(self, block_number: int):
        block = await self.client.get_block(block_number, True)
        for tx in block['transactions']:
            to = tx.get('to')
            if to and to.lower() in self.routers:
                await self.process_transaction(tx, self.routers[to.lower()])

    def decode_bought_token(self, tx, candidate: RouterCandidate) -> Optional[str]:
        """Token bought with ETH by this router call, or None if it isn't an ETH buy"""
        router = self.client.contract(candidate.address, ROUTER_ABI)
        try:
            function, params = router.decode_function_input(tx['input'])
        except Exception:
            return None

        if function.fn_name not in ETH_BUY_METHODS:
            return None
        path = params.get('path') or []
        if len(path) < 2 or path[0].lower() != self.weth_address:
            return None
        return path[-1]

    async def process_transaction(self, tx, candidate: RouterCandidate) -> Optional[BigBuyData]:
        eth_amount = float(Web3.from_wei(tx['value'], 'ether'))
        if eth_amount < self.threshold_eth:
            return None

        tx_hash = Web3.to_hex(tx['hash'])
        if not self.session.mark_transaction(DEDUP_KIND, tx_hash):
            return None

        token_address = self.decode_bought_token(tx, candidate)
        if token_address is None:
            return None

        data = BigBuyData(
            sender=tx['from'],
            eth_amount=eth_amount,
            token_info=await self.inspector.get_token_info(token_address),
            router_name=candidate.name,
            tx_hash=tx_hash,
        )
        await self.alerts.send_buy_alert(data)
        return data
