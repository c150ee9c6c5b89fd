"""
Pair Monitor - Watch DEX factories for new pairs/pools, alert and optionally buy
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.abis import (
    AERODROME_FACTORY_ABI, V2_FACTORY_ABI, V3_FACTORY_ABI, V3_POOL_ABI,
)
from base_sniper.chain.client import MissingPrivateKeyError
from base_sniper.chain.subscriptions import EventSubscription
from base_sniper.models import PairInfo


FACTORY_STATE_KEY = "factory_selected"


@dataclass(frozen=True)
class FactorySpec:
    key: str
    exchange: str
    contract_key: str
    abi: list
    event_name: str
    version: int


FACTORIES: Dict[str, FactorySpec] = {
    'uniswap_v2': FactorySpec('uniswap_v2', "Uniswap V2", 'uniswap_v2_factory', V2_FACTORY_ABI, "PairCreated", 2),
    'aerodrome': FactorySpec('aerodrome', "Aerodrome", 'aerodrome_factory', AERODROME_FACTORY_ABI, "PoolCreated", 2),
    'uniswap_v3': FactorySpec('uniswap_v3', "Uniswap V3", 'uniswap_v3_factory', V3_FACTORY_ABI, "PoolCreated", 3),
}


def mint_listener_name(pool: str) -> str:
    return f"v3-mint:{pool.lower()}"


class PairMonitor:
    def __init__(self, config: dict, client, session, analyzer, alert_filter, alerts, blacklist, state,
                 executor=None, verifier=None):
        self.config = config
        self.client = client
        self.session = session
        self.analyzer = analyzer
        self.alert_filter = alert_filter
        self.alerts = alerts
        self.blacklist = blacklist
        self.state = state
        self.executor = executor
        self.verifier = verifier

        self.weth_address = config['contracts']['weth']
        self.poll_interval = config['network'].get('poll_interval_seconds', 2)

        monitoring = config['monitoring']
        self.confirmation_delay = (
            monitoring.get('retry_delay_ms', 1000) * monitoring.get('block_confirmation_count', 3) / 1000
        )
        self.dedup_before_delay = monitoring.get('dedup_before_delay', True)
        self.mint_timeout_blocks = monitoring.get('v3_mint_timeout_blocks', 300)
        self.max_pending_pools = monitoring.get('v3_max_pending_pools', 50)
        # pool (lower) -> creation block, oldest first
        self.pending_pools: Dict[str, Optional[int]] = {}

        self.auto_swap = config['auto_swap']

    # --- factory selection ---

    def selected_factories(self) -> List[str]:
        selected = self.state.get(FACTORY_STATE_KEY, list(FACTORIES))
        return [key for key in selected if key in FACTORIES]

    def toggle_factory(self, key: str) -> Optional[bool]:
        """Flip a factory on/off; returns the new state, or None for an unknown key"""
        if key not in FACTORIES:
            return None
        selected = self.selected_factories()
        if key in selected:
            selected.remove(key)
            enabled = False
        else:
            selected.append(key)
            enabled = True
        self.state.set(FACTORY_STATE_KEY, selected)
        return enabled

    async def reload_factories(self):
        registry = self.session.registry
        registry.unsubscribe_prefix("factory:")
        if self.session.running:
            await self.attach()

    async def attach(self):
        # After a stop the Mint listeners are gone; a reload keeps them
        for pool in [p for p in self.pending_pools if mint_listener_name(p) not in self.session.registry]:
            del self.pending_pools[pool]
        for key in self.selected_factories():
            spec = FACTORIES[key]
            address = self.config['contracts'].get(spec.contract_key)
            if not address:
                print(f"{Fore.YELLOW}[Monitor] No address for {spec.exchange} factory - skipped{Style.RESET_ALL}")
                continue

            contract = self.client.contract(address, spec.abi)
            if spec.version == 3:
                handler = self.on_pool_created
            else:
                handler = self._v2_handler(spec.exchange)

            self.session.registry.subscribe(
                f"factory:{key}",
                EventSubscription(self.client, contract, spec.abi, spec.event_name, handler, self.poll_interval),
            )
            print(f"{Fore.GREEN}[Monitor] Watching {spec.exchange} factory {address}{Style.RESET_ALL}")

    def _v2_handler(self, exchange: str):
        async def handler(event):
            args = event['args']
            pair_address = args.get('pair') or args.get('pool')
            await self.on_pair_created(exchange, args['token0'], args['token1'], pair_address)
        return handler

    # --- V2-style pairs ---

    async def on_pair_created(self, exchange: str, token0: str, token1: str, pair_address: str):
        if self.dedup_before_delay:
            if not self.session.mark_pair(pair_address):
                return
        elif self.session.is_pair_tracked(pair_address):
            return

        print(f"{Fore.CYAN}[Monitor] New {exchange} pair {pair_address} - waiting for confirmations{Style.RESET_ALL}")
        await asyncio.sleep(self.confirmation_delay)

        # A duplicate that arrived during the delay loses here
        if not self.dedup_before_delay and not self.session.mark_pair(pair_address):
            return

        pair = await self.analyzer.analyze_pair(pair_address, token0, token1, version=2)
        if pair is None:
            return

        await self.process_pair(pair, exchange)

    # --- V3 pools: liquidity comes from the first Mint ---

    async def on_pool_created(self, event):
        args = event['args']
        pool = args['pool']
        token0, token1 = args['token0'], args['token1']
        key = pool.lower()

        if self.session.is_pair_tracked(pool) or key in self.pending_pools:
            return

        while len(self.pending_pools) >= self.max_pending_pools:
            oldest = next(iter(self.pending_pools))
            print(f"{Fore.YELLOW}[Monitor] Too many unfunded V3 pools - dropping {oldest}{Style.RESET_ALL}")
            self.drop_pending_pool(oldest)

        print(f"{Fore.CYAN}[Monitor] New Uniswap V3 pool {pool} (fee {args.get('fee')}) - "
              f"waiting for first Mint{Style.RESET_ALL}")

        async def on_mint(mint_event):
            await self.on_pool_mint(pool, token0, token1, mint_event['args'])

        # Start at the creation block: the first Mint often lands in the same block
        created_block = event.get('blockNumber')
        self.pending_pools[key] = created_block
        contract = self.client.contract(pool, V3_POOL_ABI)
        self.session.registry.subscribe(
            mint_listener_name(pool),
            EventSubscription(
                self.client, contract, V3_POOL_ABI, "Mint", on_mint, self.poll_interval,
                from_block=created_block,
                lifetime_blocks=self.mint_timeout_blocks,
                on_expire=lambda: self.drop_pending_pool(key),
            ),
        )

    def drop_pending_pool(self, pool: str):
        self.pending_pools.pop(pool.lower(), None)
        self.session.registry.unsubscribe(mint_listener_name(pool))

    async def on_pool_mint(self, pool: str, token0: str, token1: str, mint_args) -> None:
        amount0 = int(mint_args['amount0'])
        amount1 = int(mint_args['amount1'])
        if amount0 <= 0 or amount1 <= 0:
            return

        if not self.session.mark_pair(pool):
            return
        self.drop_pending_pool(pool)

        pair = await self.analyzer.analyze_pair(pool, token0, token1, version=3)
        if pair is None:
            return

        weth = self.weth_address.lower()
        if pair.token0.address.lower() == weth:
            pair.liquidity_eth = float(Web3.from_wei(amount0, 'ether'))
        elif pair.token1.address.lower() == weth:
            pair.liquidity_eth = float(Web3.from_wei(amount1, 'ether'))

        await self.process_pair(pair, "Uniswap V3")

    # --- shared alert path ---

    async def process_pair(self, pair: PairInfo, exchange: str) -> bool:
        """Filter, enrich and alert; returns True if an alert was sent"""
        if not self.alert_filter.should_alert(pair):
            print(f"{Fore.WHITE}[Monitor] {pair.pair_address}: {pair.liquidity_eth:.4f} ETH outside band"
                  f"{Style.RESET_ALL}")
            return False

        for token in (pair.token0, pair.token1):
            if self.blacklist.is_blacklisted(token.symbol):
                print(f"{Fore.YELLOW}[Monitor] {token.symbol} is blacklisted - skipped{Style.RESET_ALL}")
                return False

        await self.verify_tokens(pair)

        token = self.alert_filter.get_non_weth_token(pair)
        await self.alerts.send_pair_alert(pair, token, exchange)

        if self.auto_swap.get('enabled') and self.alert_filter.should_auto_swap(pair):
            await self.run_auto_swap(pair)
        return True

    async def verify_tokens(self, pair: PairInfo):
        if self.verifier is None or not self.verifier.enabled:
            return
        weth = self.weth_address.lower()
        if pair.token0.address.lower() != weth:
            pair.token0_verified = await self.verifier.is_verified(pair.token0.address)
        if pair.token1.address.lower() != weth:
            pair.token1_verified = await self.verifier.is_verified(pair.token1.address)

    async def run_auto_swap(self, pair: PairInfo):
        if self.executor is None:
            return
        token = self.alert_filter.get_non_weth_token(pair)
        amount = self.auto_swap.get('buy_amount_eth', 0.1)
        print(f"{Fore.CYAN}[Monitor] 🤖 Auto swap triggered for {token.symbol} ({amount} ETH){Style.RESET_ALL}")

        try:
            result = await self.executor.buy_token_with_eth(token.address, amount)
        except MissingPrivateKeyError:
            await self.alerts.send("⚠️ Auto swap skipped: no wallet private key configured")
            return
        except Exception as e:
            print(f"{Fore.RED}[Monitor] Auto swap error: {e}{Style.RESET_ALL}")
            await self.alerts.send(f"❌ Auto swap error for {token.symbol}: {e}")
            return

        if result is None:
            await self.alerts.send(f"❌ Auto swap failed for *{token.symbol}*: all routers failed")
        else:
            await self.alerts.send_swap_alert(result, "AUTO BUY")
