"""
Monitoring Session - Dedup sets, listener registry and start/stop lifecycle
"""

from typing import List, Set, Tuple
from colorama import Fore, Style

from base_sniper.chain.subscriptions import SubscriptionRegistry


class MonitoringSession:
    def __init__(self, registry: SubscriptionRegistry = None):
        self.registry = registry or SubscriptionRegistry()
        self.tracked_pairs: Set[str] = set()
        # (kind, tx hash): each alert kind dedups on its own
        self.processed_transactions: Set[Tuple[str, str]] = set()
        self.running = False
        self.components: List = []

    def add_component(self, component):
        """Components expose `async attach()` and register listeners on the registry"""
        self.components.append(component)

    async def start(self) -> bool:
        if self.running:
            return False
        self.running = True
        for component in self.components:
            await component.attach()
        print(f"{Fore.GREEN}[Session] Monitoring started ({len(self.registry)} listeners){Style.RESET_ALL}")
        return True

    async def stop(self) -> bool:
        if not self.running:
            return False
        self.running = False
        count = self.registry.unsubscribe_all()
        print(f"{Fore.RED}[Session] Monitoring stopped ({count} listeners removed){Style.RESET_ALL}")
        return True

    def reset(self):
        self.tracked_pairs.clear()
        self.processed_transactions.clear()

    def is_pair_tracked(self, address: str) -> bool:
        return address.lower() in self.tracked_pairs

    def mark_pair(self, address: str) -> bool:
        """Check-and-add; False if the pair was already seen"""
        key = address.lower()
        if key in self.tracked_pairs:
            return False
        self.tracked_pairs.add(key)
        return True

    def mark_transaction(self, kind: str, tx_hash: str) -> bool:
        key = (kind, tx_hash.lower())
        if key in self.processed_transactions:
            return False
        self.processed_transactions.add(key)
        return True

    def status(self) -> dict:
        return {
            'running': self.running,
            'listeners': self.registry.names(),
            'tracked_pairs': len(self.tracked_pairs),
            'processed_transactions': len(self.processed_transactions),
        }
