"""
Token Blacklist - Symbols that never produce an alert
"""

from typing import List
from colorama import Fore, Style


BLACKLIST_KEY = "token_blacklist"

# Established tokens whose new pools are noise, not launches
DEFAULT_BLACKLIST = [
    "USDC", "USDbC", "USDT", "DAI", "cbETH", "wstETH", "rETH", "cbBTC", "WBTC", "AERO", "EURC",
]


class Blacklist:
    def __init__(self, state):
        self.state = state

    def ensure(self):
        if self.state.get(BLACKLIST_KEY) is None:
            self.state.set(BLACKLIST_KEY, list(DEFAULT_BLACKLIST))

    def get(self) -> List[str]:
        self.ensure()
        return self.state.get(BLACKLIST_KEY, [])

    def add(self, symbol: str) -> bool:
        symbol = symbol.strip()
        blacklist = self.get()
        if not symbol or symbol in blacklist:
            return False
        blacklist.append(symbol)
        self.state.set(BLACKLIST_KEY, blacklist)
        print(f"{Fore.YELLOW}[Blacklist] Added {symbol}{Style.RESET_ALL}")
        return True

    def remove(self, symbol: str) -> bool:
        symbol = symbol.strip()
        blacklist = self.get()
        if symbol not in blacklist:
            return False
        blacklist.remove(symbol)
        self.state.set(BLACKLIST_KEY, blacklist)
        print(f"{Fore.YELLOW}[Blacklist] Removed {symbol}{Style.RESET_ALL}")
        return True

    def is_blacklisted(self, symbol: str) -> bool:
        needle = symbol.strip().lower()
        return any(entry.strip().lower() == needle for entry in self.get())

    def reset(self):
        self.state.set(BLACKLIST_KEY, list(DEFAULT_BLACKLIST))

    def clear(self):
        self.state.set(BLACKLIST_KEY, [])
