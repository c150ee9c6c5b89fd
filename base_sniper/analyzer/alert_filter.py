"""
Alert Filter - Decide which discovered pairs are worth an alert or a buy
"""

from base_sniper.models import PairInfo, TokenInfo


class AlertFilter:
    def __init__(self, filters_config: dict, auto_swap_config: dict, weth_address: str):
        self.min_liquidity = float(filters_config['min_liquidity_eth'])
        self.max_liquidity = float(filters_config['max_liquidity_eth'])
        self.max_supply_enabled = bool(filters_config.get('max_supply_enabled', False))
        self.max_supply = float(filters_config.get('max_supply_threshold', 1e9))

        self.auto_min_liquidity = float(auto_swap_config.get('min_liquidity_eth', 10))
        self.auto_max_supply = float(auto_swap_config.get('max_supply_threshold', 1e9))

        self.weth_address = weth_address

    def get_non_weth_token(self, pair: PairInfo) -> TokenInfo:
        if pair.token0.address.lower() == self.weth_address.lower():
            return pair.token1
        return pair.token0

    def should_alert(self, pair: PairInfo) -> bool:
        # Both ends exclusive
        if not self.min_liquidity < pair.liquidity_eth < self.max_liquidity:
            return False

        if self.max_supply_enabled:
            if self.get_non_weth_token(pair).circulating_supply > self.max_supply:
                return False

        return True

    def should_auto_swap(self, pair: PairInfo) -> bool:
        if pair.liquidity_eth < self.auto_min_liquidity:
            return False
        return self.get_non_weth_token(pair).circulating_supply <= self.auto_max_supply
