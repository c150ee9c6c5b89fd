#!/usr/bin/env python3
"""
Base Sniper - Main Entry Point
New-pair sniper and trading bot for Base, driven from Telegram
"""

import argparse
import asyncio
from pathlib import Path
from colorama import init, Fore, Style

from base_sniper.config import ConfigError, load_settings
from base_sniper.chain.client import ChainClient
from base_sniper.analyzer.token_inspector import TokenInspector
from base_sniper.analyzer.pair_analyzer import PairAnalyzer
from base_sniper.analyzer.alert_filter import AlertFilter
from base_sniper.analyzer.verification import ContractVerifier
from base_sniper.trader.swap_executor import SwapExecutor
from base_sniper.trader.universal_router import UniversalRouterSwap
from base_sniper.trader.multi_hop import MultiHopRouter
from base_sniper.scanner.session import MonitoringSession
from base_sniper.scanner.pair_monitor import PairMonitor
from base_sniper.tracker.buy_tracker import BigBuyTracker
from base_sniper.tracker.wallet_tracker import WalletTracker
from base_sniper.state.state_service import StateService
from base_sniper.state.blacklist import Blacklist
from base_sniper.alerts.telegram_bot import TelegramAlert
from base_sniper.alerts.commands import CommandBot

init(autoreset=True)


class SniperApp:
    def __init__(self, config: dict):
        self.config = config
        weth = config['contracts']['weth']

        # Shared collaborators
        self.client = ChainClient(config)
        self.state = StateService(config['state']['path'])
        self.blacklist = Blacklist(self.state)
        self.blacklist.ensure()
        self.alerts = TelegramAlert(config['alerts'], config['network']['explorer_url'])

        # Analysis + trading
        self.inspector = TokenInspector(self.client)
        self.analyzer = PairAnalyzer(self.client, self.inspector, weth)
        self.alert_filter = AlertFilter(config['filters'], config['auto_swap'], weth)
        self.verifier = ContractVerifier(config['verification'], config['network']['chain_id'])
        self.executor = SwapExecutor(config, self.client, self.inspector)
        self.universal_router = UniversalRouterSwap(config, self.client, self.inspector)
        self.multi_hop = MultiHopRouter(config, self.client, self.inspector, self.universal_router)

        # Monitoring
        self.session = MonitoringSession()
        self.pair_monitor = PairMonitor(
            config, self.client, self.session, self.analyzer, self.alert_filter, self.alerts,
            self.blacklist, self.state, executor=self.executor, verifier=self.verifier,
        )
        self.buy_tracker = BigBuyTracker(config, self.client, self.session, self.inspector, self.alerts)
        self.wallet_tracker = WalletTracker(config, self.client, self.session, self.state, self.alerts)
        for component in (self.pair_monitor, self.buy_tracker, self.wallet_tracker):
            self.session.add_component(component)

        self.commands = CommandBot(
            config, self.alerts, self.client, self.session, self.pair_monitor, self.executor,
            self.multi_hop, self.inspector, self.blacklist, self.wallet_tracker,
        )

    def print_banner(self):
        network = self.config['network']
        filters = self.config['filters']
        banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════════════════════════╗
║  {Fore.YELLOW}██████╗  █████╗ ███████╗███████╗{Fore.CYAN}                            ║
║  {Fore.YELLOW}██╔══██╗██╔══██╗██╔════╝██╔════╝{Fore.CYAN}                            ║
║  {Fore.YELLOW}██████╔╝███████║███████╗█████╗  {Fore.CYAN}  {Fore.WHITE}Sniper Bot{Fore.CYAN}                ║
║  {Fore.YELLOW}██╔══██╗██╔══██║╚════██║██╔══╝  {Fore.CYAN}  {Fore.GREEN}New pairs on Base{Fore.CYAN}         ║
║  {Fore.YELLOW}██████╔╝██║  ██║███████║███████╗{Fore.CYAN}                            ║
║  {Fore.YELLOW}╚═════╝ ╚═╝  ╚═╝╚══════╝╚══════╝{Fore.CYAN}                            ║
╚══════════════════════════════════════════════════════════════╝
{Style.RESET_ALL}"""
        print(banner)
        print(f"{Fore.WHITE}[*] RPC: {network['rpc_url']} (chain {network['chain_id']}){Style.RESET_ALL}")
        print(f"{Fore.WHITE}[*] Liquidity band: {filters['min_liquidity_eth']} - "
              f"{filters['max_liquidity_eth']} ETH{Style.RESET_ALL}")
        wallet = self.client.address or "not configured"
        print(f"{Fore.WHITE}[*] Wallet: {wallet}{Style.RESET_ALL}")

    def handle_loop_exception(self, loop, context):
        # Background failures are logged, the bot keeps running
        error = context.get('exception') or context.get('message')
        print(f"{Fore.RED}[!] Unhandled background error: {error}{Style.RESET_ALL}")

    async def main(self):
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_exception)
        self.print_banner()

        if self.config['monitoring'].get('autostart', True):
            await self.session.start()
            await self.alerts.send("🟢 Base Sniper started - monitoring new pairs")

        try:
            if self.alerts.enabled:
                await self.commands.start()
            else:
                # No command channel: just keep the listeners alive
                while True:
                    await asyncio.sleep(3600)
        finally:
            await self.session.stop()


def main():
    parser = argparse.ArgumentParser(description="Base new-pair sniper bot")
    parser.add_argument("--config", default=str(Path(__file__).parent / "config" / "settings.json"),
                        help="Path to settings.json")
    args = parser.parse_args()

    try:
        config = load_settings(Path(args.config))
    except ConfigError as e:
        print(f"{Fore.RED}[!] Configuration error: {e}{Style.RESET_ALL}")
        raise SystemExit(1)

    app = SniperApp(config)
    try:
        asyncio.run(app.main())
    except KeyboardInterrupt:
        print(f"\n{Fore.RED}[*] Interrupted. Exiting...{Style.RESET_ALL}")


if __name__ == "__main__":
    main()
