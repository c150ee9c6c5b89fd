"""
Telegram Commands - Long-poll the Bot API and dispatch operator commands
"""

import asyncio
import re
import aiohttp
from typing import Awaitable, Callable, List, Optional, Tuple
from web3 import Web3
from colorama import Fore, Style

from base_sniper.chain.client import MissingPrivateKeyError
from base_sniper.scanner.pair_monitor import FACTORIES


UNAUTHORIZED = "⛔ Unauthorized access"
NO_PRIVATE_KEY = "⚠️ No wallet private key configured. Cannot execute swap."

COMMANDS = [
    ("/start", "Start monitoring"),
    ("/stop", "Stop monitoring"),
    ("/status", "Monitoring status"),
    ("/buy <token> <eth> [slippage]", "Buy a token with ETH"),
    ("/sell <token> <amount|max> [slippage]", "Sell a token for ETH"),
    ("/tokenbalance <token>", "Show wallet balance of a token"),
    ("/blacklist", "Show blacklisted symbols"),
    ("/addblacklist <SYMBOL>", "Blacklist a symbol"),
    ("/removeblacklist <SYMBOL>", "Remove a symbol from the blacklist"),
    ("/resetblacklist", "Restore the default blacklist"),
    ("/listen <wallet>", "Watch a wallet"),
    ("/unlisten <wallet>", "Stop watching a wallet"),
    ("/wallets", "List watched wallets"),
    ("/factories", "Show watched factories"),
    ("/togglefactory <name>", "Enable/disable a factory"),
    ("/myinfo", "Show the bot wallet"),
    ("/help", "Show this help"),
]


class CommandError(Exception):
    """Bad operator input; the message is sent back as-is"""


def parse_slippage(raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    try:
        slippage = float(raw)
    except ValueError:
        raise CommandError("❌ Slippage must be a number between 1 and 100")
    if not 1 <= slippage <= 100:
        raise CommandError("❌ Slippage must be between 1 and 100")
    return slippage


def parse_eth_amount(raw: str) -> float:
    try:
        amount = float(raw)
    except ValueError:
        raise CommandError("❌ Invalid amount. Please provide a positive number")
    if amount <= 0:
        raise CommandError("❌ Invalid amount. Please provide a positive number")
    return amount


def parse_address(raw: str) -> str:
    if not Web3.is_address(raw):
        raise CommandError("❌ Invalid token address")
    return Web3.to_checksum_address(raw)


class CommandBot:
    def __init__(self, config: dict, alerts, client, session, pair_monitor, executor, multi_hop,
                 inspector, blacklist, wallet_tracker):
        self.config = config
        self.alerts = alerts
        self.client = client
        self.session = session
        self.pair_monitor = pair_monitor
        self.executor = executor
        self.multi_hop = multi_hop
        self.inspector = inspector
        self.blacklist = blacklist
        self.wallet_tracker = wallet_tracker

        self.explorer_url = config['network']['explorer_url']
        self.default_slippage = config['trading'].get('slippage_percent', 5)
        self.poll_timeout = config['alerts'].get('poll_timeout_seconds', 30)
        self.offset = 0
        self.running = False

        self.handlers: List[Tuple[re.Pattern, Callable[..., Awaitable[str]]]] = [
            (re.compile(r"^/start\b"), self.cmd_start),
            (re.compile(r"^/stop\b"), self.cmd_stop),
            (re.compile(r"^/status\b"), self.cmd_status),
            (re.compile(r"^/help\b"), self.cmd_help),
            (re.compile(r"^/buy\b(.*)"), self.cmd_buy),
            (re.compile(r"^/sell\b(.*)"), self.cmd_sell),
            (re.compile(r"^/tokenbalance\b(.*)"), self.cmd_token_balance),
            (re.compile(r"^/blacklist\b"), self.cmd_blacklist),
            (re.compile(r"^/addblacklist\b(.*)"), self.cmd_add_blacklist),
            (re.compile(r"^/removeblacklist\b(.*)"), self.cmd_remove_blacklist),
            (re.compile(r"^/resetblacklist\b"), self.cmd_reset_blacklist),
            (re.compile(r"^/listen\b(.*)"), self.cmd_listen),
            (re.compile(r"^/unlisten\b(.*)"), self.cmd_unlisten),
            (re.compile(r"^/wallets\b"), self.cmd_wallets),
            (re.compile(r"^/factories\b"), self.cmd_factories),
            (re.compile(r"^/togglefactory\b(.*)"), self.cmd_toggle_factory),
            (re.compile(r"^/myinfo\b"), self.cmd_myinfo),
        ]

    # --- transport ---

    async def start(self):
        if not self.alerts.enabled:
            print(f"{Fore.YELLOW}[Commands] Telegram not configured - commands disabled{Style.RESET_ALL}")
            return

        self.running = True
        print(f"{Fore.GREEN}[Commands] Listening for Telegram commands...{Style.RESET_ALL}")
        while self.running:
            try:
                await self.poll_updates()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                print(f"{Fore.RED}[Commands] Polling error: {e}{Style.RESET_ALL}")
                await asyncio.sleep(5)

    def stop(self):
        self.running = False

    async def fetch_updates(self) -> list:
        params = {"timeout": self.poll_timeout, "offset": self.offset}
        timeout = aiohttp.ClientTimeout(total=self.poll_timeout + 10)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.alerts.api_url("getUpdates"), params=params) as response:
                data = await response.json()
        if not data.get('ok'):
            raise RuntimeError(f"getUpdates failed: {data.get('description')}")
        return data.get('result', [])

    async def poll_updates(self):
        for update in await self.fetch_updates():
            self.offset = update['update_id'] + 1
            message = update.get('message') or {}
            text = message.get('text')
            chat_id = (message.get('chat') or {}).get('id')
            if text and chat_id is not None:
                await self.handle(chat_id, text)

    async def handle(self, chat_id, text: str) -> Optional[str]:
        """Dispatch one message and send the reply; returns the reply text"""
        reply = await self.dispatch(chat_id, text)
        if reply:
            await self.alerts.send(reply, chat_id=chat_id)
        return reply

    async def dispatch(self, chat_id, text: str) -> Optional[str]:
        text = text.strip()
        # "/cmd@BotName args" -> "/cmd args"
        text = re.sub(r"^(/\w+)@\w+", r"\1", text)

        for pattern, handler in self.handlers:
            match = pattern.match(text)
            if not match:
                continue

            if str(chat_id) != str(self.alerts.chat_id):
                print(f"{Fore.YELLOW}[Commands] Rejected {text.split()[0]} from chat {chat_id}{Style.RESET_ALL}")
                return UNAUTHORIZED

            args = match.group(1).split() if match.groups() else []
            try:
                return await handler(chat_id, args)
            except CommandError as e:
                return str(e)
            except MissingPrivateKeyError:
                return NO_PRIVATE_KEY
            except Exception as e:
                print(f"{Fore.RED}[Commands] {text.split()[0]} failed: {e}{Style.RESET_ALL}")
                return f"❌ An error occurred: {e}"
        return None

    # --- monitoring ---

    async def cmd_start(self, chat_id, args) -> str:
        if not await self.session.start():
            return "⚠️ Monitoring is already running"
        return "🟢 Monitoring started"

    async def cmd_stop(self, chat_id, args) -> str:
        if not await self.session.stop():
            return "⚠️ Monitoring is not running"
        return "🛑 Monitoring stopped"

    async def cmd_status(self, chat_id, args) -> str:
        status = self.session.status()
        state = "🟢 Running" if status['running'] else "🔴 Stopped"
        listeners = "\n".join(f"  • {name}" for name in status['listeners']) or "  • none"
        return (
            f"📊 *Status*: {state}\n"
            f"🏭 Factories: {', '.join(self.pair_monitor.selected_factories()) or 'none'}\n"
            f"🔁 Tracked pairs: {status['tracked_pairs']}\n"
            f"🧾 Processed txs: {status['processed_transactions']}\n"
            f"👂 Listeners:\n{listeners}"
        )

    async def cmd_help(self, chat_id, args) -> str:
        lines = [f"{command} - {description}" for command, description in COMMANDS]
        return "🤖 *Available commands*\n\n" + "\n".join(lines)

    # --- trading ---

    def _require_wallet(self):
        if self.client.account is None:
            raise CommandError(NO_PRIVATE_KEY)

    async def cmd_buy(self, chat_id, args) -> str:
        if len(args) < 2:
            raise CommandError("Usage: /buy <token_address> <eth_amount> [slippage]")
        token = parse_address(args[0])
        amount = parse_eth_amount(args[1])
        slippage = parse_slippage(args[2] if len(args) > 2 else None, self.default_slippage)
        self._require_wallet()

        await self.alerts.send(f"⏳ Buying `{token}` with {amount} ETH...", chat_id=chat_id)
        result = await self.executor.buy_token_with_eth(token, amount)
        action = "BUY"

        if result is None and self.multi_hop is not None and self.multi_hop.enabled:
            await self.alerts.send("🔀 Direct routers failed - trying multi-hop route...", chat_id=chat_id)
            result = await self.multi_hop.smart_buy_with_multi_hop(token, amount, slippage)
            action = "MULTI-HOP BUY"

        if result is None:
            return "❌ Swap failed on all routers. Token may have no liquidity."
        await self.alerts.send_swap_alert(result, action)
        return f"✅ Bought *{result.token_info.symbol}* via {result.router_name}"

    async def cmd_sell(self, chat_id, args) -> str:
        if len(args) < 2:
            raise CommandError("Usage: /sell <token_address> <amount|max> [slippage]")
        token = parse_address(args[0])
        amount = args[1]
        if amount.lower() != "max":
            parse_eth_amount(amount)
        slippage = parse_slippage(args[2] if len(args) > 2 else None, self.default_slippage)
        self._require_wallet()

        await self.alerts.send(f"⏳ Selling {amount} of `{token}`...", chat_id=chat_id)
        result = await self.executor.sell_token_for_eth(token, amount, slippage)
        if result is None:
            return "❌ Sell failed on all routers (or nothing to sell)."
        await self.alerts.send_swap_alert(result, "SELL")
        return f"✅ Sold *{result.token_info.symbol}* via {result.router_name}"

    async def cmd_token_balance(self, chat_id, args) -> str:
        if not args:
            raise CommandError("Usage: /tokenbalance <token_address>")
        token = parse_address(args[0])
        self._require_wallet()
        info = await self.inspector.get_user_token_info(token)
        return (
            f"🪙 *{info.symbol}* ({info.name})\n"
            f"📍 `{info.address}`\n"
            f"📊 Balance: *{info.balance_units:,.4f} {info.symbol}*"
        )

    async def cmd_myinfo(self, chat_id, args) -> str:
        address = self.client.address
        if address is None:
            return NO_PRIVATE_KEY
        eth = Web3.from_wei(await self.client.get_balance(address), 'ether')
        return (
            f"👛 Wallet: `{address}`\n"
            f"💰 Balance: *{eth:.4f} ETH*\n"
            f"🔗 [Explorer]({self.explorer_url}/address/{address}) | "
            f"[DeBank](https://debank.com/profile/{address})"
        )

    # --- blacklist ---

    async def cmd_blacklist(self, chat_id, args) -> str:
        symbols = self.blacklist.get()
        if not symbols:
            return "📝 Blacklist is empty"
        return f"🚫 *Blacklisted symbols* ({len(symbols)})\n\n" + ", ".join(symbols)

    async def cmd_add_blacklist(self, chat_id, args) -> str:
        if not args:
            raise CommandError("Usage: /addblacklist <SYMBOL>")
        symbol = " ".join(args)
        if self.blacklist.add(symbol):
            return f"✅ Added {symbol} to blacklist"
        return f"⚠️ {symbol} is already blacklisted"

    async def cmd_remove_blacklist(self, chat_id, args) -> str:
        if not args:
            raise CommandError("Usage: /removeblacklist <SYMBOL>")
        symbol = " ".join(args)
        if self.blacklist.remove(symbol):
            return f"✅ Removed {symbol} from blacklist"
        return f"⚠️ {symbol} is not blacklisted"

    async def cmd_reset_blacklist(self, chat_id, args) -> str:
        self.blacklist.reset()
        return f"🔄 Blacklist reset to defaults ({len(self.blacklist.get())} symbols)"

    # --- wallets ---

    async def cmd_listen(self, chat_id, args) -> str:
        if not args:
            raise CommandError("Usage: /listen <wallet_address>")
        address = parse_address(args[0])
        if await self.wallet_tracker.add_wallet(address):
            return f"👂 Now watching `{address}`"
        return f"⚠️ `{address}` is already watched"

    async def cmd_unlisten(self, chat_id, args) -> str:
        if not args:
            raise CommandError("Usage: /unlisten <wallet_address>")
        if await self.wallet_tracker.remove_wallet(args[0]):
            return f"🔇 Stopped watching `{args[0]}`"
        return f"⚠️ `{args[0]}` is not watched"

    async def cmd_wallets(self, chat_id, args) -> str:
        wallets = self.wallet_tracker.wallets()
        if not wallets:
            return "📝 No wallets watched"
        return "👀 *Watched wallets*\n\n" + "\n".join(f"`{w}`" for w in wallets)

    # --- factories ---

    async def cmd_factories(self, chat_id, args) -> str:
        selected = set(self.pair_monitor.selected_factories())
        lines = [
            f"{'✅' if key in selected else '⬜'} {key} ({spec.exchange})"
            for key, spec in FACTORIES.items()
        ]
        return "🏭 *Factories*\n\n" + "\n".join(lines)

    async def cmd_toggle_factory(self, chat_id, args) -> str:
        if not args:
            raise CommandError(f"Usage: /togglefactory <{'|'.join(FACTORIES)}>")
        enabled = self.pair_monitor.toggle_factory(args[0])
        if enabled is None:
            raise CommandError(f"❌ Unknown factory. Choose one of: {', '.join(FACTORIES)}")
        await self.pair_monitor.reload_factories()
        return f"{'✅ Enabled' if enabled else '⬜ Disabled'} {args[0]}"
