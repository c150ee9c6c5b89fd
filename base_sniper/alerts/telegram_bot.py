"""
Telegram Alert System - Format and send bot notifications
"""

import aiohttp
from decimal import Decimal
from typing import Optional, Union
from colorama import Fore, Style

from base_sniper.models import BigBuyData, PairInfo, SwapResult, TokenInfo


TELEGRAM_API = "https://api.telegram.org"


def format_supply(token: TokenInfo) -> str:
    supply = Decimal(token.total_supply) / (Decimal(10) ** token.decimals)
    return f"{supply.normalize():,f}"


def format_verification(verified: Optional[bool]) -> str:
    if verified is None:
        return "❔ Unknown"
    return "✅ Verified" if verified else "❌ Not verified"


def format_pair_alert(pair: PairInfo, token: TokenInfo, exchange: str, explorer_url: str) -> str:
    verified = pair.token0_verified if token is pair.token0 else pair.token1_verified
    return (
        f"🎯 *NEW HIGH-LIQUIDITY TOKEN DETECTED*\n\n"
        f"🏪 Exchange: *{exchange}*\n"
        f"🪙 Token: *{token.symbol}* ({token.name})\n"
        f"📍 Address: `{token.address}`\n"
        f"💧 Liquidity: *{pair.liquidity_eth:.2f} ETH*\n"
        f"📊 Total Supply: *{format_supply(token)}*\n"
        f"🔍 Source: {format_verification(verified)}\n"
        f"🔗 Pair: `{pair.pair_address}`\n"
        f"🔗 [DexScreener](https://dexscreener.com/base/{token.address}) | "
        f"[Explorer]({explorer_url}/token/{token.address})"
    )


def format_buy_alert(data: BigBuyData) -> str:
    symbol = data.token_info.symbol if data.token_info else "Unknown"
    address = data.token_info.address if data.token_info else "Unknown"
    return (
        f"🔥 *BIG BUY DETECTED ON BASE*\n\n"
        f"👤 Buyer: `{data.sender}`\n"
        f"💰 Amount: *{data.eth_amount:.4f} ETH*\n"
        f"🪙 Token: *{symbol}*\n"
        f"📍 Token Address: `{address}`\n"
        f"🏪 Router: *{data.router_name}*\n"
        f"🔗 TX: `{data.tx_hash}`\n\n"
        f"💡 *Someone just made a big purchase!*"
    )


def format_swap_alert(result: SwapResult, action: str, explorer_url: str) -> str:
    token = result.token_info
    lines = [
        f"✅ *{action} EXECUTED*\n",
        f"🪙 Token: *{token.symbol}* ({token.name})",
        f"📍 Address: `{token.address}`",
        f"🏪 Router: *{result.router_name}*",
    ]
    if result.fee_on_transfer:
        lines.append("⚠️ Fee-on-transfer route (no slippage guard)")
    if token.balance is not None:
        lines.append(f"📊 Balance: *{token.balance_units:,.4f} {token.symbol}*")
    lines.append(f"⛽ Gas used: {result.gas_used}")
    lines.append(f"🔗 [TX]({explorer_url}/tx/{result.tx_hash})")
    return "\n".join(lines)


class TelegramAlert:
    def __init__(self, alerts_config: dict, explorer_url: str = "https://basescan.org"):
        self.bot_token = alerts_config.get('telegram_bot_token', '')
        self.chat_id = str(alerts_config.get('telegram_chat_id', ''))
        self.explorer_url = explorer_url

        self.enabled = bool(self.bot_token and self.chat_id) and \
            self.bot_token != "YOUR_TELEGRAM_BOT_TOKEN" and \
            self.chat_id != "YOUR_CHAT_ID"

        if not self.enabled:
            print(f"{Fore.YELLOW}[Alerts] Telegram not configured - alerts disabled{Style.RESET_ALL}")
        else:
            print(f"{Fore.GREEN}[Alerts] Telegram alerts enabled{Style.RESET_ALL}")

    def api_url(self, method: str) -> str:
        return f"{TELEGRAM_API}/bot{self.bot_token}/{method}"

    async def send(self, message: str, parse_mode: str = "Markdown",
                   chat_id: Optional[Union[str, int]] = None) -> bool:
        """Send a message via Telegram, to the configured chat unless one is given"""
        if not self.enabled:
            return False

        payload = {
            "chat_id": chat_id if chat_id is not None else self.chat_id,
            "text": message,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.api_url("sendMessage"), json=payload) as response:
                    if response.status != 200:
                        error = await response.text()
                        print(f"{Fore.RED}[Alerts] Telegram error: {error}{Style.RESET_ALL}")
                        return False
            return True

        except Exception as e:
            print(f"{Fore.RED}[Alerts] Failed to send Telegram: {e}{Style.RESET_ALL}")
            return False

    async def send_pair_alert(self, pair: PairInfo, token: TokenInfo, exchange: str):
        print(f"{Fore.GREEN}[Alerts] 🚨 New token {token.symbol} with "
              f"{pair.liquidity_eth:.2f} ETH liquidity on {exchange}{Style.RESET_ALL}")
        await self.send(format_pair_alert(pair, token, exchange, self.explorer_url))

    async def send_buy_alert(self, data: BigBuyData):
        symbol = data.token_info.symbol if data.token_info else "Unknown"
        print(f"{Fore.MAGENTA}[Alerts] 🔥 BIG BUY: {data.eth_amount:.4f} ETH on {symbol}{Style.RESET_ALL}")
        await self.send(format_buy_alert(data))

    async def send_swap_alert(self, result: SwapResult, action: str = "BUY"):
        await self.send(format_swap_alert(result, action, self.explorer_url))

    async def test(self):
        """Send a test message"""
        await self.send("🧪 *TEST ALERT*\n\nBase Sniper is connected!\nAlerts are working correctly.")
        print(f"{Fore.GREEN}[Alerts] Test message sent{Style.RESET_ALL}")
