import pytest

from base_sniper.alerts.telegram_bot import (
    TelegramAlert, format_buy_alert, format_pair_alert, format_supply, format_swap_alert,
)
from base_sniper.models import BigBuyData, PairInfo, SwapResult, TokenInfo

from fakes import PAIR, TOKEN, WETH


def new_token(**kwargs):
    return TokenInfo(address=TOKEN, name="Moon", symbol="MOON", decimals=18,
                     total_supply=1_000_000 * 10 ** 18, **kwargs)


def test_supply_is_scaled_by_decimals():
    assert format_supply(new_token()) == "1,000,000"
    assert format_supply(TokenInfo(address=TOKEN, decimals=6, total_supply=1_234_500_000)) == "1,234.5"


def test_pair_alert_contents():
    token = new_token()
    pair = PairInfo(pair_address=PAIR, token0=TokenInfo(address=WETH, symbol="WETH"), token1=token,
                    reserve0=6 * 10 ** 18, reserve1=0, liquidity_eth=6.0, token1_verified=True)

    message = format_pair_alert(pair, token, "Aerodrome", "https://basescan.org")

    assert message.startswith("🎯 *NEW HIGH-LIQUIDITY TOKEN DETECTED*")
    assert "*MOON* (Moon)" in message
    assert "6.00 ETH" in message
    assert "✅ Verified" in message
    assert f"https://dexscreener.com/base/{TOKEN}" in message
    assert f"https://basescan.org/token/{TOKEN}" in message


def test_unverified_lookup_shows_unknown():
    token = new_token()
    pair = PairInfo(pair_address=PAIR, token0=token, token1=TokenInfo(address=WETH),
                    reserve0=0, reserve1=0, liquidity_eth=7.0)

    assert "❔ Unknown" in format_pair_alert(pair, token, "Uniswap V2", "https://basescan.org")


def test_buy_alert_contents():
    data = BigBuyData(sender="0xbuyer", eth_amount=2.5, token_info=new_token(),
                      router_name="Uniswap V2", tx_hash="0xfeed")

    message = format_buy_alert(data)

    assert message.startswith("🔥 *BIG BUY DETECTED ON BASE*")
    assert "2.5000 ETH" in message
    assert "*MOON*" in message


def test_buy_alert_without_token_info():
    data = BigBuyData(sender="0xbuyer", eth_amount=1, token_info=None, router_name="Aerodrome", tx_hash="0x1")
    assert "*Unknown*" in format_buy_alert(data)


def test_swap_alert_flags_fee_on_transfer():
    result = SwapResult(tx_hash="0xabc", token_info=new_token(balance=5 * 10 ** 17), router_name="Aerodrome",
                        amount_in=10 ** 17, fee_on_transfer=True)

    message = format_swap_alert(result, "BUY", "https://basescan.org")

    assert message.startswith("✅ *BUY EXECUTED*")
    assert "Fee-on-transfer" in message
    assert "0.5000 MOON" in message
    assert "https://basescan.org/tx/0xabc" in message


@pytest.mark.asyncio
async def test_placeholder_credentials_disable_sending():
    alerts = TelegramAlert({'telegram_bot_token': "YOUR_TELEGRAM_BOT_TOKEN", 'telegram_chat_id': "YOUR_CHAT_ID"})

    assert alerts.enabled is False
    assert await alerts.send("hello") is False


def test_api_url():
    alerts = TelegramAlert({'telegram_bot_token': "123:abc", 'telegram_chat_id': 42})

    assert alerts.enabled is True
    assert alerts.chat_id == "42"
    assert alerts.api_url("getUpdates") == "https://api.telegram.org/bot123:abc/getUpdates"
