import pytest

from base_sniper.alerts.commands import NO_PRIVATE_KEY, UNAUTHORIZED, CommandBot
from base_sniper.analyzer.alert_filter import AlertFilter
from base_sniper.analyzer.pair_analyzer import PairAnalyzer
from base_sniper.analyzer.token_inspector import TokenInspector
from base_sniper.models import SwapResult, TokenInfo
from base_sniper.scanner.pair_monitor import PairMonitor
from base_sniper.scanner.session import MonitoringSession
from base_sniper.state.blacklist import Blacklist
from base_sniper.tracker.wallet_tracker import WalletTracker

from fakes import FakeChainClient, TOKEN, WETH, script_token


OWNER = "42"


def swap_result(symbol="NEW", router="Aerodrome"):
    return SwapResult(tx_hash="0x01", token_info=TokenInfo(address=TOKEN, symbol=symbol),
                      router_name=router, amount_in=10 ** 17)


class StubExecutor:
    def __init__(self, buy_result=None, sell_result=None):
        self.buy_result = buy_result
        self.sell_result = sell_result
        self.buys = []
        self.sells = []

    async def buy_token_with_eth(self, token, amount):
        self.buys.append((token, amount))
        return self.buy_result

    async def sell_token_for_eth(self, token, amount, slippage=None):
        self.sells.append((token, amount, slippage))
        return self.sell_result


class StubMultiHop:
    enabled = True

    def __init__(self, result=None):
        self.result = result
        self.calls = []

    async def smart_buy_with_multi_hop(self, token, amount, slippage):
        self.calls.append((token, amount, slippage))
        return self.result


def make_bot(client, settings, alerts, state, executor=None, multi_hop=None):
    inspector = TokenInspector(client)
    session = MonitoringSession()
    blacklist = Blacklist(state)
    blacklist.ensure()
    monitor = PairMonitor(settings, client, session, PairAnalyzer(client, inspector, WETH),
                          AlertFilter(settings['filters'], settings['auto_swap'], WETH),
                          alerts, blacklist, state)
    tracker = WalletTracker(settings, client, session, state, alerts)
    return CommandBot(settings, alerts, client, session, monitor, executor or StubExecutor(),
                      multi_hop, inspector, blacklist, tracker)


@pytest.mark.asyncio
async def test_other_chat_is_rejected(client, settings, alerts, state):
    executor = StubExecutor()
    bot = make_bot(client, settings, alerts, state, executor=executor)

    reply = await bot.handle(7, f"/buy {TOKEN} 1")

    assert reply == UNAUTHORIZED
    assert alerts.messages == [(7, UNAUTHORIZED)]
    assert executor.buys == []


@pytest.mark.asyncio
async def test_unknown_text_gets_no_reply(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)
    assert await bot.handle(OWNER, "gm") is None
    assert alerts.messages == []


@pytest.mark.asyncio
async def test_help_lists_commands(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    reply = await bot.dispatch(OWNER, "/help@BaseSniperBot")

    for command in ("/buy", "/sell", "/listen", "/togglefactory", "/blacklist"):
        assert command in reply


@pytest.mark.asyncio
@pytest.mark.parametrize("text, expected", [
    ("/buy", "Usage: /buy"),
    ("/buy 0x123 1", "Invalid token address"),
    (f"/buy {TOKEN} -1", "Invalid amount"),
    (f"/buy {TOKEN} abc", "Invalid amount"),
    (f"/buy {TOKEN} 1 0", "Slippage must be between 1 and 100"),
    (f"/buy {TOKEN} 1 101", "Slippage must be between 1 and 100"),
])
async def test_buy_argument_validation(client, settings, alerts, state, text, expected):
    executor = StubExecutor()
    bot = make_bot(client, settings, alerts, state, executor=executor)

    assert expected in await bot.dispatch(OWNER, text)
    assert executor.buys == []


@pytest.mark.asyncio
async def test_buy_without_wallet(settings, alerts, state):
    client = FakeChainClient(has_account=False)
    bot = make_bot(client, settings, alerts, state)

    assert await bot.dispatch(OWNER, f"/buy {TOKEN} 0.1") == NO_PRIVATE_KEY


@pytest.mark.asyncio
async def test_buy_success_sends_swap_alert(client, settings, alerts, state):
    executor = StubExecutor(buy_result=swap_result())
    bot = make_bot(client, settings, alerts, state, executor=executor)

    reply = await bot.dispatch(OWNER, f"/buy {TOKEN} 0.1")

    assert "Bought *NEW* via Aerodrome" in reply
    assert executor.buys[0][1] == 0.1
    assert alerts.swap_alerts[0][1] == "BUY"


@pytest.mark.asyncio
async def test_buy_falls_back_to_multi_hop(client, settings, alerts, state):
    multi_hop = StubMultiHop(result=swap_result(router="Uniswap V2"))
    bot = make_bot(client, settings, alerts, state, multi_hop=multi_hop)

    reply = await bot.dispatch(OWNER, f"/buy {TOKEN} 0.1 12")

    assert multi_hop.calls[0][1:] == (0.1, 12.0)
    assert alerts.swap_alerts[0][1] == "MULTI-HOP BUY"
    assert "via Uniswap V2" in reply


@pytest.mark.asyncio
async def test_buy_failure_message(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    assert "failed on all routers" in await bot.dispatch(OWNER, f"/buy {TOKEN} 0.1")


@pytest.mark.asyncio
async def test_sell_passes_max_and_slippage(client, settings, alerts, state):
    executor = StubExecutor(sell_result=swap_result())
    bot = make_bot(client, settings, alerts, state, executor=executor)

    await bot.dispatch(OWNER, f"/sell {TOKEN} max 15")

    assert [(amount, slippage) for _, amount, slippage in executor.sells] == [("max", 15.0)]
    assert alerts.swap_alerts[0][1] == "SELL"


@pytest.mark.asyncio
async def test_token_balance(client, settings, alerts, state):
    script_token(client, TOKEN, symbol="NEW", decimals=6, balance=2_500_000)
    bot = make_bot(client, settings, alerts, state)

    reply = await bot.dispatch(OWNER, f"/tokenbalance {TOKEN}")

    assert "2.5000 NEW" in reply


@pytest.mark.asyncio
async def test_myinfo_shows_eth_balance(client, settings, alerts, state):
    client.eth_balance = 15 * 10 ** 17
    bot = make_bot(client, settings, alerts, state)

    reply = await bot.dispatch(OWNER, "/myinfo")

    assert "1.5000 ETH" in reply
    assert client.address in reply


@pytest.mark.asyncio
async def test_blacklist_commands(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    assert "Added PEPE" in await bot.dispatch(OWNER, "/addblacklist PEPE")
    assert "already blacklisted" in await bot.dispatch(OWNER, "/addblacklist PEPE")
    assert "PEPE" in await bot.dispatch(OWNER, "/blacklist")
    assert "Removed PEPE" in await bot.dispatch(OWNER, "/removeblacklist PEPE")
    assert "not blacklisted" in await bot.dispatch(OWNER, "/removeblacklist PEPE")
    assert "reset to defaults" in await bot.dispatch(OWNER, "/resetblacklist")


@pytest.mark.asyncio
async def test_listen_and_unlisten_wallet(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)
    wallet = "0x" + "12" * 20

    assert "Now watching" in await bot.dispatch(OWNER, f"/listen {wallet}")
    assert "already watched" in await bot.dispatch(OWNER, f"/listen {wallet}")
    assert wallet in await bot.dispatch(OWNER, "/wallets")
    assert "Stopped watching" in await bot.dispatch(OWNER, f"/unlisten {wallet}")
    assert "No wallets watched" in await bot.dispatch(OWNER, "/wallets")


@pytest.mark.asyncio
async def test_start_stop_status(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    assert "not running" in await bot.dispatch(OWNER, "/stop")
    assert "Monitoring started" in await bot.dispatch(OWNER, "/start")
    assert "already running" in await bot.dispatch(OWNER, "/start")
    assert "Running" in await bot.dispatch(OWNER, "/status")
    assert "Monitoring stopped" in await bot.dispatch(OWNER, "/stop")


@pytest.mark.asyncio
async def test_toggle_factory_command(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    assert "Disabled uniswap_v3" in await bot.dispatch(OWNER, "/togglefactory uniswap_v3")
    assert "⬜ uniswap_v3" in await bot.dispatch(OWNER, "/factories")
    assert "Unknown factory" in await bot.dispatch(OWNER, "/togglefactory pancake")


@pytest.mark.asyncio
async def test_poll_updates_advances_offset(client, settings, alerts, state):
    bot = make_bot(client, settings, alerts, state)

    async def fake_fetch():
        return [
            {'update_id': 10, 'message': {'chat': {'id': 42}, 'text': "/help"}},
            {'update_id': 11, 'message': {'chat': {'id': 42}}},
        ]

    bot.fetch_updates = fake_fetch
    await bot.poll_updates()

    assert bot.offset == 12
    assert len(alerts.messages) == 1
