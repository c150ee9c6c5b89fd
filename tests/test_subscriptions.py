import asyncio

import pytest

from base_sniper.chain.abis import V2_FACTORY_ABI, event_topic
from base_sniper.chain.subscriptions import BlockSubscription, EventSubscription, SubscriptionRegistry
from base_sniper.scanner.session import MonitoringSession

from fakes import FakeChainClient, FakeEvents, PAIR, TOKEN, WETH


FACTORY = "0x3333333333333333333333333333333333333333"


class StubSubscription:
    def __init__(self):
        self.started = 0
        self.cancelled = 0

    def start(self):
        self.started += 1

    def cancel(self):
        self.cancelled += 1


class FakeFactory:
    address = FACTORY
    events = FakeEvents()


def test_subscribe_replaces_existing_name():
    registry = SubscriptionRegistry()
    first, second = StubSubscription(), StubSubscription()

    registry.subscribe("factory:uniswap_v2", first)
    registry.subscribe("factory:uniswap_v2", second)

    assert first.cancelled == 1
    assert second.started == 1
    assert registry.get("factory:uniswap_v2") is second
    assert len(registry) == 1


def test_unsubscribe_by_prefix_and_all():
    registry = SubscriptionRegistry()
    subs = {name: StubSubscription() for name in ("factory:a", "factory:b", "big-buys")}
    for name, sub in subs.items():
        registry.subscribe(name, sub)

    assert registry.unsubscribe_prefix("factory:") == 2
    assert registry.names() == ["big-buys"]
    assert registry.unsubscribe("missing") is False
    assert registry.unsubscribe_all() == 1
    assert all(sub.cancelled == 1 for sub in subs.values())


@pytest.mark.asyncio
async def test_event_subscription_walks_forward_from_head():
    client = FakeChainClient()
    received = []

    async def handler(event):
        received.append(event['args']['pair'])

    subscription = EventSubscription(client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler)
    client.logs = [{'blockNumber': 100, 'args': {'pair': "old"}}]

    # First poll only anchors at the current head
    assert await subscription.poll_once() == 0

    client.head = 102
    client.logs.append({'blockNumber': 101, 'args': {'pair': PAIR}})
    client.logs.append({'blockNumber': 102, 'args': {'pair': TOKEN}})
    assert await subscription.poll_once() == 2
    await subscription.drain()

    assert received == [PAIR, TOKEN]
    assert await subscription.poll_once() == 0


def test_event_topic_matches_pair_created_signature():
    assert event_topic(V2_FACTORY_ABI, "PairCreated") == (
        "0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9"
    )


@pytest.mark.asyncio
async def test_handler_errors_do_not_stop_dispatch():
    client = FakeChainClient()
    received = []

    async def handler(event):
        if event['args']['pair'] == "bad":
            raise RuntimeError("boom")
        received.append(event['args']['pair'])

    subscription = EventSubscription(client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler)
    await subscription.poll_once()
    client.head = 101
    client.logs = [{'blockNumber': 101, 'args': {'pair': "bad"}}, {'blockNumber': 101, 'args': {'pair': WETH}}]
    await subscription.poll_once()
    await subscription.drain()

    assert received == [WETH]


@pytest.mark.asyncio
async def test_block_subscription_handles_blocks_in_order():
    client = FakeChainClient()
    seen = []

    async def handler(block_number):
        seen.append(block_number)

    subscription = BlockSubscription(client, handler)
    await subscription.poll_once()
    client.head = 103
    assert await subscription.poll_once() == 3

    assert seen == [101, 102, 103]


@pytest.mark.asyncio
async def test_session_start_stop_lifecycle():
    session = MonitoringSession()

    class Component:
        attached = 0

        async def attach(self):
            self.attached += 1
            session.registry.subscribe("stub", StubSubscription())

    component = Component()
    session.add_component(component)

    assert await session.start() is True
    assert await session.start() is False
    assert component.attached == 1
    assert session.status()['listeners'] == ["stub"]

    assert await session.stop() is True
    assert await session.stop() is False
    assert len(session.registry) == 0


def test_session_dedup_sets_ignore_case():
    session = MonitoringSession()
    assert session.mark_pair("0xAbC") is True
    assert session.mark_pair("0xabc") is False
    assert session.mark_transaction("big-buy", "0xFF") is True
    assert session.mark_transaction("big-buy", "0xff") is False
    assert session.mark_transaction("wallet", "0xff") is True

    session.reset()
    assert session.status()['tracked_pairs'] == 0
    assert session.mark_pair("0xabc") is True


@pytest.mark.asyncio
async def test_cancel_from_inside_handler_keeps_running_handler():
    client = FakeChainClient()
    registry = SubscriptionRegistry()
    finished = asyncio.Event()

    async def handler(event):
        registry.unsubscribe("factory:test")
        await asyncio.sleep(0)
        finished.set()

    subscription = EventSubscription(client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler)
    registry.subscribe("factory:test", subscription)
    await subscription.poll_once()
    client.head = 101
    client.logs = [{'blockNumber': 101, 'args': {'pair': PAIR}}]
    await subscription.poll_once()

    await asyncio.wait_for(finished.wait(), timeout=1)
    assert "factory:test" not in registry


@pytest.mark.asyncio
async def test_failed_poll_retries_the_same_range():
    client = FakeChainClient()
    received = []
    attempts = []
    get_logs = client.get_logs

    async def rate_limited_once(filter_params):
        attempts.append((filter_params['fromBlock'], filter_params['toBlock']))
        if len(attempts) == 1:
            raise RuntimeError("429 rate limited")
        return await get_logs(filter_params)

    async def handler(event):
        received.append(event['args']['pair'])

    client.get_logs = rate_limited_once
    subscription = EventSubscription(client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler)
    await subscription.poll_once()
    client.head = 101
    client.logs = [{'blockNumber': 101, 'args': {'pair': PAIR}}]

    with pytest.raises(RuntimeError):
        await subscription.poll_once()
    assert subscription.last_block == 100

    assert await subscription.poll_once() == 1
    await subscription.drain()
    assert received == [PAIR]
    assert attempts == [(101, 101), (101, 101)]


@pytest.mark.asyncio
async def test_from_block_includes_that_block():
    client = FakeChainClient()
    received = []

    async def handler(event):
        received.append(event['blockNumber'])

    client.logs = [{'blockNumber': 99, 'args': {'pair': "older"}}, {'blockNumber': 100, 'args': {'pair': PAIR}}]
    subscription = EventSubscription(
        client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler, from_block=100
    )

    assert await subscription.poll_once() == 1
    await subscription.drain()
    assert received == [100]


@pytest.mark.asyncio
async def test_subscription_expires_after_lifetime_blocks():
    client = FakeChainClient()
    expired = asyncio.Event()

    async def handler(event):
        pass

    subscription = EventSubscription(
        client, FakeFactory(), V2_FACTORY_ABI, "PairCreated", handler,
        from_block=100, lifetime_blocks=5, on_expire=expired.set,
    )
    await subscription.poll_once()
    assert subscription.expired is False

    client.head = 104
    subscription.start()
    await asyncio.wait_for(expired.wait(), timeout=1)

    assert subscription.expired is True
    assert subscription.last_block == 104
    await asyncio.sleep(0)
    assert subscription.active is False
