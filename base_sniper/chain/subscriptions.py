"""
Subscriptions - Polling log/block listeners and a registry that owns them
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Set
from colorama import Fore, Style

from base_sniper.chain.abis import event_topic


class _PollingSubscription:
    """
    Shared poll loop: anchor at the current head (or just before `from_block`), then walk forward.
    A block range only counts as seen once it has been handled, so a failed poll is retried.
    With `lifetime_blocks` set the subscription expires after that many blocks and calls `on_expire`.
    """

    tag = "Subscription"

    def __init__(self, client, poll_interval: float = 2.0, from_block: Optional[int] = None,
                 lifetime_blocks: Optional[int] = None, on_expire: Optional[Callable[[], None]] = None):
        self.client = client
        self.poll_interval = poll_interval
        self.last_block: Optional[int] = None if from_block is None else from_block - 1
        self.start_block: Optional[int] = self.last_block
        self.lifetime_blocks = lifetime_blocks
        self.on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._handler_tasks: Set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        if self.lifetime_blocks is None or self.start_block is None:
            return False
        return self.last_block - self.start_block >= self.lifetime_blocks

    def start(self):
        if not self.active:
            self._task = asyncio.create_task(self._run())

    def cancel(self):
        # A handler or the poll loop itself may tear down its own subscription
        current = asyncio.current_task()
        if self._task is not None and self._task is not current:
            self._task.cancel()
        self._task = None
        for task in list(self._handler_tasks):
            if task is not current:
                task.cancel()
        self._handler_tasks.clear()

    async def drain(self):
        """Wait for every dispatched handler to finish"""
        while self._handler_tasks:
            await asyncio.gather(*list(self._handler_tasks), return_exceptions=True)

    async def _run(self):
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                print(f"{Fore.RED}[{self.tag}] Poll error: {e}{Style.RESET_ALL}")

            if self.expired:
                print(f"{Fore.YELLOW}[{self.tag}] Expired after {self.lifetime_blocks} blocks{Style.RESET_ALL}")
                if self.on_expire is not None:
                    self.on_expire()
                return
            await asyncio.sleep(self.poll_interval)

    async def _next_range(self):
        """Unseen (from, to) block range, or None; the caller commits it to last_block"""
        current = await self.client.block_number()
        if self.last_block is None:
            self.last_block = current
            self.start_block = current
            return None
        if current <= self.last_block:
            return None
        return self.last_block + 1, current

    def _dispatch(self, coro: Awaitable):
        task = asyncio.create_task(self._guarded(coro))
        self._handler_tasks.add(task)
        task.add_done_callback(self._handler_tasks.discard)

    async def _guarded(self, coro: Awaitable):
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            print(f"{Fore.RED}[{self.tag}] Handler error: {e}{Style.RESET_ALL}")

    async def poll_once(self) -> int:
        raise NotImplementedError


class EventSubscription(_PollingSubscription):
    def __init__(self, client, contract, abi: list, event_name: str,
                 handler: Callable[[dict], Awaitable], poll_interval: float = 2.0, **kwargs):
        super().__init__(client, poll_interval, **kwargs)
        self.contract = contract
        self.event_name = event_name
        self.handler = handler
        self.topic = event_topic(abi, event_name)
        self.tag = f"Events:{event_name}"

    async def poll_once(self) -> int:
        block_range = await self._next_range()
        if block_range is None:
            return 0

        # Raises on RPC errors before the range is committed
        logs = await self.client.get_logs({
            'address': self.contract.address,
            'topics': [self.topic],
            'fromBlock': block_range[0],
            'toBlock': block_range[1],
        })

        decoder = getattr(self.contract.events, self.event_name)()
        dispatched = 0
        for log in logs:
            try:
                event = decoder.process_log(log)
            except Exception as e:
                print(f"{Fore.RED}[{self.tag}] Undecodable log skipped: {e}{Style.RESET_ALL}")
                continue
            self._dispatch(self.handler(event))
            dispatched += 1

        self.last_block = block_range[1]
        return dispatched


class BlockSubscription(_PollingSubscription):
    tag = "Blocks"

    def __init__(self, client, handler: Callable[[int], Awaitable], poll_interval: float = 2.0, **kwargs):
        super().__init__(client, poll_interval, **kwargs)
        self.handler = handler

    async def poll_once(self) -> int:
        block_range = await self._next_range()
        if block_range is None:
            return 0

        # Blocks are handled in order, one at a time
        for block_number in range(block_range[0], block_range[1] + 1):
            await self._guarded(self.handler(block_number))
            self.last_block = block_number
        return block_range[1] - block_range[0] + 1


class SubscriptionRegistry:
    """Listeners keyed by logical name; one place to tear everything down"""

    def __init__(self):
        self._subscriptions: Dict[str, _PollingSubscription] = {}

    def subscribe(self, name: str, subscription):
        existing = self._subscriptions.pop(name, None)
        if existing is not None:
            existing.cancel()
        subscription.start()
        self._subscriptions[name] = subscription
        print(f"{Fore.CYAN}[Registry] Subscribed: {name}{Style.RESET_ALL}")
        return subscription

    def get(self, name: str):
        return self._subscriptions.get(name)

    def unsubscribe(self, name: str) -> bool:
        subscription = self._subscriptions.pop(name, None)
        if subscription is None:
            return False
        subscription.cancel()
        print(f"{Fore.YELLOW}[Registry] Unsubscribed: {name}{Style.RESET_ALL}")
        return True

    def unsubscribe_prefix(self, prefix: str) -> int:
        names = [n for n in self._subscriptions if n.startswith(prefix)]
        for name in names:
            self.unsubscribe(name)
        return len(names)

    def unsubscribe_all(self) -> int:
        count = len(self._subscriptions)
        for name in list(self._subscriptions):
            self.unsubscribe(name)
        return count

    def names(self) -> List[str]:
        return sorted(self._subscriptions)

    def __contains__(self, name: str) -> bool:
        return name in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)
