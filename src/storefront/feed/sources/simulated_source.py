"""Simulated status source — advances orders at random intervals.

Stands in for a server push channel during development: every tick, with
some probability, the order moves one step along the canonical path. The
randomness is a stand-in, not a contract.
"""

import asyncio
import random

from storefront.feed.sources.status_source_port import StatusEvent, StatusEventSource
from storefront.order.status import CANONICAL_PATH, OrderStatus, parse_status


class SimulatedStatusSource(StatusEventSource):
    def __init__(
        self,
        min_interval: float = 5.0,
        max_interval: float = 15.0,
        probability: float = 0.2,
        rng: random.Random | None = None,
        sleep=asyncio.sleep,
    ):
        if min_interval < 0 or max_interval < min_interval:
            raise ValueError("Tick interval bounds must satisfy 0 <= min_interval <= max_interval")
        self.min_interval = min_interval
        self.max_interval = max_interval
        self.probability = probability
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def subscribe(self, order_id, since=None):
        status = parse_status(since) if since else OrderStatus.PENDING
        if status not in CANONICAL_PATH:
            return

        position = CANONICAL_PATH.index(status)
        while position < len(CANONICAL_PATH) - 1:
            await self._sleep(self._rng.uniform(self.min_interval, self.max_interval))
            if self._rng.random() < self.probability:
                position += 1
                yield StatusEvent(order_id=str(order_id), status=CANONICAL_PATH[position].value)
