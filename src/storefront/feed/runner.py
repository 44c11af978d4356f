"""Feed runner — pumps a status event source into the event feed.

One asyncio task per followed order. Events of a subscription are applied
one at a time, so ticks never overlap. Following an order again cancels
its previous task before starting a new one, and ``stop`` cancels every
task when the session ends.
"""

import asyncio

import structlog

from storefront.domain import storefront
from storefront.gateway.order_service_port import RemoteAPIFailure
from storefront.order.status import InvalidTransition

logger = structlog.get_logger(__name__)


class FeedRunner:
    def __init__(self, feed, source, domain=storefront):
        self._feed = feed
        self._source = source
        self._domain = domain
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def following(self) -> set[str]:
        return set(self._tasks)

    def follow(self, order_id) -> asyncio.Task:
        """Start (or restart) following an order. Needs a running event loop."""
        order_id = str(order_id)
        self.unfollow(order_id)

        task = asyncio.get_running_loop().create_task(self._consume(order_id), name=f"feed:{order_id}")
        self._tasks[order_id] = task
        task.add_done_callback(lambda done: self._forget(order_id, done))
        return task

    def unfollow(self, order_id):
        task = self._tasks.pop(str(order_id), None)
        if task is not None:
            task.cancel()

    async def stop(self):
        """Cancel every subscription and wait for the tasks to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Feed runner stopped", cancelled=len(tasks))

    def _forget(self, order_id, task):
        if self._tasks.get(order_id) is task:
            del self._tasks[order_id]

    async def _consume(self, order_id):
        latest = self._feed.latest_status(order_id)
        since = latest.value if latest else None
        try:
            async for event in self._source.subscribe(order_id, since=since):
                if not self._feed.connected:
                    logger.info("Feed disconnected; no longer following order", order_id=order_id)
                    return
                with self._domain.domain_context():
                    try:
                        self._feed.emit_status_change(event.order_id, event.status, trusted=True)
                    except InvalidTransition as exc:
                        logger.warning(
                            "Ignoring status event rejected by the status machine",
                            order_id=event.order_id,
                            status=event.status,
                            error=str(exc.messages),
                        )
        except RemoteAPIFailure as exc:
            logger.warning("Status source failed", order_id=order_id, error=str(exc))
