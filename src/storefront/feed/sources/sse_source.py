"""Server-sent events status source — follows an order over an HTTP event stream.

The notification hub streams ``event: order_update`` messages whose data
is a JSON object carrying at least ``status``. The stream is read until
the order reaches a terminal status or the server closes it. Reconnect
and backoff policy belong to whoever owns the runner.
"""

import json

import httpx
import structlog

from storefront.feed.sources.status_source_port import StatusEvent, StatusEventSource, ends_subscription
from storefront.gateway.order_service_port import RemoteAPIFailure

logger = structlog.get_logger(__name__)


class SseStatusSource(StatusEventSource):
    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        if client is None:
            if not base_url:
                raise ValueError("A push channel base URL is required")
            client = httpx.AsyncClient(base_url=base_url, timeout=None)
        self._client = client

    async def aclose(self):
        await self._client.aclose()

    async def subscribe(self, order_id, since=None):
        path = f"/notifications/stream/{order_id}"
        try:
            async with self._client.stream("GET", path, headers={"Accept": "text/event-stream"}) as response:
                response.raise_for_status()
                event_name = None
                async for line in response.aiter_lines():
                    if line.startswith("event:"):
                        event_name = line[len("event:") :].strip()
                    elif line.startswith("data:") and event_name == "order_update":
                        event = self._parse(order_id, line[len("data:") :].strip())
                        if event is None:
                            continue
                        yield event
                        if ends_subscription(event.status):
                            return
                    elif not line:
                        event_name = None
        except httpx.HTTPError as exc:
            raise RemoteAPIFailure(f"Status stream for order {order_id} failed: {exc}") from exc

    @staticmethod
    def _parse(order_id, data):
        try:
            payload = json.loads(data)
        except ValueError:
            logger.warning("Ignoring malformed status message", order_id=str(order_id), data=data)
            return None
        if not isinstance(payload, dict) or "status" not in payload:
            logger.warning("Ignoring status message without a status", order_id=str(order_id))
            return None
        return StatusEvent(order_id=str(payload.get("order_id") or order_id), status=payload["status"])
